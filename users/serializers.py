from rest_framework import serializers
from .models import User


class UserSerializer(serializers.ModelSerializer):
    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            'id',
            'username',
            'email',
            'display_name',
            'role',
            'roll_number',
            'department',
            'phone',
            'profile_picture',
            'date_joined',
        ]
        read_only_fields = fields
