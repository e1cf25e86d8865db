# events/team_serializers.py

from rest_framework import serializers
from .models import TeamMember, TeamRegistration


class TeamMemberSerializer(serializers.ModelSerializer):
    """Serializer for one roster line"""

    class Meta:
        model = TeamMember
        fields = ['position', 'name', 'email', 'roll_number']
        read_only_fields = fields


class TeamRegistrationSerializer(serializers.ModelSerializer):
    """Team registration with its ordered roster"""
    members = TeamMemberSerializer(many=True, read_only=True)
    leader_name = serializers.CharField(source='leader.username', read_only=True)
    event_title = serializers.CharField(source='event.title', read_only=True)
    team_size = serializers.SerializerMethodField()

    class Meta:
        model = TeamRegistration
        fields = [
            'id', 'event', 'event_title', 'team_name', 'leader', 'leader_name',
            'team_size', 'members', 'notes', 'status', 'payment_status', 'registered_at'
        ]
        read_only_fields = fields

    def get_team_size(self, obj):
        # members are usually prefetched
        return len(obj.members.all())


class TeamMemberInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150)
    email = serializers.CharField(max_length=254, required=False, allow_blank=True, default="")
    roll_number = serializers.CharField(max_length=32)


class RegisterTeamSerializer(serializers.Serializer):
    """
    POST /api/team-registrations/register/

    The authenticated user is the team leader and should be listed in
    ``members`` like everyone else.
    """
    event_id = serializers.IntegerField(min_value=1)
    team_name = serializers.CharField(max_length=100)
    members = TeamMemberInputSerializer(many=True, allow_empty=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
