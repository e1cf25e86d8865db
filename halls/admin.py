from django.contrib import admin
from .models import Hall


@admin.register(Hall)
class HallAdmin(admin.ModelAdmin):
    list_display = ('name', 'location', 'seating_capacity', 'is_active', 'updated_at')
    list_filter = ('is_active',)
    search_fields = ('name', 'location')
