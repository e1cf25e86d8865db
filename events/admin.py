from django.contrib import admin
from .models import Event, Idea, EventRegistration, TeamRegistration, TeamMember


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ('title', 'status', 'club', 'organizer', 'hall', 'start_date_time', 'accepts_ideas')
    list_filter = ('status', 'approval_status', 'accepts_ideas', 'is_team_event', 'club')
    search_fields = ('title', 'description', 'organizer__username')
    date_hierarchy = 'start_date_time'
    readonly_fields = ('approved_by', 'approved_by_name', 'approval_date', 'submitted_for_approval_date')


@admin.register(Idea)
class IdeaAdmin(admin.ModelAdmin):
    list_display = ('title', 'event', 'student', 'status', 'created_at')
    list_filter = ('status',)
    search_fields = ('title', 'event__title', 'student__username')


@admin.register(EventRegistration)
class EventRegistrationAdmin(admin.ModelAdmin):
    list_display = ('user', 'event', 'status', 'payment_status', 'registered_at')
    list_filter = ('status', 'payment_status', 'event__club')
    search_fields = ('user__username', 'event__title', 'roll_number')


class TeamMemberInline(admin.TabularInline):
    model = TeamMember
    extra = 0
    readonly_fields = ('roll_number_key',)


@admin.register(TeamRegistration)
class TeamRegistrationAdmin(admin.ModelAdmin):
    list_display = ('team_name', 'event', 'leader', 'status', 'registered_at')
    list_filter = ('status', 'payment_status')
    search_fields = ('team_name', 'leader__username', 'event__title', 'members__roll_number')
    inlines = [TeamMemberInline]
