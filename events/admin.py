from django.contrib import admin
from .models import Event, Team, TeamMembership, Ticket, Feedback, ScanLog


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ('name', 'event_type', 'status', 'organizer', 'start_date', 'confirmed_count', 'max_participants')
    list_filter = ('status', 'event_type', 'eligibility', 'is_team_event')
    search_fields = ('name', 'description', 'organizer__email')
    date_hierarchy = 'start_date'
    # Ledger counters move only through conditional updates
    readonly_fields = ('confirmed_count', 'team_count', 'created_at', 'updated_at')


class TeamMembershipInline(admin.TabularInline):
    model = TeamMembership
    extra = 0
    readonly_fields = ('user', 'event', 'role', 'joined_at')


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    list_display = ('name', 'code', 'event', 'leader', 'status', 'member_count', 'created_at')
    list_filter = ('status',)
    search_fields = ('name', 'code', 'event__name', 'leader__email')
    readonly_fields = ('code', 'member_count', 'completed_at', 'created_at')
    inlines = [TeamMembershipInline]


@admin.register(Ticket)
class TicketAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'event', 'team', 'status', 'checked_in', 'registered_at')
    list_filter = ('status', 'checked_in', 'event')
    search_fields = ('user__email', 'user__name', 'event__name')
    readonly_fields = ('holds_stock', 'registered_at', 'cancelled_at', 'check_in_time')


@admin.register(Feedback)
class FeedbackAdmin(admin.ModelAdmin):
    list_display = ('event', 'rating', 'created_at')
    list_filter = ('rating', 'created_at')
    search_fields = ('comment', 'event__name')


@admin.register(ScanLog)
class ScanLogAdmin(admin.ModelAdmin):
    list_display = ('scanned_by', 'action', 'event', 'ticket_ref', 'created_at')
    list_filter = ('action', 'created_at')
    search_fields = ('scanned_by__email', 'ticket_ref')
