"""
Read-only admin for the activity log.
"""

from django.contrib import admin

from .models import ActivityLogEntry


@admin.register(ActivityLogEntry)
class ActivityLogEntryAdmin(admin.ModelAdmin):

    list_display = ['created_at', 'action', 'actor_name', 'actor_role', 'content_id', 'detail']
    list_filter = ['action', 'actor_role', ('created_at', admin.DateFieldListFilter)]
    search_fields = ['content_id', 'actor_id', 'actor_name', 'detail']
    date_hierarchy = 'created_at'
    readonly_fields = [
        'id', 'content_id', 'actor_id', 'actor_name', 'actor_role',
        'action', 'detail', 'metadata', 'created_at', 'updated_at',
    ]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
