"""
Activity log serializers.
"""

from rest_framework import serializers

from apps.audit.models import ActivityLogEntry
from apps.audit.services import format_activity_message


class ActivityLogEntrySerializer(serializers.ModelSerializer):
    """Read-only entry with a formatted one-line message."""

    message = serializers.SerializerMethodField()

    class Meta:
        model = ActivityLogEntry
        fields = [
            'id',
            'content_id',
            'actor_id',
            'actor_name',
            'actor_role',
            'action',
            'detail',
            'message',
            'metadata',
            'created_at',
        ]
        read_only_fields = fields

    def get_message(self, obj):
        return format_activity_message(obj.action, obj.actor_name, obj.detail)
