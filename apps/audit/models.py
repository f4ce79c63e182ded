"""
Activity log models for Newsdesk.
"""

from django.db import models

from apps.core.models import BaseModel

SYSTEM_CONTENT_ID = 'system'


class ActivityAction:
    """Action names recorded in the activity log."""

    # Draft lifecycle
    POST_CREATED = 'POST_CREATED'
    POST_UPDATED = 'POST_UPDATED'
    POST_DELETED = 'POST_DELETED'

    # Workflow successes
    SUBMITTED = 'SUBMITTED'
    REVISION_SUBMITTED = 'REVISION_SUBMITTED'
    AUTO_APPROVED = 'AUTO_APPROVED'
    ASSIGNED = 'ASSIGNED'
    REVIEW_STARTED = 'REVIEW_STARTED'
    CHANGES_REQUESTED = 'CHANGES_REQUESTED'
    APPROVED = 'APPROVED'
    RECOMMEND_APPROVAL = 'RECOMMEND_APPROVAL'
    REJECTED = 'REJECTED'
    PUBLISHED = 'PUBLISHED'
    SCHEDULED = 'SCHEDULED'
    SOCIAL_SHARE = 'SOCIAL_SHARE'
    ON_HOLD = 'ON_HOLD'
    NOTE_ADDED = 'NOTE_ADDED'
    UNPUBLISHED = 'UNPUBLISHED'
    RELEASED = 'RELEASED'
    PRIORITY_CHANGED = 'PRIORITY_CHANGED'
    DEADLINE_SET = 'DEADLINE_SET'

    # User management and settings
    USER_CREATED = 'USER_CREATED'
    USER_ROLE_CHANGED = 'USER_ROLE_CHANGED'
    USER_DEACTIVATED = 'USER_DEACTIVATED'
    SETTINGS_CHANGED = 'SETTINGS_CHANGED'

    DENIED_SUFFIX = '_DENIED'

    @classmethod
    def denied(cls, action_name):
        """Action name for a rejected attempt, e.g. SUBMIT_DENIED."""
        return f"{action_name}{cls.DENIED_SUFFIX}"


# Hidden from editors in the activity API
USER_MANAGEMENT_ACTIONS = frozenset({
    ActivityAction.USER_CREATED,
    ActivityAction.USER_ROLE_CHANGED,
    ActivityAction.USER_DEACTIVATED,
    ActivityAction.SETTINGS_CHANGED,
})


class AppendOnlyError(Exception):
    """Raised on any attempt to change or remove an activity entry."""


class ActivityLogQuerySet(models.QuerySet):

    def update(self, **kwargs):
        raise AppendOnlyError("Activity log entries cannot be updated")

    def delete(self):
        raise AppendOnlyError("Activity log entries cannot be deleted")


class ActivityLogEntry(BaseModel):
    """
    Immutable record of one action on an article (or on the system).

    Actor fields are denormalized so the entry survives user changes.
    """

    content_id = models.CharField(
        max_length=64,
        db_index=True,
        verbose_name='Content ID',
        help_text='Article id, or "system" for system-level events'
    )

    actor_id = models.CharField(
        max_length=64,
        db_index=True,
        verbose_name='Actor ID',
        help_text='Id of the user who acted'
    )

    actor_name = models.CharField(
        max_length=200,
        verbose_name='Actor Name',
        help_text='Display name at the time of the action'
    )

    actor_role = models.CharField(
        max_length=20,
        verbose_name='Actor Role',
        help_text='Role at the time of the action'
    )

    action = models.CharField(
        max_length=40,
        db_index=True,
        verbose_name='Action',
        help_text='What happened, e.g. SUBMITTED or PUBLISH_DENIED'
    )

    detail = models.TextField(
        blank=True,
        verbose_name='Detail',
        help_text='Human readable description'
    )

    metadata = models.JSONField(
        default=dict,
        blank=True,
        verbose_name='Metadata',
        help_text='Structured context (statuses, error codes, violations)'
    )

    objects = ActivityLogQuerySet.as_manager()

    class Meta:
        db_table = 'activity_log'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['content_id', 'created_at'], name='activity_content_idx'),
            models.Index(fields=['actor_id', 'created_at'], name='activity_actor_idx'),
            models.Index(fields=['action', 'created_at'], name='activity_action_idx'),
        ]
        verbose_name = 'Activity Log Entry'
        verbose_name_plural = 'Activity Log'

    def __str__(self):
        return f"{self.action} by {self.actor_name} on {self.content_id}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise AppendOnlyError("Activity log entries cannot be updated")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise AppendOnlyError("Activity log entries cannot be deleted")
