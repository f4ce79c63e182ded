"""
Activity logging service.

ActivityLogger is the single writer of ActivityLogEntry rows and the read
side used by the review desk and the activity API.

Usage:
    ActivityLogger.record(article.id, actor, ActivityAction.SUBMITTED,
                          detail='submitted for review with NORMAL priority')
    ActivityLogger.for_content(article.id, newest_first=False)
"""

import logging
from datetime import timedelta
from typing import Any, Dict, Iterable, List, Optional

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import Count
from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver
from django.db.models.functions import TruncDate
from django.utils import timezone

from apps.audit.models import SYSTEM_CONTENT_ID, ActivityAction, ActivityLogEntry
from apps.core.metrics import increment_audit_failure
from apps.core.models import StaffProfile

logger = logging.getLogger(__name__)
failure_logger = logging.getLogger('apps.audit.failures')


# Display templates keyed by action; {actor} and {detail} are substituted
ACTIVITY_MESSAGES = {
    'POST_CREATED': '{actor} created a new article',
    'POST_UPDATED': '{actor} updated the article',
    'POST_DELETED': '{actor} deleted the article',
    'SUBMITTED': '{actor} submitted for review',
    'REVISION_SUBMITTED': '{actor} resubmitted after revisions',
    'AUTO_APPROVED': '{actor} was auto-approved',
    'ASSIGNED': 'Article assigned: {detail}',
    'REVIEW_STARTED': '{actor} started reviewing',
    'CHANGES_REQUESTED': '{actor} {detail}',
    'APPROVED': '{actor} approved the article',
    'RECOMMEND_APPROVAL': '{actor} recommended the article for approval',
    'REJECTED': '{actor} {detail}',
    'PUBLISHED': '{actor} published the article',
    'SCHEDULED': '{actor} {detail}',
    'SOCIAL_SHARE': '{actor} queued the article for social media',
    'ON_HOLD': '{actor} put the review on hold',
    'NOTE_ADDED': '{actor} added an internal note',
    'UNPUBLISHED': '{actor} unpublished the article',
    'RELEASED': 'Scheduled article went live',
    'PRIORITY_CHANGED': '{actor} {detail}',
    'DEADLINE_SET': '{actor} {detail}',
    'USER_CREATED': "{actor} account created",
    'USER_ROLE_CHANGED': "{actor}'s role changed: {detail}",
    'USER_DEACTIVATED': '{actor} account deactivated',
    'SETTINGS_CHANGED': '{actor} changed settings: {detail}',
}


def format_activity_message(action: str, actor_name: str, detail: str = '') -> str:
    """One-line human readable description of an entry."""
    if action.endswith('_DENIED'):
        attempted = action[:-len('_DENIED')].replace('_', ' ').lower()
        return f"{actor_name} was denied: {attempted}"
    template = ACTIVITY_MESSAGES.get(action)
    if template is None:
        return f"{actor_name} performed {action}"
    return template.format(actor=actor_name, detail=detail or '').strip()


class ActivityLogger:
    """Append-only writer and reader of the activity log."""

    @staticmethod
    def record(
        content_id,
        actor,
        action: str,
        detail: str = '',
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ActivityLogEntry:
        """
        Append one entry. Errors propagate; see record_safely() for the
        variant that never fails the caller.

        Args:
            content_id: Article id, or None for a system-level event
            actor: apps.core.actors.Actor
            action: ActivityAction name
            detail: Free text from the per-action template
            metadata: JSON-serializable context
        """
        entry = ActivityLogEntry.objects.create(
            content_id=str(content_id) if content_id else SYSTEM_CONTENT_ID,
            actor_id=str(actor.id),
            actor_name=actor.display_name,
            actor_role=getattr(actor.role, 'value', actor.role),
            action=action,
            detail=detail or '',
            metadata=metadata or {},
        )
        logger.info(
            f"[Activity] {action} by {actor.display_name} ({entry.actor_role})"
            f" on {entry.content_id}"
        )
        return entry

    @classmethod
    def record_safely(cls, content_id, actor, action: str, detail: str = '',
                      metadata: Optional[Dict[str, Any]] = None) -> Optional[ActivityLogEntry]:
        """
        Append one entry in its own savepoint. A failed write is reported
        to the apps.audit.failures logger and never reaches the caller.
        """
        try:
            with transaction.atomic():
                return cls.record(content_id, actor, action, detail, metadata)
        except DatabaseError as e:
            increment_audit_failure()
            failure_logger.error(
                f"Audit write failed: action={action} content={content_id} "
                f"actor={actor.id}: {e}",
                extra={'audit_action': action, 'content_id': str(content_id)},
            )
            return None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    def for_content(content_id, newest_first: bool = True, limit: Optional[int] = None):
        order = '-created_at' if newest_first else 'created_at'
        queryset = ActivityLogEntry.objects.filter(content_id=str(content_id)).order_by(order)
        return queryset[:limit] if limit else queryset

    @staticmethod
    def for_actor(actor_id, newest_first: bool = True, limit: Optional[int] = None):
        order = '-created_at' if newest_first else 'created_at'
        queryset = ActivityLogEntry.objects.filter(actor_id=str(actor_id)).order_by(order)
        return queryset[:limit] if limit else queryset

    @staticmethod
    def recent(
        actions: Optional[Iterable[str]] = None,
        exclude_actions: Optional[Iterable[str]] = None,
        start=None,
        end=None,
        limit: Optional[int] = 100,
    ):
        """Newest entries, optionally filtered by action set and date range."""
        queryset = ActivityLogEntry.objects.all()
        if actions:
            queryset = queryset.filter(action__in=list(actions))
        if exclude_actions:
            queryset = queryset.exclude(action__in=list(exclude_actions))
        if start:
            queryset = queryset.filter(created_at__gte=start)
        if end:
            queryset = queryset.filter(created_at__lte=end)
        queryset = queryset.order_by('-created_at')
        return queryset[:limit] if limit else queryset

    @staticmethod
    def counts_by_action(since=None, queryset=None) -> Dict[str, int]:
        queryset = ActivityLogEntry.objects.all() if queryset is None else queryset
        if since:
            queryset = queryset.filter(created_at__gte=since)
        rows = queryset.order_by().values('action').annotate(count=Count('id'))
        return {row['action']: row['count'] for row in rows}

    @staticmethod
    def counts_by_actor(since=None, limit: int = 10, queryset=None) -> List[Dict[str, Any]]:
        queryset = ActivityLogEntry.objects.all() if queryset is None else queryset
        if since:
            queryset = queryset.filter(created_at__gte=since)
        rows = (
            queryset.order_by()
            .values('actor_id', 'actor_name', 'actor_role')
            .annotate(count=Count('id'))
            .order_by('-count', 'actor_name')
        )
        return list(rows[:limit])

    @staticmethod
    def daily_counts(days: int = 7) -> Dict[str, int]:
        """Entries per calendar day (UTC) over the last `days` days."""
        since = timezone.now() - timedelta(days=days)
        rows = (
            ActivityLogEntry.objects.filter(created_at__gte=since)
            .annotate(day=TruncDate('created_at'))
            .order_by()
            .values('day')
            .annotate(count=Count('id'))
            .order_by('day')
        )
        return {row['day'].isoformat(): row['count'] for row in rows}


# ============================================================================
# User management
# ============================================================================

def _account_actor(user):
    from apps.core.actors import Actor

    return Actor.from_user(user)


@receiver(pre_save, sender=StaffProfile)
def remember_previous_role(sender, instance, **kwargs):
    instance._previous_role = None
    if instance._state.adding:
        return
    instance._previous_role = (
        StaffProfile.objects.filter(pk=instance.pk).values_list('role', flat=True).first()
    )


@receiver(post_save, sender=StaffProfile)
def record_profile_change(sender, instance, created, raw=False, **kwargs):
    if raw:
        return
    if created:
        ActivityLogger.record_safely(
            SYSTEM_CONTENT_ID,
            _account_actor(instance.user),
            ActivityAction.USER_CREATED,
            detail=f"role {instance.role}",
            metadata={'user_id': str(instance.user_id), 'role': instance.role},
        )
        return

    previous = getattr(instance, '_previous_role', None)
    if previous and previous != instance.role:
        ActivityLogger.record_safely(
            SYSTEM_CONTENT_ID,
            _account_actor(instance.user),
            ActivityAction.USER_ROLE_CHANGED,
            detail=f"{previous} -> {instance.role}",
            metadata={'user_id': str(instance.user_id), 'from_role': previous, 'to_role': instance.role},
        )


@receiver(pre_save, sender=settings.AUTH_USER_MODEL)
def remember_previous_active(sender, instance, **kwargs):
    instance._was_active = False
    if instance._state.adding:
        return
    instance._was_active = bool(
        sender.objects.filter(pk=instance.pk).values_list('is_active', flat=True).first()
    )


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def record_deactivation(sender, instance, created, raw=False, **kwargs):
    if raw or created:
        return
    if getattr(instance, '_was_active', False) and not instance.is_active:
        ActivityLogger.record_safely(
            SYSTEM_CONTENT_ID,
            _account_actor(instance),
            ActivityAction.USER_DEACTIVATED,
            metadata={'user_id': str(instance.pk)},
        )
