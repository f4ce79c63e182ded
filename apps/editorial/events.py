"""
Workflow events.

The engine publishes one WorkflowEvent per logged action once the
transaction holding the state change commits. Subscribers (audit log, submission
notifications, metrics) run independently: an exception in one is
written to the apps.audit.failures logger and never reaches the engine
or the other subscribers.

Subscribers are registered in EditorialConfig.ready().
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Tuple

from apps.audit.models import ActivityAction
from apps.audit.services import ActivityLogger
from apps.core.metrics import increment_notification, increment_workflow_action
from apps.core.middleware import celery_request_id_headers

logger = logging.getLogger(__name__)
failure_logger = logging.getLogger('apps.audit.failures')


@dataclass(frozen=True)
class WorkflowEvent:
    """
    One thing that happened to an article.

    `command` is the action that was attempted (SUBMIT); `action` is what
    gets logged (SUBMITTED, AUTO_APPROVED, SUBMIT_DENIED). Only primary
    events are counted in metrics; side events such as SOCIAL_SHARE ride
    along with their command.
    """
    content_id: str
    actor: Any
    command: str
    action: str
    detail: str = ''
    metadata: Dict[str, Any] = field(default_factory=dict)
    outcome: str = 'success'
    primary: bool = True
    recipients: Tuple[str, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.outcome == 'success'


class EventBus:
    """In-process fan-out of workflow events."""

    def __init__(self):
        self._subscribers: List[Callable[[WorkflowEvent], None]] = []

    def subscribe(self, subscriber):
        if subscriber not in self._subscribers:
            self._subscribers.append(subscriber)
        return subscriber

    def unsubscribe(self, subscriber):
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    @property
    def subscribers(self):
        return list(self._subscribers)

    def publish(self, event: WorkflowEvent):
        for subscriber in self._subscribers:
            try:
                subscriber(event)
            except Exception as e:
                failure_logger.error(
                    f"Subscriber {getattr(subscriber, '__name__', subscriber)} failed for "
                    f"{event.action} on {event.content_id}: {e}",
                    exc_info=True,
                    extra={'audit_action': event.action, 'content_id': event.content_id},
                )


workflow_events = EventBus()


# ============================================================================
# Subscribers
# ============================================================================

def record_activity(event: WorkflowEvent):
    """Append the event to the activity log."""
    ActivityLogger.record_safely(
        event.content_id,
        event.actor,
        event.action,
        detail=event.detail,
        metadata=event.metadata,
    )


def queue_submission_notification(event: WorkflowEvent):
    """Email the category's notification list after a submission."""
    if not event.recipients:
        return
    if event.action not in (
        ActivityAction.SUBMITTED,
        ActivityAction.REVISION_SUBMITTED,
        ActivityAction.AUTO_APPROVED,
    ):
        return

    from apps.editorial.tasks import notify_submission

    notify_submission.apply_async(
        args=[event.content_id, list(event.recipients), event.actor.display_name],
        headers=celery_request_id_headers(),
    )
    increment_notification('queued')
    logger.info(f"Queued submission notification for {event.content_id} to {len(event.recipients)} recipient(s)")


def count_workflow_action(event: WorkflowEvent):
    if event.primary:
        increment_workflow_action(event.command, event.outcome)


DEFAULT_SUBSCRIBERS = (record_activity, queue_submission_notification, count_workflow_action)


def register_default_subscribers(bus: EventBus = workflow_events):
    for subscriber in DEFAULT_SUBSCRIBERS:
        bus.subscribe(subscriber)
