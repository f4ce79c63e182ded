"""
Workflow commands.

One frozen dataclass per action, each carrying only the payload fields
its action needs. The engine dispatches on the command type.

Usage:
    command = parse_command('REQUEST_CHANGES', {'feedback': 'Tighten the lede'})
    WorkflowEngine().execute(actor, article_id, command)
"""

from dataclasses import dataclass
from datetime import datetime, timezone as dt_timezone
from typing import Any, Dict, Optional, Union

from django.utils import timezone
from django.utils.dateparse import parse_datetime

from apps.core.exceptions import ErrorCode, ValidationError
from apps.editorial.models import FeedbackType, Priority
from apps.editorial.transitions import Action


def _require_text(value, field, label):
    if not (value or '').strip():
        raise ValidationError(f"{label} is required", field=field)


@dataclass(frozen=True)
class Submit:
    """
    Submit for review. priority None keeps the priority of a reused
    review record, NORMAL for a new one.
    """
    priority: Optional[Priority] = None
    notes: str = ''

    action = Action.SUBMIT

    def validate(self):
        pass


@dataclass(frozen=True)
class Assign:
    """Assign a reviewer. No reviewer_id means the acting editor."""
    reviewer_id: Optional[str] = None
    priority: Priority = Priority.NORMAL

    action = Action.ASSIGN

    def validate(self):
        pass


@dataclass(frozen=True)
class StartReview:
    action = Action.START_REVIEW

    def validate(self):
        pass


@dataclass(frozen=True)
class RequestChanges:
    feedback: str = ''

    action = Action.REQUEST_CHANGES

    def validate(self):
        _require_text(self.feedback, 'feedback', 'Feedback')


@dataclass(frozen=True)
class Approve:
    feedback: str = ''

    action = Action.APPROVE

    def validate(self):
        pass


@dataclass(frozen=True)
class Reject:
    feedback: str = ''

    action = Action.REJECT

    def validate(self):
        _require_text(self.feedback, 'feedback', 'Feedback')


@dataclass(frozen=True)
class Publish:
    """
    Publish now, or schedule when publish_date lies in the future.

    add_to_homepage marks the article as featured; social_share queues a
    SOCIAL_SHARE event.
    """
    publish_date: Optional[datetime] = None
    add_to_homepage: bool = False
    social_share: bool = False

    action = Action.PUBLISH

    def validate(self):
        if self.publish_date is not None and timezone.is_naive(self.publish_date):
            raise ValidationError("publish_date must be timezone aware", field='publish_date')


@dataclass(frozen=True)
class Hold:
    notes: str = ''

    action = Action.HOLD

    def validate(self):
        pass


@dataclass(frozen=True)
class AddNote:
    content: str = ''
    type: FeedbackType = FeedbackType.COMMENT

    action = Action.ADD_NOTE

    def validate(self):
        _require_text(self.content, 'content', 'Note content')
        if self.type not in (FeedbackType.COMMENT, FeedbackType.SUGGESTION):
            raise ValidationError("Notes must be COMMENT or SUGGESTION", field='type')


@dataclass(frozen=True)
class Unpublish:
    action = Action.UNPUBLISH

    def validate(self):
        pass


@dataclass(frozen=True)
class Release:
    """Issued by the scheduler when a SCHEDULED article is due."""
    action = Action.RELEASE

    def validate(self):
        pass


@dataclass(frozen=True)
class SetPriority:
    priority: Optional[Priority] = None

    action = Action.SET_PRIORITY

    def validate(self):
        if self.priority is None:
            raise ValidationError("Priority is required", field='priority')


@dataclass(frozen=True)
class SetDeadline:
    """Set the review deadline; None clears it."""
    deadline: Optional[datetime] = None

    action = Action.SET_DEADLINE

    def validate(self):
        if self.deadline is not None and timezone.is_naive(self.deadline):
            raise ValidationError("deadline must be timezone aware", field='deadline')


Command = Union[
    Submit, Assign, StartReview, RequestChanges, Approve, Reject,
    Publish, Hold, AddNote, Unpublish, Release, SetPriority, SetDeadline,
]

COMMAND_TYPES = {
    Action.SUBMIT: Submit,
    Action.ASSIGN: Assign,
    Action.START_REVIEW: StartReview,
    Action.REQUEST_CHANGES: RequestChanges,
    Action.APPROVE: Approve,
    Action.REJECT: Reject,
    Action.PUBLISH: Publish,
    Action.HOLD: Hold,
    Action.ADD_NOTE: AddNote,
    Action.UNPUBLISH: Unpublish,
    Action.RELEASE: Release,
    Action.SET_PRIORITY: SetPriority,
    Action.SET_DEADLINE: SetDeadline,
}


# ============================================================================
# Payload parsing
# ============================================================================

def _parse_priority(value, default: Optional[Priority] = Priority.NORMAL) -> Optional[Priority]:
    if value in (None, ''):
        return default
    try:
        return Priority(str(value).upper())
    except ValueError:
        raise ValidationError(
            f"Invalid priority: {value}",
            code=ErrorCode.INVALID_VALUE,
            field='priority',
            details={'allowed': [p.value for p in Priority]},
        )


def _parse_feedback_type(value) -> FeedbackType:
    if value in (None, ''):
        return FeedbackType.COMMENT
    try:
        return FeedbackType(str(value).upper())
    except ValueError:
        raise ValidationError(f"Invalid note type: {value}", code=ErrorCode.INVALID_VALUE, field='type')


def _parse_datetime(value, field) -> Optional[datetime]:
    if value in (None, ''):
        return None
    parsed = value if isinstance(value, datetime) else None
    if parsed is None:
        try:
            parsed = parse_datetime(str(value))
        except ValueError:
            parsed = None
    if parsed is None:
        raise ValidationError(f"Invalid datetime: {value}", code=ErrorCode.INVALID_VALUE, field=field)
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)
    return parsed


def _parse_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


def _text(payload, key) -> str:
    value = payload.get(key)
    return '' if value is None else str(value)


def parse_command(action, payload: Optional[Dict[str, Any]] = None) -> Command:
    """
    Build a command from an action name and a loose payload dict.

    Raises:
        ValidationError: unknown action or malformed payload field
    """
    payload = payload or {}
    try:
        action = action if isinstance(action, Action) else Action.from_string(action)
    except ValueError:
        raise ValidationError(
            f"Unknown action: {action}",
            code=ErrorCode.INVALID_VALUE,
            field='action',
            details={'allowed': [a.value for a in Action]},
        )

    if action == Action.SUBMIT:
        return Submit(
            priority=_parse_priority(payload.get('priority'), default=None),
            notes=_text(payload, 'notes'),
        )
    if action == Action.ASSIGN:
        reviewer_id = payload.get('reviewer_id') or payload.get('assignee_id')
        return Assign(
            reviewer_id=str(reviewer_id) if reviewer_id else None,
            priority=_parse_priority(payload.get('priority')),
        )
    if action == Action.REQUEST_CHANGES:
        return RequestChanges(feedback=_text(payload, 'feedback'))
    if action == Action.APPROVE:
        return Approve(feedback=_text(payload, 'feedback'))
    if action == Action.REJECT:
        return Reject(feedback=_text(payload, 'feedback'))
    if action == Action.PUBLISH:
        return Publish(
            publish_date=_parse_datetime(payload.get('publish_date'), 'publish_date'),
            add_to_homepage=_parse_bool(payload.get('add_to_homepage', False)),
            social_share=_parse_bool(payload.get('social_share', False)),
        )
    if action == Action.HOLD:
        return Hold(notes=_text(payload, 'notes'))
    if action == Action.SET_PRIORITY:
        return SetPriority(priority=_parse_priority(payload.get('priority'), default=None))
    if action == Action.SET_DEADLINE:
        return SetDeadline(deadline=_parse_datetime(payload.get('deadline'), 'deadline'))
    if action == Action.ADD_NOTE:
        content = payload.get('content', payload.get('feedback'))
        return AddNote(content='' if content is None else str(content),
                       type=_parse_feedback_type(payload.get('type')))
    return COMMAND_TYPES[action]()
