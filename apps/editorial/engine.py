"""
Editorial workflow engine.

Every status change of an article goes through WorkflowEngine.execute().
One call:

    1. locks the article row and checks, in order: the article exists,
       the actor may perform the action, the payload is valid, the
       caller's expected version matches, the content and review
       statuses allow the action, a review exists when one is needed,
       and (SUBMIT only) the category's publishing rule passes
    2. writes the article with a compare-and-swap on `version`, then the
       review record and any feedback, all in one transaction
    3. after commit, publishes WorkflowEvents for the audit log,
       notifications and metrics

Business rejections come back as WorkflowResult.rejection and are logged
as <ACTION>_DENIED. Database failures raise DependencyError and leave
nothing behind.

Usage:
    result = WorkflowEngine().execute(actor, article_id, Approve(feedback='Solid'))
    result.raise_for_rejection()
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import timezone as dt_timezone
from typing import Any, Dict, List, Optional, Tuple

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from apps.articles.models import Article
from apps.articles.state_machine import ContentStateMachine, ContentStatus, TransitionError
from apps.audit.models import ActivityAction
from apps.core.actors import STAFF_ROLES, Actor, Role
from apps.core.exceptions import (
    ConflictError,
    DependencyError,
    ErrorCode,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    exception_for_code,
)
from apps.core.permissions import get_user_role
from apps.editorial.capabilities import resolve_capabilities
from apps.editorial.commands import (
    AddNote,
    Approve,
    Assign,
    Hold,
    Publish,
    Reject,
    Release,
    RequestChanges,
    SetDeadline,
    SetPriority,
    StartReview,
    Submit,
    Unpublish,
)
from apps.editorial.events import WorkflowEvent, workflow_events
from apps.editorial.models import FeedbackType, Priority, ReviewRecord
from apps.editorial.rules import validate_against_rule
from apps.editorial.stores import AssignmentRegistry, FeedbackThread, ReviewStore, RuleStore
from apps.editorial.transitions import ACTION_TRANSITIONS, Action, ReviewStatus

logger = logging.getLogger(__name__)

# Business outcomes returned as data; anything else propagates
REJECTABLE = (ValidationError, PermissionDeniedError, NotFoundError, InvalidTransitionError, ConflictError)


# ============================================================================
# Results
# ============================================================================

@dataclass(frozen=True)
class Rejection:
    """Why an action was refused."""
    code: ErrorCode
    message: str
    violations: Tuple[str, ...] = ()
    details: Dict[str, Any] = field(default_factory=dict, compare=False)
    field: Optional[str] = None

    @classmethod
    def from_exception(cls, exc) -> 'Rejection':
        details = dict(exc.error_details or {})
        violations = tuple(details.get('violations', ()))
        return cls(code=exc.error_code, message=exc.message, violations=violations,
                   field=exc.field, details=details)

    def to_exception(self):
        return exception_for_code(self.code)(
            self.message, code=self.code, field=self.field, details=self.details or None,
        )

    def to_metadata(self) -> Dict[str, Any]:
        return {'code': self.code.value, 'message': self.message, 'violations': list(self.violations)}


@dataclass(frozen=True)
class WorkflowResult:
    """New (content, review) status pair, or the rejection."""
    action: Action
    content_id: str
    content_status: Optional[ContentStatus] = None
    review_status: Optional[ReviewStatus] = None
    version: Optional[int] = None
    review_id: Optional[str] = None
    rejection: Optional[Rejection] = None

    @property
    def ok(self) -> bool:
        return self.rejection is None

    def raise_for_rejection(self) -> 'WorkflowResult':
        if self.rejection is not None:
            raise self.rejection.to_exception()
        return self

    def to_dict(self) -> Dict[str, Any]:
        if self.rejection is not None:
            return {'action': self.action.value, 'content_id': self.content_id,
                    'rejection': self.rejection.to_metadata()}
        return {
            'action': self.action.value,
            'content_id': self.content_id,
            'content_status': self.content_status.value,
            'review_status': self.review_status.value if self.review_status else None,
            'version': self.version,
            'review_id': self.review_id,
        }


@dataclass
class _Plan:
    """What a successful action writes and logs."""
    content_status: ContentStatus
    review_status: Optional[ReviewStatus]
    logged_action: str
    detail: str
    article_fields: Dict[str, Any] = field(default_factory=dict)
    review_fields: Dict[str, Any] = field(default_factory=dict)
    feedback: Optional[Tuple[FeedbackType, str, bool]] = None
    side_events: List[Tuple[str, str]] = field(default_factory=list)
    recipients: Tuple[str, ...] = ()
    new_review: bool = False
    writes_article: bool = True


# ============================================================================
# Engine
# ============================================================================

class WorkflowEngine:
    """Single choke point for article status changes."""

    def __init__(self, bus=None, registry=AssignmentRegistry, clock=timezone.now):
        self.bus = bus if bus is not None else workflow_events
        self.registry = registry
        self.clock = clock
        self._planners = {
            Submit: self._plan_submit,
            Assign: self._plan_assign,
            StartReview: self._plan_start_review,
            RequestChanges: self._plan_request_changes,
            Approve: self._plan_approve,
            Reject: self._plan_reject,
            Publish: self._plan_publish,
            Hold: self._plan_hold,
            AddNote: self._plan_add_note,
            Unpublish: self._plan_unpublish,
            Release: self._plan_release,
            SetPriority: self._plan_set_priority,
            SetDeadline: self._plan_set_deadline,
        }

    def execute(self, actor: Actor, content_id, command, expected_version: Optional[int] = None) -> WorkflowResult:
        """
        Apply one workflow command to an article.

        Args:
            actor: Who acts
            content_id: Article id
            command: One of the apps.editorial.commands dataclasses
            expected_version: Article.version the caller last read, if any

        Returns:
            WorkflowResult with the new statuses or a Rejection

        Raises:
            DependencyError: the database failed; nothing was written
        """
        action = command.action
        try:
            with transaction.atomic():
                result, events = self._apply(actor, content_id, command, expected_version)
        except REJECTABLE as exc:
            rejection = Rejection.from_exception(exc)
            logger.info(
                f"[Workflow] {action.value} denied for {actor.display_name} on {content_id}: "
                f"{rejection.code.value} {rejection.message}"
            )
            self._publish([WorkflowEvent(
                content_id=str(content_id),
                actor=actor,
                command=action.value,
                action=ActivityAction.denied(action.value),
                detail=rejection.message,
                metadata=rejection.to_metadata(),
                outcome=rejection.code.value,
            )])
            return WorkflowResult(action=action, content_id=str(content_id), rejection=rejection)
        except DatabaseError as e:
            logger.error(f"[Workflow] {action.value} on {content_id} failed in the database: {e}")
            self._publish([WorkflowEvent(
                content_id=str(content_id),
                actor=actor,
                command=action.value,
                action=ActivityAction.denied(action.value),
                detail="Database unavailable",
                metadata={'code': ErrorCode.DEPENDENCY_FAILURE.value, 'message': str(e), 'violations': []},
                outcome=ErrorCode.DEPENDENCY_FAILURE.value,
            )])
            raise DependencyError("The article store is unavailable, please retry") from e

        self._publish(events)
        return result

    def _publish(self, events):
        """Deliver events once the surrounding transaction, if any, commits."""
        def deliver():
            for event in events:
                self.bus.publish(event)

        transaction.on_commit(deliver)

    # ------------------------------------------------------------------
    # Checks and write
    # ------------------------------------------------------------------

    def _apply(self, actor, content_id, command, expected_version):
        action = command.action
        now = self.clock()

        article = self._load_article(content_id)

        capabilities = resolve_capabilities(actor, article, self.registry)
        denial = capabilities.denial_for(action)
        if denial:
            raise PermissionDeniedError(denial)

        command.validate()
        reviewer = self._resolve_reviewer(actor, article, command)

        if expected_version is not None and int(expected_version) != article.version:
            raise ConflictError(
                f"Article is at version {article.version}, not {expected_version}. Reload and retry.",
                details={'current_version': article.version},
            )

        transition = ACTION_TRANSITIONS[action]
        content_status = article.content_status
        if not transition.allows_content(content_status):
            raise InvalidTransitionError(
                f"Cannot {_verb(action)} an article in status {content_status.value}",
                details={'content_status': content_status.value},
            )

        review = ReviewStore.current_for(article, lock=True)
        if review is not None and not transition.allows_review(review.review_status):
            raise InvalidTransitionError(
                f"Cannot {_verb(action)} while the review is {review.status}",
                details={'review_status': review.status},
            )
        if review is None and transition.review_required:
            raise NotFoundError("This article has no review record")

        if action == Action.RELEASE and article.scheduled_at and article.scheduled_at > now:
            raise InvalidTransitionError("The scheduled publication time has not been reached")

        plan = self._planners[type(command)](actor, article, review, command, now, capabilities, reviewer)

        try:
            ContentStateMachine(article).check_transition(plan.content_status)
        except TransitionError as e:
            raise InvalidTransitionError(str(e))

        version = article.version
        if plan.writes_article:
            version = article.version + 1
            updated = Article.objects.filter(pk=article.pk, version=article.version).update(
                status=plan.content_status.value,
                version=version,
                updated_at=now,
                **plan.article_fields,
            )
            if not updated:
                raise ConflictError("Article was modified by another request. Reload and retry.")

        if plan.new_review:
            review = ReviewRecord.objects.create(
                article=article,
                status=plan.review_status.value,
                **plan.review_fields,
            )
        elif plan.review_status is not None or plan.review_fields:
            if plan.review_status is not None:
                review.status = plan.review_status.value
            for name, value in plan.review_fields.items():
                setattr(review, name, value)
            review.save()

        if plan.feedback:
            feedback_type, text, internal = plan.feedback
            FeedbackThread.append(review, actor, feedback_type, text, is_internal=internal)

        logger.info(
            f"[Workflow] {plan.logged_action} {article.id} by {actor.display_name}: "
            f"{content_status.value} -> {plan.content_status.value}"
        )

        metadata = {
            'from_status': content_status.value,
            'to_status': plan.content_status.value,
            'review_status': review.status,
            'version': version,
        }
        events = [WorkflowEvent(
            content_id=str(article.id),
            actor=actor,
            command=action.value,
            action=plan.logged_action,
            detail=plan.detail,
            metadata=metadata,
            recipients=plan.recipients,
        )]
        for side_action, side_detail in plan.side_events:
            events.append(WorkflowEvent(
                content_id=str(article.id),
                actor=actor,
                command=action.value,
                action=side_action,
                detail=side_detail,
                metadata=metadata,
                primary=False,
            ))

        result = WorkflowResult(
            action=action,
            content_id=str(article.id),
            content_status=plan.content_status,
            review_status=review.review_status,
            version=version,
            review_id=str(review.id),
        )
        return result, events

    def _load_article(self, content_id) -> Article:
        try:
            pk = uuid.UUID(str(content_id))
        except ValueError:
            raise NotFoundError(f"Article {content_id} not found")
        article = Article.objects.select_for_update().filter(pk=pk).first()
        if article is None:
            raise NotFoundError(f"Article {content_id} not found")
        return article

    def _resolve_reviewer(self, actor, article, command):
        """
        Validate an ASSIGN target: an existing EDITOR or administrator,
        and an EDITOR must cover the article's category.
        """
        if not isinstance(command, Assign) or not command.reviewer_id:
            return None

        User = get_user_model()
        try:
            user = User.objects.filter(pk=command.reviewer_id).first()
        except (ValueError, TypeError, DjangoValidationError):
            user = None
        if user is None or not user.is_active:
            raise ValidationError("Reviewer not found", field='reviewer_id')

        role = get_user_role(user)
        if role not in STAFF_ROLES:
            raise ValidationError(
                "Reviewer must be an editor or administrator",
                field='reviewer_id',
            )
        if role == Role.EDITOR and self.registry.lookup(user.pk, article.category) is None:
            raise ValidationError(
                f"Reviewer is not assigned to category {article.category}",
                field='reviewer_id',
            )
        return user

    # ------------------------------------------------------------------
    # Per-action plans
    # ------------------------------------------------------------------

    def _plan_submit(self, actor, article, review, command, now, capabilities, reviewer):
        rule = RuleStore.for_category(article.category)
        violations = validate_against_rule(article, rule)
        if violations:
            raise ValidationError(
                "Article does not meet the publishing requirements",
                details={'violations': violations},
            )

        auto_approve = bool(rule and rule.auto_publish_trusted and actor.role == Role.SENIOR_WRITER)
        new_review = review is None or review.review_status.is_terminal

        # A reused review keeps its priority unless the caller sets one
        if command.priority is not None:
            priority = command.priority.value
        elif new_review:
            priority = Priority.NORMAL.value
        else:
            priority = review.priority

        review_fields = {'priority': priority, 'submitted_at': now}
        if command.notes:
            review_fields['notes'] = command.notes
        if auto_approve:
            review_fields['reviewed_at'] = now

        if auto_approve:
            content_status, review_status = ContentStatus.APPROVED, ReviewStatus.APPROVED
            logged, detail = ActivityAction.AUTO_APPROVED, "senior writer - auto-approved per category rules"
        else:
            content_status, review_status = ContentStatus.PENDING_REVIEW, ReviewStatus.PENDING
            if article.content_status == ContentStatus.CHANGES_REQUESTED:
                logged = ActivityAction.REVISION_SUBMITTED
                detail = f"resubmitted after revisions with {priority} priority"
            else:
                logged = ActivityAction.SUBMITTED
                detail = f"submitted for review with {priority} priority"

        return _Plan(
            content_status=content_status,
            review_status=review_status,
            logged_action=logged,
            detail=detail,
            review_fields=review_fields,
            recipients=tuple(rule.notify_on_submission or ()) if rule else (),
            new_review=new_review,
        )

    def _plan_assign(self, actor, article, review, command, now, capabilities, reviewer):
        if reviewer is not None:
            reviewer_id, reviewer_name = reviewer.pk, Actor.from_user(reviewer).display_name
        else:
            reviewer_id, reviewer_name = actor.id, actor.display_name
        return _Plan(
            content_status=article.content_status,
            review_status=ReviewStatus.ASSIGNED,
            logged_action=ActivityAction.ASSIGNED,
            detail=f"assigned to {reviewer_name} with {command.priority.value} priority",
            review_fields={'reviewer_id': reviewer_id, 'priority': command.priority.value, 'assigned_at': now},
        )

    def _plan_start_review(self, actor, article, review, command, now, capabilities, reviewer):
        review_fields = {}
        if review.reviewer_id is None:
            review_fields = {'reviewer_id': actor.id, 'assigned_at': review.assigned_at or now}
        return _Plan(
            content_status=ContentStatus.IN_REVIEW,
            review_status=ReviewStatus.IN_REVIEW,
            logged_action=ActivityAction.REVIEW_STARTED,
            detail="started reviewing the article",
            review_fields=review_fields,
        )

    def _plan_request_changes(self, actor, article, review, command, now, capabilities, reviewer):
        feedback = command.feedback.strip()
        return _Plan(
            content_status=ContentStatus.CHANGES_REQUESTED,
            review_status=ReviewStatus.CHANGES_REQUESTED,
            logged_action=ActivityAction.CHANGES_REQUESTED,
            detail=f"requested changes: {feedback}",
            review_fields={'reviewed_at': now},
            feedback=(FeedbackType.REVISION_REQUEST, feedback, False),
        )

    def _plan_approve(self, actor, article, review, command, now, capabilities, reviewer):
        # Editors with can_approve give a terminal approval, recorded distinctly
        if capabilities.is_admin:
            logged, detail = ActivityAction.APPROVED, "approved the article for publication"
        else:
            logged, detail = ActivityAction.RECOMMEND_APPROVAL, "recommended the article for approval"

        review_fields = {'reviewed_at': now}
        if review.reviewer_id is None:
            review_fields['reviewer_id'] = actor.id
        feedback = command.feedback.strip()
        return _Plan(
            content_status=ContentStatus.APPROVED,
            review_status=ReviewStatus.APPROVED,
            logged_action=logged,
            detail=detail,
            review_fields=review_fields,
            feedback=(FeedbackType.APPROVAL, feedback, False) if feedback else None,
        )

    def _plan_reject(self, actor, article, review, command, now, capabilities, reviewer):
        feedback = command.feedback.strip()
        return _Plan(
            content_status=ContentStatus.REJECTED,
            review_status=ReviewStatus.REJECTED,
            logged_action=ActivityAction.REJECTED,
            detail=f"rejected the article: {feedback}",
            review_fields={'reviewed_at': now},
            feedback=(FeedbackType.REJECTION, feedback, False),
        )

    def _plan_publish(self, actor, article, review, command, now, capabilities, reviewer):
        publish_date = command.publish_date
        article_fields = {}
        if command.add_to_homepage:
            article_fields['featured'] = True

        if publish_date is not None and publish_date > now:
            content_status = ContentStatus.SCHEDULED
            article_fields.update(scheduled_at=publish_date, published_at=None)
            logged = ActivityAction.SCHEDULED
            when = publish_date.astimezone(dt_timezone.utc).strftime('%Y-%m-%d %H:%M')
            detail = f"scheduled the article for {when} UTC"
            review_published_at = publish_date
        else:
            content_status = ContentStatus.PUBLISHED
            article_fields.update(scheduled_at=None, published_at=now)
            logged, detail = ActivityAction.PUBLISHED, "published the article"
            review_published_at = now

        side_events = []
        if command.social_share:
            side_events.append((ActivityAction.SOCIAL_SHARE, "queued article for social media distribution"))

        return _Plan(
            content_status=content_status,
            review_status=ReviewStatus.PUBLISHED,
            logged_action=logged,
            detail=detail,
            article_fields=article_fields,
            review_fields={'published_at': review_published_at},
            side_events=side_events,
        )

    def _plan_hold(self, actor, article, review, command, now, capabilities, reviewer):
        notes = command.notes.strip()
        return _Plan(
            content_status=article.content_status,
            review_status=ReviewStatus.ON_HOLD,
            logged_action=ActivityAction.ON_HOLD,
            detail=f"put the review on hold: {notes}" if notes else "put the review on hold",
            review_fields={'notes': notes} if notes else {},
        )

    def _plan_add_note(self, actor, article, review, command, now, capabilities, reviewer):
        return _Plan(
            content_status=article.content_status,
            review_status=None,
            logged_action=ActivityAction.NOTE_ADDED,
            detail="added an internal note",
            feedback=(command.type, command.content.strip(), True),
            writes_article=False,
        )

    def _plan_unpublish(self, actor, article, review, command, now, capabilities, reviewer):
        return _Plan(
            content_status=ContentStatus.APPROVED,
            review_status=ReviewStatus.APPROVED,
            logged_action=ActivityAction.UNPUBLISHED,
            detail="unpublished the article",
            article_fields={'published_at': None, 'scheduled_at': None},
            review_fields={'published_at': None},
        )

    def _plan_release(self, actor, article, review, command, now, capabilities, reviewer):
        return _Plan(
            content_status=ContentStatus.PUBLISHED,
            review_status=None,
            logged_action=ActivityAction.RELEASED,
            detail="scheduled publication went live",
            article_fields={'published_at': article.scheduled_at or now},
        )

    def _plan_set_priority(self, actor, article, review, command, now, capabilities, reviewer):
        return _Plan(
            content_status=article.content_status,
            review_status=None,
            logged_action=ActivityAction.PRIORITY_CHANGED,
            detail=f"changed priority from {review.priority} to {command.priority.value}",
            review_fields={'priority': command.priority.value},
            writes_article=False,
        )

    def _plan_set_deadline(self, actor, article, review, command, now, capabilities, reviewer):
        deadline = command.deadline
        if deadline is None:
            detail = "cleared the review deadline"
        elif deadline <= now:
            raise ValidationError("Deadline must be in the future", field='deadline')
        else:
            when = deadline.astimezone(dt_timezone.utc).strftime('%Y-%m-%d %H:%M')
            detail = f"set the review deadline to {when} UTC"
        return _Plan(
            content_status=article.content_status,
            review_status=None,
            logged_action=ActivityAction.DEADLINE_SET,
            detail=detail,
            review_fields={'deadline': deadline},
            writes_article=False,
        )


def _verb(action: Action) -> str:
    return action.value.replace('_', ' ').lower()
