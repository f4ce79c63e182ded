"""
Review statuses and the per-action transition table.

The article's own status machine lives in apps.articles.state_machine;
this module says which content and review statuses each workflow action
may start from. Both machines are advanced together by the engine in a
single write.

    PENDING → ASSIGNED → IN_REVIEW → APPROVED → PUBLISHED
       │         │           │    ├→ CHANGES_REQUESTED (re-submit → PENDING)
       └─────────┴───────────┴────┼→ REJECTED
                                  └→ ON_HOLD (→ ASSIGNED / decision)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional

from apps.articles.state_machine import ContentStatus


class ReviewStatus(str, Enum):
    """Status of a review record."""
    PENDING = 'PENDING'
    ASSIGNED = 'ASSIGNED'
    IN_REVIEW = 'IN_REVIEW'
    APPROVED = 'APPROVED'
    REJECTED = 'REJECTED'
    CHANGES_REQUESTED = 'CHANGES_REQUESTED'
    ON_HOLD = 'ON_HOLD'
    PUBLISHED = 'PUBLISHED'

    @classmethod
    def from_string(cls, value: str) -> 'ReviewStatus':
        for status in cls:
            if status.value == value:
                return status
        raise ValueError(f"Unknown review status: {value}")

    @classmethod
    def choices(cls):
        return [(s.value, s.value.replace('_', ' ').title()) for s in cls]

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_REVIEW_STATUSES


TERMINAL_REVIEW_STATUSES = frozenset({ReviewStatus.REJECTED, ReviewStatus.PUBLISHED})


class Action(str, Enum):
    """Workflow actions accepted by the engine."""
    SUBMIT = 'SUBMIT'
    ASSIGN = 'ASSIGN'
    START_REVIEW = 'START_REVIEW'
    REQUEST_CHANGES = 'REQUEST_CHANGES'
    APPROVE = 'APPROVE'
    REJECT = 'REJECT'
    PUBLISH = 'PUBLISH'
    HOLD = 'HOLD'
    ADD_NOTE = 'ADD_NOTE'
    UNPUBLISH = 'UNPUBLISH'
    RELEASE = 'RELEASE'
    SET_PRIORITY = 'SET_PRIORITY'
    SET_DEADLINE = 'SET_DEADLINE'

    @classmethod
    def from_string(cls, value: str) -> 'Action':
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValueError(f"Unknown action: {value}")


@dataclass(frozen=True)
class ActionTransition:
    """
    Statuses an action may start from.

    None means "any status". `review_required` says whether the action
    needs an existing review record (SUBMIT creates one).
    """
    content_from: Optional[FrozenSet[ContentStatus]]
    review_from: Optional[FrozenSet[ReviewStatus]]
    review_required: bool = True

    def allows_content(self, status: ContentStatus) -> bool:
        return self.content_from is None or status in self.content_from

    def allows_review(self, status: ReviewStatus) -> bool:
        return self.review_from is None or status in self.review_from


_UNDER_REVIEW = frozenset({ContentStatus.PENDING_REVIEW, ContentStatus.IN_REVIEW})
_OPEN_DECISION = frozenset({
    ReviewStatus.PENDING,
    ReviewStatus.ASSIGNED,
    ReviewStatus.IN_REVIEW,
    ReviewStatus.ON_HOLD,
})

ACTION_TRANSITIONS: Dict[Action, ActionTransition] = {
    Action.SUBMIT: ActionTransition(
        content_from=frozenset({ContentStatus.DRAFT, ContentStatus.CHANGES_REQUESTED}),
        review_from=None,
        review_required=False,
    ),
    Action.ASSIGN: ActionTransition(
        content_from=_UNDER_REVIEW,
        review_from=frozenset({ReviewStatus.PENDING, ReviewStatus.ASSIGNED, ReviewStatus.ON_HOLD}),
    ),
    Action.START_REVIEW: ActionTransition(
        content_from=_UNDER_REVIEW,
        review_from=frozenset({ReviewStatus.PENDING, ReviewStatus.ASSIGNED}),
    ),
    Action.REQUEST_CHANGES: ActionTransition(content_from=_UNDER_REVIEW, review_from=_OPEN_DECISION),
    Action.APPROVE: ActionTransition(content_from=_UNDER_REVIEW, review_from=_OPEN_DECISION),
    Action.REJECT: ActionTransition(content_from=_UNDER_REVIEW, review_from=_OPEN_DECISION),
    Action.PUBLISH: ActionTransition(
        content_from=frozenset({ContentStatus.APPROVED}),
        review_from=frozenset({ReviewStatus.APPROVED}),
    ),
    Action.HOLD: ActionTransition(
        content_from=_UNDER_REVIEW,
        review_from=frozenset({ReviewStatus.PENDING, ReviewStatus.ASSIGNED, ReviewStatus.IN_REVIEW}),
    ),
    Action.ADD_NOTE: ActionTransition(content_from=None, review_from=None),
    Action.UNPUBLISH: ActionTransition(
        content_from=frozenset({ContentStatus.PUBLISHED, ContentStatus.SCHEDULED}),
        review_from=frozenset({ReviewStatus.PUBLISHED}),
    ),
    Action.RELEASE: ActionTransition(
        content_from=frozenset({ContentStatus.SCHEDULED}),
        review_from=frozenset({ReviewStatus.PUBLISHED}),
    ),
    Action.SET_PRIORITY: ActionTransition(content_from=_UNDER_REVIEW, review_from=_OPEN_DECISION),
    Action.SET_DEADLINE: ActionTransition(content_from=_UNDER_REVIEW, review_from=_OPEN_DECISION),
}
