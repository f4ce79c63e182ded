"""
Article Publication State Machine.

Content statuses and the transitions between them:

    DRAFT → PENDING_REVIEW → IN_REVIEW → APPROVED → SCHEDULED → PUBLISHED
      │            │              │         ↑  ↑                  │
      │            └──────────────┴─→ CHANGES_REQUESTED ──────────┤ (unpublish
      │                           │                               │  back to
      └── (trusted auto-approval) └─→ REJECTED                    │  APPROVED)

CHANGES_REQUESTED loops back to PENDING_REVIEW on re-submission. REJECTED
and PUBLISHED are terminal for editors; only the admin unpublish action
leaves PUBLISHED. Which actor may trigger which edge is decided by the
editorial workflow engine, not here.

Usage:
    machine = ContentStateMachine(article)
    machine.check_transition(ContentStatus.PENDING_REVIEW)
"""

import logging
from enum import Enum
from typing import Dict, Set

logger = logging.getLogger(__name__)


class ContentStatus(str, Enum):
    """Publication status of an article."""
    DRAFT = 'DRAFT'
    PENDING_REVIEW = 'PENDING_REVIEW'
    IN_REVIEW = 'IN_REVIEW'
    CHANGES_REQUESTED = 'CHANGES_REQUESTED'
    APPROVED = 'APPROVED'
    SCHEDULED = 'SCHEDULED'
    PUBLISHED = 'PUBLISHED'
    REJECTED = 'REJECTED'

    @classmethod
    def from_string(cls, value: str) -> 'ContentStatus':
        """Convert string to ContentStatus."""
        for status in cls:
            if status.value == value:
                return status
        raise ValueError(f"Unknown content status: {value}")

    @classmethod
    def choices(cls):
        return [(s.value, s.value.replace('_', ' ').title()) for s in cls]

    @property
    def is_terminal(self) -> bool:
        """No editorial action leaves this status."""
        return self in (ContentStatus.PUBLISHED, ContentStatus.REJECTED)

    @property
    def is_editable(self) -> bool:
        """The author may still change the content."""
        return self in (ContentStatus.DRAFT, ContentStatus.CHANGES_REQUESTED)

    @property
    def is_under_review(self) -> bool:
        return self in (ContentStatus.PENDING_REVIEW, ContentStatus.IN_REVIEW)


# Define valid status transitions
VALID_TRANSITIONS: Dict[ContentStatus, Set[ContentStatus]] = {
    ContentStatus.DRAFT: {ContentStatus.PENDING_REVIEW, ContentStatus.APPROVED},
    ContentStatus.PENDING_REVIEW: {
        ContentStatus.IN_REVIEW,
        ContentStatus.CHANGES_REQUESTED,
        ContentStatus.APPROVED,
        ContentStatus.REJECTED,
    },
    ContentStatus.IN_REVIEW: {
        ContentStatus.CHANGES_REQUESTED,
        ContentStatus.APPROVED,
        ContentStatus.REJECTED,
    },
    ContentStatus.CHANGES_REQUESTED: {ContentStatus.PENDING_REVIEW, ContentStatus.APPROVED},
    ContentStatus.APPROVED: {ContentStatus.SCHEDULED, ContentStatus.PUBLISHED},
    ContentStatus.SCHEDULED: {ContentStatus.PUBLISHED, ContentStatus.APPROVED},
    ContentStatus.PUBLISHED: {ContentStatus.APPROVED},
    ContentStatus.REJECTED: set(),  # Terminal state
}


class TransitionError(Exception):
    """Raised when a status transition is invalid."""

    def __init__(self, current: ContentStatus, target: ContentStatus):
        self.current = current
        self.target = target
        super().__init__(
            f"Invalid transition from {current.value} to {target.value}. "
            f"Valid targets: {sorted(s.value for s in VALID_TRANSITIONS.get(current, set()))}"
        )


class ContentStateMachine:
    """
    Validates status changes of one article.

    Staying in the same status is always allowed (holds and assignments
    leave the content status untouched). Persisting the new status is the
    caller's job so it can be combined with the optimistic version check.
    """

    def __init__(self, article):
        self.article = article

    @property
    def current_state(self) -> ContentStatus:
        return ContentStatus.from_string(self.article.status)

    def can_transition_to(self, target: ContentStatus) -> bool:
        current = self.current_state
        return target == current or target in VALID_TRANSITIONS.get(current, set())

    def check_transition(self, target: ContentStatus) -> ContentStatus:
        """Return the target, raising TransitionError if the edge is invalid."""
        if isinstance(target, str):
            target = ContentStatus.from_string(target)
        if not self.can_transition_to(target):
            raise TransitionError(self.current_state, target)
        return target
