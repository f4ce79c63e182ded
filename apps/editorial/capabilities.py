"""
Capability resolution for editorial actions.

This is the only place that decides who may do what to an article. The
workflow engine, the API views and the review queue all ask
resolve_capabilities() (or editor_categories() for list filtering).

    ADMIN / SUPER_ADMIN   every action except RELEASE, no category check
    EDITOR                needs an EditorialAssignment for the category;
                          APPROVE also needs can_approve, PUBLISH can_publish
    author                SUBMIT own article (an EDITOR author also needs
                          the category), ADD_NOTE
    system                RELEASE only
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from apps.core.actors import Role
from apps.editorial.stores import AssignmentRegistry
from apps.editorial.transitions import Action

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Capabilities:
    """What one actor may do to one article."""

    actor: object
    article: object
    is_author: bool
    assignment: Optional[object] = None

    @property
    def is_admin(self) -> bool:
        return self.actor.role.is_admin and not self.actor.is_system

    @property
    def can_read(self) -> bool:
        return self.actor.is_system or self.is_author or self.actor.role.is_staff

    def denial_for(self, action: Action) -> Optional[str]:
        """Reason the action is forbidden, or None when it is allowed."""
        role = self.actor.role

        if action == Action.RELEASE:
            return None if self.actor.is_system else "Only the scheduler can release scheduled articles"
        if self.actor.is_system:
            return "The system actor can only release scheduled articles"

        if action == Action.ADD_NOTE:
            return None if self.can_read else "You do not have access to this article"

        if action == Action.UNPUBLISH:
            return None if self.is_admin else "Only administrators can unpublish articles"

        if self.is_admin:
            return None

        if action == Action.SUBMIT:
            if not self.is_author:
                return "Only the author can submit this article"
            if role == Role.EDITOR and self.assignment is None:
                return self._no_category()
            return None

        if role != Role.EDITOR:
            return f"Role {role.value} cannot {action.value.replace('_', ' ').lower()} articles"
        if self.assignment is None:
            return self._no_category()
        if action == Action.APPROVE and not self.assignment.can_approve:
            return f"You cannot approve articles in category {self.article.category}"
        if action == Action.PUBLISH and not self.assignment.can_publish:
            return f"You cannot publish articles in category {self.article.category}"
        return None

    def allows(self, action: Action) -> bool:
        return self.denial_for(action) is None

    @property
    def allowed_actions(self) -> List[Action]:
        """Actions permitted by role and assignment, ignoring current status."""
        return [action for action in Action if self.allows(action)]

    def _no_category(self) -> str:
        return f"You are not assigned to category {self.article.category}"


def resolve_capabilities(actor, article, registry=AssignmentRegistry) -> Capabilities:
    """
    Resolve an actor's capabilities on an article.

    Args:
        actor: apps.core.actors.Actor
        article: Article (category and author_id are read)
        registry: assignment lookup, replaceable in tests
    """
    is_author = not actor.is_system and str(article.author_id) == str(actor.id)
    assignment = None
    if actor.role == Role.EDITOR:
        assignment = registry.lookup(actor.id, article.category)
    return Capabilities(actor=actor, article=article, is_author=is_author, assignment=assignment)


def editor_categories(actor, registry=AssignmentRegistry) -> Optional[List[str]]:
    """
    Categories whose review queue the actor may see.

    None means every category (administrators); an empty list means none.
    """
    if actor.role.is_admin:
        return None
    if actor.role == Role.EDITOR:
        return registry.categories_for(actor.id)
    return []
