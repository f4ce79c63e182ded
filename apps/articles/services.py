"""
Article draft management.

Authors create, edit and delete their own drafts here. Status is never
changed by these operations; that is the workflow engine's job.

Usage:
    article = ArticleService.create(actor, author=request.user, data=validated_data)
    ArticleService.update(actor, article.id, {'body': '...'}, expected_version=3)
"""

import logging
from typing import Any, Dict, Optional

from django.db import DatabaseError, transaction
from django.db.models import F
from django.utils import timezone

from apps.articles.models import Article, count_words
from apps.articles.state_machine import ContentStatus
from apps.audit.models import ActivityAction
from apps.audit.services import ActivityLogger
from apps.core.exceptions import (
    ConflictError,
    DependencyError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
)

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({
    'title', 'body', 'category', 'featured_image', 'excerpt', 'meta_description', 'tags',
})


class ArticleService:
    """Author-side writes on articles."""

    @staticmethod
    def create(actor, author, data: Dict[str, Any]) -> Article:
        fields = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}
        try:
            article = Article.objects.create(author=author, **fields)
        except DatabaseError as e:
            raise DependencyError("The article store is unavailable, please retry") from e

        ActivityLogger.record_safely(
            article.id, actor, ActivityAction.POST_CREATED,
            detail=f"created \"{article.title[:80]}\"",
            metadata={'category': article.category},
        )
        logger.info(f"Article {article.id} created by {actor.display_name}")
        return article

    @staticmethod
    def update(actor, article_id, data: Dict[str, Any], expected_version: Optional[int] = None) -> Article:
        """
        Apply an author edit.

        Raises:
            NotFoundError, PermissionDeniedError: not the author's article
            InvalidTransitionError: the article is not DRAFT or CHANGES_REQUESTED
            ConflictError: expected_version is stale
        """
        fields = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}
        try:
            with transaction.atomic():
                article = Article.objects.select_for_update().filter(pk=article_id).first()
                if article is None:
                    raise NotFoundError(f"Article {article_id} not found")
                if str(article.author_id) != str(actor.id):
                    raise PermissionDeniedError("Only the author can edit this article")
                if not article.is_editable:
                    raise InvalidTransitionError(
                        f"Articles in status {article.status} cannot be edited",
                        details={'content_status': article.status},
                    )
                if expected_version is not None and int(expected_version) != article.version:
                    raise ConflictError(
                        f"Article is at version {article.version}, not {expected_version}. Reload and retry.",
                        details={'current_version': article.version},
                    )

                if 'body' in fields:
                    fields['word_count'] = count_words(fields['body'])
                updated = Article.objects.filter(pk=article.pk, version=article.version).update(
                    version=F('version') + 1, updated_at=timezone.now(), **fields
                )
                if not updated:
                    raise ConflictError("Article was modified by another request. Reload and retry.")
                article.refresh_from_db()
        except DatabaseError as e:
            raise DependencyError("The article store is unavailable, please retry") from e

        ActivityLogger.record_safely(
            article.id, actor, ActivityAction.POST_UPDATED,
            detail="updated the article",
            metadata={'fields': sorted(fields.keys() - {'word_count'}), 'version': article.version},
        )
        return article

    @staticmethod
    def delete(actor, article_id):
        """Delete a draft. Only the author may, and only while it is a DRAFT."""
        try:
            with transaction.atomic():
                article = Article.objects.select_for_update().filter(pk=article_id).first()
                if article is None:
                    raise NotFoundError(f"Article {article_id} not found")
                if str(article.author_id) != str(actor.id):
                    raise PermissionDeniedError("Only the author can delete this article")
                if article.content_status != ContentStatus.DRAFT:
                    raise InvalidTransitionError(
                        "Only drafts can be deleted",
                        details={'content_status': article.status},
                    )
                title = article.title
                article.delete()
        except DatabaseError as e:
            raise DependencyError("The article store is unavailable, please retry") from e

        ActivityLogger.record_safely(
            article_id, actor, ActivityAction.POST_DELETED,
            detail=f"deleted \"{title[:80]}\"",
        )
        logger.info(f"Article {article_id} deleted by {actor.display_name}")
