"""
Data access for the editorial desk.

RuleStore and AssignmentRegistry are read-mostly and cached in the Django
cache; the signal receivers at the bottom drop the cached entries whenever
a rule or assignment is saved or deleted. ReviewStore and FeedbackThread
always read the database.
"""

import logging
from typing import Dict, List, Optional

from django.conf import settings
from django.core.cache import cache
from django.db.models import Count
from django.db.models.signals import post_delete, post_save, pre_save
from django.dispatch import receiver

from apps.editorial.models import EditorialAssignment, FeedbackEntry, FeedbackType, PublishingRule, ReviewRecord

logger = logging.getLogger(__name__)

# Cached in place of None so a miss is not confused with "no row"
_NONE = '__none__'


def _cache_get(key):
    try:
        return cache.get(key)
    except Exception as e:
        logger.warning(f"Cache get failed for {key}: {e}")
        return None


def _cache_set(key, value, ttl):
    try:
        cache.set(key, _NONE if value is None else value, ttl)
    except Exception as e:
        logger.warning(f"Cache set failed for {key}: {e}")


def _cache_delete(*keys):
    try:
        cache.delete_many(list(keys))
    except Exception as e:
        logger.warning(f"Cache delete failed for {keys}: {e}")


# ============================================================================
# Publishing rules
# ============================================================================

class RuleStore:

    @staticmethod
    def cache_key(category: str) -> str:
        return f"editorial:rule:{category}"

    @classmethod
    def for_category(cls, category: str) -> Optional[PublishingRule]:
        """The rule for a category, or None (no constraints)."""
        key = cls.cache_key(category)
        cached = _cache_get(key)
        if cached is not None:
            return None if cached == _NONE else cached

        rule = PublishingRule.objects.filter(category=category).first()
        _cache_set(key, rule, settings.EDITORIAL_RULE_CACHE_TTL)
        return rule

    @classmethod
    def invalidate(cls, category: str):
        _cache_delete(cls.cache_key(category))


# ============================================================================
# Editorial assignments
# ============================================================================

class AssignmentRegistry:
    """Which editor may act on which category, and with what capabilities."""

    @staticmethod
    def lookup_key(user_id, category: str) -> str:
        return f"editorial:assignment:{user_id}:{category}"

    @staticmethod
    def categories_key(user_id) -> str:
        return f"editorial:categories:{user_id}"

    @classmethod
    def lookup(cls, user_id, category: str) -> Optional[EditorialAssignment]:
        key = cls.lookup_key(user_id, category)
        cached = _cache_get(key)
        if cached is not None:
            return None if cached == _NONE else cached

        assignment = EditorialAssignment.objects.filter(user_id=user_id, category=category).first()
        _cache_set(key, assignment, settings.EDITORIAL_ASSIGNMENT_CACHE_TTL)
        return assignment

    @classmethod
    def categories_for(cls, user_id) -> List[str]:
        key = cls.categories_key(user_id)
        cached = _cache_get(key)
        if cached is not None:
            return list(cached)

        categories = list(
            EditorialAssignment.objects.filter(user_id=user_id)
            .order_by('category')
            .values_list('category', flat=True)
        )
        _cache_set(key, categories, settings.EDITORIAL_ASSIGNMENT_CACHE_TTL)
        return categories

    @staticmethod
    def for_category(category: str):
        return (
            EditorialAssignment.objects.filter(category=category)
            .select_related('user')
            .order_by('created_at')
        )

    @classmethod
    def invalidate(cls, user_id, category: str):
        _cache_delete(cls.lookup_key(user_id, category), cls.categories_key(user_id))


# ============================================================================
# Review records
# ============================================================================

class ReviewStore:

    @staticmethod
    def current_for(article, lock: bool = False) -> Optional[ReviewRecord]:
        """
        The most recently created review of an article, or None.

        lock=True reads it with select_for_update; only valid inside
        transaction.atomic().
        """
        queryset = ReviewRecord.objects.filter(article=article)
        if lock:
            queryset = queryset.select_for_update()
        return queryset.order_by('-created_at').first()

    @staticmethod
    def for_reviewer(user_id):
        return (
            ReviewRecord.objects.filter(reviewer_id=user_id)
            .select_related('article', 'reviewer')
            .order_by('-created_at')
        )

    @staticmethod
    def for_category(category: str):
        return (
            ReviewRecord.objects.filter(article__category=category)
            .select_related('article', 'reviewer')
            .order_by('-created_at')
        )


# ============================================================================
# Feedback thread
# ============================================================================

class FeedbackThread:
    """Append-only feedback on a review."""

    @staticmethod
    def append(review, actor, type: FeedbackType, content: str, is_internal: bool = False) -> FeedbackEntry:
        return FeedbackEntry.objects.create(
            review=review,
            author_id=str(actor.id),
            author_name=actor.display_name,
            author_role=actor.role.value,
            type=type.value,
            content=content,
            is_internal=is_internal,
        )

    @staticmethod
    def for_review(review, include_internal: bool = True, newest_first: bool = False):
        queryset = FeedbackEntry.objects.filter(review=review)
        if not include_internal:
            queryset = queryset.filter(is_internal=False)
        return queryset.order_by('-created_at' if newest_first else 'created_at')

    @staticmethod
    def counts_by_type(review) -> Dict[str, int]:
        rows = (
            FeedbackEntry.objects.filter(review=review)
            .order_by()
            .values('type')
            .annotate(count=Count('id'))
        )
        return {row['type']: row['count'] for row in rows}


# ============================================================================
# Cache invalidation
# ============================================================================

@receiver(pre_save, sender=PublishingRule)
def forget_previous_rule_category(sender, instance, **kwargs):
    if instance._state.adding:
        return
    previous = PublishingRule.objects.filter(pk=instance.pk).values_list('category', flat=True).first()
    if previous and previous != instance.category:
        RuleStore.invalidate(previous)


@receiver([post_save, post_delete], sender=PublishingRule)
def invalidate_rule_cache(sender, instance, **kwargs):
    RuleStore.invalidate(instance.category)


@receiver(pre_save, sender=EditorialAssignment)
def forget_previous_assignment(sender, instance, **kwargs):
    if instance._state.adding:
        return
    previous = EditorialAssignment.objects.filter(pk=instance.pk).values('user_id', 'category').first()
    if previous:
        AssignmentRegistry.invalidate(previous['user_id'], previous['category'])


@receiver([post_save, post_delete], sender=EditorialAssignment)
def invalidate_assignment_cache(sender, instance, **kwargs):
    AssignmentRegistry.invalidate(instance.user_id, instance.category)
