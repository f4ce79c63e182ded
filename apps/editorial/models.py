"""
Editorial models for Newsdesk.

Review records and their feedback threads, category assignments for
editors, and per-category publishing rules.
"""

from enum import Enum

from django.conf import settings
from django.db import models
from django.db.models import Q

from apps.core.models import BaseModel
from apps.editorial.transitions import TERMINAL_REVIEW_STATUSES, ReviewStatus


class Priority(str, Enum):
    LOW = 'LOW'
    NORMAL = 'NORMAL'
    HIGH = 'HIGH'
    URGENT = 'URGENT'

    @classmethod
    def choices(cls):
        return [(p.value, p.value.title()) for p in cls]


class FeedbackType(str, Enum):
    REVISION_REQUEST = 'REVISION_REQUEST'
    REJECTION = 'REJECTION'
    APPROVAL = 'APPROVAL'
    COMMENT = 'COMMENT'
    SUGGESTION = 'SUGGESTION'

    @classmethod
    def choices(cls):
        return [(t.value, t.value.replace('_', ' ').title()) for t in cls]


class PublishingRule(BaseModel):
    """
    Content-quality gate for one category, checked on submission.

    A category without a rule has no constraints.
    """

    category = models.CharField(
        max_length=50,
        unique=True,
        verbose_name='Category',
        help_text='Category key the rule applies to'
    )

    min_word_count = models.PositiveIntegerField(
        default=0,
        verbose_name='Minimum Word Count',
    )

    max_word_count = models.PositiveIntegerField(
        null=True,
        blank=True,
        verbose_name='Maximum Word Count',
        help_text='Leave empty for no upper bound'
    )

    requires_featured_image = models.BooleanField(default=False, verbose_name='Requires Featured Image')
    requires_excerpt = models.BooleanField(default=False, verbose_name='Requires Excerpt')
    requires_meta_description = models.BooleanField(default=False, verbose_name='Requires Meta Description')

    required_tag_count = models.PositiveIntegerField(
        default=0,
        verbose_name='Required Tags',
        help_text='Minimum number of tags'
    )

    auto_publish_trusted = models.BooleanField(
        default=False,
        verbose_name='Auto-approve Senior Writers',
        help_text='Submissions by senior writers skip review and are approved'
    )

    notify_on_submission = models.JSONField(
        default=list,
        blank=True,
        verbose_name='Notify On Submission',
        help_text='Email addresses notified when an article is submitted'
    )

    class Meta:
        db_table = 'publishing_rules'
        ordering = ['category']
        verbose_name = 'Publishing Rule'
        verbose_name_plural = 'Publishing Rules'

    def __str__(self):
        return f"Rule for {self.category}"


class EditorialAssignment(BaseModel):
    """Grants an editor review rights on one category."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='editorial_assignments',
        verbose_name='Editor',
    )

    category = models.CharField(
        max_length=50,
        db_index=True,
        verbose_name='Category',
    )

    can_approve = models.BooleanField(default=False, verbose_name='Can Approve')
    can_publish = models.BooleanField(default=False, verbose_name='Can Publish')

    class Meta:
        db_table = 'editorial_assignments'
        ordering = ['category', 'created_at']
        constraints = [
            models.UniqueConstraint(fields=['user', 'category'], name='unique_assignment_per_category'),
        ]
        verbose_name = 'Editorial Assignment'
        verbose_name_plural = 'Editorial Assignments'

    def __str__(self):
        return f"{self.user} on {self.category}"


class ReviewRecord(BaseModel):
    """
    Review lifecycle of one article.

    Created on first submission and never deleted. At most one record per
    article is open (not REJECTED/PUBLISHED); the newest record is current.
    """

    article = models.ForeignKey(
        'articles.Article',
        on_delete=models.CASCADE,
        related_name='reviews',
        verbose_name='Article',
    )

    status = models.CharField(
        max_length=20,
        choices=ReviewStatus.choices(),
        default=ReviewStatus.PENDING.value,
        db_index=True,
        verbose_name='Status',
    )

    priority = models.CharField(
        max_length=10,
        choices=Priority.choices(),
        default=Priority.NORMAL.value,
        db_index=True,
        verbose_name='Priority',
    )

    reviewer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reviews_assigned',
        verbose_name='Reviewer',
    )

    notes = models.TextField(blank=True, verbose_name='Notes')

    submitted_at = models.DateTimeField(null=True, blank=True, verbose_name='Submitted At')
    assigned_at = models.DateTimeField(null=True, blank=True, verbose_name='Assigned At')
    reviewed_at = models.DateTimeField(null=True, blank=True, verbose_name='Reviewed At')
    published_at = models.DateTimeField(null=True, blank=True, verbose_name='Published At')

    deadline = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name='Deadline',
        help_text='When the review decision is due'
    )

    class Meta:
        db_table = 'review_records'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['article'],
                condition=~Q(status__in=[s.value for s in sorted(TERMINAL_REVIEW_STATUSES)]),
                name='one_open_review_per_article',
            ),
        ]
        indexes = [
            models.Index(fields=['status', 'priority'], name='review_status_priority_idx'),
        ]
        verbose_name = 'Review Record'
        verbose_name_plural = 'Review Records'

    def __str__(self):
        return f"Review of {self.article_id} ({self.status})"

    @property
    def review_status(self):
        return ReviewStatus.from_string(self.status)


class FeedbackEntry(BaseModel):
    """
    One message in a review's feedback thread. Append-only.

    Internal entries are visible to desk staff only.
    """

    review = models.ForeignKey(
        ReviewRecord,
        on_delete=models.CASCADE,
        related_name='feedback',
        verbose_name='Review',
    )

    author_id = models.CharField(max_length=64, verbose_name='Author ID')
    author_name = models.CharField(max_length=200, verbose_name='Author Name')
    author_role = models.CharField(max_length=20, verbose_name='Author Role')

    type = models.CharField(
        max_length=20,
        choices=FeedbackType.choices(),
        db_index=True,
        verbose_name='Type',
    )

    content = models.TextField(verbose_name='Content')

    is_internal = models.BooleanField(
        default=False,
        verbose_name='Internal',
        help_text='Hidden from the author'
    )

    class Meta:
        db_table = 'review_feedback'
        ordering = ['created_at']
        verbose_name = 'Feedback Entry'
        verbose_name_plural = 'Feedback Entries'

    def __str__(self):
        return f"{self.type} by {self.author_name}"
