"""
Article models for Newsdesk.
An article is the content item that moves through editorial review.
"""

from django.conf import settings
from django.db import models

from apps.articles.state_machine import ContentStatus
from apps.core.models import BaseModel


def count_words(text):
    """Whitespace-delimited word count."""
    return len((text or '').split())


class Article(BaseModel):
    """
    A news article written by an author and published by the desk.

    `status` and `version` are written by the editorial workflow engine
    only. `version` grows by one on every engine write and backs the
    optimistic concurrency check.
    """

    title = models.CharField(
        max_length=300,
        verbose_name='Title',
        help_text='Headline'
    )

    body = models.TextField(
        blank=True,
        verbose_name='Body',
        help_text='Article text'
    )

    category = models.CharField(
        max_length=50,
        db_index=True,
        verbose_name='Category',
        help_text='Category key, e.g. politics or business'
    )

    status = models.CharField(
        max_length=20,
        choices=ContentStatus.choices(),
        default=ContentStatus.DRAFT.value,
        db_index=True,
        verbose_name='Status',
        help_text='Publication status'
    )

    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='articles',
        verbose_name='Author',
        help_text='Writer who owns the article'
    )

    word_count = models.PositiveIntegerField(
        default=0,
        verbose_name='Word Count',
        help_text='Number of words in the body (derived on save)'
    )

    # Publishing metadata checked by category rules
    featured_image = models.URLField(
        max_length=1000,
        blank=True,
        verbose_name='Featured Image',
        help_text='URL of the lead image'
    )

    excerpt = models.TextField(
        blank=True,
        verbose_name='Excerpt',
        help_text='Short summary shown in listings'
    )

    meta_description = models.CharField(
        max_length=320,
        blank=True,
        verbose_name='Meta Description',
        help_text='Description for search engines'
    )

    tags = models.JSONField(
        default=list,
        blank=True,
        verbose_name='Tags',
        help_text='List of tag strings'
    )

    # Publication
    scheduled_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        verbose_name='Scheduled At',
        help_text='Future publication time for scheduled articles'
    )

    published_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        verbose_name='Published At',
        help_text='When the article went live'
    )

    featured = models.BooleanField(
        default=False,
        verbose_name='Featured',
        help_text='Shown on the homepage'
    )

    version = models.PositiveIntegerField(
        default=0,
        verbose_name='Version',
        help_text='Optimistic lock counter'
    )

    class Meta:
        db_table = 'articles'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'category'], name='articles_status_cat_idx'),
            models.Index(fields=['author', 'status'], name='articles_author_status_idx'),
        ]
        verbose_name = 'Article'
        verbose_name_plural = 'Articles'

    def __str__(self):
        return f"{self.title[:50]} ({self.status})"

    def save(self, *args, **kwargs):
        self.word_count = count_words(self.body)
        update_fields = kwargs.get('update_fields')
        if update_fields is not None and 'body' in update_fields:
            kwargs['update_fields'] = set(update_fields) | {'word_count'}
        super().save(*args, **kwargs)

    @property
    def content_status(self):
        return ContentStatus.from_string(self.status)

    @property
    def tag_count(self):
        return len(self.tags or [])

    @property
    def is_editable(self):
        return self.content_status.is_editable
