"""
Admin interface for Article management.
"""

from django.contrib import admin
from django.utils.html import format_html

from .models import Article

STATUS_COLORS = {
    'DRAFT': 'gray',
    'PENDING_REVIEW': 'orange',
    'IN_REVIEW': 'blue',
    'CHANGES_REQUESTED': 'purple',
    'APPROVED': 'teal',
    'SCHEDULED': 'navy',
    'PUBLISHED': 'green',
    'REJECTED': 'red',
}


@admin.register(Article)
class ArticleAdmin(admin.ModelAdmin):
    """
    Admin interface for Article model.

    Status, version and publication times are read-only here; they change
    only through the editorial workflow.
    """

    list_display = [
        'title_short',
        'category',
        'author',
        'status_badge',
        'word_count',
        'featured',
        'published_at',
        'updated_at',
    ]

    list_filter = [
        'status',
        'category',
        'featured',
        ('published_at', admin.DateFieldListFilter),
    ]

    search_fields = [
        'title',
        'body',
        'author__username',
        'author__email',
    ]

    readonly_fields = [
        'id',
        'status',
        'word_count',
        'scheduled_at',
        'published_at',
        'featured',
        'version',
        'created_at',
        'updated_at',
    ]

    raw_id_fields = ['author']

    date_hierarchy = 'created_at'

    fieldsets = (
        ('Basic Information', {
            'fields': (
                'title',
                'category',
                'author',
                'status',
            )
        }),
        ('Content', {
            'fields': (
                'body',
                'word_count',
                'excerpt',
            )
        }),
        ('Publishing Metadata', {
            'fields': (
                'featured_image',
                'meta_description',
                'tags',
            )
        }),
        ('Publication', {
            'fields': (
                'scheduled_at',
                'published_at',
                'featured',
                'version',
            )
        }),
        ('System Fields', {
            'fields': (
                'id',
                'created_at',
                'updated_at',
            ),
            'classes': ('collapse',),
        }),
    )

    ordering = ['-updated_at']

    def title_short(self, obj):
        """Display shortened title."""
        max_length = 60
        if len(obj.title) > max_length:
            return obj.title[:max_length] + '...'
        return obj.title
    title_short.short_description = 'Title'
    title_short.admin_order_field = 'title'

    def status_badge(self, obj):
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 6px; '
            'border-radius: 3px; font-size: 11px; font-weight: bold;">{}</span>',
            STATUS_COLORS.get(obj.status, 'gray'),
            obj.get_status_display(),
        )
    status_badge.short_description = 'Status'
    status_badge.admin_order_field = 'status'
