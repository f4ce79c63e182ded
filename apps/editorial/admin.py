"""
Admin interface for the editorial desk.

Review records are read-only: their status changes only through the
workflow engine. Feedback is shown inline and cannot be edited.
"""

from django.contrib import admin

from .models import EditorialAssignment, FeedbackEntry, PublishingRule, ReviewRecord


class FeedbackEntryInline(admin.TabularInline):
    model = FeedbackEntry
    extra = 0
    can_delete = False
    fields = ['created_at', 'type', 'author_name', 'author_role', 'is_internal', 'content']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(ReviewRecord)
class ReviewRecordAdmin(admin.ModelAdmin):

    list_display = ['article', 'status', 'priority', 'reviewer', 'submitted_at', 'deadline', 'reviewed_at']
    list_filter = ['status', 'priority', 'article__category']
    search_fields = ['article__title', 'reviewer__username', 'notes']
    raw_id_fields = ['article', 'reviewer']
    readonly_fields = [
        'id', 'article', 'status', 'priority', 'reviewer', 'notes',
        'submitted_at', 'assigned_at', 'reviewed_at', 'published_at', 'deadline',
        'created_at', 'updated_at',
    ]
    inlines = [FeedbackEntryInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(EditorialAssignment)
class EditorialAssignmentAdmin(admin.ModelAdmin):

    list_display = ['user', 'category', 'can_approve', 'can_publish', 'created_at']
    list_filter = ['category', 'can_approve', 'can_publish']
    search_fields = ['user__username', 'user__email', 'category']
    raw_id_fields = ['user']


@admin.register(PublishingRule)
class PublishingRuleAdmin(admin.ModelAdmin):

    list_display = [
        'category', 'min_word_count', 'max_word_count', 'required_tag_count',
        'requires_featured_image', 'auto_publish_trusted',
    ]
    list_filter = ['auto_publish_trusted', 'requires_featured_image']
    search_fields = ['category']
    fieldsets = (
        (None, {'fields': ('category',)}),
        ('Length', {'fields': ('min_word_count', 'max_word_count')}),
        ('Required Fields', {
            'fields': (
                'requires_featured_image',
                'requires_excerpt',
                'requires_meta_description',
                'required_tag_count',
            )
        }),
        ('Workflow', {'fields': ('auto_publish_trusted', 'notify_on_submission')}),
    )
