"""
Editorial desk serializers.
"""

from django.contrib.auth import get_user_model
from django.core.validators import validate_email
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from apps.articles.serializers import ArticleListSerializer
from apps.core.actors import STAFF_ROLES
from apps.core.permissions import get_user_role

from .models import EditorialAssignment, FeedbackEntry, PublishingRule, ReviewRecord

User = get_user_model()


def _display_name(user):
    if user is None:
        return None
    return user.get_full_name() or user.email or user.username


class FeedbackEntrySerializer(serializers.ModelSerializer):

    class Meta:
        model = FeedbackEntry
        fields = [
            'id',
            'type',
            'content',
            'author_id',
            'author_name',
            'author_role',
            'is_internal',
            'created_at',
        ]
        read_only_fields = fields


class ReviewRecordSerializer(serializers.ModelSerializer):

    reviewer_name = serializers.SerializerMethodField()

    class Meta:
        model = ReviewRecord
        fields = [
            'id',
            'article',
            'status',
            'priority',
            'reviewer',
            'reviewer_name',
            'notes',
            'submitted_at',
            'assigned_at',
            'reviewed_at',
            'published_at',
            'deadline',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_reviewer_name(self, obj):
        return _display_name(obj.reviewer)


class QueueItemSerializer(ReviewRecordSerializer):
    """One row of the review queue: the review with its article summary."""

    article = ArticleListSerializer(read_only=True)

    class Meta(ReviewRecordSerializer.Meta):
        pass


class WorkflowActionSerializer(serializers.Serializer):
    """
    Envelope of a workflow action request.

    Payload fields (feedback, priority, reviewer_id, publish_date, ...) are
    passed through to the command parser untouched.
    """

    action = serializers.CharField()
    expected_version = serializers.IntegerField(required=False, allow_null=True, min_value=0)


class PublishingRuleSerializer(serializers.ModelSerializer):

    class Meta:
        model = PublishingRule
        fields = [
            'id',
            'category',
            'min_word_count',
            'max_word_count',
            'requires_featured_image',
            'requires_excerpt',
            'requires_meta_description',
            'required_tag_count',
            'auto_publish_trusted',
            'notify_on_submission',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_category(self, value):
        return value.strip().lower()

    def validate_notify_on_submission(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Must be a list of email addresses.")
        for address in value:
            try:
                validate_email(address)
            except DjangoValidationError:
                raise serializers.ValidationError(f"Invalid email address: {address}")
        return value

    def validate(self, attrs):
        minimum = attrs.get('min_word_count', getattr(self.instance, 'min_word_count', 0))
        maximum = attrs.get('max_word_count', getattr(self.instance, 'max_word_count', None))
        if maximum is not None and maximum < minimum:
            raise serializers.ValidationError(
                {'max_word_count': "Maximum word count must not be below the minimum."}
            )
        return attrs


class EditorialAssignmentSerializer(serializers.ModelSerializer):

    user = serializers.PrimaryKeyRelatedField(queryset=User.objects.filter(is_active=True))
    user_name = serializers.SerializerMethodField()

    class Meta:
        model = EditorialAssignment
        fields = [
            'id',
            'user',
            'user_name',
            'category',
            'can_approve',
            'can_publish',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']
        validators = []

    def get_user_name(self, obj):
        return _display_name(obj.user)

    def validate_user(self, value):
        if get_user_role(value) not in STAFF_ROLES:
            raise serializers.ValidationError("Assignments can only be given to editors or administrators.")
        return value

    def validate_category(self, value):
        return value.strip().lower()

    def validate(self, attrs):
        user = attrs.get('user', getattr(self.instance, 'user', None))
        category = attrs.get('category', getattr(self.instance, 'category', None))
        existing = EditorialAssignment.objects.filter(user=user, category=category)
        if self.instance is not None:
            existing = existing.exclude(pk=self.instance.pk)
        if existing.exists():
            raise serializers.ValidationError({'category': "This user is already assigned to the category."})
        return attrs
