"""
Editorial desk API views.

POST /api/editorial/articles/{id}/actions/   - Execute one workflow action
GET  /api/editorial/articles/{id}/           - Review detail
GET  /api/editorial/articles/{id}/feedback/  - Feedback thread
GET  /api/editorial/queue/                   - Review queue (desk staff)
GET  /api/editorial/stats/                   - Desk counters (desk staff)
     /api/editorial/rules/                   - Publishing rules (admin read, super admin write)
     /api/editorial/assignments/             - Editorial assignments (admin read, super admin write)
"""

import logging

from django.conf import settings
from django.db.models import Case, Count, IntegerField, Q, Value, When
from django.utils import timezone
from django_filters import rest_framework as filters
from rest_framework import generics, viewsets
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.articles.models import Article
from apps.articles.serializers import ArticleSerializer
from apps.articles.state_machine import ContentStatus
from apps.audit.models import SYSTEM_CONTENT_ID, ActivityAction
from apps.audit.serializers import ActivityLogEntrySerializer
from apps.audit.services import ActivityLogger
from apps.core.actors import Actor
from apps.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from apps.core.permissions import AdminReadSuperAdminWrite, IsDeskStaff

from .capabilities import editor_categories, resolve_capabilities
from .commands import parse_command
from .engine import WorkflowEngine
from .models import EditorialAssignment, Priority, PublishingRule, ReviewRecord
from .serializers import (
    EditorialAssignmentSerializer,
    FeedbackEntrySerializer,
    PublishingRuleSerializer,
    QueueItemSerializer,
    ReviewRecordSerializer,
    WorkflowActionSerializer,
)
from .stores import AssignmentRegistry, FeedbackThread, ReviewStore, RuleStore
from .transitions import ACTION_TRANSITIONS, TERMINAL_REVIEW_STATUSES, ReviewStatus

logger = logging.getLogger(__name__)

# Content statuses shown in the review queue
QUEUE_CONTENT_STATUSES = [
    ContentStatus.PENDING_REVIEW.value,
    ContentStatus.IN_REVIEW.value,
    ContentStatus.CHANGES_REQUESTED.value,
    ContentStatus.APPROVED.value,
]

OPEN_REVIEW = ~Q(status__in=[s.value for s in TERMINAL_REVIEW_STATUSES])

PRIORITY_RANK = Case(
    When(priority=Priority.URGENT.value, then=Value(0)),
    When(priority=Priority.HIGH.value, then=Value(1)),
    When(priority=Priority.NORMAL.value, then=Value(2)),
    default=Value(3),
    output_field=IntegerField(),
)


def _get_article(pk):
    article = Article.objects.select_related('author').filter(pk=pk).first()
    if article is None:
        raise NotFoundError(f"Article {pk} not found")
    return article


def _readable_article(request, pk):
    """Article plus the caller's capabilities, 403 without read access."""
    article = _get_article(pk)
    actor = Actor.from_user(request.user)
    capabilities = resolve_capabilities(actor, article)
    if not capabilities.can_read:
        raise PermissionDeniedError("You do not have access to this article")
    return article, actor, capabilities


def available_actions(capabilities, article, review):
    """Actions the caller could perform right now."""
    actions = []
    for action in capabilities.allowed_actions:
        transition = ACTION_TRANSITIONS[action]
        if not transition.allows_content(article.content_status):
            continue
        if review is None:
            if transition.review_required:
                continue
        elif not transition.allows_review(review.review_status):
            continue
        actions.append(action.value)
    return actions


# =============================================================================
# Workflow actions and review detail
# =============================================================================

class WorkflowActionView(APIView):
    """
    Execute one workflow action.

    POST /api/editorial/articles/{id}/actions/
    Body: {"action": "REQUEST_CHANGES", "feedback": "...", "expected_version": 3}

    Returns the new content and review statuses; rejections are returned
    in the standard error format.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        envelope = WorkflowActionSerializer(data=request.data)
        envelope.is_valid(raise_exception=True)

        payload = {k: v for k, v in request.data.items() if k not in ('action', 'expected_version')}
        command = parse_command(envelope.validated_data['action'], payload)

        result = WorkflowEngine().execute(
            Actor.from_user(request.user),
            pk,
            command,
            expected_version=envelope.validated_data.get('expected_version'),
        )
        result.raise_for_rejection()
        return Response(result.to_dict())


class ReviewDetailView(APIView):
    """
    Everything the review desk shows for one article.

    GET /api/editorial/articles/{id}/
    Internal feedback is hidden from callers without desk access.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        article, actor, capabilities = _readable_article(request, pk)
        review = ReviewStore.current_for(article)

        feedback = []
        if review is not None:
            entries = FeedbackThread.for_review(review, include_internal=actor.role.is_staff)
            feedback = FeedbackEntrySerializer(entries, many=True).data

        activity = ActivityLogger.for_content(article.id, limit=settings.EDITORIAL_ACTIVITY_DETAIL_LIMIT)
        rule = RuleStore.for_category(article.category)

        return Response({
            'article': ArticleSerializer(article).data,
            'review': ReviewRecordSerializer(review).data if review else None,
            'feedback': feedback,
            'activity': ActivityLogEntrySerializer(activity, many=True).data,
            'rule': PublishingRuleSerializer(rule).data if rule else None,
            'available_actions': available_actions(capabilities, article, review),
        })


class FeedbackListView(APIView):
    """GET /api/editorial/articles/{id}/feedback/ - current review's thread."""
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        article, actor, _ = _readable_article(request, pk)
        review = ReviewStore.current_for(article)
        if review is None:
            return Response({'review': None, 'feedback': [], 'counts': {}})

        include_internal = actor.role.is_staff
        newest_first = request.query_params.get('order') == 'newest'
        entries = FeedbackThread.for_review(review, include_internal=include_internal, newest_first=newest_first)
        return Response({
            'review': str(review.id),
            'feedback': FeedbackEntrySerializer(entries, many=True).data,
            'counts': FeedbackThread.counts_by_type(review) if include_internal else {},
        })


# =============================================================================
# Review queue and desk stats
# =============================================================================

class QueuePagination(PageNumberPagination):
    page_size_query_param = 'page_size'
    max_page_size = 100

    def get_page_size(self, request):
        self.page_size = settings.EDITORIAL_QUEUE_PAGE_SIZE
        return super().get_page_size(request)


def _scoped_reviews(actor):
    """Open reviews the actor may see, limited to assigned categories for editors."""
    queryset = ReviewRecord.objects.filter(OPEN_REVIEW)
    categories = editor_categories(actor)
    if categories is not None:
        queryset = queryset.filter(article__category__in=categories)
    return queryset


# =============================================================================
# Filters
# =============================================================================

class ReviewQueueFilter(filters.FilterSet):
    """Filters for the review queue."""
    status = filters.CharFilter(method='filter_status')
    priority = filters.CharFilter(method='filter_priority')
    category = filters.CharFilter(method='filter_category')
    assignee = filters.CharFilter(method='filter_assignee')

    def filter_status(self, queryset, name, value):
        try:
            status = ReviewStatus.from_string(value.upper())
        except ValueError:
            raise ValidationError(f"Invalid review status: {value}", field='status')
        return queryset.filter(status=status.value)

    def filter_priority(self, queryset, name, value):
        priority = value.upper()
        if priority not in {p.value for p in Priority}:
            raise ValidationError(f"Invalid priority: {value}", field='priority')
        return queryset.filter(priority=priority)

    def filter_category(self, queryset, name, value):
        return queryset.filter(pk__in=ReviewStore.for_category(value.lower()).values('pk'))

    def filter_assignee(self, queryset, name, value):
        assignee = value.strip().lower()
        if assignee == 'unassigned':
            return queryset.filter(reviewer__isnull=True)
        if assignee == 'me':
            reviewer_id = self.request.user.pk
        else:
            try:
                reviewer_id = int(assignee)
            except ValueError:
                raise ValidationError(
                    f"Invalid assignee: {value}. Use a user id, me or unassigned",
                    field='assignee',
                )
        return queryset.filter(pk__in=ReviewStore.for_reviewer(reviewer_id).values('pk'))

    class Meta:
        model = ReviewRecord
        fields = ['status', 'priority']


class PublishingRuleFilter(filters.FilterSet):
    category = filters.CharFilter(field_name='category', lookup_expr='iexact')

    class Meta:
        model = PublishingRule
        fields = ['category']


class EditorialAssignmentFilter(filters.FilterSet):
    """Filters for editorial assignments."""
    user = filters.NumberFilter(field_name='user_id')
    category = filters.CharFilter(method='filter_category')

    def filter_category(self, queryset, name, value):
        return queryset.filter(pk__in=AssignmentRegistry.for_category(value.lower()).values('pk'))

    class Meta:
        model = EditorialAssignment
        fields = ['user', 'category']


class ReviewQueueView(generics.ListAPIView):
    """
    Review queue.

    Query params:
      - status: review status
      - priority: LOW/NORMAL/HIGH/URGENT
      - category: category key
      - assignee: reviewer user id, "me" or "unassigned"

    Ordered by priority (urgent first), then oldest submission first.
    Editors only see their assigned categories.
    """
    permission_classes = [IsAuthenticated, IsDeskStaff]
    serializer_class = QueueItemSerializer
    pagination_class = QueuePagination
    filterset_class = ReviewQueueFilter

    def get_base_queryset(self):
        actor = Actor.from_user(self.request.user)
        return _scoped_reviews(actor).filter(article__status__in=QUEUE_CONTENT_STATUSES)

    def get_queryset(self):
        queryset = self.get_base_queryset().select_related('article', 'article__author', 'reviewer')
        return queryset.annotate(priority_rank=PRIORITY_RANK).order_by('priority_rank', 'submitted_at')

    def list(self, request, *args, **kwargs):
        response = super().list(request, *args, **kwargs)
        counts = (
            self.get_base_queryset().order_by()
            .values('article__status')
            .annotate(count=Count('id'))
        )
        status_counts = {status: 0 for status in QUEUE_CONTENT_STATUSES}
        status_counts.update({row['article__status']: row['count'] for row in counts})
        response.data['status_counts'] = status_counts
        return response


class DeskStatsView(APIView):
    """
    GET /api/editorial/stats/ - review desk counters, scoped like the queue.
    """
    permission_classes = [IsAuthenticated, IsDeskStaff]

    def get(self, request):
        actor = Actor.from_user(request.user)
        reviews = _scoped_reviews(actor)
        counts = reviews.aggregate(
            pending=Count('id', filter=Q(status__in=[ReviewStatus.PENDING.value, ReviewStatus.ASSIGNED.value])),
            in_review=Count('id', filter=Q(status=ReviewStatus.IN_REVIEW.value)),
            needs_revision=Count('id', filter=Q(status=ReviewStatus.CHANGES_REQUESTED.value)),
            on_hold=Count('id', filter=Q(status=ReviewStatus.ON_HOLD.value)),
            approved=Count('id', filter=Q(status=ReviewStatus.APPROVED.value)),
            urgent=Count('id', filter=Q(priority=Priority.URGENT.value)),
            claimed_by_me=Count('id', filter=Q(reviewer=request.user)),
        )

        published = Article.objects.filter(
            status=ContentStatus.PUBLISHED.value,
            published_at__date=timezone.now().date(),
        )
        categories = editor_categories(actor)
        if categories is not None:
            published = published.filter(category__in=categories)
        counts['published_today'] = published.count()

        return Response(counts)


# =============================================================================
# Rules and assignments
# =============================================================================

class SettingsAuditMixin:
    """Log every write as SETTINGS_CHANGED."""

    settings_label = ''

    def _log_change(self, verb, instance):
        ActivityLogger.record_safely(
            SYSTEM_CONTENT_ID,
            Actor.from_user(self.request.user),
            ActivityAction.SETTINGS_CHANGED,
            detail=f"{verb} {self.settings_label} {instance}",
            metadata={'object_id': str(instance.pk), 'verb': verb},
        )

    def perform_create(self, serializer):
        super().perform_create(serializer)
        self._log_change('created', serializer.instance)

    def perform_update(self, serializer):
        super().perform_update(serializer)
        self._log_change('updated', serializer.instance)

    def perform_destroy(self, instance):
        self._log_change('deleted', instance)
        super().perform_destroy(instance)


class PublishingRuleViewSet(SettingsAuditMixin, viewsets.ModelViewSet):
    """Publishing rules. Query param: category."""
    permission_classes = [IsAuthenticated, AdminReadSuperAdminWrite]
    serializer_class = PublishingRuleSerializer
    settings_label = 'publishing rule'
    filterset_class = PublishingRuleFilter
    queryset = PublishingRule.objects.all().order_by('category')


class EditorialAssignmentViewSet(SettingsAuditMixin, viewsets.ModelViewSet):
    """Editorial assignments. Query params: user, category."""
    permission_classes = [IsAuthenticated, AdminReadSuperAdminWrite]
    serializer_class = EditorialAssignmentSerializer
    settings_label = 'editorial assignment'
    filterset_class = EditorialAssignmentFilter
    queryset = EditorialAssignment.objects.select_related('user').order_by('category', 'created_at')
