"""
Editorial desk API URLs.
"""

from django.urls import include, path

from config.routers import SafeDefaultRouter

from .views import (
    DeskStatsView,
    EditorialAssignmentViewSet,
    FeedbackListView,
    PublishingRuleViewSet,
    ReviewDetailView,
    ReviewQueueView,
    WorkflowActionView,
)

app_name = 'editorial'

router = SafeDefaultRouter()
router.register(r'rules', PublishingRuleViewSet, basename='rule')
router.register(r'assignments', EditorialAssignmentViewSet, basename='assignment')

urlpatterns = [
    path('articles/<uuid:pk>/', ReviewDetailView.as_view(), name='review-detail'),
    path('articles/<uuid:pk>/actions/', WorkflowActionView.as_view(), name='workflow-action'),
    path('articles/<uuid:pk>/feedback/', FeedbackListView.as_view(), name='feedback-list'),
    path('queue/', ReviewQueueView.as_view(), name='review-queue'),
    path('stats/', DeskStatsView.as_view(), name='desk-stats'),
    path('', include(router.urls)),
]
