"""
Prometheus Metrics for Newsdesk.

Metrics included:
- newsdesk_workflow_actions_total: workflow action attempts by action and outcome
- newsdesk_audit_failures_total: activity log writes that failed
- newsdesk_notifications_total: submission notifications by status
- newsdesk_articles_released_total: scheduled articles released by the beat job

Cardinality Guidelines:
- All labels MUST be low-cardinality (small, bounded set of values)
- ALLOWED label values: action names, outcome/error codes, status enums
- FORBIDDEN label values: article ids, user ids, categories, emails
- If per-resource metrics are needed, use structured logging instead

Setup:
    urlpatterns = [
        path('metrics/', metrics_view, name='prometheus-metrics'),
    ]
"""

import logging

from django.http import HttpResponse
from prometheus_client import CONTENT_TYPE_LATEST, Counter, generate_latest

logger = logging.getLogger(__name__)


# ============================================================================
# Metric Definitions
# ============================================================================

workflow_actions_total = Counter(
    'newsdesk_workflow_actions_total',
    'Workflow action attempts',
    ['action', 'outcome']  # outcome: success or an error code
)

audit_failures_total = Counter(
    'newsdesk_audit_failures_total',
    'Activity log writes that failed',
)

notifications_total = Counter(
    'newsdesk_notifications_total',
    'Submission notification emails',
    ['status']  # status: queued/sent/failed
)

articles_released_total = Counter(
    'newsdesk_articles_released_total',
    'Scheduled articles released by the periodic job',
)


# ============================================================================
# Helper Functions
# ============================================================================

def increment_workflow_action(action, outcome='success'):
    """Count one workflow attempt."""
    workflow_actions_total.labels(action=action, outcome=outcome).inc()


def increment_audit_failure():
    audit_failures_total.inc()


def increment_notification(status='sent'):
    notifications_total.labels(status=status).inc()


def increment_articles_released(count=1):
    if count:
        articles_released_total.inc(count)


# ============================================================================
# Metrics View
# ============================================================================

def metrics_view(request):
    """Expose metrics in Prometheus text format."""
    return HttpResponse(generate_latest(), content_type=CONTENT_TYPE_LATEST)
