"""
Activity log API views.

GET /api/activity/         - Filtered, paginated activity log (desk staff)
GET /api/activity/stats/   - Counts by action, by actor and per day (admins)
"""

import logging
from datetime import datetime, time, timedelta

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from rest_framework import generics
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.audit.models import USER_MANAGEMENT_ACTIONS, ActivityLogEntry
from apps.audit.serializers import ActivityLogEntrySerializer
from apps.audit.services import ActivityLogger
from apps.core.actors import ADMIN_ROLES
from apps.core.exceptions import ValidationError
from apps.core.permissions import IsAdmin, IsDeskStaff, get_user_role

logger = logging.getLogger(__name__)


def _parse_bound(value, field, end_of_day=False):
    """Accept an ISO datetime or a plain date."""
    if not value:
        return None
    try:
        day = parse_date(value)
        parsed = None if day else parse_datetime(value)
    except ValueError:
        day = parsed = None
    if day:
        parsed = datetime.combine(day, time.max if end_of_day else time.min)
    if parsed is None:
        raise ValidationError(f"Invalid date: {value}", field=field)
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


class ActivityLogListView(generics.ListAPIView):
    """
    Activity log list.

    Query params:
      - content_id, actor_id, action
      - start, end: ISO date or datetime bounds on created_at

    Editors never see user-management or settings entries.
    """
    permission_classes = [IsAuthenticated, IsDeskStaff]
    serializer_class = ActivityLogEntrySerializer

    def get_queryset(self):
        params = self.request.query_params
        queryset = ActivityLogEntry.objects.all().order_by('-created_at')

        if params.get('content_id'):
            queryset = queryset.filter(content_id=params['content_id'])
        if params.get('actor_id'):
            queryset = queryset.filter(actor_id=params['actor_id'])
        if params.get('action'):
            queryset = queryset.filter(action=params['action'].upper())

        start = _parse_bound(params.get('start'), 'start')
        end = _parse_bound(params.get('end'), 'end', end_of_day=True)
        if start:
            queryset = queryset.filter(created_at__gte=start)
        if end:
            queryset = queryset.filter(created_at__lte=end)

        if get_user_role(self.request.user) not in ADMIN_ROLES:
            queryset = queryset.exclude(action__in=USER_MANAGEMENT_ACTIONS)

        return queryset


class ActivityStatsView(APIView):
    """
    Activity statistics over the last `days` days (default 7, max 90).
    """
    permission_classes = [IsAuthenticated, IsAdmin]

    def get(self, request):
        try:
            days = int(request.query_params.get('days', 7))
        except ValueError:
            raise ValidationError("days must be an integer", field='days')
        days = max(1, min(days, 90))

        now = timezone.now()
        since = now - timedelta(days=days)

        return Response({
            'period': {
                'start': since.isoformat(),
                'end': now.isoformat(),
                'days': days,
            },
            'by_action': ActivityLogger.counts_by_action(since=since),
            'by_actor': ActivityLogger.counts_by_actor(since=since),
            'daily': ActivityLogger.daily_counts(days=days),
        })
