"""
Activity log API URLs, mounted at /api/activity/.
"""

from django.urls import path

from .views import ActivityLogListView, ActivityStatsView

app_name = 'audit'

urlpatterns = [
    path('', ActivityLogListView.as_view(), name='activity-list'),
    path('stats/', ActivityStatsView.as_view(), name='activity-stats'),
]
