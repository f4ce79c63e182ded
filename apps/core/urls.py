"""
URL patterns for core health, metrics and auth endpoints.
"""

from django.urls import path

from apps.core.metrics import metrics_view
from apps.core.views import (
    CurrentUserView,
    CustomTokenObtainPairView,
    CustomTokenRefreshView,
    HealthCheckView,
    LogoutView,
)

app_name = 'core'

urlpatterns = [
    path('health/', HealthCheckView.as_view(), name='health'),
    path('metrics/', metrics_view, name='metrics'),
]

# Auth URLs - mounted at /api/auth/ in main urls.py
auth_urlpatterns = [
    path('login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('me/', CurrentUserView.as_view(), name='current_user'),
    path('logout/', LogoutView.as_view(), name='logout'),
]
