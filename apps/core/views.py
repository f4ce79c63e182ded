"""
Health check and authentication views.
"""

import logging

from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from apps.core.exceptions import ValidationError
from apps.core.serializers import CustomTokenObtainPairSerializer, UserSerializer

logger = logging.getLogger(__name__)


def _check_database():
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
        return 'healthy', None
    except DatabaseError as e:
        logger.error(f"Health check: database unavailable: {e}")
        return 'unhealthy', str(e)


def _check_cache():
    try:
        cache.set('newsdesk:health', 'ok', 10)
        if cache.get('newsdesk:health') != 'ok':
            return 'degraded', 'cache read-back mismatch'
        return 'healthy', None
    except Exception as e:
        # Any client error from the cache backend counts as degraded
        logger.warning(f"Health check: cache unavailable: {e}")
        return 'degraded', str(e)


@method_decorator(csrf_exempt, name='dispatch')
class HealthCheckView(View):
    """
    Health check endpoint.

    GET /health/ - 200 when the database answers, 503 otherwise.
    A failing cache only degrades the result.
    """

    def get(self, request):
        db_status, db_error = _check_database()
        cache_status, cache_error = _check_cache()

        checks = {
            'database': {'status': db_status, 'message': db_error},
            'cache': {'status': cache_status, 'message': cache_error},
        }
        if db_status != 'healthy':
            overall = 'unhealthy'
        elif cache_status != 'healthy':
            overall = 'degraded'
        else:
            overall = 'healthy'

        return JsonResponse(
            {'status': overall, 'checks': checks},
            status=503 if overall == 'unhealthy' else 200,
        )


# =============================================================================
# JWT Authentication Views
# =============================================================================

class CustomTokenObtainPairView(TokenObtainPairView):
    """
    Login endpoint that returns JWT tokens.

    POST /api/auth/login/
    Body: {"username": "...", "password": "..."}
    Returns: {"access": "...", "refresh": "...", "user": {...}}
    """
    serializer_class = CustomTokenObtainPairSerializer
    permission_classes = [AllowAny]


class CustomTokenRefreshView(TokenRefreshView):
    """POST /api/auth/refresh/ with {"refresh": "..."}."""
    permission_classes = [AllowAny]


class CurrentUserView(APIView):
    """GET /api/auth/me/ - current user with role."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data)


class LogoutView(APIView):
    """
    Logout endpoint - blacklist refresh token.

    POST /api/auth/logout/
    Body: {"refresh": "..."}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        refresh_token = request.data.get('refresh')
        if not refresh_token:
            raise ValidationError("Refresh token required", field='refresh')

        try:
            RefreshToken(refresh_token).blacklist()
        except TokenError as e:
            raise ValidationError(str(e), field='refresh')

        return Response({"message": "Successfully logged out"})
