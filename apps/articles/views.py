"""
Article API views.

GET    /api/articles/        - Own articles (desk staff see all)
POST   /api/articles/        - Create a draft
GET    /api/articles/{id}/   - Article detail
PATCH  /api/articles/{id}/   - Author edit (DRAFT or CHANGES_REQUESTED)
DELETE /api/articles/{id}/   - Author delete (DRAFT only)

Status changes go through POST /api/editorial/articles/{id}/actions/.
"""

from rest_framework import mixins, status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.core.actors import Actor
from apps.core.permissions import get_user_role

from .models import Article
from .serializers import ArticleListSerializer, ArticleSerializer, ArticleUpdateSerializer
from .services import ArticleService


class ArticleViewSet(mixins.ListModelMixin,
                     mixins.RetrieveModelMixin,
                     mixins.CreateModelMixin,
                     viewsets.GenericViewSet):
    """
    Author draft management.

    Query params (list):
      - status: filter by content status
      - category: filter by category
      - mine: staff only, restrict to own articles
    """

    permission_classes = [IsAuthenticated]
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def get_queryset(self):
        user = self.request.user
        queryset = Article.objects.select_related('author').order_by('-updated_at')

        role = get_user_role(user)
        mine = self.request.query_params.get('mine', '').lower() in ('true', '1', 'yes')
        if not role.is_staff or mine:
            queryset = queryset.filter(author=user)

        status_filter = self.request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter.upper())
        category = self.request.query_params.get('category')
        if category:
            queryset = queryset.filter(category=category.lower())
        return queryset

    def get_serializer_class(self):
        if self.action == 'list':
            return ArticleListSerializer
        if self.action == 'partial_update':
            return ArticleUpdateSerializer
        return ArticleSerializer

    def perform_create(self, serializer):
        actor = Actor.from_user(self.request.user)
        serializer.instance = ArticleService.create(actor, self.request.user, serializer.validated_data)

    def partial_update(self, request, *args, **kwargs):
        article = self.get_object()
        serializer = self.get_serializer(article, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        data = dict(serializer.validated_data)
        expected_version = data.pop('expected_version', None)
        article = ArticleService.update(
            Actor.from_user(request.user), article.id, data, expected_version=expected_version
        )
        return Response(ArticleSerializer(article, context=self.get_serializer_context()).data)

    def destroy(self, request, *args, **kwargs):
        article = self.get_object()
        ArticleService.delete(Actor.from_user(request.user), article.id)
        return Response(status=status.HTTP_204_NO_CONTENT)
