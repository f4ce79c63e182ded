"""
Article API URLs.
"""

from django.urls import include, path

from config.routers import SafeDefaultRouter

from .views import ArticleViewSet

app_name = 'articles'

router = SafeDefaultRouter()
router.register(r'articles', ArticleViewSet, basename='article')

urlpatterns = [
    path('', include(router.urls)),
]
