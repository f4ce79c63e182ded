"""
URL configuration for the Newsdesk project.
"""

from django.contrib import admin
from django.urls import include, path

from apps.core.urls import auth_urlpatterns

urlpatterns = [
    path('admin/', admin.site.urls),
    # JWT auth endpoints
    path('api/auth/', include((auth_urlpatterns, 'auth'))),
    # Author draft management
    path('api/', include('apps.articles.urls')),
    # Review desk: workflow actions, queue, rules, assignments
    path('api/editorial/', include('apps.editorial.urls')),
    # Activity log
    path('api/activity/', include('apps.audit.urls')),
    # Health and metrics
    path('', include('apps.core.urls')),
]

# Customize admin site
admin.site.site_header = "Newsdesk Administration"
admin.site.site_title = "Newsdesk Admin Portal"
admin.site.index_title = "Welcome to Newsdesk Administration"
