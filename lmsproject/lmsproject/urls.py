"""
URL configuration for the lmsproject assessment backend.

Every API route lives under /api/; the Django admin is mounted at /admin/.
"""
from django.contrib import admin
from django.urls import include, path

from lmsproject.health import health_check

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/health/', health_check, name='health'),
    path('api/', include('courses.urls')),
    path('api/', include('learning.urls')),
]
