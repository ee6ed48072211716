"""
URL configuration for moderation_project project.

Only the admin site is routed; moderation itself has no HTTP surface.
"""
from django.contrib import admin
from django.urls import path

urlpatterns = [
    path('admin/', admin.site.urls),
]
