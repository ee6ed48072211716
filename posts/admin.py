from django.contrib import admin

from moderation.admin import ModerationAdminMixin
from .models import Post, Review


@admin.register(Post)
class PostAdmin(ModerationAdminMixin, admin.ModelAdmin):
    """Admin for posts, all statuses visible."""
    list_display = ['title', 'topic', 'status', 'moderated_at', 'moderated_by']
    list_filter = ['status', 'topic']
    search_fields = ['title']
    readonly_fields = ['moderated_at', 'moderated_by']


@admin.register(Review)
class ReviewAdmin(ModerationAdminMixin, admin.ModelAdmin):
    """Admin for reviews."""
    list_display = ['post', 'rating', 'state', 'moderated_at']
    list_filter = ['state']
    readonly_fields = ['moderated_at']
