"""Example moderated models, also used by the moderation test suite."""

from django.db import models

from moderation.conf import default_status
from moderation.models import ModeratedByMixin, ModerationMixin


class Category(models.Model):
    """Plain model; its own status column must never be taken for moderation scope."""
    name = models.CharField(max_length=100)
    status = models.CharField(max_length=20, default='active')

    def __str__(self):
        return self.name


class Post(ModeratedByMixin, ModerationMixin, models.Model):
    """Post moderated with the global strict setting and moderated_by tracking."""
    title = models.CharField(max_length=200)
    topic = models.CharField(max_length=50, blank=True)
    views = models.IntegerField(default=0)
    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='posts'
    )

    def __str__(self):
        return self.title


class Review(ModerationMixin, models.Model):
    """Always strict, stores its status in `state`, no moderated_by."""
    strict_moderation = True
    status_column = 'state'

    status = None
    state = models.CharField(max_length=20, default=default_status, db_index=True)

    post = models.ForeignKey(Post, on_delete=models.CASCADE, related_name='reviews')
    rating = models.PositiveSmallIntegerField(default=3)

    def __str__(self):
        return f"Review of {self.post_id} ({self.rating})"
