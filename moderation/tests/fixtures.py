"""
Test fixtures and helper functions for moderation tests.

Creates one post per status so visibility assertions can work on titles.
"""

from django.contrib.auth import get_user_model

from posts.models import Category, Post, Review

User = get_user_model()


def create_moderator(username='moderator'):
    """Create a user that performs transitions"""
    return User.objects.create_user(
        username=username,
        email=f'{username}@test.com',
        password='testpass123'
    )


def create_post(title, status='pending', topic='', views=0, category=None):
    """Create a post with the given stored status label"""
    return Post.objects.create(
        title=title,
        status=status,
        topic=topic,
        views=views,
        category=category
    )


def create_posts_in_every_status(topic=''):
    """Create one post per status, titled after the status"""
    return {
        status: create_post(status, status=status, topic=topic)
        for status in ('pending', 'approved', 'rejected', 'postponed')
    }


def create_category(name='News', status='active'):
    """Create a category (its status column is unrelated to moderation)"""
    return Category.objects.create(name=name, status=status)


def create_review(post, state='pending', rating=3):
    """Create a review with the given stored state label"""
    return Review.objects.create(post=post, state=state, rating=rating)


def titles(queryset):
    """Sorted post titles in a queryset"""
    return sorted(queryset.values_list('title', flat=True))
