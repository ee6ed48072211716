"""
Moderation Module

Status-based visibility and moderation workflow for Django models.

**Architecture:**
Records carry a status (pending, approved, rejected, postponed). The default
manager hides anything not approved (strict mode) or not approved/pending.
Named queryset methods widen or narrow visibility; transitions change status
and stamp moderated_at / moderated_by.

Exports:
    Constants:
        - ModerationStatus: PENDING / APPROVED / REJECTED / POSTPONED

    Model Mixins:
        - ModerationMixin: status + moderated_at, accessors, mark_*() helpers
        - ModeratedByMixin: moderated_by foreign key to the user model

    Managers & QuerySets:
        - ModerationQuerySet: visibility modifiers and transitions
        - ModerationManager: injects the default visibility predicate

    Errors:
        - NotFoundError, UnauthenticatedError, InconsistentBindingError

Usage Examples:

    from moderation.models import ModerationMixin, ModeratedByMixin

    class Post(ModeratedByMixin, ModerationMixin, models.Model):
        title = models.CharField(max_length=200)

    Post.objects.all()                 # approved + pending
    Post.objects.with_rejected()       # approved + rejected
    Post.objects.pending()             # pending only
    Post.objects.with_any_status()     # everything
    Post.objects.approve(5, actor=user)
    Post.objects.filter(topic='spam').reject(actor=user)
"""

# Don't import models at module level to avoid AppRegistryNotReady errors
# Import the mixins directly from their module when needed:
# from moderation.models import ModerationMixin, ModeratedByMixin

from moderation.constants import ModerationStatus
from moderation.exceptions import (
    InconsistentBindingError,
    ModerationError,
    NotFoundError,
    UnauthenticatedError,
)
from moderation.managers import ModerationManager, ModerationQuerySet

__all__ = [
    'ModerationStatus',
    'ModerationQuerySet',
    'ModerationManager',
    'ModerationError',
    'NotFoundError',
    'UnauthenticatedError',
    'InconsistentBindingError',
]

__version__ = '1.0.0'
