"""
Moderation Managers Module

Provides the manager and queryset used by moderated models.

**Architecture:**
- ModerationManager: Injects the default visibility predicate
- ModerationQuerySet: Visibility modifiers, status transitions, soft archive

Exports:
    QuerySets:
        - ModerationQuerySet: with_pending(), with_rejected(), with_postponed(),
          with_any_status(), pending(), approved(), rejected(), postponed(),
          approve(), reject(), postpone(), moderate(), delete(), hard_delete()

    Managers:
        - ModerationManager: For ModerationMixin models

Usage:
    from moderation.models import ModerationMixin

    class Post(ModerationMixin, models.Model):
        title = models.CharField(max_length=200)

    Post.objects.all()                      # approved + pending (or approved only when strict)
    Post.objects.rejected()                 # rejected only
    Post.objects.filter(topic='news').with_rejected()
    Post.objects.approve(5, actor=request.user)
    Post.objects.filter(topic='spam').reject(actor=request.user)
"""

import logging

from django.db import models

from moderation.conf import get_moderation_settings
from moderation.constants import ModerationStatus
from moderation.constraints import remove_moderation_constraints, scope_lookup
from moderation.exceptions import NotFoundError, UnauthenticatedError

logger = logging.getLogger(__name__)


def resolve_actor_id(actor):
    """
    Return the primary key of the moderating user, or None.

    Accepts a user instance or a raw id. Users that are not authenticated
    (AnonymousUser) count as no actor.
    """
    if actor is None:
        return None
    if hasattr(actor, 'is_authenticated'):
        if not actor.is_authenticated:
            return None
        return actor.pk
    return actor


class ModerationQuerySet(models.QuerySet):
    """
    QuerySet for ModerationMixin models.

    Every visibility modifier replaces the moderation constraint already on the
    query instead of adding a second one. Transitions run on the any-status
    view of the current queryset.
    """

    def __init__(self, model=None, query=None, using=None, hints=None):
        super().__init__(model=model, query=query, using=using, hints=hints)
        self._moderation = None

    def _clone(self):
        clone = super()._clone()
        clone._moderation = self._moderation
        return clone

    @property
    def moderation(self):
        """ModerationSettings for this query build."""
        if self._moderation is None:
            self._moderation = get_moderation_settings()
        return self._moderation

    def is_strict(self):
        """Per-model strict_moderation wins over MODERATION['STRICT']."""
        strict = getattr(self.model, 'strict_moderation', None)
        if strict is None:
            return self.moderation.strict
        return strict

    # ----------------------
    # Scope
    # ----------------------

    def apply_moderation_scope(self):
        """Add the default visibility predicate."""
        if self.is_strict():
            return self._only_status(ModerationStatus.APPROVED)
        return self._only_status(ModerationStatus.APPROVED, ModerationStatus.PENDING)

    def _only_status(self, *statuses):
        clone = self.with_any_status()
        labels = clone.moderation.labels(*statuses)
        return clone.filter(scope_lookup(clone.query, self.model, labels))

    # ----------------------
    # Visibility Modifiers
    # ----------------------

    def with_any_status(self):
        """Drop the moderation constraint; every status is visible."""
        clone = self._chain()
        remove_moderation_constraints(clone.query, self.model, using=clone.db)
        return clone

    def with_pending(self):
        return self._only_status(ModerationStatus.APPROVED, ModerationStatus.PENDING)

    def with_rejected(self):
        return self._only_status(ModerationStatus.APPROVED, ModerationStatus.REJECTED)

    def with_postponed(self):
        return self._only_status(ModerationStatus.APPROVED, ModerationStatus.POSTPONED)

    def pending(self):
        return self._only_status(ModerationStatus.PENDING)

    def approved(self):
        return self._only_status(ModerationStatus.APPROVED)

    def rejected(self):
        return self._only_status(ModerationStatus.REJECTED)

    def postponed(self):
        return self._only_status(ModerationStatus.POSTPONED)

    # ----------------------
    # Status Transitions
    # ----------------------

    def approve(self, pk=None, actor=None):
        """
        Approve one record (pk given) or every record in the queryset.

        Args:
            pk: Primary key of a single record, or None for a bulk update
            actor: User (or user id) recorded in moderated_by

        Returns:
            True for a single record, affected row count for a bulk update

        Raises:
            NotFoundError: No record with that pk, whatever its status
            UnauthenticatedError: Model records moderated_by and no actor given
        """
        return self.moderate(ModerationStatus.APPROVED, pk=pk, actor=actor)

    approve.alters_data = True

    def reject(self, pk=None, actor=None):
        """Reject one record or the whole queryset. See approve()."""
        return self.moderate(ModerationStatus.REJECTED, pk=pk, actor=actor)

    reject.alters_data = True

    def postpone(self, pk=None, actor=None):
        """Postpone one record or the whole queryset. See approve()."""
        return self.moderate(ModerationStatus.POSTPONED, pk=pk, actor=actor)

    postpone.alters_data = True

    def moderate(self, status, pk=None, actor=None):
        """Set status, moderated_at and (if declared) moderated_by."""
        queryset = self.with_any_status()
        model = self.model
        label = queryset.moderation.label(status)
        moderated_by = model.get_moderated_by_column()

        if pk is not None:
            # Joins across multi-valued relations can repeat the row.
            instance = queryset.filter(pk=pk).first()
            if instance is None:
                raise NotFoundError(model, pk)

            status_column = model.get_status_column()
            moderated_at_column = model.get_moderated_at_column()
            setattr(instance, status_column, label)
            setattr(instance, moderated_at_column, model.fresh_timestamp())
            update_fields = [status_column, moderated_at_column]

            if moderated_by:
                actor_id = resolve_actor_id(actor)
                if actor_id is None:
                    raise UnauthenticatedError(model)
                setattr(instance, model._meta.get_field(moderated_by).attname, actor_id)
                update_fields.append(moderated_by)

            instance.save(update_fields=update_fields)
            logger.debug(f"{model.__name__} pk={pk} moderated to '{label}'")
            return True

        update = {
            model.get_status_column(): label,
            model.get_moderated_at_column(): model.fresh_timestamp(),
        }
        if moderated_by:
            actor_id = resolve_actor_id(actor)
            if actor_id is None:
                raise UnauthenticatedError(model)
            update[model._meta.get_field(moderated_by).attname] = actor_id

        count = queryset.update(**update)
        logger.debug(f"{count} {model.__name__} record(s) moderated to '{label}'")
        return count

    moderate.alters_data = True

    # ----------------------
    # Deletion
    # ----------------------

    def delete(self):
        """
        Archive instead of deleting: stamp moderated_at on every matched row.

        Status is left unchanged. Use hard_delete() to remove rows.

        Returns:
            tuple: (rows stamped, {model label: rows stamped}), the same
            shape as QuerySet.delete()
        """
        column = self.model.get_moderated_at_column()
        count = self.update(**{column: self.model.fresh_timestamp()})
        return count, {self.model._meta.label: count}

    delete.alters_data = True
    delete.queryset_only = True

    def hard_delete(self):
        """Permanently delete the matched rows."""
        return super().delete()

    hard_delete.alters_data = True
    hard_delete.queryset_only = True


class ModerationManager(models.Manager.from_queryset(ModerationQuerySet)):
    """
    Manager for ModerationMixin models.

    Args:
        scoped: Apply the default visibility predicate (default True)
        moderation: Explicit ModerationSettings; resolved from settings on
            every query build when omitted

    Usage:
        class Post(ModerationMixin, models.Model):
            objects = ModerationManager()
            all_objects = ModerationManager(scoped=False)

        Post.objects.pending()
        Post.objects.with_any_status()
        Post.objects.approve(5, actor=user)
    """

    def __init__(self, scoped=True, moderation=None):
        super().__init__()
        self.scoped = scoped
        self.moderation = moderation

    def get_queryset(self):
        queryset = super().get_queryset()
        queryset._moderation = self.moderation or get_moderation_settings()
        if self.scoped:
            queryset = queryset.apply_moderation_scope()
        return queryset
