from django.conf import settings
from django.core.exceptions import FieldDoesNotExist
from django.db import models
from django.utils import timezone

from moderation.conf import default_status, get_moderation_settings
from moderation.constants import ModerationStatus
from moderation.managers import ModerationManager, ModerationQuerySet


class ModerationMixin(models.Model):
    """
    Mixin for models whose records go through moderation.

    Records start as pending. The default manager hides everything that is not
    approved (or approved/pending when strict mode is off).

    Fields:
        - status: Stored label of a ModerationStatus
        - moderated_at: When the status was last set, or when the record was archived

    Class attributes:
        - strict_moderation: True/False overrides MODERATION['STRICT']; None falls back
        - status_column / moderated_at_column / moderated_by_column:
          override the field names configured in MODERATION

    Usage:
        class Post(ModerationMixin, models.Model):
            title = models.CharField(max_length=200)

        Post.objects.pending()
        post.mark_approved(actor=request.user)
    """
    status = models.CharField(
        max_length=20,
        default=default_status,
        db_index=True,
        help_text="Moderation status label"
    )
    moderated_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the moderation status was last changed or the record archived"
    )

    strict_moderation = None
    status_column = None
    moderated_at_column = None
    moderated_by_column = None

    objects = ModerationManager()

    class Meta:
        abstract = True

    # ----------------------
    # Column accessors
    # ----------------------

    @classmethod
    def get_status_column(cls):
        return cls.status_column or get_moderation_settings().status_column

    @classmethod
    def get_qualified_status_column(cls):
        return cls._qualify_column(cls.get_status_column())

    @classmethod
    def get_moderated_at_column(cls):
        return cls.moderated_at_column or get_moderation_settings().moderated_at_column

    @classmethod
    def get_qualified_moderated_at_column(cls):
        return cls._qualify_column(cls.get_moderated_at_column())

    @classmethod
    def get_moderated_by_column(cls):
        """Field name of the moderating user, or None if the model has no such field."""
        name = cls.moderated_by_column or get_moderation_settings().moderated_by_column
        if not name:
            return None
        try:
            cls._meta.get_field(name)
        except FieldDoesNotExist:
            return None
        return name

    @classmethod
    def get_qualified_moderated_by_column(cls):
        name = cls.get_moderated_by_column()
        if name is None:
            return None
        return cls._qualify_column(name)

    @classmethod
    def _qualify_column(cls, field_name):
        column = cls._meta.get_field(field_name).column
        return f"{cls._meta.db_table}.{column}"

    @classmethod
    def fresh_timestamp(cls):
        return timezone.now()

    # ----------------------
    # Status checks
    # ----------------------

    def _has_status(self, status):
        label = get_moderation_settings().label(status)
        return getattr(self, self.get_status_column()) == label

    def is_pending(self):
        return self._has_status(ModerationStatus.PENDING)

    def is_approved(self):
        return self._has_status(ModerationStatus.APPROVED)

    def is_rejected(self):
        return self._has_status(ModerationStatus.REJECTED)

    def is_postponed(self):
        return self._has_status(ModerationStatus.POSTPONED)

    # ----------------------
    # Instance transitions
    # ----------------------

    def mark_approved(self, actor=None):
        return self._mark(ModerationStatus.APPROVED, actor)

    def mark_rejected(self, actor=None):
        return self._mark(ModerationStatus.REJECTED, actor)

    def mark_postponed(self, actor=None):
        return self._mark(ModerationStatus.POSTPONED, actor)

    def mark_pending(self, actor=None):
        return self._mark(ModerationStatus.PENDING, actor)

    def _mark(self, status, actor):
        """
        Transition this record regardless of its current status.

        The update goes to the database first; the moderation fields on this
        instance are then refreshed from it.

        Returns:
            self (for chaining)
        """
        if self.pk is None:
            raise ValueError(f"{self.__class__.__name__} must be saved before it can be moderated")

        queryset = ModerationQuerySet(model=self.__class__, using=self._state.db)
        queryset.moderate(status, pk=self.pk, actor=actor)

        fields = [self.get_status_column(), self.get_moderated_at_column()]
        moderated_by = self.get_moderated_by_column()
        if moderated_by:
            fields.append(moderated_by)
        self.refresh_from_db(fields=fields)
        return self


class ModeratedByMixin(models.Model):
    """
    Records which user performed the last moderation transition.

    Combine with ModerationMixin. Transitions on models with this field
    require an authenticated actor.
    """
    moderated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='%(app_label)s_%(class)s_moderated',
        help_text="User who last moderated this record"
    )

    class Meta:
        abstract = True
