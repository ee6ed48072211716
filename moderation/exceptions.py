"""Errors raised by moderation scopes and status transitions."""

from django.core.exceptions import ObjectDoesNotExist, PermissionDenied


class ModerationError(Exception):
    """Base class for all moderation errors."""
    pass


class NotFoundError(ModerationError, ObjectDoesNotExist):
    """A single-record transition targeted a primary key that does not exist."""

    def __init__(self, model, pk):
        self.model = model
        self.pk = pk
        super().__init__(f"{model.__name__} with pk={pk!r} does not exist")


class UnauthenticatedError(ModerationError, PermissionDenied):
    """The model records moderated_by but no authenticated actor was supplied."""

    def __init__(self, model):
        self.model = model
        super().__init__(
            f"{model.__name__} records the moderating user; "
            f"an authenticated actor is required"
        )


class InconsistentBindingError(ModerationError):
    """Where constraints and their parameters went out of step during removal."""
    pass
