"""
Moderation Configuration

Reads settings.MODERATION into a ModerationSettings instance.

Settings (all optional):
    MODERATION = {
        'STRICT': False,
        'STATUS': {
            'pending': 'pending',
            'approved': 'approved',
            'rejected': 'rejected',
            'postponed': 'postponed',
        },
        'STATUS_COLUMN': 'status',
        'MODERATED_AT_COLUMN': 'moderated_at',
        'MODERATED_BY_COLUMN': 'moderated_by',
    }

Keys under STATUS are ModerationStatus values; the mapped strings are what
gets stored in the status column.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from moderation.constants import ModerationStatus


DEFAULT_STATUS_LABELS = {
    ModerationStatus.PENDING.value: 'pending',
    ModerationStatus.APPROVED.value: 'approved',
    ModerationStatus.REJECTED.value: 'rejected',
    ModerationStatus.POSTPONED.value: 'postponed',
}


@dataclass(frozen=True)
class ModerationSettings:
    """Resolved moderation configuration."""
    strict: bool = False
    status_labels: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_STATUS_LABELS))
    status_column: str = 'status'
    moderated_at_column: str = 'moderated_at'
    moderated_by_column: Optional[str] = 'moderated_by'

    def label(self, status):
        """Stored label for a ModerationStatus member (or its value)."""
        return self.status_labels[ModerationStatus(status).value]

    def labels(self, *statuses):
        return [self.label(status) for status in statuses]


def get_moderation_settings() -> ModerationSettings:
    """
    Build ModerationSettings from settings.MODERATION.

    Raises:
        ImproperlyConfigured: unknown status key, empty or non-string label,
            or two statuses sharing one label
    """
    config = getattr(settings, 'MODERATION', None) or {}

    status_labels = dict(DEFAULT_STATUS_LABELS)
    status_labels.update(config.get('STATUS') or {})

    unknown = set(status_labels) - set(ModerationStatus.values)
    if unknown:
        raise ImproperlyConfigured(
            f"MODERATION['STATUS'] has unknown keys: {', '.join(sorted(unknown))}"
        )

    for key, label in status_labels.items():
        if not isinstance(label, str) or not label:
            raise ImproperlyConfigured(
                f"MODERATION['STATUS']['{key}'] must be a non-empty string, got {label!r}"
            )

    if len(set(status_labels.values())) != len(status_labels):
        raise ImproperlyConfigured("MODERATION['STATUS'] labels must be unique")

    return ModerationSettings(
        strict=bool(config.get('STRICT', False)),
        status_labels=status_labels,
        status_column=config.get('STATUS_COLUMN', 'status'),
        moderated_at_column=config.get('MODERATED_AT_COLUMN', 'moderated_at'),
        moderated_by_column=config.get('MODERATED_BY_COLUMN', 'moderated_by'),
    )


def default_status():
    """Field default: the stored label for PENDING."""
    return get_moderation_settings().label(ModerationStatus.PENDING)
