from django.db import models


class ModerationStatus(models.TextChoices):
    """
    Semantic moderation states.

    The values are the keys of MODERATION['STATUS']; the label actually stored
    in the status column is looked up through ModerationSettings.label().
    """
    PENDING = 'pending', 'Pending'
    APPROVED = 'approved', 'Approved'
    REJECTED = 'rejected', 'Rejected'
    POSTPONED = 'postponed', 'Postponed'
