from django.apps import AppConfig


class ModerationConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'moderation'
    verbose_name = 'Moderation'

    def ready(self):
        """Fail fast on a bad MODERATION setting."""
        from moderation.conf import get_moderation_settings
        get_moderation_settings()
