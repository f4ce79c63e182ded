from django.apps import AppConfig


class EditorialConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.editorial'
    verbose_name = 'Editorial'

    def ready(self):
        # Connect cache invalidation signals
        from apps.editorial import stores  # noqa: F401
        from apps.editorial.events import register_default_subscribers

        register_default_subscribers()
