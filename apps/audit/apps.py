from django.apps import AppConfig


class AuditConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.audit'
    verbose_name = 'Audit'

    def ready(self):
        # Connect user management receivers
        from apps.audit import services  # noqa: F401
