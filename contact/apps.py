from django.apps import AppConfig
from django.conf import settings


class ContactConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'contact'
    verbose_name = 'Contact Form'

    abuse_tracker = None

    def ready(self):
        """Build the per-process abuse tracker."""
        from .abuse import AbuseTracker

        self.abuse_tracker = AbuseTracker.from_settings(settings)
