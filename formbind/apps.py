"""
Django app configuration for django-formbind.
"""

import logging

from django.apps import AppConfig as BaseAppConfig

logger = logging.getLogger(__name__)


class FormbindConfig(BaseAppConfig):
    """Django app configuration for django-formbind."""

    name = "formbind"
    verbose_name = "Form Binding"
    label = "formbind"

    def ready(self):
        """Validate library configuration once Django has loaded."""
        self._validate_configuration()

    def _validate_configuration(self):
        from .core.settings import get_unknown_setting_keys

        unknown = get_unknown_setting_keys()
        if unknown:
            logger.warning("Ignoring unknown FORMBIND settings: %s", ", ".join(unknown))
