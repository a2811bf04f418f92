"""AppConfig for the returnable module."""

from django.apps import AppConfig
from django.core.exceptions import ImproperlyConfigured

from .conf import returnable_settings


class ReturnableConfig(AppConfig):
    """Config for the returnable app.

    Refuses to start without RETURNABLE_DECOY_SECRET: every lookup that must not
    disclose a mapping depends on it.
    """

    default_auto_field = "django.db.models.BigAutoField"
    name = "returnable"
    verbose_name = "Returnable (lost-item identifiers)"

    def ready(self) -> None:
        secret = returnable_settings.DECOY_SECRET
        if not secret or not str(secret).strip():
            raise ImproperlyConfigured(
                "RETURNABLE_DECOY_SECRET must be set to a non-empty value before the returnable app starts."
            )
