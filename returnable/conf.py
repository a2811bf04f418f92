"""Configuration layer for the returnable module.

This module provides a settings wrapper that allows setting default values
if the user hasn't specified them in settings.py.
"""

from django.conf import settings


class AppSettings:
    """
    Settings wrapper for accessing configuration.
    Allows setting default values if the user hasn't specified them in settings.py.
    """

    @property
    def DECOY_SECRET(self):
        return getattr(settings, "RETURNABLE_DECOY_SECRET", None)

    @property
    def API_TOKEN(self):
        return getattr(settings, "RETURNABLE_API_TOKEN", None)

    @property
    def USER_MODEL(self):
        return getattr(settings, "AUTH_USER_MODEL", "auth.User")

    @property
    def MAX_ALLOCATION_ATTEMPTS(self):
        return getattr(settings, "RETURNABLE_MAX_ALLOCATION_ATTEMPTS", 100)

    @property
    def BASE_URL(self):
        return getattr(settings, "RETURNABLE_BASE_URL", "http://localhost:8000").rstrip("/")

    @property
    def REPORT_RETENTION_DAYS(self):
        return getattr(settings, "RETURNABLE_REPORT_RETENTION_DAYS", 30)

    @property
    def SHOW_DOCS(self):
        return getattr(settings, "RETURNABLE_SHOW_DOCS", True)

    @property
    def API_TITLE(self):
        return getattr(settings, "RETURNABLE_API_TITLE", "Returnable Lookup API")


# Create singleton instance
returnable_settings = AppSettings()
