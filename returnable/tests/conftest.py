"""Pytest hooks and fixtures for returnable tests.

Ensures DJANGO_SETTINGS_MODULE is set when running tests from the repo root
without pyproject.toml in effect (e.g. when invoked from another cwd).
"""

import os
from datetime import timedelta

import pytest

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "returnable.tests.test_settings")
# API test clients rebuild the same NinjaAPI urls
os.environ.setdefault("NINJA_SKIP_REGISTRY", "yes")


@pytest.fixture
def make_owner(db):
    """Factory: user with an identifier record and (optionally) a subscription in good standing."""
    from django.contrib.auth import get_user_model
    from django.utils import timezone

    from returnable.models import IdentifierRecord, Subscription

    User = get_user_model()

    def _make(
        username: str,
        identifier: str,
        token: str,
        record_status: str = IdentifierRecord.Status.ACTIVE,
        subscribed: bool = True,
        account_active: bool = True,
    ):
        user = User.objects.create(username=username, is_active=account_active)
        record = IdentifierRecord.objects.create(
            user=user, identifier=identifier, token=token, status=record_status
        )
        now = timezone.now()
        if subscribed:
            Subscription.objects.create(
                user=user,
                status=Subscription.Status.ACTIVE,
                current_period_start=now - timedelta(days=1),
                current_period_end=now + timedelta(days=30),
            )
        else:
            Subscription.objects.create(
                user=user,
                status=Subscription.Status.ACTIVE,
                current_period_start=now - timedelta(days=60),
                current_period_end=now - timedelta(days=30),
            )
        return record

    return _make
