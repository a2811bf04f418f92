"""Tests for subscription activation and identifier lifecycle."""

from datetime import timedelta

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone

from returnable.codec import IdentifierCodec
from returnable.exceptions import AllocationExhausted
from returnable.models import IdentifierRecord, Subscription
from returnable.services import build_identifier_service, build_subscription_service
from returnable.services.subscription_service import resolve_plan_type
from returnable.signals import identifier_allocated, identifier_reactivated

User = get_user_model()


@pytest.fixture
def user(db):
    return User.objects.create(username="subscriber")


@pytest.fixture
def captured_signals():
    received = []

    def handler(signal, **kwargs):
        received.append((signal, kwargs.get("record")))

    identifier_allocated.connect(handler, weak=False)
    identifier_reactivated.connect(handler, weak=False)
    yield received
    identifier_allocated.disconnect(handler)
    identifier_reactivated.disconnect(handler)


@pytest.mark.parametrize(
    "plan, expected",
    [
        ("monthly", "MONTHLY"),
        ("6months", "SIX_MONTHS"),
        ("12months", "TWELVE_MONTHS"),
        ("24months", "TWENTY_FOUR_MONTHS"),
        ("twelve_months", "TWELVE_MONTHS"),
    ],
)
def test_resolve_plan_type(plan, expected):
    assert resolve_plan_type(plan) == expected


def test_resolve_plan_type_unknown():
    with pytest.raises(ValueError):
        resolve_plan_type("weekly")


@pytest.mark.django_db
class TestActivate:
    def test_first_activation_allocates_identifier(self, user, captured_signals):
        result = build_subscription_service().activate(user.id, "monthly")

        assert result.created_identifier is True
        assert result.subscription.status == Subscription.Status.ACTIVE
        assert Subscription.objects.in_good_standing().filter(pk=result.subscription.pk).exists()
        assert result.record.user_id == user.id
        assert result.record.status == IdentifierRecord.Status.ACTIVE
        assert IdentifierCodec.validate(result.record.identifier).valid
        assert captured_signals == [(identifier_allocated, result.record)]

    def test_default_period_follows_plan_length(self, user):
        start = timezone.now()
        result = build_subscription_service().activate(user.id, "6months", period_start=start)
        delta = result.subscription.current_period_end - start
        assert timedelta(days=180) <= delta <= timedelta(days=185)

    def test_resubscription_reuses_and_reactivates_identifier(self, user, captured_signals):
        service = build_subscription_service()
        first = service.activate(user.id, "monthly")
        build_identifier_service().deactivate(user.id)

        second = service.activate(user.id, "12months")

        assert second.created_identifier is False
        assert second.record.pk == first.record.pk
        assert second.record.identifier == first.record.identifier
        assert second.record.token == first.record.token
        assert second.record.status == IdentifierRecord.Status.ACTIVE
        assert IdentifierRecord.objects.count() == 1
        assert captured_signals[-1][0] is identifier_reactivated

    def test_unknown_user(self, db):
        with pytest.raises(ValueError, match="does not exist"):
            build_subscription_service().activate(999999, "monthly")

    def test_period_must_be_positive(self, user):
        now = timezone.now()
        with pytest.raises(ValueError):
            build_subscription_service().activate(user.id, "monthly", period_start=now, period_end=now)

    def test_exhaustion_rolls_back_subscription(self, user):
        service = build_subscription_service()

        def never(*args, **kwargs):
            raise AllocationExhausted(1)

        service.allocator.claim = never
        with pytest.raises(AllocationExhausted):
            service.activate(user.id, "monthly")
        assert not Subscription.objects.filter(user=user).exists()
        assert not IdentifierRecord.objects.filter(user=user).exists()


@pytest.mark.django_db
class TestStatusChanges:
    def test_update_status_keeps_identifier(self, user):
        service = build_subscription_service()
        result = service.activate(user.id, "monthly", external_subscription_id="sub_1")

        subscription = service.update_status("sub_1", "expired")

        assert subscription.status == Subscription.Status.EXPIRED
        record = IdentifierRecord.objects.get(user=user)
        assert record.token == result.record.token
        assert record.status == IdentifierRecord.Status.ACTIVE

    def test_update_status_unknown_subscription(self, db):
        with pytest.raises(Subscription.DoesNotExist):
            build_subscription_service().update_status("missing", "ACTIVE")

    def test_update_status_invalid_status(self, user):
        service = build_subscription_service()
        service.activate(user.id, "monthly", external_subscription_id="sub_1")
        with pytest.raises(ValueError):
            service.update_status("sub_1", "PAUSED")

    def test_cancel_at_period_end(self, user):
        service = build_subscription_service()
        service.activate(user.id, "monthly")
        subscription = service.cancel(user.id)
        assert subscription.cancel_at_period_end is True
        assert subscription.status == Subscription.Status.ACTIVE

    def test_cancel_immediately(self, user):
        service = build_subscription_service()
        service.activate(user.id, "monthly")
        subscription = service.cancel(user.id, immediately=True)
        assert subscription.status == Subscription.Status.CANCELED

    def test_cancel_without_subscription(self, user):
        with pytest.raises(ValueError):
            build_subscription_service().cancel(user.id)


@pytest.mark.django_db
class TestIdentifierService:
    def test_get_for_user_missing(self, user):
        with pytest.raises(IdentifierRecord.DoesNotExist):
            build_identifier_service().get_for_user(user.id)

    def test_deactivate_and_reactivate(self, user):
        build_subscription_service().activate(user.id, "monthly")
        service = build_identifier_service()

        assert service.deactivate(user.id).status == IdentifierRecord.Status.INACTIVE
        assert service.reactivate(user.id).status == IdentifierRecord.Status.ACTIVE

    def test_sticker_urls(self, user):
        record = IdentifierRecord.objects.create(user=user, identifier="ABC123", token="a" * 64)
        service = build_identifier_service()
        assert service.qr_code_url(record) == f"https://found.example.com/found/{'a' * 64}"
        assert service.manual_url(record) == "https://found.example.com/found?id=ABC123"
        assert service.manual_url(record, base_url="https://x.test/") == "https://x.test/found?id=ABC123"

    def test_record_normalized_on_save(self, user):
        record = IdentifierRecord.objects.create(user=user, identifier="abc-123", token="AB" * 32)
        record.refresh_from_db()
        assert record.identifier == "ABC123"
        assert record.token == "ab" * 32
