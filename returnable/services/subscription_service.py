"""Service for the subscription lifecycle of identifier owners.

Activation is where identifiers are born: the first activation of a user
allocates their identifier record inside the same transaction that creates the
subscription; later activations reuse and reactivate it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from dateutil.relativedelta import relativedelta
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from ..models import IdentifierRecord, Subscription
from ..signals import identifier_allocated, identifier_reactivated, subscription_activated
from ..store import IdentifierStore
from .allocation_service import IdentifierAllocator

logger = logging.getLogger(__name__)
User = get_user_model()

PLAN_MONTHS = {
    Subscription.PlanType.MONTHLY: 1,
    Subscription.PlanType.SIX_MONTHS: 6,
    Subscription.PlanType.TWELVE_MONTHS: 12,
    Subscription.PlanType.TWENTY_FOUR_MONTHS: 24,
}

# Plan ids used by checkout pages.
PLAN_ALIASES = {
    "monthly": Subscription.PlanType.MONTHLY,
    "6months": Subscription.PlanType.SIX_MONTHS,
    "12months": Subscription.PlanType.TWELVE_MONTHS,
    "24months": Subscription.PlanType.TWENTY_FOUR_MONTHS,
}


@dataclass(frozen=True)
class ActivationResult:
    subscription: Subscription
    record: IdentifierRecord
    created_identifier: bool


def resolve_plan_type(plan: str) -> str:
    """
    Maps a checkout plan id or a PlanType value to a PlanType value.

    Raises:
        ValueError: If the plan is unknown.
    """
    if plan in PLAN_ALIASES:
        return PLAN_ALIASES[plan]
    normalized = (plan or "").upper()
    if normalized in Subscription.PlanType.values:
        return normalized
    raise ValueError(f"Unknown plan type: {plan!r}")


class SubscriptionService:
    """
    Activation and status changes of owner subscriptions.
    """

    def __init__(self, store: IdentifierStore, allocator: IdentifierAllocator):
        self.store = store
        self.allocator = allocator

    def activate(
        self,
        user_id: int,
        plan_type: str,
        external_subscription_id: str | None = None,
        period_start: datetime | None = None,
        period_end: datetime | None = None,
    ) -> ActivationResult:
        """
        Creates an ACTIVE subscription and makes sure the user has an ACTIVE identifier.

        Args:
            user_id: Owner user ID.
            plan_type: Plan id ('monthly', '6months', ...) or PlanType value.
            external_subscription_id: Optional payment-provider subscription id.
            period_start: Start of the paid period (defaults to now).
            period_end: End of the paid period (defaults to start + plan length).

        Returns:
            ActivationResult: Subscription, identifier record and whether the record is new.

        Raises:
            ValueError: If the user does not exist or the plan is unknown.
            AllocationExhausted: If a new identifier could not be allocated.
        """
        plan = resolve_plan_type(plan_type)
        if not User.objects.filter(pk=user_id).exists():
            raise ValueError(f"User {user_id} does not exist.")

        start = period_start or timezone.now()
        end = period_end or start + relativedelta(months=PLAN_MONTHS[plan])
        if end <= start:
            raise ValueError("Subscription period must end after it starts.")

        with transaction.atomic():
            subscription = Subscription.objects.create(
                user_id=user_id,
                plan_type=plan,
                status=Subscription.Status.ACTIVE,
                external_subscription_id=external_subscription_id,
                current_period_start=start,
                current_period_end=end,
            )

            record = self.store.get_for_user(user_id)
            created = record is None
            if created:
                record = self.allocator.claim(user_id)
                identifier_allocated.send(sender=self.__class__, record=record)
            elif not record.is_active():
                self.store.set_status(record, IdentifierRecord.Status.ACTIVE)
                identifier_reactivated.send(sender=self.__class__, record=record)

            subscription_activated.send(sender=self.__class__, subscription=subscription, record=record)

        logger.info(
            f"Activated {plan} subscription {subscription.pk} for user {user_id} "
            f"(new identifier: {created})"
        )
        return ActivationResult(subscription=subscription, record=record, created_identifier=created)

    def update_status(
        self,
        external_subscription_id: str,
        status: str,
        period_start: datetime | None = None,
        period_end: datetime | None = None,
    ) -> Subscription:
        """
        Updates status and, optionally, the current period of a subscription.

        The owner's identifier record is left alone: it belongs to the user for
        life, and lookups re-check standing on every request.

        Raises:
            ValueError: If the status is unknown.
            Subscription.DoesNotExist: If no subscription has that external id.
        """
        normalized_status = (status or "").upper()
        if normalized_status not in Subscription.Status.values:
            raise ValueError(f"Unknown subscription status: {status!r}")

        subscription = Subscription.objects.get(external_subscription_id=external_subscription_id)
        subscription.status = normalized_status
        update_fields = ["status"]
        if period_start:
            subscription.current_period_start = period_start
            update_fields.append("current_period_start")
        if period_end:
            subscription.current_period_end = period_end
            update_fields.append("current_period_end")
        subscription.save(update_fields=update_fields)

        logger.info(f"Updated subscription {external_subscription_id} to {normalized_status}")
        return subscription

    def cancel(self, user_id: int, immediately: bool = False) -> Subscription:
        """
        Cancels the user's latest ACTIVE subscription.

        Without ``immediately`` the subscription stays ACTIVE until its period ends.

        Raises:
            ValueError: If the user has no active subscription.
        """
        subscription = (
            Subscription.objects.filter(user_id=user_id, status=Subscription.Status.ACTIVE)
            .order_by("-created_at")
            .first()
        )
        if subscription is None:
            raise ValueError("No active subscription found")

        if immediately:
            subscription.status = Subscription.Status.CANCELED
            subscription.cancel_at_period_end = False
        else:
            subscription.cancel_at_period_end = True
        subscription.save(update_fields=["status", "cancel_at_period_end"])
        logger.info(f"Canceled subscription {subscription.pk} for user {user_id} (immediately: {immediately})")
        return subscription
