"""Service for checking whether an owner can currently be reached by finders."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from django.utils import timezone

from ..models import IdentifierRecord


@dataclass(frozen=True)
class EligibilitySnapshot:
    """Owner standing at the moment of a lookup. Never cached or stored."""

    user_id: int
    account_active: bool
    subscription_active: bool
    checked_at: datetime

    @property
    def eligible(self) -> bool:
        return self.account_active and self.subscription_active


class EligibilityChecker:
    """Computes EligibilitySnapshot for the owner of an identifier record."""

    def snapshot(self, record: IdentifierRecord, now: datetime | None = None) -> EligibilitySnapshot:
        """
        Reads owner standing from a record loaded through IdentifierStore.

        The store annotates ``owner_active`` and ``owner_subscribed`` in the
        record query (see ``SubscriptionQuerySet.in_good_standing``), so this
        issues no queries of its own and every lookup branch costs the same.
        """
        account_active = bool(record.owner_active)
        return EligibilitySnapshot(
            user_id=record.user_id,
            account_active=account_active,
            subscription_active=account_active and bool(record.owner_subscribed),
            checked_at=now or timezone.now(),
        )
