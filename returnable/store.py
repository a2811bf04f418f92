"""Backing store for identifier records.

A thin handle over the Django ORM that services receive in their constructors.
Uniqueness of identifiers, tokens and owners is enforced by database
constraints: ``create_record`` raises ``django.db.IntegrityError`` on a
collision and runs in a savepoint, so callers can retry inside an outer
transaction.
"""

from __future__ import annotations

import logging
from datetime import datetime

from django.db import transaction
from django.db.models import Count, Exists, F, OuterRef, Q
from django.utils import timezone

from .models import IdentifierRecord, Subscription

logger = logging.getLogger(__name__)


class IdentifierStore:
    """Keyed store of IdentifierRecord rows."""

    def identifier_exists(self, identifier: str) -> bool:
        return IdentifierRecord.objects.filter(identifier=identifier).exists()

    def token_exists(self, token: str) -> bool:
        return IdentifierRecord.objects.filter(token=token).exists()

    def _with_standing(self, queryset, now: datetime | None = None):
        """
        Annotates owner_active and owner_subscribed, so the owner's standing
        arrives in the same query as the record.
        """
        now = now or timezone.now()
        return queryset.annotate(
            owner_active=F("user__is_active"),
            owner_subscribed=Exists(
                Subscription.objects.in_good_standing(now).filter(user_id=OuterRef("user_id"))
            ),
        )

    def get_by_identifier(self, identifier: str, now: datetime | None = None) -> IdentifierRecord | None:
        return self._with_standing(IdentifierRecord.objects.filter(identifier=identifier), now).first()

    def get_by_token(self, token: str, now: datetime | None = None) -> IdentifierRecord | None:
        return self._with_standing(IdentifierRecord.objects.filter(token=token), now).first()

    def get_for_user(self, user_id: int) -> IdentifierRecord | None:
        return IdentifierRecord.objects.filter(user_id=user_id).first()

    def create_record(
        self,
        user_id: int,
        identifier: str,
        token: str,
        status: str = IdentifierRecord.Status.ACTIVE,
    ) -> IdentifierRecord:
        """
        Inserts a record; raises IntegrityError if identifier, token or owner is taken.

        The insert runs in its own savepoint so a failed attempt leaves the
        surrounding transaction usable.
        """
        with transaction.atomic():
            return IdentifierRecord.objects.create(
                user_id=user_id,
                identifier=identifier,
                token=token,
                status=status,
            )

    def set_status(self, record: IdentifierRecord, status: str) -> IdentifierRecord:
        """
        Changes record status. A no-op when the status is already set.
        """
        if record.status != status:
            record.status = status
            record.save(update_fields=["status", "updated_at"])
            logger.info(f"Identifier record {record.pk} of user {record.user_id} is now {status}")
        return record

    def counts(self) -> dict[str, int]:
        """
        Returns total, active and inactive record counts in one query.
        """
        return IdentifierRecord.objects.aggregate(
            total=Count("id"),
            active=Count("id", filter=Q(status=IdentifierRecord.Status.ACTIVE)),
            inactive=Count("id", filter=Q(status=IdentifierRecord.Status.INACTIVE)),
        )
