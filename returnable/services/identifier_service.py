"""Service for owner-facing identifier operations.

Status transitions, statistics for operators and the URLs printed on stickers.
"""

from __future__ import annotations

import logging
from urllib.parse import urlencode

from ..conf import returnable_settings
from ..models import IdentifierRecord
from ..signals import identifier_deactivated, identifier_reactivated
from ..store import IdentifierStore
from .allocation_service import IdentifierAllocator, KeyspaceStats

logger = logging.getLogger(__name__)


class IdentifierService:
    """Access to identifier records by owner."""

    def __init__(self, store: IdentifierStore, allocator: IdentifierAllocator):
        self.store = store
        self.allocator = allocator

    def get_for_user(self, user_id: int) -> IdentifierRecord:
        """
        Raises:
            IdentifierRecord.DoesNotExist: If the user has no identifier.
        """
        record = self.store.get_for_user(user_id)
        if record is None:
            raise IdentifierRecord.DoesNotExist(f"User {user_id} has no identifier")
        return record

    def deactivate(self, user_id: int) -> IdentifierRecord:
        """Marks the user's identifier INACTIVE; lookups for it answer with decoys."""
        record = self.get_for_user(user_id)
        if record.is_active():
            self.store.set_status(record, IdentifierRecord.Status.INACTIVE)
            identifier_deactivated.send(sender=self.__class__, record=record)
        return record

    def reactivate(self, user_id: int) -> IdentifierRecord:
        """Marks the user's identifier ACTIVE again. Identifier and token are unchanged."""
        record = self.get_for_user(user_id)
        if not record.is_active():
            self.store.set_status(record, IdentifierRecord.Status.ACTIVE)
            identifier_reactivated.send(sender=self.__class__, record=record)
        return record

    def statistics(self) -> KeyspaceStats:
        return self.allocator.keyspace()

    @staticmethod
    def qr_code_url(record: IdentifierRecord, base_url: str | None = None) -> str:
        """Token-addressed contact page URL encoded into the sticker QR code."""
        base = (base_url or returnable_settings.BASE_URL).rstrip("/")
        return f"{base}/found/{record.token}"

    @staticmethod
    def manual_url(record: IdentifierRecord, base_url: str | None = None) -> str:
        """Lookup page URL with the printed identifier pre-filled."""
        base = (base_url or returnable_settings.BASE_URL).rstrip("/")
        return f"{base}/found?{urlencode({'id': record.identifier})}"
