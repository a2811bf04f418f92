"""Service for resolving finder input to tokens.

Implements the finder-facing half of the system:
- Identifier lookup (typed code -> token)
- Token resolution (token -> owner) for contact-form submissions

Every branch that must not reveal whether an identifier is real answers with a
decoy from DecoyResponder, and internal faults are logged and answered the
same way. Callers cannot tell a decoy from a real token. Each lookup issues a
single query whatever it finds: the record arrives with its owner's standing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from asgiref.sync import sync_to_async
from django.utils import timezone

from ..codec import IdentifierCodec
from ..decoys import DecoyResponder
from ..models import IdentifierRecord
from ..store import IdentifierStore
from ..tokens import TokenGenerator
from .eligibility_service import EligibilityChecker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LookupResult:
    """Uniform lookup answer. Real and decoy tokens are indistinguishable."""

    token: str
    success: bool = True


class LookupResolver:
    """
    Resolves finder input without disclosing which identifiers exist.
    """

    def __init__(
        self,
        store: IdentifierStore,
        decoys: DecoyResponder,
        eligibility: EligibilityChecker,
    ):
        self.store = store
        self.decoys = decoys
        self.eligibility = eligibility

    def resolve(self, raw_input: str | None) -> LookupResult:
        """
        Maps typed identifier text to a token.

        Returns the real token only for an ACTIVE record whose owner is eligible
        right now; every other case, including internal faults, gets a decoy of
        the same shape.

        Args:
            raw_input: Identifier text as typed by the finder.

        Returns:
            LookupResult: Always successful.
        """
        if raw_input is None or not str(raw_input).strip():
            return LookupResult(token=self.decoys.for_missing_input())

        try:
            normalized = IdentifierCodec.normalize(raw_input)
            decoy = self.decoys.for_identifier(normalized)

            now = timezone.now()
            record = self.store.get_by_identifier(normalized, now=now)
            if record is None or record.status != IdentifierRecord.Status.ACTIVE:
                return LookupResult(token=decoy)

            if not self.eligibility.snapshot(record, now=now).eligible:
                return LookupResult(token=self.decoys.for_lapsed(normalized))

            return LookupResult(token=record.token)
        except Exception:
            logger.exception("Identifier lookup failed, answering with a decoy")
            return LookupResult(token=self.decoys.for_fault())

    def unreadable(self) -> LookupResult:
        """Answer for a request whose body could not be read at all."""
        return LookupResult(token=self.decoys.for_fault())

    def _active_record_for_token(self, token: str | None) -> IdentifierRecord | None:
        if not TokenGenerator.is_token_shaped(token):
            return None
        record = self.store.get_by_token(token)
        if record is None or record.status != IdentifierRecord.Status.ACTIVE:
            return None
        if not record.owner_active:
            return None
        return record

    def resolve_token(self, token: str | None) -> int | None:
        """
        Finds the owner of a token.

        Only ACTIVE records of active accounts resolve; everything else, faults
        included, gives None.

        Returns:
            int | None: Owner user id.
        """
        try:
            record = self._active_record_for_token(token)
        except Exception:
            logger.exception("Token resolution failed")
            return None
        return record.user_id if record else None

    def reachable_record(self, token: str | None) -> IdentifierRecord | None:
        """
        Returns the record behind a token if its owner is eligible right now.

        Raises whatever the store raises; callers decide how faults are answered.
        """
        record = self._active_record_for_token(token)
        if record is None or not self.eligibility.snapshot(record).eligible:
            return None
        return record

    async def aresolve(self, raw_input: str | None) -> LookupResult:
        """Async version of resolve."""
        return await sync_to_async(self.resolve, thread_sensitive=True)(raw_input)

    async def aresolve_token(self, token: str | None) -> int | None:
        """Async version of resolve_token."""
        return await sync_to_async(self.resolve_token, thread_sensitive=True)(token)
