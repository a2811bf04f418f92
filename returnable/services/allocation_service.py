"""Service for allocating identifiers and tokens.

Draws random LLLNNN identifiers, discards the ones with repeated characters,
and probes the store for collisions. The loop is bounded: running out of
attempts raises AllocationExhausted, which means the keyspace is getting
crowded and someone should look at it.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from math import perm

from django.db import IntegrityError

from ..codec import CLASS_LENGTH, DIGITS, LETTERS, IdentifierCodec
from ..exceptions import AllocationExhausted
from ..models import IdentifierRecord
from ..store import IdentifierStore
from ..tokens import TokenGenerator

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 100

# Identifiers with three distinct letters and three distinct digits.
THEORETICAL_MAX = perm(len(LETTERS), CLASS_LENGTH) * perm(len(DIGITS), CLASS_LENGTH)


@dataclass(frozen=True)
class AllocatedPair:
    """Fresh identifier and token, not yet persisted."""

    identifier: str
    token: str


@dataclass(frozen=True)
class KeyspaceStats:
    """Allocation counts against the usable identifier space."""

    total_allocated: int
    active: int
    inactive: int
    theoretical_max: int
    utilization_rate: float
    remaining: int


class IdentifierAllocator:
    """
    Generates collision-free (identifier, token) pairs against a store.
    """

    def __init__(
        self,
        store: IdentifierStore,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        rng: secrets.SystemRandom | None = None,
        token_generator: type[TokenGenerator] = TokenGenerator,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.store = store
        self.max_attempts = max_attempts
        self._rng = rng or secrets.SystemRandom()
        self._tokens = token_generator

    def _random_identifier(self) -> str:
        letters = "".join(self._rng.choice(LETTERS) for _ in range(CLASS_LENGTH))
        digits = "".join(self._rng.choice(DIGITS) for _ in range(CLASS_LENGTH))
        return letters + digits

    def _attempts(self):
        for attempt in range(1, self.max_attempts + 1):
            yield attempt
        logger.error(f"Identifier allocation exhausted after {self.max_attempts} attempts")
        raise AllocationExhausted(self.max_attempts)

    def _draw(self) -> AllocatedPair | None:
        identifier = self._random_identifier()
        if not IdentifierCodec.has_distinct_classes(identifier):
            return None
        if self.store.identifier_exists(identifier):
            logger.debug("Identifier collision, retrying")
            return None

        token = self._tokens.generate()
        if self.store.token_exists(token):
            logger.warning("Token collision, retrying")
            return None
        return AllocatedPair(identifier=identifier, token=token)

    def allocate(self) -> AllocatedPair:
        """
        Returns an identifier and token that are free in the store right now.

        Nothing is written; the caller persists the pair (see ``claim``).

        Raises:
            AllocationExhausted: If no free pair was found within max_attempts.
        """
        for _ in self._attempts():
            pair = self._draw()
            if pair is not None:
                return pair

    def claim(self, user_id: int) -> IdentifierRecord:
        """
        Allocates a pair and persists it as the ACTIVE record of user_id.

        A uniqueness violation on insert (a concurrent allocation won the race)
        counts as a collision and is retried within the same attempt ceiling.
        Must be called inside the caller's transaction.

        Raises:
            AllocationExhausted: If no pair could be stored within max_attempts.
        """
        for attempt in self._attempts():
            pair = self._draw()
            if pair is None:
                continue
            try:
                record = self.store.create_record(
                    user_id=user_id,
                    identifier=pair.identifier,
                    token=pair.token,
                )
            except IntegrityError:
                if self.store.get_for_user(user_id) is not None:
                    raise
                logger.warning(f"Uniqueness violation on insert for user {user_id} (attempt {attempt}), retrying")
                continue
            logger.info(f"Allocated identifier record {record.pk} for user {user_id} after {attempt} attempt(s)")
            return record

    def keyspace(self) -> KeyspaceStats:
        """
        Returns allocation statistics for monitoring. Not enforced by allocate().
        """
        counts = self.store.counts()
        total = counts["total"] or 0
        return KeyspaceStats(
            total_allocated=total,
            active=counts["active"] or 0,
            inactive=counts["inactive"] or 0,
            theoretical_max=THEORETICAL_MAX,
            utilization_rate=total / THEORETICAL_MAX * 100,
            remaining=THEORETICAL_MAX - total,
        )
