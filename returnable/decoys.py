"""Decoy token derivation.

Whenever a lookup must not disclose whether an identifier maps to a reachable
owner, the caller answers with a decoy instead of the real token. A decoy is an
HMAC-SHA256 of the input under a server-held secret: the same input always gets
the same decoy, nobody without the secret can predict it, and its hex digest has
exactly the shape of a real token.
"""

from __future__ import annotations

import hashlib
import hmac
import time
from typing import Callable

NAMESPACE = "returnable.decoy"


class DecoyResponder:
    """Derives token-shaped decoys from arbitrary input and a server secret."""

    def __init__(self, secret: str | bytes, clock: Callable[[], int] = time.time_ns):
        if isinstance(secret, str):
            secret = secret.encode()
        if not secret:
            raise ValueError("Decoy secret cannot be empty")
        self._key = secret
        self._clock = clock

    def _digest(self, scope: str, value: str) -> bytes:
        message = f"{NAMESPACE}.{scope}:{value}".encode()
        return hmac.new(self._key, message, hashlib.sha256).digest()

    def derive(self, value: str) -> str:
        """
        Returns the decoy token for value: 64 lowercase hex characters.
        """
        return self._digest("token", value).hex()

    def for_identifier(self, normalized: str) -> str:
        """Decoy for an identifier that was never issued or whose record is inactive."""
        return self.derive(normalized)

    def for_lapsed(self, normalized: str) -> str:
        """Decoy for an identifier whose owner is not currently eligible."""
        return self.derive(f"{normalized}:expired")

    def for_missing_input(self) -> str:
        """Decoy for a request without an identifier, keyed on the request time."""
        return self.derive(f"missing_id:{self._clock()}")

    def for_fault(self) -> str:
        """Decoy for a lookup that failed internally, keyed on the request time."""
        return self.derive(f"error:{self._clock()}")
