"""Opaque token generation.

Tokens are what sticker QR codes and contact-page URLs carry. They are drawn
from the OS CSPRNG and carry no information about the identifier they map to.
"""

from __future__ import annotations

import re
import secrets

TOKEN_BYTES = 32
TOKEN_LENGTH = TOKEN_BYTES * 2

TOKEN_PATTERN = re.compile(rf"^[0-9a-f]{{{TOKEN_LENGTH}}}$")


class TokenGenerator:
    """Generator of 256-bit hex tokens."""

    @classmethod
    def generate(cls) -> str:
        """
        Returns 32 random bytes as 64 lowercase hex characters.

        Errors of the randomness source are not handled here.
        """
        return secrets.token_hex(TOKEN_BYTES)

    @classmethod
    def is_token_shaped(cls, value: str | None) -> bool:
        """True if value has exactly the shape of a token (64 lowercase hex characters)."""
        return bool(value) and TOKEN_PATTERN.match(value) is not None
