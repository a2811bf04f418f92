"""Human-facing identifier codec.

Identifiers are printed on stickers as three letters followed by three digits
(``ABC123``). The alphabets leave out the letter ``I`` and the digit ``0`` so a
finder squinting at a sticker cannot confuse them with ``1`` and ``O``; input
containing them is folded back onto the alphabet instead of being rejected.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

LETTERS = "ABCDEFGHJKLMNOPQRSTUVWXYZ"
DIGITS = "123456789"

IDENTIFIER_LENGTH = 6
CLASS_LENGTH = 3

# Misread characters -> the alphabet member they stand for.
AMBIGUOUS_CHARACTERS = str.maketrans({"0": "O", "I": "1"})

IDENTIFIER_PATTERN = re.compile(rf"^[{LETTERS}]{{{CLASS_LENGTH}}}[{DIGITS}]{{{CLASS_LENGTH}}}$")
_NON_ALPHANUMERIC = re.compile(r"[^A-Z0-9]")


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of ``IdentifierCodec.validate``."""

    valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Suggestion:
    """Outcome of ``IdentifierCodec.suggest``: normalized candidate plus UI hints."""

    candidate: str
    valid: bool
    errors: list[str] = field(default_factory=list)
    diagnostics: list[str] = field(default_factory=list)


class IdentifierCodec:
    """Normalization and validation of 6-character identifiers. Stateless."""

    @classmethod
    def normalize(cls, raw_input: str | None) -> str:
        """
        Folds raw finder input into identifier shape.

        Uppercases, maps ambiguous characters onto the alphabet, drops anything
        that is not A-Z or 0-9 and truncates to 6 characters. Never raises; the
        result may be shorter than 6 characters. Idempotent.

        Args:
            raw_input: Text typed by a finder (may be None).

        Returns:
            str: Normalized candidate.
        """
        if not raw_input:
            return ""
        folded = str(raw_input).upper().translate(AMBIGUOUS_CHARACTERS)
        return _NON_ALPHANUMERIC.sub("", folded)[:IDENTIFIER_LENGTH]

    @classmethod
    def has_distinct_classes(cls, candidate: str) -> bool:
        """
        Checks that neither the letter part nor the digit part repeats a character.

        Rejects AAA123 and ABA123 (letters) as well as ABC000 and ABC010 (digits).
        """
        letters = candidate[:CLASS_LENGTH]
        digits = candidate[CLASS_LENGTH:IDENTIFIER_LENGTH]
        return len(set(letters)) == CLASS_LENGTH and len(set(digits)) == CLASS_LENGTH

    @classmethod
    def validate(cls, candidate: str | None) -> ValidationResult:
        """
        Validates an already normalized candidate.

        Errors are returned as human-readable strings for the finder form,
        never raised.

        Args:
            candidate: Normalized identifier candidate.

        Returns:
            ValidationResult: valid flag and list of errors.
        """
        if not candidate:
            return ValidationResult(valid=False, errors=["Please enter an ID"])

        errors = []
        if len(candidate) != IDENTIFIER_LENGTH:
            errors.append("ID must be 6 characters long (example: ABC123)")

        if not IDENTIFIER_PATTERN.match(candidate):
            errors.append("ID format should be 3 letters followed by 3 numbers (example: ABC123)")
        elif not cls.has_distinct_classes(candidate):
            letters = candidate[:CLASS_LENGTH]
            digits = candidate[CLASS_LENGTH:]
            if len(set(letters)) < CLASS_LENGTH:
                errors.append("ID letters must all be different (example: ABC123)")
            if len(set(digits)) < CLASS_LENGTH:
                errors.append("ID numbers must all be different (example: ABC123)")

        return ValidationResult(valid=not errors, errors=errors)

    @classmethod
    def suggest(cls, raw_input: str | None) -> Suggestion:
        """
        Normalizes and validates finder input, adding a "did you mean" hint
        when normalization changed what was typed.
        """
        candidate = cls.normalize(raw_input)
        result = cls.validate(candidate)

        diagnostics = []
        if candidate and str(raw_input).upper() != candidate:
            diagnostics.append(f"Did you mean: {candidate}?")

        return Suggestion(
            candidate=candidate,
            valid=result.valid,
            errors=result.errors,
            diagnostics=diagnostics,
        )
