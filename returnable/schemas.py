"""Pydantic schemas for the returnable API.

Define the structure of input and output data for Ninja API endpoints.
Finder-facing responses have one fixed shape regardless of what the lookup
found; Field descriptions are exposed in the OpenAPI schema.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BaseSchema(BaseModel):
    """Base schema with ORM/Django model support.

    Enables population from Django model instances via from_attributes.
    """

    model_config = ConfigDict(from_attributes=True)


# --- Finder-facing schemas ---

class LookupSchemaIn(BaseModel):
    """Request body for looking up a printed identifier."""

    identifier: str | None = Field(None, description="Identifier as typed by the finder (e.g. 'abc 123'). Normalized server-side.")

    @field_validator("identifier", mode="before")
    @classmethod
    def coerce_identifier(cls, v: Any) -> str | None:
        """Accept numbers and other scalars as text instead of rejecting the request."""
        if v is None or isinstance(v, str):
            return v
        return str(v)


class LookupSchemaOut(BaseModel):
    """Lookup answer: always successful, always a 64-character hex token."""

    success: bool = Field(True, description="Always true.")
    token: str = Field(..., description="Token addressing the contact page for this identifier.")


class IdentifierCheckSchemaOut(BaseSchema):
    """Format check of typed input. Does not consult stored identifiers."""

    candidate: str = Field(..., description="Normalized identifier candidate.")
    valid: bool = Field(..., description="True if the candidate is a well-formed identifier.")
    errors: List[str] = Field(default_factory=list, description="Human-readable format errors.")
    diagnostics: List[str] = Field(default_factory=list, description="Hints such as 'Did you mean: ABC123?'.")


class FoundReportSchemaIn(BaseModel):
    """Contact-form submission from a finder."""

    token: str = Field(..., description="Token of the contact page the form was submitted from.")
    finder_name: str = Field(..., min_length=1, max_length=255, description="Finder's name.")
    finder_contact: str = Field(..., min_length=1, max_length=255, description="Finder's email or other contact.")
    finder_phone: str = Field("", max_length=50, description="Optional phone number.")
    message: str = Field(..., min_length=1, description="Message for the owner.")
    location: str = Field("", max_length=255, description="Where the item was found.")
    item_type: str = Field("", max_length=100, description="What kind of item was found.")


class ReceiptSchema(BaseModel):
    """Submission receipt. Identical for every submission."""

    success: bool = Field(..., description="Always true.")
    message: str = Field(..., description="Confirmation message.")


# --- Internal schemas ---

class CommonResponse(BaseModel):
    """Generic API response envelope: success flag, message, and optional data payload."""

    success: bool = Field(..., description="True if the operation succeeded.")
    message: str = Field(..., description="Human-readable status or error message.")
    data: dict[str, Any] | None = Field(None, description="Optional result payload.")


class IdentifierRecordSchema(BaseSchema):
    """Identifier record of an owner."""

    user_id: int = Field(..., description="Owner user ID.")
    identifier: str = Field(..., description="Printed identifier (LLLNNN).")
    token: str = Field(..., description="Opaque token for QR codes and contact-page URLs.")
    status: str = Field(..., description="ACTIVE or INACTIVE.")
    created_at: datetime = Field(..., description="Allocation timestamp.")
    qr_code_url: str | None = Field(None, description="Contact page URL for the sticker QR code.")
    manual_url: str | None = Field(None, description="Lookup page URL with the identifier pre-filled.")


class SubscriptionSchema(BaseSchema):
    """Owner subscription."""

    id: int = Field(..., description="Primary key of the subscription.")
    user_id: int = Field(..., description="Owner user ID.")
    plan_type: str = Field(..., description="MONTHLY, SIX_MONTHS, TWELVE_MONTHS or TWENTY_FOUR_MONTHS.")
    status: str = Field(..., description="ACTIVE, PAST_DUE, CANCELED or EXPIRED.")
    external_subscription_id: str | None = Field(None, description="Payment-provider subscription id.")
    current_period_start: datetime = Field(..., description="Start of the current paid period.")
    current_period_end: datetime = Field(..., description="End of the current paid period.")
    cancel_at_period_end: bool = Field(False, description="True if the subscription ends with the current period.")


class SubscriptionActivateSchema(BaseModel):
    """Request body for activating a subscription (issues the identifier on first activation)."""

    user_id: int = Field(..., description="Owner user ID.")
    plan_type: str = Field(..., description="Plan id ('monthly', '6months', '12months', '24months') or PlanType value.")
    external_subscription_id: str | None = Field(None, description="Payment-provider subscription id.")
    current_period_start: datetime | None = Field(None, description="Start of the paid period; defaults to now.")
    current_period_end: datetime | None = Field(None, description="End of the paid period; defaults to start + plan length.")


class SubscriptionActivateResponse(BaseSchema):
    """Result of a subscription activation."""

    success: bool = Field(..., description="True if activation succeeded.")
    created_identifier: bool = Field(..., description="True if the identifier was allocated by this activation.")
    subscription: SubscriptionSchema = Field(..., description="The created subscription.")
    identifier: IdentifierRecordSchema = Field(..., description="The owner's identifier record.")


class SubscriptionStatusSchema(BaseModel):
    """Request body for a subscription status change reported by the payment provider."""

    external_subscription_id: str = Field(..., description="Payment-provider subscription id.")
    status: str = Field(..., description="ACTIVE, PAST_DUE, CANCELED or EXPIRED.")
    current_period_start: datetime | None = Field(None, description="New period start, if changed.")
    current_period_end: datetime | None = Field(None, description="New period end, if changed.")


class KeyspaceStatsSchema(BaseSchema):
    """Identifier allocation statistics."""

    total_allocated: int = Field(..., description="Records ever allocated.")
    active: int = Field(..., description="ACTIVE records.")
    inactive: int = Field(..., description="INACTIVE records.")
    theoretical_max: int = Field(..., description="Number of well-formed identifiers.")
    utilization_rate: float = Field(..., description="Allocated share of the keyspace, in percent.")
    remaining: int = Field(..., description="Identifiers still free.")
