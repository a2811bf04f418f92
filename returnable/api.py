"""REST API endpoints for the returnable lookup service.

Implemented with Django Ninja. Two routers:
- public_router: finder-facing endpoints (lookup, format check, contact
  form). No authentication; answers never reveal whether an identifier or
  token is real.
- router: internal endpoints for the host application (subscription
  activation, identifier management, statistics). Bearer token authentication
  (RETURNABLE_API_TOKEN).
Docstrings are used to generate OpenAPI descriptions.
"""

from __future__ import annotations

import logging

from ninja import Router
from ninja.security import HttpBearer
from pydantic import ValidationError

from .codec import IdentifierCodec
from .conf import returnable_settings
from .exceptions import AllocationExhausted
from .models import IdentifierRecord, Subscription
from .schemas import (
    CommonResponse,
    FoundReportSchemaIn,
    IdentifierCheckSchemaOut,
    IdentifierRecordSchema,
    KeyspaceStatsSchema,
    LookupSchemaIn,
    LookupSchemaOut,
    ReceiptSchema,
    SubscriptionActivateResponse,
    SubscriptionActivateSchema,
    SubscriptionSchema,
    SubscriptionStatusSchema,
)
from .services import (
    IdentifierService,
    build_identifier_service,
    build_lookup_resolver,
    build_report_service,
    build_subscription_service,
)

logger = logging.getLogger(__name__)


class APIKeyAuth(HttpBearer):
    """Bearer token authentication for the internal API.

    Validates the Authorization: Bearer <token> header against RETURNABLE_API_TOKEN.
    """

    def authenticate(self, request, token):
        """Validate token and return it if it matches the configured API token.

        Returns:
            The token string if valid; None otherwise.
        """
        expected = returnable_settings.API_TOKEN
        if expected and token == expected:
            return token
        return None


# Finder-facing router, no authorization
public_router = Router(tags=["finder"])

# Internal router with mandatory authorization
router = Router(tags=["identifiers"], auth=APIKeyAuth())


def get_client_ip(request) -> str:
    forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.META.get("HTTP_X_REAL_IP") or request.META.get("REMOTE_ADDR") or "unknown"


def serialize_record(record: IdentifierRecord) -> dict:
    return {
        "user_id": record.user_id,
        "identifier": record.identifier,
        "token": record.token,
        "status": record.status,
        "created_at": record.created_at,
        "qr_code_url": IdentifierService.qr_code_url(record),
        "manual_url": IdentifierService.manual_url(record),
    }


# --- Finder Endpoints ---

LOOKUP_REQUEST_BODY = {
    "requestBody": {
        "content": {"application/json": {"schema": LookupSchemaIn.model_json_schema()}},
        "required": False,
    }
}


@public_router.post("/lookup", response=LookupSchemaOut, openapi_extra=LOOKUP_REQUEST_BODY)
async def alookup(request):
    """Look up a printed identifier and return the token of its contact page.

    Always answers 200 with a 64-character hex token. Unknown, inactive and
    unreachable identifiers get a stable decoy token that is indistinguishable
    from a real one; the contact page for it accepts submissions as usual.
    The body is parsed here rather than by the router so that unreadable
    bodies get a decoy too.
    """
    resolver = build_lookup_resolver()
    try:
        data = LookupSchemaIn.model_validate_json(request.body or "{}")
    except ValidationError:
        logger.info("Unreadable lookup request body, answering with a decoy")
        result = resolver.unreadable()
    else:
        result = await resolver.aresolve(data.identifier)
    return {"success": result.success, "token": result.token}


@public_router.post("/identifiers/check", response=IdentifierCheckSchemaOut)
async def acheck_identifier(request, data: LookupSchemaIn):
    """Check the format of typed input and suggest a correction.

    Purely syntactic: says nothing about whether the identifier was issued.
    """
    return IdentifierCodec.suggest(data.identifier)


@public_router.post("/reports", response=ReceiptSchema)
async def asubmit_report(request, data: FoundReportSchemaIn):
    """Submit the finder contact form.

    Always answers with the same receipt. The report is recorded and the owner
    notified only if the token belongs to an owner who can currently be reached.
    """
    return await build_report_service().asubmit(
        data.token,
        finder_name=data.finder_name,
        finder_contact=data.finder_contact,
        finder_phone=data.finder_phone,
        message=data.message,
        location=data.location,
        item_type=data.item_type,
        client_ip=get_client_ip(request),
        user_agent=request.META.get("HTTP_USER_AGENT", ""),
    )


# --- Subscription Endpoints ---

@router.post(
    "/subscriptions/activate",
    response={200: SubscriptionActivateResponse, 400: CommonResponse, 503: CommonResponse},
)
def activate_subscription(request, data: SubscriptionActivateSchema):
    """Activate a subscription for a user.

    The first activation allocates the user's identifier and token in the same
    transaction; later activations reactivate the existing identifier.
    Returns 503 if the identifier keyspace could not yield a free identifier.
    """
    try:
        result = build_subscription_service().activate(
            user_id=data.user_id,
            plan_type=data.plan_type,
            external_subscription_id=data.external_subscription_id,
            period_start=data.current_period_start,
            period_end=data.current_period_end,
        )
    except ValueError as e:
        return 400, {"success": False, "message": str(e)}
    except AllocationExhausted as e:
        logger.error(f"Identifier allocation for user {data.user_id} failed: {e}")
        return 503, {"success": False, "message": "Identifier allocation failed, please retry later"}

    return {
        "success": True,
        "created_identifier": result.created_identifier,
        "subscription": result.subscription,
        "identifier": serialize_record(result.record),
    }


@router.post("/subscriptions/status", response={200: SubscriptionSchema, 400: CommonResponse, 404: CommonResponse})
def update_subscription_status(request, data: SubscriptionStatusSchema):
    """Update subscription status (and optionally its period) by payment-provider id.

    The owner's identifier is kept; lookups check standing on every request.
    """
    try:
        subscription = build_subscription_service().update_status(
            external_subscription_id=data.external_subscription_id,
            status=data.status,
            period_start=data.current_period_start,
            period_end=data.current_period_end,
        )
    except ValueError as e:
        return 400, {"success": False, "message": str(e)}
    except Subscription.DoesNotExist:
        return 404, {"success": False, "message": "Subscription not found"}
    return subscription


# --- Identifier Endpoints ---

@router.get("/identifiers/stats", response=KeyspaceStatsSchema)
def identifier_stats(request):
    """Allocation statistics: allocated, active and inactive counts against the keyspace."""
    return build_identifier_service().statistics()


@router.get("/identifiers/{user_id}", response={200: IdentifierRecordSchema, 404: CommonResponse})
def get_identifier(request, user_id: int):
    """Get the identifier record of a user, with sticker URLs."""
    try:
        record = build_identifier_service().get_for_user(user_id)
    except IdentifierRecord.DoesNotExist:
        return 404, {"success": False, "message": "Identifier not found"}
    return serialize_record(record)


@router.post("/identifiers/{user_id}/deactivate", response={200: IdentifierRecordSchema, 404: CommonResponse})
def deactivate_identifier(request, user_id: int):
    """Deactivate a user's identifier. Lookups for it answer with decoys until reactivated."""
    try:
        record = build_identifier_service().deactivate(user_id)
    except IdentifierRecord.DoesNotExist:
        return 404, {"success": False, "message": "Identifier not found"}
    return serialize_record(record)


@router.post("/identifiers/{user_id}/reactivate", response={200: IdentifierRecordSchema, 404: CommonResponse})
def reactivate_identifier(request, user_id: int):
    """Reactivate a user's identifier. Identifier and token stay the same."""
    try:
        record = build_identifier_service().reactivate(user_id)
    except IdentifierRecord.DoesNotExist:
        return 404, {"success": False, "message": "Identifier not found"}
    return serialize_record(record)
