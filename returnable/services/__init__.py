"""Service layer of the returnable module.

Services take their collaborators in constructors. The build_* helpers wire
them from Django settings; they are cheap and meant to be called per request.
"""

from ..conf import returnable_settings
from ..decoys import DecoyResponder
from ..store import IdentifierStore
from .allocation_service import AllocatedPair, IdentifierAllocator, KeyspaceStats
from .eligibility_service import EligibilityChecker, EligibilitySnapshot
from .identifier_service import IdentifierService
from .lookup_service import LookupResolver, LookupResult
from .report_service import ReportService
from .subscription_service import ActivationResult, SubscriptionService

__all__ = [
    "ActivationResult",
    "AllocatedPair",
    "EligibilityChecker",
    "EligibilitySnapshot",
    "IdentifierAllocator",
    "IdentifierService",
    "KeyspaceStats",
    "LookupResolver",
    "LookupResult",
    "ReportService",
    "SubscriptionService",
    "build_allocator",
    "build_identifier_service",
    "build_lookup_resolver",
    "build_report_service",
    "build_subscription_service",
]


def build_allocator(store: IdentifierStore | None = None) -> IdentifierAllocator:
    return IdentifierAllocator(
        store or IdentifierStore(),
        max_attempts=returnable_settings.MAX_ALLOCATION_ATTEMPTS,
    )


def build_lookup_resolver(store: IdentifierStore | None = None) -> LookupResolver:
    return LookupResolver(
        store=store or IdentifierStore(),
        decoys=DecoyResponder(returnable_settings.DECOY_SECRET),
        eligibility=EligibilityChecker(),
    )


def build_report_service(store: IdentifierStore | None = None) -> ReportService:
    return ReportService(resolver=build_lookup_resolver(store))


def build_subscription_service(store: IdentifierStore | None = None) -> SubscriptionService:
    store = store or IdentifierStore()
    return SubscriptionService(store=store, allocator=build_allocator(store))


def build_identifier_service(store: IdentifierStore | None = None) -> IdentifierService:
    store = store or IdentifierStore()
    return IdentifierService(store=store, allocator=build_allocator(store))
