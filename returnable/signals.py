"""Signals for the returnable module.

Allow other applications to react to identifier events
(allocation, reactivation, finder reports) without direct dependency.
"""

from __future__ import annotations

from django.dispatch import Signal

# Sent after a new identifier record is persisted
# Arguments: record (IdentifierRecord)
identifier_allocated = Signal()

# Sent after an INACTIVE identifier record is switched back to ACTIVE
# Arguments: record (IdentifierRecord)
identifier_reactivated = Signal()

# Sent after an identifier record is switched to INACTIVE
# Arguments: record (IdentifierRecord)
identifier_deactivated = Signal()

# Sent after a subscription is activated (identifier already in place)
# Arguments: subscription (Subscription), record (IdentifierRecord)
subscription_activated = Signal()

# Sent after a finder report is recorded for a reachable owner.
# Connect owner notification delivery here.
# Arguments: report (FoundItemReport)
found_item_reported = Signal()
