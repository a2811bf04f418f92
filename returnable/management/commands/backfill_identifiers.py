"""Management command to allocate identifiers for subscribed users that lack one."""

from __future__ import annotations

from typing import Any

from django.core.management.base import BaseCommand, CommandParser
from django.db import transaction

from returnable.exceptions import AllocationExhausted
from returnable.models import IdentifierRecord, Subscription
from returnable.services import build_allocator
from returnable.signals import identifier_allocated


class Command(BaseCommand):
    """
    Allocate IdentifierRecord rows for users with a subscription in good standing.

    Users that already own a record are skipped, so the command is idempotent.
    """

    help = (
        "Allocate identifiers for users with an active, unexpired subscription "
        "who do not own one yet (idempotent)."
    )

    def add_arguments(self, parser: CommandParser) -> None:
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Only show the plan without writing to the database.",
        )
        parser.add_argument(
            "--limit",
            type=int,
            default=0,
            help="Limit the number of users to process (0 = no limit).",
        )

    def handle(self, *args: Any, **options: Any) -> None:
        dry_run: bool = options["dry_run"]
        limit: int = options["limit"]

        user_ids = (
            Subscription.objects.in_good_standing()
            .exclude(user_id__in=IdentifierRecord.objects.values("user_id"))
            .order_by("user_id")
            .values_list("user_id", flat=True)
            .distinct()
        )
        if limit > 0:
            user_ids = user_ids[:limit]

        allocator = build_allocator()
        created = 0

        for user_id in list(user_ids):
            if dry_run:
                self.stdout.write(f"[DRY] Allocate identifier for user_id={user_id}")
                created += 1
                continue
            try:
                with transaction.atomic():
                    record = allocator.claim(user_id)
            except AllocationExhausted as e:
                self.stderr.write(self.style.ERROR(f"Stopped at user_id={user_id}: {e}"))
                break
            identifier_allocated.send(sender=self.__class__, record=record)
            created += 1

        self.stdout.write(self.style.SUCCESS(f"Done. Allocated: {created}."))
