"""Management command to print identifier keyspace statistics."""

from __future__ import annotations

from typing import Any

from django.core.management.base import BaseCommand, CommandParser

from returnable.schemas import KeyspaceStatsSchema
from returnable.services import build_identifier_service


class Command(BaseCommand):
    """
    Print how much of the identifier keyspace is allocated.
    """

    help = "Print allocated, active and inactive identifier counts against the keyspace size."

    def add_arguments(self, parser: CommandParser) -> None:
        parser.add_argument(
            "--json",
            action="store_true",
            help="Print statistics as JSON.",
        )

    def handle(self, *args: Any, **options: Any) -> None:
        stats = build_identifier_service().statistics()

        if options["json"]:
            self.stdout.write(KeyspaceStatsSchema.model_validate(stats).model_dump_json())
            return

        self.stdout.write(f"Allocated: {stats.total_allocated} (active: {stats.active}, inactive: {stats.inactive})")
        self.stdout.write(f"Keyspace: {stats.theoretical_max}, remaining: {stats.remaining}")
        self.stdout.write(self.style.SUCCESS(f"Utilization: {stats.utilization_rate:.4f}%"))
