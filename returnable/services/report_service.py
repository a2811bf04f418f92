"""Service for finder contact-form submissions.

A submission for a token that does not reach an eligible owner is accepted and
dropped: the finder gets the same receipt either way, so the form cannot be used
to test whether a token is real.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from uuid import UUID

from asgiref.sync import sync_to_async
from django.utils import timezone

from ..conf import returnable_settings
from ..models import FoundItemReport
from ..signals import found_item_reported
from .lookup_service import LookupResolver

logger = logging.getLogger(__name__)

RECEIPT = {
    "success": True,
    "message": "Found item report submitted successfully",
}


class ReportService:
    """Accepts contact-form submissions and records the ones that reach an owner."""

    def __init__(self, resolver: LookupResolver):
        self.resolver = resolver

    def submit(
        self,
        token: str | None,
        finder_name: str,
        finder_contact: str,
        message: str,
        location: str = "",
        item_type: str = "",
        finder_phone: str = "",
        client_ip: str = "",
        user_agent: str = "",
    ) -> dict:
        """
        Records a report for the token owner, if there is a reachable one.

        Returns:
            dict: The same receipt for every input.
        """
        try:
            report = self._record(
                token,
                finder_name=finder_name,
                finder_contact=finder_contact,
                finder_phone=finder_phone,
                message=message,
                location=location,
                item_type=item_type,
                finder_ip=client_ip,
                user_agent=user_agent,
            )
            if report is not None:
                found_item_reported.send(sender=self.__class__, report=report)
        except Exception:
            logger.exception("Found item report processing failed")
        return dict(RECEIPT)

    def _record(self, token: str | None, **fields) -> FoundItemReport | None:
        record = self.resolver.reachable_record(token)
        if record is None:
            logger.info("Found item report for a token without a reachable owner, not recorded")
            return None

        report = FoundItemReport.objects.create(
            identifier_record=record,
            user_id=record.user_id,
            expires_at=timezone.now() + timedelta(days=returnable_settings.REPORT_RETENTION_DAYS),
            **fields,
        )
        logger.info(f"Recorded found item report {report.pk} for user {record.user_id}")
        return report

    async def asubmit(self, token: str | None, **kwargs) -> dict:
        """Async version of submit."""
        return await sync_to_async(self.submit, thread_sensitive=True)(token, **kwargs)

    def mark_delivered(self, report_id: UUID | str) -> bool:
        """
        Marks a PENDING report as delivered to the owner.

        Returns:
            bool: True if the report was pending and is now delivered.
        """
        rows = FoundItemReport.objects.filter(
            pk=report_id, status=FoundItemReport.Status.PENDING
        ).update(status=FoundItemReport.Status.DELIVERED, delivered_at=timezone.now())
        return rows > 0
