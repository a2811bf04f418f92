"""Models for lost-item identifiers.

Each paying owner gets exactly one identifier record: a short printed code for
finders to type and an opaque token for QR codes and contact-page URLs.
Subscriptions decide whether the owner is currently reachable; reports capture
what finders submit.
"""

from __future__ import annotations

import uuid
from django.db import models
from django.utils import timezone

from .codec import IDENTIFIER_LENGTH, IdentifierCodec
from .conf import returnable_settings
from .tokens import TOKEN_LENGTH


class IdentifierRecordQuerySet(models.QuerySet):
    """
    Custom QuerySet for IdentifierRecord that keeps identifiers and tokens canonical.
    """

    def update(self, **kwargs) -> int:
        """
        Normalize identifier and token before updating.
        """
        if kwargs.get("identifier"):
            kwargs["identifier"] = IdentifierCodec.normalize(kwargs["identifier"])
        if kwargs.get("token"):
            kwargs["token"] = kwargs["token"].lower()
        return super().update(**kwargs)

    def bulk_create(self, objs, batch_size=None, ignore_conflicts=False) -> list[IdentifierRecord]:
        """
        Normalize identifier and token for all objects before bulk creation.
        """
        for obj in objs:
            obj.normalize()
        return super().bulk_create(objs, batch_size=batch_size, ignore_conflicts=ignore_conflicts)


class IdentifierRecord(models.Model):
    """
    The printed identifier and opaque token owned by one user.

    Allocated once on the owner's first subscription and never regenerated;
    afterwards only the status changes.
    """

    class Status(models.TextChoices):
        ACTIVE = "ACTIVE", "Active"
        INACTIVE = "INACTIVE", "Inactive"

    user = models.OneToOneField(
        returnable_settings.USER_MODEL,
        on_delete=models.CASCADE,
        related_name="returnable_identifier",
        verbose_name="Owner",
    )
    identifier = models.CharField(
        max_length=IDENTIFIER_LENGTH,
        unique=True,
        verbose_name="Identifier",
        help_text="Printed code in LLLNNN format (e.g., 'ABC123').",
    )
    token = models.CharField(
        max_length=TOKEN_LENGTH,
        unique=True,
        verbose_name="Token",
        help_text="Opaque 64-character hex token used in QR codes and contact-page URLs.",
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE,
        verbose_name="Status",
    )
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="Created At")
    updated_at = models.DateTimeField(auto_now=True, verbose_name="Updated At")

    objects = IdentifierRecordQuerySet.as_manager()

    class Meta:
        db_table = "returnable_identifiers"
        verbose_name = "Identifier"
        verbose_name_plural = "Identifiers"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="returnable_ident_status_idx"),
        ]

    def normalize(self) -> None:
        if self.identifier:
            self.identifier = IdentifierCodec.normalize(self.identifier)
        if self.token:
            self.token = self.token.lower()

    def save(self, *args, **kwargs) -> None:
        """
        Normalize identifier and token before saving.
        """
        self.normalize()
        super().save(*args, **kwargs)

    def is_active(self) -> bool:
        return self.status == IdentifierRecord.Status.ACTIVE

    def __str__(self) -> str:
        return f"{self.identifier} - user_id={self.user_id} ({self.status})"


class SubscriptionQuerySet(models.QuerySet):
    """
    Custom QuerySet for Subscription.
    """

    def in_good_standing(self, now=None):
        """
        Subscriptions that are ACTIVE and whose current period has not ended.

        The only definition of a paid-up owner; lookups embed it as a subquery.
        """
        now = now or timezone.now()
        return self.filter(status=Subscription.Status.ACTIVE, current_period_end__gt=now)


class Subscription(models.Model):
    """
    Owner subscription period.

    Only the standing matters here: whether the owner is currently paid up
    decides if finders can reach them.
    """

    class PlanType(models.TextChoices):
        MONTHLY = "MONTHLY", "Monthly"
        SIX_MONTHS = "SIX_MONTHS", "6 months"
        TWELVE_MONTHS = "TWELVE_MONTHS", "12 months"
        TWENTY_FOUR_MONTHS = "TWENTY_FOUR_MONTHS", "24 months"

    class Status(models.TextChoices):
        ACTIVE = "ACTIVE", "Active"
        PAST_DUE = "PAST_DUE", "Past due"
        CANCELED = "CANCELED", "Canceled"
        EXPIRED = "EXPIRED", "Expired"

    user = models.ForeignKey(
        returnable_settings.USER_MODEL,
        on_delete=models.CASCADE,
        related_name="returnable_subscriptions",
        verbose_name="User",
    )
    plan_type = models.CharField(
        max_length=30,
        choices=PlanType.choices,
        default=PlanType.MONTHLY,
        verbose_name="Plan Type",
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE,
        verbose_name="Status",
    )
    external_subscription_id = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
        verbose_name="External Subscription ID",
        help_text="Subscription id at the payment provider, if any.",
    )
    current_period_start = models.DateTimeField(default=timezone.now, verbose_name="Current Period Start")
    current_period_end = models.DateTimeField(verbose_name="Current Period End")
    cancel_at_period_end = models.BooleanField(default=False, verbose_name="Cancel At Period End")
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="Created At")

    objects = SubscriptionQuerySet.as_manager()

    class Meta:
        db_table = "returnable_subscriptions"
        verbose_name = "Subscription"
        verbose_name_plural = "Subscriptions"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "status"], name="returnable_sub_user_status_idx"),
            models.Index(fields=["current_period_end"], name="returnable_sub_period_end_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.get_plan_type_display()} - user_id={self.user_id} ({self.status})"


class FoundItemReport(models.Model):
    """
    Contact-form submission from a finder.

    Only stored for tokens that resolve to an eligible owner; submissions for
    anything else are accepted and dropped.
    """

    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        DELIVERED = "DELIVERED", "Delivered"
        EXPIRED = "EXPIRED", "Expired"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    identifier_record = models.ForeignKey(
        IdentifierRecord,
        on_delete=models.CASCADE,
        related_name="reports",
        verbose_name="Identifier",
    )
    user = models.ForeignKey(
        returnable_settings.USER_MODEL,
        on_delete=models.CASCADE,
        related_name="returnable_found_reports",
        verbose_name="Owner",
    )
    finder_name = models.CharField(max_length=255, verbose_name="Finder Name")
    finder_contact = models.CharField(max_length=255, verbose_name="Finder Contact")
    finder_phone = models.CharField(max_length=50, blank=True, verbose_name="Finder Phone")
    message = models.TextField(verbose_name="Message")
    location = models.CharField(max_length=255, blank=True, verbose_name="Location")
    item_type = models.CharField(max_length=100, blank=True, verbose_name="Item Type")
    finder_ip = models.CharField(max_length=64, blank=True, verbose_name="Finder IP")
    user_agent = models.TextField(blank=True, verbose_name="User Agent")
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        verbose_name="Status",
    )
    expires_at = models.DateTimeField(null=True, blank=True, verbose_name="Expires At")
    delivered_at = models.DateTimeField(null=True, blank=True, verbose_name="Delivered At")
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="Created At")

    class Meta:
        db_table = "returnable_found_reports"
        verbose_name = "Found Item Report"
        verbose_name_plural = "Found Item Reports"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "status"], name="returnable_rep_user_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Report {self.id} for {self.identifier_record_id} ({self.status})"
