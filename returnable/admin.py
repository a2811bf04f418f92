"""Django admin registrations for returnable models.

Provides admin interfaces for IdentifierRecord, Subscription and FoundItemReport.
Identifiers and tokens are never edited by hand: they are allocated once and
only their status changes.
"""

from __future__ import annotations

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import FoundItemReport, IdentifierRecord, Subscription
from .services import build_identifier_service


@admin.register(IdentifierRecord)
class IdentifierRecordAdmin(admin.ModelAdmin):
    list_display = ("identifier", "user", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("identifier", "user__username", "user__email")
    raw_id_fields = ("user",)
    readonly_fields = ("identifier", "token", "created_at", "updated_at")
    actions = ["deactivate_identifiers", "reactivate_identifiers"]

    def has_add_permission(self, request) -> bool:
        return False

    @admin.action(description=_("Deactivate selected identifiers"))
    def deactivate_identifiers(self, request, queryset):
        service = build_identifier_service()
        for record in queryset:
            service.deactivate(record.user_id)
        self.message_user(request, _("Deactivated %(count)d identifier(s).") % {"count": queryset.count()})

    @admin.action(description=_("Reactivate selected identifiers"))
    def reactivate_identifiers(self, request, queryset):
        service = build_identifier_service()
        for record in queryset:
            service.reactivate(record.user_id)
        self.message_user(request, _("Reactivated %(count)d identifier(s).") % {"count": queryset.count()})


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    list_display = ("user", "plan_type", "status", "current_period_end", "cancel_at_period_end")
    list_filter = ("status", "plan_type")
    search_fields = ("user__username", "external_subscription_id")
    raw_id_fields = ("user",)
    date_hierarchy = "created_at"


@admin.register(FoundItemReport)
class FoundItemReportAdmin(admin.ModelAdmin):
    list_display = ("id", "identifier_record", "user", "item_type", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("identifier_record__identifier", "finder_name", "finder_contact")
    raw_id_fields = ("identifier_record", "user")
    readonly_fields = ("finder_ip", "user_agent", "created_at", "delivered_at")
