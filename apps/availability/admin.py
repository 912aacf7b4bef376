"""Admin registration for the availability ledger.

Spot counters are read-only here: every change goes through the ledger so
the admin cannot break the bounds by hand.
"""

from __future__ import annotations

from django.contrib import admin, messages

from apps.bookings.services import reactivate_date

from . import ledger
from .models import AvailabilityRecord


@admin.register(AvailabilityRecord)
class AvailabilityRecordAdmin(admin.ModelAdmin):
    list_display = (
        "excursion",
        "date",
        "available_spots",
        "total_capacity",
        "is_active",
        "updated_at",
    )
    list_filter = ("is_active", "date", "excursion")
    search_fields = ("excursion__title", "excursion__document_id")
    date_hierarchy = "date"
    readonly_fields = (
        "excursion",
        "date",
        "total_capacity",
        "available_spots",
        "is_active",
        "created_at",
        "updated_at",
    )
    actions = ("deactivate_dates", "reactivate_dates", "resync_capacity")

    def has_add_permission(self, request):  # type: ignore
        return False

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False

    @admin.action(description="Закрыть выбранные даты")
    def deactivate_dates(self, request, queryset):  # type: ignore
        for record in queryset.select_related("excursion"):
            ledger.deactivate(record.excursion.document_id, record.date)
        messages.success(request, f"Закрыто дат: {queryset.count()}")

    @admin.action(description="Открыть выбранные даты")
    def reactivate_dates(self, request, queryset):  # type: ignore
        for record in queryset.select_related("excursion"):
            reactivate_date(record.excursion.document_id, record.date)
        messages.success(request, f"Открыто дат: {queryset.count()}")

    @admin.action(description="Обновить вместимость из каталога")
    def resync_capacity(self, request, queryset):  # type: ignore
        for record in queryset.select_related("excursion"):
            ledger.resync_capacity(record.excursion.document_id, record.date)
        messages.success(request, f"Обновлено дат: {queryset.count()}")
