"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin, messages  # type: ignore

from .models import BookingHold, Reservation
from .services import cancel_hold, cancel_reservation


@admin.register(BookingHold)
class BookingHoldAdmin(admin.ModelAdmin):
    list_display = (
        "correlation_token",
        "excursion",
        "date",
        "quantity",
        "status",
        "release_reason",
        "late_payment",
        "expires_at",
        "created_at",
    )
    list_filter = ("status", "release_reason", "late_payment", "date")
    search_fields = ("correlation_token", "gateway_ref", "excursion__document_id", "excursion__title")
    readonly_fields = [field.name for field in BookingHold._meta.fields]
    actions = ["release_holds"]

    def has_add_permission(self, request):  # type: ignore
        return False

    @admin.action(description="Освободить выбранные удержания")
    def release_holds(self, request, queryset):  # type: ignore
        released = 0
        for hold in queryset.filter(status=BookingHold.Status.AUTHORIZING):
            if cancel_hold(hold.correlation_token).status == BookingHold.Status.RELEASED:
                released += 1
        self.message_user(request, f"Освобождено удержаний: {released}", messages.SUCCESS)


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "excursion",
        "date",
        "quantity",
        "customer_name",
        "customer_email",
        "status",
        "total_amount",
        "created_at",
    )
    list_filter = ("status", "date", "excursion")
    search_fields = ("customer_name", "customer_email", "customer_phone", "payment_reference")
    readonly_fields = (
        "excursion",
        "date",
        "quantity",
        "total_amount",
        "currency",
        "status",
        "hold",
        "payment_reference",
        "cancellation_reason",
        "cancelled_at",
        "created_at",
        "updated_at",
    )
    actions = ["cancel_reservations"]

    def has_add_permission(self, request):  # type: ignore
        return False

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False

    @admin.action(description="Отменить выбранные бронирования")
    def cancel_reservations(self, request, queryset):  # type: ignore
        cancelled = 0
        for reservation in queryset.filter(status=Reservation.Status.CONFIRMED):
            cancel_reservation(reservation, "Отменено администратором")
            cancelled += 1
        self.message_user(request, f"Отменено бронирований: {cancelled}", messages.SUCCESS)
