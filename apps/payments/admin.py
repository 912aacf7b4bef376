from django.contrib import admin  # type: ignore

from .models import PaymentEvent


@admin.register(PaymentEvent)
class PaymentEventAdmin(admin.ModelAdmin):
    list_display = ("event_id", "event_type", "gateway_ref", "status", "created_at", "processed_at")
    list_filter = ("status", "event_type")
    search_fields = ("event_id", "gateway_ref")
    readonly_fields = ("event_id", "event_type", "gateway_ref", "payload", "status", "error", "processed_at", "created_at")

    def has_add_permission(self, request):  # type: ignore
        return False
