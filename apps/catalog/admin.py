"""Admin registration for the excursion catalog."""

from __future__ import annotations

from django.contrib import admin

from .models import Excursion


@admin.register(Excursion)
class ExcursionAdmin(admin.ModelAdmin):
    list_display = ("title", "document_id", "max_capacity", "price", "is_published", "updated_at")
    list_filter = ("is_published",)
    search_fields = ("title", "document_id")
    prepopulated_fields = {"document_id": ("title",)}
