"""Serializers for the availability ledger."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import AvailabilityRecord


class AvailabilityRecordSerializer(serializers.ModelSerializer):
    excursion_id = serializers.ReadOnlyField(source="excursion.document_id")
    excursion_title = serializers.ReadOnlyField(source="excursion.title")

    class Meta:
        model = AvailabilityRecord
        fields = [
            "id",
            "excursion_id",
            "excursion_title",
            "date",
            "total_capacity",
            "available_spots",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ReservationOutcomeSerializer(serializers.Serializer):
    """Результат проверки доступности (ничего не резервирует)."""

    available = serializers.BooleanField()
    available_spots = serializers.IntegerField()
    is_active = serializers.BooleanField()
