"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.catalog.models import Excursion

from .models import BookingHold, Reservation
from .services import create_offline_reservation


class CreatePaymentIntentSerializer(serializers.Serializer):
    """Запрос на бронирование с оплатой.

    Количество и дата проверяются сервисом, чтобы ошибки имели доменный вид
    (InvalidQuantity, InvalidRequest).
    """

    excursion_id = serializers.CharField(max_length=64)
    date = serializers.CharField(max_length=32)
    quantity = serializers.IntegerField()
    customer_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    customer_email = serializers.EmailField(required=False, allow_blank=True)
    customer_phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)

    def customer(self) -> dict[str, str]:
        data = self.validated_data
        return {
            key: data[field]
            for key, field in (
                ("name", "customer_name"),
                ("email", "customer_email"),
                ("phone", "customer_phone"),
                ("notes", "notes"),
            )
            if data.get(field)
        }


class BookingHoldSerializer(serializers.ModelSerializer):
    excursion_id = serializers.ReadOnlyField(source="excursion.document_id")
    excursion_title = serializers.ReadOnlyField(source="excursion.title")

    class Meta:
        model = BookingHold
        fields = [
            "correlation_token",
            "client_token",
            "gateway_ref",
            "status",
            "excursion_id",
            "excursion_title",
            "date",
            "quantity",
            "amount",
            "currency",
            "expires_at",
            "release_reason",
        ]
        read_only_fields = fields


class ReservationSerializer(serializers.ModelSerializer):
    """Бронирование. Дата, экскурсия и количество мест задаются только при создании."""

    excursion = serializers.SlugRelatedField(slug_field="document_id", queryset=Excursion.objects.all())
    excursion_title = serializers.ReadOnlyField(source="excursion.title")
    quantity = serializers.IntegerField(min_value=1)
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)

    SEAT_FIELDS = ("excursion", "date", "quantity")

    class Meta:
        model = Reservation
        fields = [
            "id",
            "excursion",
            "excursion_title",
            "date",
            "quantity",
            "total_amount",
            "currency",
            "customer_name",
            "customer_email",
            "customer_phone",
            "notes",
            "status",
            "payment_reference",
            "cancellation_reason",
            "cancelled_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "currency",
            "status",
            "payment_reference",
            "cancellation_reason",
            "cancelled_at",
            "created_at",
            "updated_at",
        ]

    def validate(self, attrs):  # type: ignore
        if self.instance is not None:
            changed = [
                name for name in self.SEAT_FIELDS
                if name in attrs and attrs[name] != getattr(self.instance, name)
            ]
            if changed:
                raise serializers.ValidationError(
                    {name: "Нельзя изменить после создания. Отмените бронь и создайте новую." for name in changed}
                )
        return attrs

    def create(self, validated_data):  # type: ignore
        data = dict(validated_data)
        excursion = data.pop("excursion")
        day = data.pop("date")
        quantity = data.pop("quantity")
        return create_offline_reservation(excursion.document_id, day, quantity, **data)


class ReservationCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
