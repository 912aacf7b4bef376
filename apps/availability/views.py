"""API views for the availability ledger.

Read endpoints are public, as the storefront calendar needs them without a
session. Blackout management is restricted to staff.
"""

from __future__ import annotations

from typing import Any

from rest_framework import generics, permissions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.bookings.services import reactivate_date
from shared.domain.errors import InvalidQuantity

from . import facade, ledger
from .facade import LedgerResult
from .serializers import AvailabilityRecordSerializer, ReservationOutcomeSerializer


def _result_response(result: LedgerResult, serializer_class, meta: dict[str, Any], *, many: bool = False) -> Response:
    if not result.ok:
        return Response({"error": result.error}, status=result.status)
    data = serializer_class(result.data, many=many).data
    return Response({"data": data, "meta": meta}, status=status.HTTP_200_OK)


def _parse_quantity(raw: str) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise InvalidQuantity(quantity=raw) from None


class AvailabilityListView(generics.ListAPIView):
    """Все записи доступности (по экскурсиям и датам)."""

    serializer_class = AvailabilityRecordSerializer
    permission_classes = [permissions.AllowAny]

    def get_queryset(self):  # type: ignore
        return ledger.list_all()


class AvailabilityCheckView(APIView):
    """Проверка наличия мест. Места не резервируются."""

    permission_classes = [permissions.AllowAny]

    def get(self, request, excursion_id, date, quantity):  # type: ignore
        try:
            requested = _parse_quantity(quantity)
        except InvalidQuantity as exc:
            return Response({"error": exc.to_dict()}, status=exc.http_status)
        result = facade.check_availability(excursion_id, date, requested)
        meta = {"excursion_id": excursion_id, "date": date, "requested_quantity": requested}
        return _result_response(result, ReservationOutcomeSerializer, meta)


class AvailabilityDetailView(APIView):
    """Доступность на конкретную дату (создаётся при первом запросе)."""

    permission_classes = [permissions.AllowAny]

    def get(self, request, excursion_id, date):  # type: ignore
        result = facade.get_or_create_availability(excursion_id, date)
        meta = {"excursion_id": excursion_id, "date": date}
        return _result_response(result, AvailabilityRecordSerializer, meta)


class AvailabilityRangeView(APIView):
    """Доступность за диапазон дат (включительно, по возрастанию)."""

    permission_classes = [permissions.AllowAny]

    def get(self, request, excursion_id, start_date, end_date):  # type: ignore
        result = facade.get_availability_range(excursion_id, start_date, end_date)
        meta = {
            "excursion_id": excursion_id,
            "date_range": {"start": start_date, "end": end_date},
            "count": len(result.data) if result.ok else 0,
        }
        return _result_response(result, AvailabilityRecordSerializer, meta, many=True)


class DeactivateDateView(APIView):
    """Закрытие даты (например, праздник): мест нет, бронирование невозможно."""

    permission_classes = [permissions.IsAdminUser]

    def post(self, request, excursion_id, date):  # type: ignore
        result = facade.deactivate_date(excursion_id, date)
        return _result_response(result, AvailabilityRecordSerializer, {"excursion_id": excursion_id, "date": date})


class ReactivateDateView(APIView):
    permission_classes = [permissions.IsAdminUser]

    def post(self, request, excursion_id, date):  # type: ignore
        result = facade.structured(reactivate_date)(excursion_id, date)
        return _result_response(result, AvailabilityRecordSerializer, {"excursion_id": excursion_id, "date": date})


class ResyncCapacityView(APIView):
    """Применение текущей вместимости экскурсии к уже созданной дате."""

    permission_classes = [permissions.IsAdminUser]

    def post(self, request, excursion_id, date):  # type: ignore
        result = facade.resync_capacity(excursion_id, date)
        return _result_response(result, AvailabilityRecordSerializer, {"excursion_id": excursion_id, "date": date})
