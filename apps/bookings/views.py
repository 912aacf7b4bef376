"""API views for the booking domain."""

from __future__ import annotations

import logging

from django.conf import settings  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.payments.gateway import SIGNATURE_HEADER, WebhookSignatureError, parse_webhook
from apps.payments.models import PaymentEvent

from .filters import ReservationFilterSet
from .models import Reservation
from .serializers import (
    BookingHoldSerializer,
    CreatePaymentIntentSerializer,
    ReservationCancelSerializer,
    ReservationSerializer,
)
from .services import BookingRequest, cancel_hold, cancel_reservation, handle_payment_outcome, start_booking

logger = logging.getLogger(__name__)


class CreatePaymentIntentView(APIView):
    """Резервирует места и создаёт платёж. Места удерживаются до оплаты."""

    permission_classes = [permissions.AllowAny]
    authentication_classes: list = []

    def post(self, request):  # type: ignore
        serializer = CreatePaymentIntentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        hold = start_booking(
            BookingRequest(
                excursion_id=data["excursion_id"],
                date=data["date"],
                quantity=data["quantity"],
                customer=serializer.customer(),
            )
        )
        return Response(
            {
                "data": BookingHoldSerializer(hold).data,
                "meta": {"hold_timeout_seconds": settings.RESERVATION_HOLD_TIMEOUT},
            },
            status=status.HTTP_201_CREATED,
        )


class CancelHoldView(APIView):
    """Клиент отказался от оплаты: места возвращаются сразу."""

    permission_classes = [permissions.AllowAny]
    authentication_classes: list = []

    def post(self, request, token):  # type: ignore
        hold = cancel_hold(token)
        return Response({"data": BookingHoldSerializer(hold).data}, status=status.HTTP_200_OK)


class PaymentWebhookView(APIView):
    """Webhook платёжного шлюза. Доступ только по подписи."""

    permission_classes = [permissions.AllowAny]
    authentication_classes: list = []

    def post(self, request):  # type: ignore
        try:
            outcome = parse_webhook(request.body, request.headers.get(SIGNATURE_HEADER, ""))
        except WebhookSignatureError:
            logger.warning("Webhook signature verification failed")
            return Response(
                {
                    "error": {
                        "kind": "InvalidSignature",
                        "message": "Подпись webhook не прошла проверку.",
                        "context": {},
                    }
                },
                status=status.HTTP_400_BAD_REQUEST,
            )

        if outcome is None:
            return Response({"received": True})

        event, created = PaymentEvent.objects.get_or_create(
            event_id=outcome.event_id or f"{outcome.event_type}:{outcome.gateway_ref}",
            defaults={
                "event_type": outcome.event_type,
                "gateway_ref": outcome.gateway_ref,
                "payload": outcome.payload,
            },
        )
        if not created and event.is_done:
            logger.info(f"Duplicate webhook event {event.event_id} skipped")
            return Response({"received": True, "duplicate": True})

        try:
            hold = handle_payment_outcome(outcome)
        except Exception as exc:
            event.mark(PaymentEvent.Status.FAILED, str(exc))
            raise
        event.mark(PaymentEvent.Status.PROCESSED if hold is not None else PaymentEvent.Status.IGNORED)
        return Response({"received": True})


class ReservationViewSet(viewsets.ModelViewSet):
    """Управление бронированиями (только персонал). Удаление заменено отменой."""

    queryset = Reservation.objects.select_related("excursion", "hold").all()
    serializer_class = ReservationSerializer
    permission_classes = [permissions.IsAdminUser]
    filterset_class = ReservationFilterSet
    http_method_names = ["get", "post", "put", "patch", "head", "options"]

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        reservation: Reservation = self.get_object()  # type: ignore
        serializer = ReservationCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reservation = cancel_reservation(reservation, serializer.validated_data["reason"])
        return Response(self.get_serializer(reservation).data, status=status.HTTP_200_OK)
