"""Integration tests for booking API endpoints."""

from __future__ import annotations

import json
from decimal import Decimal
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.availability import ledger
from apps.bookings.models import BookingHold, Reservation
from apps.catalog.models import Excursion
from apps.payments.gateway import PaymentGatewayError
from apps.payments.models import PaymentEvent
from apps.payments.tests.utils import stripe_signature_header

User = get_user_model()

DAY = "2024-07-01"


class CheckoutAPITests(APITestCase):
    """Covers оплату, webhook и отмену удержаний."""

    def setUp(self) -> None:
        self.excursion = Excursion.objects.create(
            document_id="sunset-kayak",
            title="Закат на каяках",
            max_capacity=10,
            price=Decimal("25.00"),
        )
        self.intent_url = reverse("reservation-create-payment-intent")
        self.webhook_url = reverse("reservation-payment-webhook")

    def _spots(self) -> int:
        return ledger.get_or_create("sunset-kayak", DAY).available_spots

    def _start(self, quantity: int = 2):
        return self.client.post(
            self.intent_url,
            {
                "excursion_id": "sunset-kayak",
                "date": DAY,
                "quantity": quantity,
                "customer_name": "Анна",
                "customer_email": "anna@example.com",
            },
            format="json",
        )

    def _webhook(self, hold: BookingHold, event_type: str, event_id: str = "evt_1", signature: str | None = None):
        payload = json.dumps(
            {
                "id": event_id,
                "type": event_type,
                "data": {
                    "object": {
                        "id": hold.gateway_ref,
                        "metadata": {"correlation_token": str(hold.correlation_token)},
                    }
                },
            }
        ).encode()
        return self.client.generic(
            "POST",
            self.webhook_url,
            payload,
            content_type="application/json",
            HTTP_STRIPE_SIGNATURE=signature or stripe_signature_header(payload),
        )

    def test_create_payment_intent_holds_seats(self) -> None:
        response = self._start(3)

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        data = response.data["data"]
        self.assertEqual(data["status"], BookingHold.Status.AUTHORIZING)
        self.assertEqual(data["amount"], "75.00")
        self.assertTrue(data["client_token"])
        self.assertEqual(self._spots(), 7)
        hold = BookingHold.objects.get()
        self.assertEqual(hold.customer, {"name": "Анна", "email": "anna@example.com"})

    def test_create_payment_intent_insufficient_capacity(self) -> None:
        response = self._start(11)

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"]["kind"], "InsufficientCapacity")
        self.assertEqual(response.data["error"]["context"]["available_spots"], 10)

    def test_create_payment_intent_invalid_quantity(self) -> None:
        response = self._start(0)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["kind"], "InvalidQuantity")

    def test_create_payment_intent_missing_fields(self) -> None:
        response = self.client.post(self.intent_url, {"excursion_id": "sunset-kayak"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["kind"], "InvalidRequest")
        self.assertIn("quantity", response.data["error"]["context"]["fields"])

    @patch("apps.payments.gateway.StripePaymentGateway.authorize")
    def test_gateway_failure_is_502_and_releases(self, mock_authorize) -> None:
        mock_authorize.side_effect = PaymentGatewayError("upstream exploded")

        response = self._start(2)

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(response.data["error"]["kind"], "GatewayError")
        self.assertNotIn("upstream exploded", json.dumps(response.data, ensure_ascii=False))
        self.assertEqual(self._spots(), 10)

    def test_webhook_success_confirms_reservation(self) -> None:
        self._start(2)
        hold = BookingHold.objects.get()

        response = self._webhook(hold, "payment_intent.succeeded")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        reservation = Reservation.objects.get()
        self.assertEqual(reservation.customer_name, "Анна")
        self.assertEqual(self._spots(), 8)
        self.assertEqual(PaymentEvent.objects.get().status, PaymentEvent.Status.PROCESSED)

    def test_duplicate_webhook_is_skipped(self) -> None:
        self._start(2)
        hold = BookingHold.objects.get()

        self._webhook(hold, "payment_intent.succeeded")
        response = self._webhook(hold, "payment_intent.succeeded")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["duplicate"])
        self.assertEqual(Reservation.objects.count(), 1)

    def test_webhook_failure_releases_seats(self) -> None:
        self._start(2)
        hold = BookingHold.objects.get()

        response = self._webhook(hold, "payment_intent.payment_failed")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Reservation.objects.count(), 0)
        self.assertEqual(self._spots(), 10)

    def test_webhook_with_bad_signature_is_rejected(self) -> None:
        self._start(2)
        hold = BookingHold.objects.get()

        response = self._webhook(hold, "payment_intent.succeeded", signature="t=1,v1=deadbeef")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["kind"], "InvalidSignature")
        self.assertEqual(Reservation.objects.count(), 0)
        self.assertEqual(self._spots(), 8)

    def test_cancel_hold_endpoint(self) -> None:
        self._start(4)
        hold = BookingHold.objects.get()

        response = self.client.post(reverse("reservation-hold-cancel", args=[hold.correlation_token]))

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["data"]["status"], BookingHold.Status.RELEASED)
        self.assertEqual(self._spots(), 10)


class ReservationAPITests(APITestCase):
    def setUp(self) -> None:
        self.excursion = Excursion.objects.create(
            document_id="cave-tour",
            title="Пещерный тур",
            max_capacity=4,
            price=Decimal("40.00"),
        )
        self.staff = User.objects.create_user(username="desk", password="DeskPass123", is_staff=True)
        self.customer = User.objects.create_user(username="guest", password="GuestPass123")
        self.list_url = reverse("reservation-list")

    def _payload(self, quantity: int = 2) -> dict:
        return {
            "excursion": "cave-tour",
            "date": DAY,
            "quantity": quantity,
            "customer_name": "Иван",
            "customer_email": "ivan@example.com",
        }

    def test_non_staff_cannot_list(self) -> None:
        self.client.force_authenticate(self.customer)

        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["error"]["kind"], "PermissionDenied")

    def test_staff_creates_reservation_through_ledger(self) -> None:
        self.client.force_authenticate(self.staff)

        response = self.client.post(self.list_url, self._payload(3), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["total_amount"], "120.00")
        self.assertEqual(ledger.get_or_create("cave-tour", DAY).available_spots, 1)

        response = self.client.post(self.list_url, self._payload(2), format="json")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_seat_fields_are_immutable(self) -> None:
        self.client.force_authenticate(self.staff)
        created = self.client.post(self.list_url, self._payload(2), format="json").data
        url = reverse("reservation-detail", args=[created["id"]])

        response = self.client.patch(url, {"quantity": 4}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.patch(url, {"notes": "Вегетарианский обед"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["notes"], "Вегетарианский обед")

    def test_delete_is_not_allowed(self) -> None:
        self.client.force_authenticate(self.staff)
        created = self.client.post(self.list_url, self._payload(1), format="json").data

        response = self.client.delete(reverse("reservation-detail", args=[created["id"]]))

        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)

    def test_cancel_action_returns_seats(self) -> None:
        self.client.force_authenticate(self.staff)
        created = self.client.post(self.list_url, self._payload(2), format="json").data

        response = self.client.post(
            reverse("reservation-cancel", args=[created["id"]]),
            {"reason": "Шторм"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], Reservation.Status.CANCELLED)
        self.assertEqual(ledger.get_or_create("cave-tour", DAY).available_spots, 4)

    def test_filter_by_status(self) -> None:
        self.client.force_authenticate(self.staff)
        first = self.client.post(self.list_url, self._payload(1), format="json").data
        self.client.post(self.list_url, self._payload(1), format="json")
        self.client.post(reverse("reservation-cancel", args=[first["id"]]), {}, format="json")

        response = self.client.get(self.list_url, {"status": "confirmed"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 1)
