"""Integration tests for availability API endpoints."""

from __future__ import annotations

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.availability import ledger
from apps.catalog.models import Excursion

User = get_user_model()


class AvailabilityAPITests(APITestCase):
    def setUp(self) -> None:
        self.excursion = Excursion.objects.create(
            document_id="old-town-walk",
            title="Прогулка по старому городу",
            max_capacity=10,
            price=Decimal("15.00"),
        )
        self.staff = User.objects.create_user(username="staff", password="StaffPass123", is_staff=True)

    def test_detail_creates_record_on_first_access(self) -> None:
        url = reverse("availability-detail", args=["old-town-walk", "2024-07-01"])

        response = self.client.get(url)

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["data"]["available_spots"], 10)
        self.assertEqual(response.data["data"]["excursion_id"], "old-town-walk")
        self.assertEqual(response.data["meta"], {"excursion_id": "old-town-walk", "date": "2024-07-01"})

    def test_check_reports_spots_without_reserving(self) -> None:
        ledger.reserve("old-town-walk", "2024-07-01", 3)
        url = reverse("availability-check", args=["old-town-walk", "2024-07-01", "8"])

        response = self.client.get(url)

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(
            response.data["data"],
            {"available": False, "available_spots": 7, "is_active": True},
        )
        self.assertEqual(response.data["meta"]["requested_quantity"], 8)

    def test_check_rejects_non_numeric_quantity(self) -> None:
        url = reverse("availability-check", args=["old-town-walk", "2024-07-01", "many"])

        response = self.client.get(url)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["kind"], "InvalidQuantity")

    def test_unknown_excursion_is_404(self) -> None:
        url = reverse("availability-detail", args=["nope", "2024-07-01"])

        response = self.client.get(url)

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"]["kind"], "ResourceNotFound")

    def test_bad_date_is_400(self) -> None:
        url = reverse("availability-detail", args=["old-town-walk", "01-07-2024"])

        response = self.client.get(url)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["kind"], "InvalidRequest")

    def test_range_returns_sorted_records(self) -> None:
        ledger.get_or_create("old-town-walk", "2024-07-10")
        ledger.get_or_create("old-town-walk", "2024-07-02")
        url = reverse("availability-range", args=["old-town-walk", "2024-07-01", "2024-07-31"])

        response = self.client.get(url)

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual([item["date"] for item in response.data["data"]], ["2024-07-02", "2024-07-10"])
        self.assertEqual(response.data["meta"]["count"], 2)

    def test_inverted_range_is_400(self) -> None:
        url = reverse("availability-range", args=["old-town-walk", "2024-07-31", "2024-07-01"])

        response = self.client.get(url)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["kind"], "InvalidRange")

    def test_list_is_public(self) -> None:
        ledger.get_or_create("old-town-walk", "2024-07-01")

        response = self.client.get(reverse("availability-list"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 1)

    def test_deactivate_requires_staff(self) -> None:
        url = reverse("availability-deactivate", args=["old-town-walk", "2024-12-25"])

        response = self.client.post(url)

        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
        self.assertIn("error", response.data)

    def test_staff_can_deactivate_and_reactivate(self) -> None:
        self.client.force_authenticate(self.staff)
        ledger.reserve("old-town-walk", "2024-12-25", 2)

        response = self.client.post(reverse("availability-deactivate", args=["old-town-walk", "2024-12-25"]))
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertFalse(response.data["data"]["is_active"])
        self.assertEqual(response.data["data"]["available_spots"], 0)

        response = self.client.post(reverse("availability-reactivate", args=["old-town-walk", "2024-12-25"]))
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(response.data["data"]["is_active"])
        self.assertEqual(response.data["data"]["available_spots"], 10)

    def test_staff_can_resync_capacity(self) -> None:
        self.client.force_authenticate(self.staff)
        ledger.reserve("old-town-walk", "2024-07-01", 2)
        self.excursion.max_capacity = 20
        self.excursion.save()

        response = self.client.post(reverse("availability-resync", args=["old-town-walk", "2024-07-01"]))

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["data"]["total_capacity"], 20)
        self.assertEqual(response.data["data"]["available_spots"], 18)
