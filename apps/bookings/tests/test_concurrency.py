"""Checkout and blackout handling under concurrent access.

Needs PostgreSQL row locks, see apps/availability/tests/test_concurrency.py.
"""

from __future__ import annotations

import threading
import time
import unittest
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from unittest.mock import patch

from django.db import connection, connections
from django.test import TransactionTestCase

from apps.availability import ledger
from apps.bookings import services
from apps.bookings.models import BookingHold
from apps.bookings.services import BookingRequest
from apps.catalog.models import Excursion
from apps.payments.gateway import PaymentOutcome
from shared.domain.errors import InsufficientCapacity

DAY = "2024-07-01"


@unittest.skipUnless(connection.vendor == "postgresql", "row-level locking needs PostgreSQL")
class BookingConcurrencyTests(TransactionTestCase):
    def setUp(self) -> None:
        Excursion.objects.create(
            document_id="harbour-cruise",
            title="Морская прогулка",
            max_capacity=10,
            price=Decimal("30.00"),
        )

    def _in_thread(self, func):
        def worker():
            try:
                return func()
            finally:
                connections.close_all()

        return worker

    def test_parallel_checkouts_hold_at_most_capacity(self) -> None:
        barrier = threading.Barrier(8)

        def attempt():
            barrier.wait()
            try:
                services.start_booking(BookingRequest("harbour-cruise", DAY, 4))
                return True
            except InsufficientCapacity:
                return False

        with ThreadPoolExecutor(max_workers=8) as pool:
            futures = [pool.submit(self._in_thread(attempt)) for _ in range(8)]
            results = [future.result() for future in futures]

        self.assertEqual(sum(results), 2)
        self.assertEqual(BookingHold.objects.count(), 2)
        self.assertEqual(ledger.get_or_create("harbour-cruise", DAY).available_spots, 2)

    def test_release_during_reactivation_returns_seats(self) -> None:
        paid = services.start_booking(BookingRequest("harbour-cruise", DAY, 3))
        services.handle_payment_outcome(
            PaymentOutcome(gateway_ref=paid.gateway_ref, status="succeeded", event_type="payment_intent.succeeded")
        )
        open_hold = services.start_booking(BookingRequest("harbour-cruise", DAY, 2))
        ledger.deactivate("harbour-cruise", DAY)

        counted = threading.Event()
        real_reactivate = ledger.reactivate

        def slow_reactivate(*args, **kwargs):
            # outstanding seats are counted, the customer cancels before the date reopens
            counted.set()
            time.sleep(0.5)
            return real_reactivate(*args, **kwargs)

        def reopen():
            return services.reactivate_date("harbour-cruise", DAY)

        def cancel():
            counted.wait(timeout=5)
            return services.cancel_hold(open_hold.correlation_token)

        with patch.object(ledger, "reactivate", slow_reactivate):
            with ThreadPoolExecutor(max_workers=2) as pool:
                reopened = pool.submit(self._in_thread(reopen))
                cancelled = pool.submit(self._in_thread(cancel))
                reopened.result()
                self.assertEqual(cancelled.result().status, BookingHold.Status.RELEASED)

        record = ledger.get_or_create("harbour-cruise", DAY)
        self.assertTrue(record.is_active)
        self.assertEqual(record.available_spots, 7)
