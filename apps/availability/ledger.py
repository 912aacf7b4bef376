"""
Availability Ledger

This is the CRITICAL module for preventing overselling.
Every change to `available_spots` MUST go through this module.

One AvailabilityRecord exists per (excursion, date). Each mutation is a
single conditional UPDATE scoped to that one row, so concurrent requests for
the same date serialize on the row lock while different dates and excursions
never contend. No in-process locks are used: the guarantees hold across
workers and replicas sharing the database.

Strategy (Defense in Depth):
1. Conditional updates: reserve only decrements WHERE is_active AND
   available_spots >= quantity (compare-and-decrement)
2. Clamped releases: LEAST(available_spots + quantity, total_capacity)
3. Database constraints: unique (excursion, date) and CHECKs for the bounds
4. Insert-if-absent materialisation: ON CONFLICT DO NOTHING

Usage:
    record = ledger.reserve("sunset-kayak", "2024-07-01", 3)
    ...
    ledger.release("sunset-kayak", "2024-07-01", 3)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime

from django.conf import settings  # type: ignore
from django.db import models, transaction  # type: ignore
from django.db.models import Case, F, Value, When  # type: ignore
from django.db.models.functions import Greatest, Least  # type: ignore
from django.utils import timezone  # type: ignore

from apps.catalog.services import get_resource
from shared.domain.errors import (
    ConcurrencyConflict,
    InsufficientCapacity,
    InvalidQuantity,
    InvalidRange,
    InvalidRequest,
)

from .models import AvailabilityRecord

logger = logging.getLogger(__name__)

ISO_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


@dataclass(frozen=True)
class ReservationOutcome:
    """Result of an advisory availability check. Never persisted."""

    available: bool
    available_spots: int
    is_active: bool


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def parse_date(value: date | str) -> date:
    """Accept a date or an ISO `YYYY-MM-DD` string; basic and week formats are refused."""
    if isinstance(value, datetime):
        raise InvalidRequest("Ожидается дата без времени (YYYY-MM-DD).", date=value.isoformat())
    if isinstance(value, date):
        return value
    if isinstance(value, str) and ISO_DATE_RE.fullmatch(value.strip()):
        try:
            return datetime.strptime(value.strip(), "%Y-%m-%d").date()
        except ValueError:
            pass
    raise InvalidRequest("Дата должна быть в формате YYYY-MM-DD.", date=str(value))


def validate_quantity(value: int, field: str = "quantity") -> int:
    # bool is a subclass of int, True must not count as one seat
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidQuantity(**{field: value if isinstance(value, int) else str(value)})
    return value


def _fetch(pk: int) -> AvailabilityRecord:
    return AvailabilityRecord.objects.select_related("excursion").get(pk=pk)


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def get_or_create(excursion_id: str, day: date | str) -> AvailabilityRecord:
    """
    Return the record for (excursion, day), creating it on first access.

    A new record is seeded from the catalog: available_spots = total_capacity
    = max_capacity. Creation is an insert-if-absent, so concurrent first
    accesses produce exactly one row and all callers read that row back.

    Raises:
        ResourceNotFound: the excursion is unknown to the catalog
        InvalidRequest: the date cannot be parsed
    """
    day = parse_date(day)
    resource = get_resource(excursion_id)

    record = (
        AvailabilityRecord.objects.select_related("excursion")
        .filter(excursion_id=resource.pk, date=day)
        .first()
    )
    if record is not None:
        return record

    AvailabilityRecord.objects.bulk_create(
        [
            AvailabilityRecord(
                excursion_id=resource.pk,
                date=day,
                total_capacity=resource.max_capacity,
                available_spots=resource.max_capacity,
                is_active=True,
            )
        ],
        ignore_conflicts=True,
    )
    record = AvailabilityRecord.objects.select_related("excursion").get(excursion_id=resource.pk, date=day)
    logger.info(
        f"Availability materialised for {excursion_id} on {day}: "
        f"{record.available_spots}/{record.total_capacity}"
    )
    return record


def check(excursion_id: str, day: date | str, requested_spots: int) -> ReservationOutcome:
    """
    Advisory check: are `requested_spots` seats free right now?

    Never changes the counter and never holds capacity. The answer may be
    stale by the time `reserve` runs; `reserve` re-validates.
    """
    requested_spots = validate_quantity(requested_spots, field="requested_spots")
    record = get_or_create(excursion_id, day)
    return ReservationOutcome(
        available=record.is_active and record.available_spots >= requested_spots,
        available_spots=record.available_spots,
        is_active=record.is_active,
    )


def reserve(excursion_id: str, day: date | str, quantity: int) -> AvailabilityRecord:
    """
    Atomically take `quantity` seats.

    One UPDATE re-validates is_active and available_spots >= quantity and
    decrements in the same statement; the updated row is read back inside
    the same transaction while the row lock is still held.

    Raises:
        InsufficientCapacity: not enough seats (or the date is deactivated)
        ConcurrencyConflict: the update lost a race but the seats became free
            again before the failure could be reported; retry once
    """
    quantity = validate_quantity(quantity)
    record = get_or_create(excursion_id, day)

    with transaction.atomic():
        updated = AvailabilityRecord.objects.filter(
            pk=record.pk,
            is_active=True,
            available_spots__gte=quantity,
        ).update(
            available_spots=F("available_spots") - quantity,
            updated_at=timezone.now(),
        )
        current = _fetch(record.pk)

    if updated:
        logger.info(
            f"Reserved {quantity} spots for {excursion_id} on {record.date}; "
            f"{current.available_spots}/{current.total_capacity} left"
        )
        return current

    if current.is_active and current.available_spots >= quantity:
        logger.warning(f"Reserve race lost for {excursion_id} on {record.date} (quantity={quantity})")
        raise ConcurrencyConflict(
            excursion_id=excursion_id,
            date=record.date.isoformat(),
            requested=quantity,
            available_spots=current.available_spots,
        )

    raise InsufficientCapacity(
        (
            "Недостаточно свободных мест. "
            f"Доступно: {current.available_spots}, запрошено: {quantity}."
        ),
        excursion_id=excursion_id,
        date=record.date.isoformat(),
        requested=quantity,
        available_spots=current.available_spots,
        is_active=current.is_active,
    )


def release(excursion_id: str, day: date | str, quantity: int) -> AvailabilityRecord:
    """
    Atomically return `quantity` seats, never above total_capacity.

    Repeated releases are safe for the bounds: the counter saturates at the
    capacity snapshot. Deactivated dates stay at zero.
    """
    quantity = validate_quantity(quantity)
    record = get_or_create(excursion_id, day)

    with transaction.atomic():
        updated = AvailabilityRecord.objects.filter(pk=record.pk, is_active=True).update(
            available_spots=Least(
                F("available_spots") + quantity,
                F("total_capacity"),
                output_field=models.PositiveIntegerField(),
            ),
            updated_at=timezone.now(),
        )
        current = _fetch(record.pk)

    if updated:
        logger.info(
            f"Released {quantity} spots for {excursion_id} on {record.date}; "
            f"{current.available_spots}/{current.total_capacity} free"
        )
    else:
        logger.info(f"Release of {quantity} spots ignored for inactive {excursion_id} on {record.date}")
    return current


def deactivate(excursion_id: str, day: date | str) -> AvailabilityRecord:
    """Close a date (e.g. holiday blackout): no spots, no reservations. Idempotent."""
    record = get_or_create(excursion_id, day)

    with transaction.atomic():
        AvailabilityRecord.objects.filter(pk=record.pk).update(
            is_active=False,
            available_spots=0,
            updated_at=timezone.now(),
        )
        current = _fetch(record.pk)

    logger.info(f"Availability deactivated for {excursion_id} on {record.date}")
    return current


def reactivate(excursion_id: str, day: date | str, *, outstanding: int = 0) -> AvailabilityRecord:
    """
    Reopen a deactivated date.

    `outstanding` is the number of seats still owed to bookings made before
    the blackout; they are subtracted from the restored capacity. Active
    records are returned unchanged.
    """
    if isinstance(outstanding, bool) or not isinstance(outstanding, int) or outstanding < 0:
        raise InvalidRequest("Количество занятых мест должно быть неотрицательным целым.", outstanding=str(outstanding))
    record = get_or_create(excursion_id, day)

    with transaction.atomic():
        updated = AvailabilityRecord.objects.filter(pk=record.pk, is_active=False).update(
            is_active=True,
            available_spots=Greatest(
                F("total_capacity") - outstanding,
                Value(0),
                output_field=models.PositiveIntegerField(),
            ),
            updated_at=timezone.now(),
        )
        current = _fetch(record.pk)

    if updated:
        logger.info(
            f"Availability reactivated for {excursion_id} on {record.date}: "
            f"{current.available_spots}/{current.total_capacity} (outstanding={outstanding})"
        )
    return current


def resync_capacity(excursion_id: str, day: date | str) -> AvailabilityRecord:
    """
    Adopt the catalog's current capacity for one date.

    total_capacity becomes the excursion's max_capacity and available_spots
    moves by the same delta, clamped to [0, new capacity]. Seats already sold
    stay sold. This is the only way a capacity change reaches existing
    records; `release` always clamps to the stored snapshot.
    """
    resource = get_resource(excursion_id)
    record = get_or_create(excursion_id, day)
    new_total = resource.max_capacity
    int_field = models.IntegerField()

    with transaction.atomic():
        AvailabilityRecord.objects.filter(pk=record.pk).update(
            total_capacity=new_total,
            available_spots=Case(
                When(
                    is_active=True,
                    then=Greatest(
                        Least(
                            F("available_spots") + Value(new_total) - F("total_capacity"),
                            Value(new_total),
                            output_field=int_field,
                        ),
                        Value(0),
                        output_field=int_field,
                    ),
                ),
                default=Value(0),
                output_field=int_field,
            ),
            updated_at=timezone.now(),
        )
        current = _fetch(record.pk)

    logger.info(
        f"Capacity resynced for {excursion_id} on {record.date}: "
        f"{record.total_capacity} -> {current.total_capacity}, {current.available_spots} free"
    )
    return current


def range_query(excursion_id: str, start: date | str, end: date | str) -> list[AvailabilityRecord]:
    """
    Materialised records for an excursion between `start` and `end` inclusive,
    ascending by date. Dates never accessed have no record and are absent.
    """
    start_day = parse_date(start)
    end_day = parse_date(end)
    if start_day > end_day:
        raise InvalidRange(
            "Дата начала должна быть не позже даты окончания.",
            start=start_day.isoformat(),
            end=end_day.isoformat(),
        )
    max_days = getattr(settings, "AVAILABILITY_MAX_RANGE_DAYS", 365)
    if (end_day - start_day).days > max_days:
        raise InvalidRange(
            f"Диапазон дат не может превышать {max_days} дней.",
            start=start_day.isoformat(),
            end=end_day.isoformat(),
            max_days=max_days,
        )

    resource = get_resource(excursion_id)
    return list(
        AvailabilityRecord.objects.select_related("excursion")
        .filter(excursion_id=resource.pk, date__gte=start_day, date__lte=end_day)
        .order_by("date")
    )


def list_all():
    """Every materialised record, grouped by excursion and ordered by date."""
    return AvailabilityRecord.objects.select_related("excursion").order_by("excursion_id", "date")
