"""
Booking orchestration.

Seats are taken from the availability ledger BEFORE payment is authorized
and kept as a BookingHold while the customer pays. Every path that ends
without a paid reservation (gateway error, declined payment, timeout,
cancellation) gives the seats back exactly once.

Hold lifecycle:

    PENDING -> CHECKED -> (reserve) -> AUTHORIZING -> COMMITTED
                                            \\-> RELEASED

PENDING and CHECKED only exist inside `start_booking`. AUTHORIZING,
COMMITTED and RELEASED are persisted. Every transition out of AUTHORIZING is
a conditional UPDATE (WHERE status='authorizing'), so duplicate webhooks,
the sweep and a customer cancelling at the same moment cannot release or
commit the same hold twice.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any

from django.conf import settings  # type: ignore
from django.db import DatabaseError, transaction  # type: ignore
from django.db.models import Sum  # type: ignore
from django.utils import timezone  # type: ignore

from apps.availability import ledger
from apps.availability.models import AvailabilityRecord
from apps.catalog.services import get_excursion, get_resource
from apps.payments.gateway import PaymentGatewayError, PaymentOutcome, get_gateway
from shared.domain.errors import (
    ConcurrencyConflict,
    GatewayError,
    InsufficientCapacity,
    InvalidRequest,
    ResourceNotFound,
)

from .models import BookingHold, Reservation

logger = logging.getLogger(__name__)


@dataclass
class BookingRequest:
    excursion_id: str
    date: date | str
    quantity: int
    customer: dict[str, Any] = field(default_factory=dict)


def _hold_timeout() -> timedelta:
    return timedelta(seconds=settings.RESERVATION_HOLD_TIMEOUT)


def _take_seats(excursion_id: str, day: date, quantity: int) -> AvailabilityRecord:
    """check + reserve, retried once when the reserve loses a race."""
    for attempt in (1, 2):
        outcome = ledger.check(excursion_id, day, quantity)
        if not outcome.available:
            raise InsufficientCapacity(
                (
                    "Недостаточно свободных мест. "
                    f"Доступно: {outcome.available_spots}, запрошено: {quantity}."
                ),
                excursion_id=excursion_id,
                date=day.isoformat(),
                requested=quantity,
                available_spots=outcome.available_spots,
                is_active=outcome.is_active,
            )
        try:
            return ledger.reserve(excursion_id, day, quantity)
        except ConcurrencyConflict:
            if attempt == 2:
                raise
            logger.warning(f"Retrying reserve for {excursion_id} on {day} after a lost race")
    raise AssertionError("unreachable")


def _release_hold(hold: BookingHold, reason: str) -> bool:
    """
    AUTHORIZING -> RELEASED and give the seats back, in one transaction.

    Returns False when another actor already moved the hold out of
    AUTHORIZING; nothing is released in that case.
    """
    now = timezone.now()
    with transaction.atomic():
        won = BookingHold.objects.filter(
            pk=hold.pk,
            status=BookingHold.Status.AUTHORIZING,
        ).update(
            status=BookingHold.Status.RELEASED,
            release_reason=reason,
            released_at=now,
            updated_at=now,
        )
        if won:
            ledger.release(hold.excursion.document_id, hold.date, hold.quantity)

    if won:
        logger.info(f"Hold {hold.correlation_token} released ({reason}), {hold.quantity} spots returned")
    return bool(won)


def _cancel_intent(hold: BookingHold, gateway=None) -> None:
    if not hold.gateway_ref:
        return
    (gateway or get_gateway()).cancel(hold.gateway_ref)


def _get_hold(**lookup) -> BookingHold | None:
    return BookingHold.objects.select_related("excursion").filter(**lookup).first()


def _parse_token(value) -> uuid.UUID:
    try:
        return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
    except ValueError:
        raise InvalidRequest("Некорректный идентификатор удержания.", correlation_token=str(value)) from None


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


def start_booking(request: BookingRequest, *, gateway=None) -> BookingHold:
    """
    Take seats and open a payment authorization for them.

    Returns the AUTHORIZING hold carrying `client_token` for the frontend.

    Raises:
        InvalidQuantity, InvalidRequest, ResourceNotFound: bad request, nothing held
        InsufficientCapacity: not enough seats, nothing held
        ConcurrencyConflict: lost the race twice, nothing held
        GatewayError: authorization failed, seats already given back
    """
    quantity = ledger.validate_quantity(request.quantity)
    day = ledger.parse_date(request.date)
    excursion = get_excursion(request.excursion_id)

    # the decrement and the hold row commit together or not at all
    with transaction.atomic():
        _take_seats(excursion.document_id, day, quantity)
        hold = BookingHold.objects.create(
            excursion=excursion,
            date=day,
            quantity=quantity,
            amount=excursion.price * quantity,
            currency=settings.PAYMENT_CURRENCY,
            customer=request.customer or {},
            expires_at=timezone.now() + _hold_timeout(),
        )

    gateway = gateway or get_gateway()
    token = str(hold.correlation_token)
    try:
        authorization = gateway.authorize(
            amount=hold.amount,
            currency=hold.currency,
            correlation_token=token,
            metadata={
                "excursion_id": excursion.document_id,
                "excursion_title": excursion.title,
                "date": day.isoformat(),
                "quantity": quantity,
                "price_per_person": str(excursion.price),
            },
        )
    except PaymentGatewayError as exc:
        logger.warning(f"Payment authorization failed for hold {token}: {exc}")
        _release_hold(hold, BookingHold.ReleaseReason.GATEWAY_ERROR)
        raise GatewayError(correlation_token=token) from exc
    except Exception:
        _release_hold(hold, BookingHold.ReleaseReason.GATEWAY_ERROR)
        raise

    hold.gateway_ref = authorization.gateway_ref
    hold.client_token = authorization.client_token
    with transaction.atomic():
        BookingHold.objects.filter(pk=hold.pk).update(
            gateway_ref=hold.gateway_ref,
            client_token=hold.client_token,
            updated_at=timezone.now(),
        )
        transaction.on_commit(lambda: _schedule_expiration(hold.pk))

    logger.info(
        f"Hold {token} authorizing: {quantity} spots of {excursion.document_id} on {day}, "
        f"{hold.amount} {hold.currency}, expires {hold.expires_at.isoformat()}"
    )
    return hold


def _schedule_expiration(hold_id: int) -> None:
    from .tasks import schedule_hold_expiration  # local import to avoid circular

    schedule_hold_expiration.apply_async(
        args=[hold_id],
        countdown=settings.RESERVATION_HOLD_TIMEOUT,
    )


def cancel_hold(correlation_token) -> BookingHold:
    """Customer aborted the checkout. Terminal holds are returned unchanged."""
    hold = _get_hold(correlation_token=_parse_token(correlation_token))
    if hold is None:
        raise ResourceNotFound("Удержание не найдено.", correlation_token=str(correlation_token))

    if _release_hold(hold, BookingHold.ReleaseReason.CANCELLED):
        _cancel_intent(hold)
    hold.refresh_from_db()
    return hold


# ---------------------------------------------------------------------------
# Payment outcome
# ---------------------------------------------------------------------------


def _find_hold(outcome: PaymentOutcome) -> BookingHold | None:
    hold = _get_hold(gateway_ref=outcome.gateway_ref)
    if hold is None and outcome.correlation_token:
        try:
            hold = _get_hold(correlation_token=_parse_token(outcome.correlation_token))
        except InvalidRequest:
            return None
    return hold


def _commit_hold(hold: BookingHold, outcome: PaymentOutcome) -> bool:
    now = timezone.now()
    changes: dict[str, Any] = {
        "status": BookingHold.Status.COMMITTED,
        "committed_at": now,
        "updated_at": now,
    }
    if not hold.gateway_ref:
        changes["gateway_ref"] = outcome.gateway_ref

    with transaction.atomic():
        won = BookingHold.objects.filter(
            pk=hold.pk,
            status=BookingHold.Status.AUTHORIZING,
        ).update(**changes)
        if won:
            hold.refresh_from_db()
            reservation = Reservation.from_hold(hold)
            reservation.payment_reference = outcome.gateway_ref
            reservation.save()

    if won:
        logger.info(f"Hold {hold.correlation_token} committed as reservation #{reservation.pk}")
    return bool(won)


def _handle_late_payment(hold: BookingHold, outcome: PaymentOutcome) -> None:
    """
    Money arrived for a hold that was already released (timeout/cancel).

    Re-take the seats if they are still free; otherwise flag the hold for
    manual follow-up.
    """
    if hold.late_payment:
        logger.info(f"Late payment for hold {hold.correlation_token} already flagged")
        return

    now = timezone.now()
    try:
        with transaction.atomic():
            won = BookingHold.objects.filter(
                pk=hold.pk,
                status=BookingHold.Status.RELEASED,
                late_payment=False,
            ).update(
                status=BookingHold.Status.COMMITTED,
                committed_at=now,
                updated_at=now,
            )
            if not won:
                return
            ledger.reserve(hold.excursion.document_id, hold.date, hold.quantity)
            hold.refresh_from_db()
            reservation = Reservation.from_hold(hold)
            reservation.payment_reference = outcome.gateway_ref
            reservation.save()
    except (InsufficientCapacity, ConcurrencyConflict) as exc:
        BookingHold.objects.filter(pk=hold.pk, status=BookingHold.Status.RELEASED).update(
            late_payment=True,
            updated_at=timezone.now(),
        )
        logger.error(
            f"Late payment {outcome.gateway_ref} for released hold {hold.correlation_token} "
            f"cannot be honoured: {exc.kind} {exc.context}"
        )
        return

    logger.warning(
        f"Late payment {outcome.gateway_ref} honoured: hold {hold.correlation_token} "
        f"re-reserved as reservation #{reservation.pk}"
    )


def handle_payment_outcome(outcome: PaymentOutcome) -> BookingHold | None:
    """
    Apply a payment result reported by the gateway. Idempotent.

    Returns the hold in its resulting state, or None when no hold matches.
    """
    hold = _find_hold(outcome)
    if hold is None:
        logger.warning(f"No hold found for payment {outcome.gateway_ref} ({outcome.event_type})")
        return None

    if outcome.succeeded:
        if not _commit_hold(hold, outcome):
            hold.refresh_from_db()
            if hold.status == BookingHold.Status.RELEASED:
                _handle_late_payment(hold, outcome)
            else:
                logger.info(f"Duplicate success for hold {hold.correlation_token} ignored")
    else:
        released = _release_hold(hold, BookingHold.ReleaseReason.PAYMENT_FAILED)
        if not released:
            logger.info(f"Failure for hold {hold.correlation_token} ignored, status is {hold.status}")
        elif outcome.failure_message:
            logger.info(f"Payment for hold {hold.correlation_token} declined: {outcome.failure_message}")

    hold.refresh_from_db()
    return hold


# ---------------------------------------------------------------------------
# Expiry
# ---------------------------------------------------------------------------


def expire_hold(hold_id: int) -> bool:
    """Release one hold if it is still AUTHORIZING and past its deadline."""
    hold = _get_hold(pk=hold_id)
    if hold is None or not hold.is_expired():
        return False
    if _release_hold(hold, BookingHold.ReleaseReason.TIMEOUT):
        _cancel_intent(hold)
        return True
    return False


def release_expired_holds(now=None) -> int:
    """
    Sweep: release every AUTHORIZING hold whose deadline has passed.

    One transaction per hold; a failure on one hold does not stop the rest.
    Returns the number of holds released.
    """
    now = now or timezone.now()
    expired = list(
        BookingHold.objects.select_related("excursion")
        .filter(status=BookingHold.Status.AUTHORIZING, expires_at__lte=now)
        .order_by("expires_at")
    )
    if not expired:
        return 0

    gateway = get_gateway()
    released = 0
    for hold in expired:
        try:
            if _release_hold(hold, BookingHold.ReleaseReason.TIMEOUT):
                released += 1
                _cancel_intent(hold, gateway)
        except DatabaseError:
            logger.error(f"Failed to release expired hold {hold.correlation_token}", exc_info=True)

    logger.info(f"Released {released} expired holds")
    return released


# ---------------------------------------------------------------------------
# Reservations
# ---------------------------------------------------------------------------


def create_offline_reservation(
    excursion_id: str,
    day: date | str,
    quantity: int,
    **fields: Any,
) -> Reservation:
    """Staff booking taken outside the checkout (phone, desk). Seats come from the ledger."""
    quantity = ledger.validate_quantity(quantity)
    day = ledger.parse_date(day)
    resource = get_resource(excursion_id)

    with transaction.atomic():
        _take_seats(resource.id, day, quantity)
        fields.setdefault("total_amount", resource.price * quantity)
        fields.setdefault("currency", settings.PAYMENT_CURRENCY)
        reservation = Reservation.objects.create(
            excursion_id=resource.pk,
            date=day,
            quantity=quantity,
            **fields,
        )

    logger.info(f"Offline reservation #{reservation.pk}: {quantity} spots of {resource.id} on {day}")
    return reservation


def cancel_reservation(reservation: Reservation, reason: str = "") -> Reservation:
    """Cancel a confirmed reservation and return its seats. Idempotent."""
    now = timezone.now()
    with transaction.atomic():
        won = Reservation.objects.filter(
            pk=reservation.pk,
            status=Reservation.Status.CONFIRMED,
        ).update(
            status=Reservation.Status.CANCELLED,
            cancellation_reason=(reason or "")[:255],
            cancelled_at=now,
            updated_at=now,
        )
        if won:
            ledger.release(reservation.excursion.document_id, reservation.date, reservation.quantity)

    if won:
        logger.info(f"Reservation #{reservation.pk} cancelled, {reservation.quantity} spots returned")
    reservation.refresh_from_db()
    return reservation


def reactivate_date(excursion_id: str, day: date | str) -> AvailabilityRecord:
    """
    Undo a blackout. Seats still owed to open holds and confirmed
    reservations for the date stay taken.

    The record row stays locked from counting the outstanding seats until it
    is reopened, so a hold released in between waits for the lock and then
    returns its seats to the active record.
    """
    day = ledger.parse_date(day)
    resource = get_resource(excursion_id)
    record = ledger.get_or_create(resource.id, day)

    with transaction.atomic():
        AvailabilityRecord.objects.select_for_update().get(pk=record.pk)

        held = BookingHold.objects.filter(
            excursion_id=resource.pk,
            date=day,
            status=BookingHold.Status.AUTHORIZING,
        ).aggregate(total=Sum("quantity"))["total"] or 0
        sold = Reservation.objects.filter(
            excursion_id=resource.pk,
            date=day,
            status=Reservation.Status.CONFIRMED,
        ).aggregate(total=Sum("quantity"))["total"] or 0

        return ledger.reactivate(resource.id, day, outstanding=held + sold)
