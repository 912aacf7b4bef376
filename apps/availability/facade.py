"""
Query surface of the availability ledger.

Transport-agnostic entry points for callers outside the booking core (HTTP
views, admin actions, scripts). Each method returns a LedgerResult instead
of raising: domain errors come back as structured {kind, message, context}.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable

from shared.domain.errors import DomainError

from . import ledger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerResult:
    ok: bool
    data: Any = None
    error: dict[str, Any] | None = None
    status: int = 200


def structured(func: Callable[..., Any]) -> Callable[..., LedgerResult]:
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> LedgerResult:
        try:
            return LedgerResult(ok=True, data=func(*args, **kwargs))
        except DomainError as exc:
            logger.info(f"{func.__name__} failed: {exc.kind} {exc.context}")
            return LedgerResult(ok=False, error=exc.to_dict(), status=exc.http_status)

    return wrapper


@structured
def get_or_create_availability(excursion_id, day):
    return ledger.get_or_create(excursion_id, day)


@structured
def check_availability(excursion_id, day, requested_spots):
    return ledger.check(excursion_id, day, requested_spots)


@structured
def reserve_availability(excursion_id, day, quantity):
    return ledger.reserve(excursion_id, day, quantity)


@structured
def release_availability(excursion_id, day, quantity):
    return ledger.release(excursion_id, day, quantity)


@structured
def get_availability_range(excursion_id, start, end):
    return ledger.range_query(excursion_id, start, end)


@structured
def deactivate_date(excursion_id, day):
    return ledger.deactivate(excursion_id, day)


@structured
def resync_capacity(excursion_id, day):
    return ledger.resync_capacity(excursion_id, day)
