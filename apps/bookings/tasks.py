"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .services import expire_hold, release_expired_holds

logger = logging.getLogger(__name__)


@shared_task
def schedule_hold_expiration(hold_id: int) -> bool:
    """Освобождает места, если удержание не оплачено в срок."""

    return expire_hold(hold_id)


# ============================================================================
# PERIODIC TASKS (запускаются автоматически через Celery Beat)
# ============================================================================

@shared_task(name="bookings.release_expired_holds")
def release_expired_holds_task() -> dict[str, int]:
    """
    Автоматическое освобождение просроченных удержаний.

    Ищет удержания в статусе AUTHORIZING, у которых истёк expires_at,
    и возвращает их места в доступность. Страхует отложенные задачи
    schedule_hold_expiration, если воркер их потерял.

    Запускается каждые HOLD_SWEEP_INTERVAL секунд через Celery Beat.

    Returns:
        dict: {"released": количество освобождённых удержаний}
    """
    released = release_expired_holds()
    if released:
        logger.info(f"Sweep released {released} expired holds")
    return {"released": released}
