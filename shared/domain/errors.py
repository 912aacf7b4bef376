"""
Domain Errors

Every failure the booking core reports to its callers is one of these
exceptions. Each carries:
- kind: stable machine-readable name (e.g. "InsufficientCapacity")
- message: human-readable text safe to show to end users
- context: structured details (current spots, requested quantity, ...)

Errors never cross the API boundary as raw exceptions; `to_dict()` is the
structured form returned to clients.
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base class for structured errors of the booking core."""

    kind = "DomainError"
    http_status = 400
    default_message = "Ошибка обработки запроса."

    def __init__(self, message: str | None = None, **context: Any):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "context": self.context,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class InvalidRequest(DomainError):
    """Bad or missing parameters. Caller error, not retried."""

    kind = "InvalidRequest"
    http_status = 400
    default_message = "Некорректные параметры запроса."


class InvalidQuantity(InvalidRequest):
    kind = "InvalidQuantity"
    default_message = "Количество мест должно быть целым положительным числом."


class InvalidRange(DomainError):
    kind = "InvalidRange"
    http_status = 400
    default_message = "Некорректный диапазон дат."


class ResourceNotFound(DomainError):
    kind = "ResourceNotFound"
    http_status = 404
    default_message = "Экскурсия не найдена."


class InsufficientCapacity(DomainError):
    """Business condition, not a fault: not enough seats for the request."""

    kind = "InsufficientCapacity"
    http_status = 409
    default_message = "Недостаточно свободных мест."

    @property
    def available_spots(self) -> int:
        return int(self.context.get("available_spots", 0))


class ConcurrencyConflict(DomainError):
    """Lost a race at commit time. The caller may retry check + reserve once."""

    kind = "ConcurrencyConflict"
    http_status = 409
    default_message = "Места были изменены параллельным запросом, повторите попытку."


class GatewayError(DomainError):
    """Payment authorization failed. Held seats have already been released."""

    kind = "GatewayError"
    http_status = 502
    default_message = "Не удалось создать платёж. Попробуйте позже."


class InternalError(DomainError):
    kind = "InternalError"
    http_status = 500
    default_message = "Внутренняя ошибка сервера."
