"""Read-only lookups into the excursion catalog."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from shared.domain.errors import ResourceNotFound

from .models import Excursion


@dataclass(frozen=True)
class ResourceSnapshot:
    """Capacity and price of an excursion at the moment of lookup."""

    id: str
    max_capacity: int
    price: Decimal
    title: str
    pk: int


def get_excursion(document_id: str) -> Excursion:
    try:
        return Excursion.objects.get(document_id=document_id)
    except (Excursion.DoesNotExist, ValueError, TypeError):
        raise ResourceNotFound(
            f"Экскурсия {document_id} не найдена.",
            excursion_id=str(document_id),
        ) from None


def get_resource(document_id: str) -> ResourceSnapshot:
    excursion = get_excursion(document_id)
    return ResourceSnapshot(
        id=excursion.document_id,
        max_capacity=excursion.max_capacity,
        price=excursion.price,
        title=excursion.title,
        pk=excursion.pk,
    )
