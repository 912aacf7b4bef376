"""Shared pytest fixtures."""

from __future__ import annotations

from decimal import Decimal

import pytest

from apps.catalog.models import Excursion


@pytest.fixture
def excursion(db):
    return Excursion.objects.create(
        document_id="sunset-kayak",
        title="Закат на каяках",
        max_capacity=10,
        price=Decimal("25.00"),
    )


@pytest.fixture
def small_excursion(db):
    return Excursion.objects.create(
        document_id="cave-tour",
        title="Пещерный тур",
        max_capacity=2,
        price=Decimal("40.00"),
    )
