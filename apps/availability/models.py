"""Availability ledger models."""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class AvailabilityRecord(models.Model):
    """Счётчик свободных мест экскурсии на конкретную дату.

    Создаётся при первом обращении, никогда не удаляется: закрытые даты
    помечаются is_active=False с обнулённым счётчиком.
    """

    excursion = models.ForeignKey(
        "catalog.Excursion",
        on_delete=models.PROTECT,
        related_name="availability_records",
    )
    date = models.DateField()
    total_capacity = models.PositiveIntegerField(
        help_text=_("Вместимость экскурсии на момент создания записи."),
    )
    available_spots = models.PositiveIntegerField()
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Доступность на дату")
        verbose_name_plural = _("Доступность на даты")
        ordering = ["date"]
        constraints = [
            models.UniqueConstraint(
                fields=["excursion", "date"],
                name="availability_unique_excursion_date",
            ),
            models.CheckConstraint(
                condition=models.Q(available_spots__lte=models.F("total_capacity")),
                name="availability_spots_within_capacity",
            ),
            models.CheckConstraint(
                condition=models.Q(is_active=True) | models.Q(available_spots=0),
                name="availability_inactive_has_no_spots",
            ),
        ]
        indexes = [
            models.Index(fields=["excursion", "date", "is_active"], name="availability_lookup_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.excursion_id} @ {self.date}: {self.available_spots}/{self.total_capacity}"

    @property
    def reserved_spots(self) -> int:
        if not self.is_active:
            return 0
        return self.total_capacity - self.available_spots
