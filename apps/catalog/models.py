"""Catalog models: the excursions offered for booking."""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Excursion(models.Model):
    """Экскурсия с ограниченным количеством мест на каждую дату."""

    document_id = models.SlugField(
        max_length=64,
        unique=True,
        help_text=_("Стабильный внешний идентификатор экскурсии."),
    )
    title = models.CharField(max_length=255)
    max_capacity = models.PositiveIntegerField(
        help_text=_("Максимальное количество участников на одну дату."),
    )
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text=_("Цена за одного участника."),
    )
    is_published = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Экскурсия")
        verbose_name_plural = _("Экскурсии")
        ordering = ["title"]

    def __str__(self) -> str:
        return f"{self.title} ({self.document_id})"
