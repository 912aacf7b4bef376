"""Booking domain models: payment holds and confirmed reservations."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class BookingHold(models.Model):
    """Удержание мест на время оплаты."""

    class Status(models.TextChoices):
        AUTHORIZING = "authorizing", _("Ожидает оплаты")
        COMMITTED = "committed", _("Оплачено")
        RELEASED = "released", _("Места освобождены")

    class ReleaseReason(models.TextChoices):
        GATEWAY_ERROR = "gateway_error", _("Ошибка платёжного шлюза")
        PAYMENT_FAILED = "payment_failed", _("Оплата отклонена")
        TIMEOUT = "timeout", _("Время на оплату истекло")
        CANCELLED = "cancelled", _("Отменено клиентом")

    correlation_token = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    excursion = models.ForeignKey(
        "catalog.Excursion",
        on_delete=models.PROTECT,
        related_name="holds",
    )
    date = models.DateField()
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="eur")
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.AUTHORIZING,
    )
    gateway_ref = models.CharField(max_length=255, unique=True, null=True, blank=True)
    client_token = models.CharField(max_length=255, blank=True)
    customer = models.JSONField(default=dict, blank=True)
    expires_at = models.DateTimeField(
        help_text=_("После этого момента неоплаченное удержание освобождается."),
    )
    release_reason = models.CharField(
        max_length=20,
        choices=ReleaseReason.choices,
        blank=True,
    )
    committed_at = models.DateTimeField(null=True, blank=True)
    released_at = models.DateTimeField(null=True, blank=True)
    late_payment = models.BooleanField(
        default=False,
        help_text=_("Оплата пришла после освобождения мест и не может быть исполнена."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Удержание мест")
        verbose_name_plural = _("Удержания мест")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="hold_quantity_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "expires_at"], name="hold_expiry_idx"),
            models.Index(fields=["excursion", "date", "status"], name="hold_key_idx"),
        ]

    def __str__(self) -> str:
        return f"Hold {self.correlation_token} ({self.status})"

    @property
    def is_authorizing(self) -> bool:
        return self.status == self.Status.AUTHORIZING

    def is_expired(self, now=None) -> bool:
        now = now or timezone.now()
        return self.is_authorizing and self.expires_at <= now


class Reservation(models.Model):
    """Подтверждённое бронирование мест на экскурсию."""

    class Status(models.TextChoices):
        CONFIRMED = "confirmed", _("Подтверждено")
        CANCELLED = "cancelled", _("Отменено")

    excursion = models.ForeignKey(
        "catalog.Excursion",
        on_delete=models.PROTECT,
        related_name="reservations",
    )
    date = models.DateField()
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="eur")
    customer_name = models.CharField(max_length=255, blank=True)
    customer_email = models.EmailField(blank=True)
    customer_phone = models.CharField(max_length=32, blank=True)
    notes = models.TextField(blank=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.CONFIRMED,
    )
    hold = models.OneToOneField(
        BookingHold,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reservation",
    )
    payment_reference = models.CharField(max_length=255, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Бронирование")
        verbose_name_plural = _("Бронирования")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="reservation_quantity_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["excursion", "date", "status"], name="reservation_key_idx"),
        ]

    def __str__(self) -> str:
        return f"Reservation #{self.pk} {self.excursion_id} {self.date} x{self.quantity}"

    @property
    def is_confirmed(self) -> bool:
        return self.status == self.Status.CONFIRMED

    @classmethod
    def from_hold(cls, hold: BookingHold) -> "Reservation":
        customer = hold.customer or {}
        return cls(
            excursion_id=hold.excursion_id,
            date=hold.date,
            quantity=hold.quantity,
            total_amount=hold.amount,
            currency=hold.currency,
            customer_name=str(customer.get("name") or "")[:255],
            customer_email=str(customer.get("email") or "")[:254],
            customer_phone=str(customer.get("phone") or "")[:32],
            notes=str(customer.get("notes") or ""),
            hold=hold,
            payment_reference=hold.gateway_ref or "",
        )
