"""Log of payment gateway webhooks."""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class PaymentEvent(models.Model):
    """Входящее событие платёжного шлюза (webhook)."""

    class Status(models.TextChoices):
        RECEIVED = "received", _("Получено")
        PROCESSED = "processed", _("Обработано")
        IGNORED = "ignored", _("Пропущено")
        FAILED = "failed", _("Ошибка обработки")

    event_id = models.CharField(max_length=255, unique=True)
    event_type = models.CharField(max_length=100)
    gateway_ref = models.CharField(max_length=255, blank=True, db_index=True)
    payload = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.RECEIVED)
    error = models.TextField(blank=True)
    processed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = _("Событие платёжного шлюза")
        verbose_name_plural = _("События платёжного шлюза")

    def __str__(self) -> str:
        return f"{self.event_type} {self.event_id} ({self.status})"

    @property
    def is_done(self) -> bool:
        return self.status in {self.Status.PROCESSED, self.Status.IGNORED}

    def mark(self, status: str, error: str = "") -> None:
        self.status = status
        self.error = error
        self.processed_at = timezone.now()
        self.save(update_fields=["status", "error", "processed_at"])
