import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="BookingHold",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("correlation_token", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("date", models.DateField()),
                ("quantity", models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ("amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("currency", models.CharField(default="eur", max_length=3)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("authorizing", "Ожидает оплаты"),
                            ("committed", "Оплачено"),
                            ("released", "Места освобождены"),
                        ],
                        default="authorizing",
                        max_length=20,
                    ),
                ),
                ("gateway_ref", models.CharField(blank=True, max_length=255, null=True, unique=True)),
                ("client_token", models.CharField(blank=True, max_length=255)),
                ("customer", models.JSONField(blank=True, default=dict)),
                (
                    "expires_at",
                    models.DateTimeField(help_text="После этого момента неоплаченное удержание освобождается."),
                ),
                (
                    "release_reason",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("gateway_error", "Ошибка платёжного шлюза"),
                            ("payment_failed", "Оплата отклонена"),
                            ("timeout", "Время на оплату истекло"),
                            ("cancelled", "Отменено клиентом"),
                        ],
                        max_length=20,
                    ),
                ),
                ("committed_at", models.DateTimeField(blank=True, null=True)),
                ("released_at", models.DateTimeField(blank=True, null=True)),
                (
                    "late_payment",
                    models.BooleanField(
                        default=False,
                        help_text="Оплата пришла после освобождения мест и не может быть исполнена.",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "excursion",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="holds",
                        to="catalog.excursion",
                    ),
                ),
            ],
            options={
                "verbose_name": "Удержание мест",
                "verbose_name_plural": "Удержания мест",
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(quantity__gte=1), name="hold_quantity_positive"),
                ],
                "indexes": [
                    models.Index(fields=["status", "expires_at"], name="hold_expiry_idx"),
                    models.Index(fields=["excursion", "date", "status"], name="hold_key_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Reservation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField()),
                ("quantity", models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ("total_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("currency", models.CharField(default="eur", max_length=3)),
                ("customer_name", models.CharField(blank=True, max_length=255)),
                ("customer_email", models.EmailField(blank=True, max_length=254)),
                ("customer_phone", models.CharField(blank=True, max_length=32)),
                ("notes", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("confirmed", "Подтверждено"), ("cancelled", "Отменено")],
                        default="confirmed",
                        max_length=20,
                    ),
                ),
                ("payment_reference", models.CharField(blank=True, max_length=255)),
                ("cancellation_reason", models.CharField(blank=True, max_length=255)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "excursion",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reservations",
                        to="catalog.excursion",
                    ),
                ),
                (
                    "hold",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="reservation",
                        to="bookings.bookinghold",
                    ),
                ),
            ],
            options={
                "verbose_name": "Бронирование",
                "verbose_name_plural": "Бронирования",
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(quantity__gte=1), name="reservation_quantity_positive"
                    ),
                ],
                "indexes": [
                    models.Index(fields=["excursion", "date", "status"], name="reservation_key_idx"),
                ],
            },
        ),
    ]
