from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="PaymentEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("event_id", models.CharField(max_length=255, unique=True)),
                ("event_type", models.CharField(max_length=100)),
                ("gateway_ref", models.CharField(blank=True, db_index=True, max_length=255)),
                ("payload", models.JSONField(blank=True, default=dict)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("received", "Получено"),
                            ("processed", "Обработано"),
                            ("ignored", "Пропущено"),
                            ("failed", "Ошибка обработки"),
                        ],
                        default="received",
                        max_length=20,
                    ),
                ),
                ("error", models.TextField(blank=True)),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name": "Событие платёжного шлюза",
                "verbose_name_plural": "События платёжного шлюза",
                "ordering": ["-created_at"],
            },
        ),
    ]
