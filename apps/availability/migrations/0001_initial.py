import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="AvailabilityRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField()),
                (
                    "total_capacity",
                    models.PositiveIntegerField(help_text="Вместимость экскурсии на момент создания записи."),
                ),
                ("available_spots", models.PositiveIntegerField()),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "excursion",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="availability_records",
                        to="catalog.excursion",
                    ),
                ),
            ],
            options={
                "verbose_name": "Доступность на дату",
                "verbose_name_plural": "Доступность на даты",
                "ordering": ["date"],
                "indexes": [
                    models.Index(
                        fields=["excursion", "date", "is_active"],
                        name="availability_lookup_idx",
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("excursion", "date"),
                        name="availability_unique_excursion_date",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("available_spots__lte", models.F("total_capacity"))),
                        name="availability_spots_within_capacity",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("is_active", True), ("available_spots", 0), _connector="OR"),
                        name="availability_inactive_has_no_spots",
                    ),
                ],
            },
        ),
    ]
