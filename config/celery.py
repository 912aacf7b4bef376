import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("excursion_reservations")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Освобождение мест по неоплаченным броням
    "release-expired-holds": {
        "task": "bookings.release_expired_holds",
        "schedule": float(os.environ.get("HOLD_SWEEP_INTERVAL", 60)),
        "options": {"expires": 50},
    },
}

app.conf.timezone = "UTC"
