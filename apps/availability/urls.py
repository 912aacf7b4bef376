"""URL routing for the availability ledger."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import (
    AvailabilityCheckView,
    AvailabilityDetailView,
    AvailabilityListView,
    AvailabilityRangeView,
    DeactivateDateView,
    ReactivateDateView,
    ResyncCapacityView,
)

urlpatterns = [
    path("", AvailabilityListView.as_view(), name="availability-list"),
    path(
        "check/<slug:excursion_id>/<str:date>/<str:quantity>/",
        AvailabilityCheckView.as_view(),
        name="availability-check",
    ),
    path(
        "range/<slug:excursion_id>/<str:start_date>/<str:end_date>/",
        AvailabilityRangeView.as_view(),
        name="availability-range",
    ),
    path(
        "<slug:excursion_id>/<str:date>/",
        AvailabilityDetailView.as_view(),
        name="availability-detail",
    ),
    path(
        "<slug:excursion_id>/<str:date>/deactivate/",
        DeactivateDateView.as_view(),
        name="availability-deactivate",
    ),
    path(
        "<slug:excursion_id>/<str:date>/reactivate/",
        ReactivateDateView.as_view(),
        name="availability-reactivate",
    ),
    path(
        "<slug:excursion_id>/<str:date>/resync/",
        ResyncCapacityView.as_view(),
        name="availability-resync",
    ),
]
