"""FilterSet definitions for reservation listing."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Reservation


class ReservationFilterSet(django_filters.FilterSet):
    excursion = django_filters.CharFilter(field_name="excursion__document_id", lookup_expr="exact")
    date_from = django_filters.DateFilter(field_name="date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="date", lookup_expr="lte")
    status = django_filters.ChoiceFilter(choices=Reservation.Status.choices)
    email = django_filters.CharFilter(field_name="customer_email", lookup_expr="icontains")

    class Meta:
        model = Reservation
        fields = ["excursion", "status", "date_from", "date_to", "email"]
