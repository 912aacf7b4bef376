"""URL routing for the booking domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import CancelHoldView, CreatePaymentIntentView, PaymentWebhookView, ReservationViewSet

router = DefaultRouter()
router.register(r"", ReservationViewSet, basename="reservation")

urlpatterns = [
    path("create-payment-intent/", CreatePaymentIntentView.as_view(), name="reservation-create-payment-intent"),
    path("holds/<uuid:token>/cancel/", CancelHoldView.as_view(), name="reservation-hold-cancel"),
    path("payment-webhook/", PaymentWebhookView.as_view(), name="reservation-payment-webhook"),
    path("", include(router.urls)),
]
