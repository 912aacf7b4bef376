"""URL configuration for the excursion reservations project.

The `urlpatterns` list routes URLs to views. It includes Django admin,
the OpenAPI schema and application‑level routers provided by each app.
"""
from django.contrib import admin  # type: ignore
from django.urls import path, include  # type: ignore
from drf_spectacular.views import SpectacularAPIView  # type: ignore

# API versioning. v1 is our initial version; future versions can be added here.

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    # Application URLs
    path('api/v1/availability/', include('apps.availability.urls')),
    path('api/v1/reservations/', include('apps.bookings.urls')),
]
