"""
URL configuration for the clinic_scheduler project.

Every app exposes its JSON API under its own prefix:
    /api/login/                            JWT login (accounts)
    /professionals/api/available-slots/    availability engine
    /appointments/api/appointments/        booking
"""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("", include("accounts.urls")),
    path("professionals/", include("professionals.urls")),
    path("appointments/", include("appointments.urls")),
]
