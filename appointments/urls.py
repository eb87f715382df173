from django.urls import path
from . import api_views

app_name = "appointments"

urlpatterns = [
    path(
        "api/appointments/",
        api_views.CreateAppointmentAPIView.as_view(),
        name="api_create_appointment",
    ),
    path(
        "api/recurrence-preview/",
        api_views.RecurrencePreviewAPIView.as_view(),
        name="api_recurrence_preview",
    ),
]
