from django.urls import path
from . import api_views

app_name = "professionals"

urlpatterns = [
    path(
        "api/available-slots/",
        api_views.AvailableSlotsAPIView.as_view(),
        name="api_available_slots",
    ),
    path(
        "api/<int:professional_id>/schedules/",
        api_views.WorkScheduleListAPIView.as_view(),
        name="api_professional_schedules",
    ),
]
