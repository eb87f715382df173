from datetime import datetime

from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from appointments.models import Service
from clinics.permissions import IsClinicMember
from .models import WorkSchedule
from .serializers import AvailableSlotSerializer, WorkScheduleSerializer
from .services import (
    SlotGenerationError,
    get_slots_for_any_professional,
    get_slots_for_professional,
)


def _parse_id_list(raw):
    return [int(part) for part in raw.split(",") if part.strip()]


def _parse_preferred_times(raw):
    times = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        datetime.strptime(part, "%H:%M")
        times.append(part)
    return times


class WorkScheduleListAPIView(APIView):
    """
    GET /professionals/api/<professional_id>/schedules/?clinic_id=X

    Returns the active weekly schedule and date exceptions of a
    professional at a clinic, with their breaks.
    """

    permission_classes = [IsAuthenticated, IsClinicMember]

    def get(self, request, professional_id):
        clinic_id = request.query_params.get("clinic_id")
        if not clinic_id:
            return Response(
                {"detail": "clinic_id query parameter is required."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        schedules = (
            WorkSchedule.objects.filter(
                professional_id=professional_id,
                clinic_id=clinic_id,
                is_active=True,
            )
            .select_related("clinic")
            .prefetch_related("breaks")
        )

        if not schedules.exists():
            return Response(
                {
                    "detail": "No schedule found for this professional at this clinic.",
                    "results": [],
                },
                status=status.HTTP_200_OK,
            )

        serializer = WorkScheduleSerializer(schedules, many=True)
        return Response({"results": serializer.data}, status=status.HTTP_200_OK)


class AvailableSlotsAPIView(APIView):
    """
    GET /professionals/api/available-slots/
        ?clinic_id=X&professional_id=<id|any>&service_id=Y&date=YYYY-MM-DD
        [&professional_ids=1,2,3][&step=15][&preferred_times=09:00,16:30]

    Returns computed bookable slots for one professional, or for any
    professional of the clinic when professional_id=any.
    """

    permission_classes = [IsAuthenticated, IsClinicMember]

    def get(self, request):
        params = request.query_params
        clinic_id = params.get("clinic_id")
        professional_id = params.get("professional_id")
        service_id = params.get("service_id")
        date_str = params.get("date")

        errors = {}
        if not clinic_id:
            errors["clinic_id"] = "This query parameter is required."
        if not professional_id:
            errors["professional_id"] = "This query parameter is required (an id or 'any')."
        if not service_id:
            errors["service_id"] = "This query parameter is required."
        if not date_str:
            errors["date"] = "This query parameter is required (format: YYYY-MM-DD)."

        if errors:
            return Response(errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            clinic_id = int(clinic_id)
            service_id = int(service_id)
        except ValueError:
            return Response(
                {"detail": "clinic_id and service_id must be integers."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        any_professional = professional_id == "any"
        if not any_professional:
            try:
                professional_id = int(professional_id)
            except ValueError:
                return Response(
                    {"professional_id": "Must be a professional id or 'any'."},
                    status=status.HTTP_400_BAD_REQUEST,
                )

        try:
            target_date = datetime.strptime(date_str, "%Y-%m-%d").date()
        except ValueError:
            return Response(
                {"date": "Invalid date format. Use YYYY-MM-DD."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        if target_date < timezone.localdate():
            return Response(
                {"date": "Cannot view slots for past dates."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        step = None
        if params.get("step"):
            try:
                step = int(params["step"])
            except ValueError:
                step = 0
            if step <= 0:
                return Response(
                    {"step": "Step must be a positive number of minutes."},
                    status=status.HTTP_400_BAD_REQUEST,
                )

        preferred_times = None
        if params.get("preferred_times"):
            try:
                preferred_times = _parse_preferred_times(params["preferred_times"])
            except ValueError:
                return Response(
                    {"preferred_times": "Use comma separated HH:MM values."},
                    status=status.HTTP_400_BAD_REQUEST,
                )

        professional_ids = None
        if params.get("professional_ids"):
            try:
                professional_ids = _parse_id_list(params["professional_ids"])
            except ValueError:
                return Response(
                    {"professional_ids": "Use comma separated professional ids."},
                    status=status.HTTP_400_BAD_REQUEST,
                )

        try:
            service = Service.objects.get(id=service_id, clinic_id=clinic_id, is_active=True)
        except Service.DoesNotExist:
            return Response(
                {"service_id": "Service not found for this clinic."},
                status=status.HTTP_404_NOT_FOUND,
            )

        try:
            if any_professional:
                slots = get_slots_for_any_professional(
                    clinic_id,
                    service.id,
                    target_date,
                    service.duration_minutes,
                    professional_ids=professional_ids,
                    step=step,
                    preferred_times=preferred_times,
                )
            else:
                slots = get_slots_for_professional(
                    professional_id,
                    target_date,
                    service.duration_minutes,
                    clinic_id=clinic_id,
                    step=step,
                    preferred_times=preferred_times,
                )
        except SlotGenerationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        serializer = AvailableSlotSerializer(slots, many=True)
        return Response(
            {
                "date": date_str,
                "service_id": service.id,
                "duration_minutes": service.duration_minutes,
                "slots": serializer.data,
            },
            status=status.HTTP_200_OK,
        )
