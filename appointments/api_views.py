import logging

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from clinics.permissions import IsClinicMember
from .serializers import (
    AppointmentResponseSerializer,
    CreateAppointmentSerializer,
    RecurrencePreviewSerializer,
)
from .services import (
    BatchInsertError,
    BookingError,
    RecurrenceRule,
    SlotUnavailableError,
    create_appointments,
    preview_recurrence,
)

logger = logging.getLogger(__name__)


class CreateAppointmentAPIView(APIView):
    """
    POST /appointments/api/appointments/

    Create an appointment, or a recurring series of independent appointments.

    Request body:
        {
            "clinic_id": 1,
            "professional_id": 5,
            "client_id": 12,
            "service_id": 3,
            "date": "2026-02-20",
            "start_time": "10:00",
            "end_time": "10:30",          (optional, from service duration)
            "notes": "",                  (optional)
            "is_recurring": true,         (optional)
            "recurrence_type": "weekly",
            "recurrence_interval": 1,
            "recurrence_end_date": "2026-05-20"
        }

    Success Response (201):
        The first appointment plus "created_count".

    Error Responses:
        400: Validation or recurrence errors.
        409: Slot no longer available (single bookings).
        500: A batch of a recurring series failed; "created_count" says
             how many appointments were kept.
    """

    permission_classes = [IsAuthenticated, IsClinicMember]

    def post(self, request):
        serializer = CreateAppointmentSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        template = dict(serializer.validated_data)
        template["created_by"] = request.user

        try:
            appointments = create_appointments(template)
        except SlotUnavailableError as e:
            return Response(
                {"detail": e.message, "code": e.code},
                status=status.HTTP_409_CONFLICT,
            )
        except BatchInsertError as e:
            return Response(
                {"detail": e.message, "code": e.code, "created_count": e.created_count},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        except BookingError as e:
            return Response(
                {"detail": e.message, "code": e.code},
                status=status.HTTP_400_BAD_REQUEST,
            )

        data = dict(AppointmentResponseSerializer(appointments[0]).data)
        data["created_count"] = len(appointments)
        return Response(data, status=status.HTTP_201_CREATED)


class RecurrencePreviewAPIView(APIView):
    """
    POST /appointments/api/recurrence-preview/

    Lists the dates a recurring request would create and the ones that
    clash with the professional's existing appointments. Nothing is saved.
    """

    permission_classes = [IsAuthenticated, IsClinicMember]

    def post(self, request):
        serializer = RecurrencePreviewSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        rule = RecurrenceRule(
            recurrence_type=data["recurrence_type"],
            interval=data["recurrence_interval"],
            end_date=data["recurrence_end_date"],
        )

        try:
            preview = preview_recurrence(
                data["date"],
                rule,
                data["professional_id"],
                data["start_time"],
                data["end_time"],
            )
        except BookingError as e:
            return Response(
                {"detail": e.message, "code": e.code},
                status=status.HTTP_400_BAD_REQUEST,
            )

        return Response(
            {
                "dates": [d.isoformat() for d in preview["dates"]],
                "count": preview["count"],
                "conflicts": [d.isoformat() for d in preview["conflicts"]],
                "description": preview["description"],
            },
            status=status.HTTP_200_OK,
        )
