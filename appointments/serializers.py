from datetime import datetime, timedelta

from django.contrib.auth import get_user_model
from rest_framework import serializers

from clients.models import Client
from clinics.models import Clinic
from .models import Appointment, Service


class ServiceSerializer(serializers.ModelSerializer):
    """Serializer for services offered by a clinic."""

    clinic_name = serializers.CharField(source="clinic.name", read_only=True)

    class Meta:
        model = Service
        fields = [
            "id",
            "name",
            "duration_minutes",
            "price",
            "description",
            "clinic",
            "clinic_name",
            "is_active",
        ]


class CreateAppointmentSerializer(serializers.Serializer):
    """
    Request serializer for creating one appointment or a recurring series.

    Validates references and times; recurrence rules are validated by the
    booking service so every caller gets the same messages.
    """

    clinic_id = serializers.IntegerField()
    professional_id = serializers.IntegerField()
    client_id = serializers.IntegerField()
    service_id = serializers.IntegerField(required=False, allow_null=True)
    date = serializers.DateField(help_text="Date in YYYY-MM-DD format.")
    start_time = serializers.TimeField(help_text="Start time in HH:MM format.")
    end_time = serializers.TimeField(
        required=False,
        allow_null=True,
        help_text="Defaults to start_time + the service duration.",
    )
    status = serializers.ChoiceField(
        choices=Appointment.Status.choices,
        default=Appointment.Status.CONFIRMED,
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    is_recurring = serializers.BooleanField(required=False, default=False)
    recurrence_type = serializers.CharField(required=False, allow_blank=True)
    recurrence_interval = serializers.IntegerField(required=False, default=1)
    recurrence_end_date = serializers.DateField(required=False, allow_null=True)

    def validate(self, attrs):
        clinic_id = attrs["clinic_id"]

        if not Clinic.objects.filter(id=clinic_id, is_active=True).exists():
            raise serializers.ValidationError({"clinic_id": "Clinic not found or inactive."})

        if not get_user_model().objects.filter(
            id=attrs["professional_id"],
            is_active=True,
            clinic_memberships__clinic_id=clinic_id,
            clinic_memberships__is_active=True,
        ).exists():
            raise serializers.ValidationError(
                {"professional_id": "Professional not found in this clinic."}
            )

        if not Client.objects.filter(id=attrs["client_id"], clinic_id=clinic_id).exists():
            raise serializers.ValidationError({"client_id": "Client not found in this clinic."})

        service = None
        service_id = attrs.get("service_id")
        if service_id is not None:
            service = Service.objects.filter(id=service_id, clinic_id=clinic_id, is_active=True).first()
            if service is None:
                raise serializers.ValidationError({"service_id": "Service not found in this clinic."})

        if attrs.get("end_time") is None:
            if service is None:
                raise serializers.ValidationError(
                    {"end_time": "end_time is required when no service is given."}
                )
            start = datetime.combine(attrs["date"], attrs["start_time"])
            attrs["end_time"] = (start + timedelta(minutes=service.duration_minutes)).time()

        if attrs["end_time"] <= attrs["start_time"]:
            raise serializers.ValidationError({"end_time": "End time must be after start time."})

        return attrs


class AppointmentResponseSerializer(serializers.ModelSerializer):
    """Returns the appointment details after a successful booking."""

    professional_name = serializers.CharField(source="professional.name", read_only=True)
    clinic_name = serializers.CharField(source="clinic.name", read_only=True)
    client_name = serializers.CharField(source="client.name", read_only=True)
    service_name = serializers.CharField(source="service.name", read_only=True, default=None)
    status_display = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = Appointment
        fields = [
            "id",
            "clinic",
            "clinic_name",
            "professional",
            "professional_name",
            "client",
            "client_name",
            "service",
            "service_name",
            "date",
            "start_time",
            "end_time",
            "status",
            "status_display",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class RecurrencePreviewSerializer(serializers.Serializer):
    clinic_id = serializers.IntegerField()
    professional_id = serializers.IntegerField()
    date = serializers.DateField()
    start_time = serializers.TimeField()
    end_time = serializers.TimeField()
    recurrence_type = serializers.CharField()
    recurrence_interval = serializers.IntegerField(default=1)
    recurrence_end_date = serializers.DateField()

    def validate(self, attrs):
        if attrs["end_time"] <= attrs["start_time"]:
            raise serializers.ValidationError({"end_time": "End time must be after start time."})
        return attrs
