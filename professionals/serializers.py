from rest_framework import serializers
from .models import ScheduleBreak, WorkSchedule


class ScheduleBreakSerializer(serializers.ModelSerializer):
    start_time = serializers.TimeField(format="%H:%M")
    end_time = serializers.TimeField(format="%H:%M")

    class Meta:
        model = ScheduleBreak
        fields = ["id", "name", "start_time", "end_time"]


class WorkScheduleSerializer(serializers.ModelSerializer):
    """Serializer for a professional's weekly or date-specific working hours."""

    day_name = serializers.CharField(source="get_day_of_week_display", read_only=True)
    clinic_name = serializers.CharField(source="clinic.name", read_only=True)
    start_time = serializers.TimeField(format="%H:%M")
    end_time = serializers.TimeField(format="%H:%M")
    break_start = serializers.TimeField(format="%H:%M", allow_null=True)
    break_end = serializers.TimeField(format="%H:%M", allow_null=True)
    breaks = serializers.SerializerMethodField()

    class Meta:
        model = WorkSchedule
        fields = [
            "id",
            "is_exception",
            "day_of_week",
            "day_name",
            "exception_date",
            "start_time",
            "end_time",
            "break_start",
            "break_end",
            "breaks",
            "clinic",
            "clinic_name",
            "is_active",
        ]

    def get_breaks(self, obj):
        active = [b for b in obj.breaks.all() if b.is_active]
        return ScheduleBreakSerializer(active, many=True).data


class AvailableSlotSerializer(serializers.Serializer):
    """
    Serializer for computed time slots.
    These are not database records: they are generated on the fly from
    WorkSchedule + breaks + existing appointments and group activities.
    """

    start_time = serializers.CharField()
    end_time = serializers.CharField()
    available = serializers.BooleanField()
    professional_id = serializers.IntegerField(required=False)
    professional_name = serializers.CharField(required=False)
