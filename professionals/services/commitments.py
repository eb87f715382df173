"""
Loading of everything that already occupies a professional's day.

Cancelled appointments and group activities never block time.
"""

from dataclasses import dataclass, field
from datetime import date

from appointments.models import Appointment, GroupActivity
from professionals.models import AbsenceRequest

from .time_utils import time_to_minutes


@dataclass
class Commitments:
    absences: list[AbsenceRequest] = field(default_factory=list)
    appointments: list[tuple[int, int]] = field(default_factory=list)
    group_activities: list[tuple[int, int]] = field(default_factory=list)

    @property
    def has_absence(self) -> bool:
        return bool(self.absences)


def _approved_absences(professional_id: int, target_date: date):
    return AbsenceRequest.objects.filter(
        professional_id=professional_id,
        status=AbsenceRequest.Status.APPROVED,
        start_date__lte=target_date,
        end_date__gte=target_date,
    )


def has_approved_absence(professional_id: int, target_date: date) -> bool:
    return _approved_absences(professional_id, target_date).exists()


def load_commitments(professional_id: int, target_date: date) -> Commitments:
    """
    Collect approved absences, appointments and group activities for one day.

    Appointments and group activities are checked across all clinics:
    a professional cannot be in two places at once.
    """
    absences = list(_approved_absences(professional_id, target_date))

    appointment_ranges = [
        (time_to_minutes(start), time_to_minutes(end))
        for start, end in Appointment.objects.filter(
            professional_id=professional_id,
            date=target_date,
        )
        .exclude(status=Appointment.Status.CANCELLED)
        .values_list("start_time", "end_time")
    ]

    activity_ranges = [
        (time_to_minutes(start), time_to_minutes(end))
        for start, end in GroupActivity.objects.filter(
            professional_id=professional_id,
            date=target_date,
        )
        .exclude(status=GroupActivity.Status.CANCELLED)
        .values_list("start_time", "end_time")
    ]

    return Commitments(
        absences=absences,
        appointments=appointment_ranges,
        group_activities=activity_ranges,
    )
