"""
Schedule resolution: which working hours apply to a professional on a date.

A date-specific exception schedule always wins over the weekly one.
"""

import logging
from dataclasses import dataclass, field
from datetime import date

from professionals.models import ScheduleBreak, WorkSchedule

from .time_utils import time_to_minutes

logger = logging.getLogger(__name__)


@dataclass
class ResolvedSchedule:
    schedule: WorkSchedule
    breaks: list[ScheduleBreak] = field(default_factory=list)

    @property
    def is_exception(self) -> bool:
        return self.schedule.is_exception

    def break_ranges(self) -> list[tuple[int, int]]:
        """Primary break plus named breaks as (start, end) minute pairs."""
        ranges = []
        if self.schedule.has_primary_break:
            ranges.append(
                (time_to_minutes(self.schedule.break_start), time_to_minutes(self.schedule.break_end))
            )
        ranges.extend((time_to_minutes(b.start_time), time_to_minutes(b.end_time)) for b in self.breaks)
        return ranges


def resolve_schedule(
    professional_id: int,
    target_date: date,
    clinic_id=None,
):
    """
    Find the schedule that applies to a professional on target_date.

    Args:
        professional_id: The professional's user ID.
        target_date: The date being resolved.
        clinic_id: Restrict to schedules of one clinic (optional).

    Returns:
        ResolvedSchedule with its active breaks ordered by start time,
        or None when the professional does not work that day.
    """
    schedules = WorkSchedule.objects.filter(
        professional_id=professional_id,
        is_active=True,
    )
    if clinic_id is not None:
        schedules = schedules.filter(clinic_id=clinic_id)

    # 1. Exception for this exact date
    chosen = (
        schedules.filter(is_exception=True, exception_date=target_date)
        .order_by("id")
        .first()
    )

    # 2. Regular weekly schedule
    if chosen is None:
        chosen = (
            schedules.filter(is_exception=False, day_of_week=target_date.weekday())
            .order_by("id")
            .first()
        )

    if chosen is None:
        logger.debug(
            "[SCHEDULE] No schedule for professional %s on %s", professional_id, target_date
        )
        return None

    breaks = list(
        ScheduleBreak.objects.filter(schedule=chosen, is_active=True).order_by("start_time")
    )
    return ResolvedSchedule(schedule=chosen, breaks=breaks)
