"""
Availability queries built on top of the slot engine.

- is_professional_available: can an exact interval be booked, as far as
  working hours, breaks and absences are concerned
- get_slots_for_date_range: slots for every day in a range
- get_next_available_slot: first free slot in the coming days
"""

import logging
from datetime import date, timedelta

from django.utils import timezone

from .commitments import has_approved_absence
from .schedules import resolve_schedule
from .slots import get_slots_for_professional, validate_slot_params
from .time_utils import overlaps, time_to_minutes

logger = logging.getLogger(__name__)

NEXT_SLOT_SEARCH_DAYS = 7


def is_professional_available(
    professional_id: int,
    target_date: date,
    start_time,
    end_time,
    clinic_id=None,
) -> bool:
    """
    Check an interval against the professional's schedule for the day.

    The interval must sit inside the working window of the schedule that
    applies on target_date and must not touch any of its breaks. An
    approved absence or a day without a schedule means unavailable.
    Appointments and group activities are not looked at here.

    Args:
        start_time, end_time: datetime.time or "HH:MM".
    """
    if has_approved_absence(professional_id, target_date):
        return False

    resolved = resolve_schedule(professional_id, target_date, clinic_id=clinic_id)
    if resolved is None:
        return False

    start = time_to_minutes(start_time)
    end = time_to_minutes(end_time)
    schedule = resolved.schedule
    if start < time_to_minutes(schedule.start_time) or end > time_to_minutes(schedule.end_time):
        return False

    return not any(overlaps(start, end, b_start, b_end) for b_start, b_end in resolved.break_ranges())


def get_slots_for_date_range(
    professional_id: int,
    start_date: date,
    end_date: date,
    duration_minutes: int,
    max_per_day=None,
    clinic_id=None,
    now=None,
    step=None,
) -> list[dict]:
    """
    Slots for each day from start_date to end_date, both included.

    Returns:
        [{"date": "YYYY-MM-DD", "slots": [...]}, ...], one entry per day
        (days without slots included), each list cut to max_per_day when
        given. An end_date before start_date yields [].
    """
    validate_slot_params(duration_minutes, step)

    days = []
    current = start_date
    while current <= end_date:
        slots = get_slots_for_professional(
            professional_id,
            current,
            duration_minutes,
            clinic_id=clinic_id,
            now=now,
            step=step,
        )
        if max_per_day is not None:
            slots = slots[:max_per_day]
        days.append({"date": current.isoformat(), "slots": slots})
        current += timedelta(days=1)

    return days


def get_next_available_slot(
    professional_id: int,
    duration_minutes: int,
    clinic_id=None,
    now=None,
    step=None,
    days=NEXT_SLOT_SEARCH_DAYS,
):
    """
    First free slot from today up to `days` days ahead.

    Returns:
        The slot dict with its "date" added, or None.
    """
    validate_slot_params(duration_minutes, step)

    if now is None:
        today = timezone.localdate()
    elif timezone.is_aware(now):
        today = timezone.localtime(now).date()
    else:
        today = now.date()

    for offset in range(days + 1):
        target_date = today + timedelta(days=offset)
        slots = get_slots_for_professional(
            professional_id,
            target_date,
            duration_minutes,
            clinic_id=clinic_id,
            now=now,
            step=step,
        )
        if slots:
            return {**slots[0], "date": target_date.isoformat()}

    logger.info(
        "[SLOTS] No free slot for professional %s in the next %s days", professional_id, days
    )
    return None
