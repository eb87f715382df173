"""
Slot generation engine for professional availability.

Generates bookable time slots based on:
1. The schedule that applies on the date (exception or weekly)
2. Its breaks (primary break + named ScheduleBreaks)
3. Service duration
4. Existing appointments and group activities across ALL clinics
5. Approved absences (no slots at all)

The generator itself (generate_slots) is a pure function over minute
intervals; get_slots_for_professional wires it to the database.
"""

import logging
from datetime import date

from django.conf import settings
from django.utils import timezone

from .commitments import has_approved_absence, load_commitments
from .schedules import resolve_schedule
from .time_utils import minutes_to_time, overlaps, time_to_minutes

logger = logging.getLogger(__name__)


class SlotGenerationError(ValueError):
    """Raised for a non-positive duration or step."""


def validate_slot_params(duration, step=None):
    """Reject a non-positive duration or step before any query runs."""
    if duration is None or duration <= 0:
        raise SlotGenerationError("Slot duration must be a positive number of minutes.")
    if step is not None and step <= 0:
        raise SlotGenerationError("Slot step must be a positive number of minutes.")


def _current_minutes(target_date, now):
    """Minutes since midnight if target_date is today, else None."""
    if now is None:
        now = timezone.localtime()
    elif timezone.is_aware(now):
        now = timezone.localtime(now)

    if target_date != now.date():
        return None
    return now.hour * 60 + now.minute


def _near_preferred_time(slot_start, preferred, tolerance):
    return any(abs(slot_start - p) <= tolerance for p in preferred)


def generate_slots(
    schedule_start: int,
    schedule_end: int,
    duration: int,
    breaks,
    appointments,
    group_activities,
    target_date: date,
    now=None,
    step=None,
    preferred_times=None,
) -> list[dict]:
    """
    Walk a cursor across the working window and emit free slots.

    Args:
        schedule_start: Start of the working window, minutes since midnight.
        schedule_end: End of the working window.
        duration: Slot length in minutes.
        breaks: [(start, end), ...] minute intervals.
        appointments: [(start, end), ...] of non-cancelled appointments.
        group_activities: [(start, end), ...] of non-cancelled group activities.
        target_date: The date the slots are for (used for the today cutoff).
        now: Current datetime, defaults to timezone.localtime().
        step: Cursor advance in minutes, defaults to duration.
        preferred_times: Only keep slots starting near one of these
            ("HH:MM" strings or minutes).

    Returns:
        [{"start_time": "HH:MM", "end_time": "HH:MM", "available": True}, ...]
        in ascending order.
    """
    validate_slot_params(duration, step)
    if step is None:
        step = duration

    current_minutes = _current_minutes(target_date, now)
    buffer_minutes = getattr(settings, "SLOT_TODAY_BUFFER_MINUTES", 5)

    preferred = None
    if preferred_times:
        preferred = [time_to_minutes(p) if not isinstance(p, int) else p for p in preferred_times]
    tolerance = getattr(settings, "SLOT_PREFERRED_TIME_TOLERANCE_MINUTES", 30)

    slots = []
    cursor = schedule_start

    while cursor + duration <= schedule_end:
        slot_start = cursor
        slot_end = cursor + duration

        # Already passed (or about to) today
        if current_minutes is not None and slot_start <= current_minutes + buffer_minutes:
            cursor += step
            continue

        if preferred is not None and not _near_preferred_time(slot_start, preferred, tolerance):
            cursor += step
            continue

        # Jump past the break instead of stepping through it
        blocking_break = next(
            ((b_start, b_end) for b_start, b_end in breaks if overlaps(slot_start, slot_end, b_start, b_end)),
            None,
        )
        if blocking_break is not None:
            cursor = max(cursor + step, blocking_break[1])
            continue

        if any(overlaps(slot_start, slot_end, a_start, a_end) for a_start, a_end in appointments):
            cursor += step
            continue

        if any(overlaps(slot_start, slot_end, g_start, g_end) for g_start, g_end in group_activities):
            cursor += step
            continue

        slots.append(
            {
                "start_time": minutes_to_time(slot_start),
                "end_time": minutes_to_time(slot_end),
                "available": True,
            }
        )
        cursor += step

    return slots


def get_slots_for_professional(
    professional_id: int,
    target_date: date,
    duration_minutes: int,
    clinic_id=None,
    now=None,
    step=None,
    preferred_times=None,
) -> list[dict]:
    """
    Available slots for one professional on one date.

    An approved absence or a day without a schedule yields [].
    A non-positive duration or step raises SlotGenerationError, whatever
    the day looks like. Database errors propagate to the caller.
    """
    validate_slot_params(duration_minutes, step)

    if has_approved_absence(professional_id, target_date):
        logger.info(
            "[SLOTS] Professional %s has an approved absence on %s", professional_id, target_date
        )
        return []

    resolved = resolve_schedule(professional_id, target_date, clinic_id=clinic_id)
    if resolved is None:
        return []

    schedule = resolved.schedule
    breaks = resolved.break_ranges()

    commitments = load_commitments(professional_id, target_date)

    slots = generate_slots(
        schedule_start=time_to_minutes(schedule.start_time),
        schedule_end=time_to_minutes(schedule.end_time),
        duration=duration_minutes,
        breaks=breaks,
        appointments=commitments.appointments,
        group_activities=commitments.group_activities,
        target_date=target_date,
        now=now,
        step=step,
        preferred_times=preferred_times,
    )
    logger.debug(
        "[SLOTS] Professional %s on %s: %s slots", professional_id, target_date, len(slots)
    )
    return slots
