"""
Recurrence planner: expands a recurring booking request into dates.

Each generated date is derived from the previous one, so monthly series
clamp to the end of shorter months (Jan 31 -> Feb 29 -> Mar 29).
"""

from dataclasses import dataclass
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta
from django.conf import settings
from django.utils import timezone

from appointments.models import Appointment
from appointments.services.errors import RecurrenceError

RECURRENCE_TYPES = ("daily", "weekly", "monthly")
MAX_RECURRENCE_INTERVAL = 12
MAX_RECURRENCE_MONTHS = 24

_UNIT_LABELS = {
    "daily": ("day", "days"),
    "weekly": ("week", "weeks"),
    "monthly": ("month", "months"),
}


@dataclass
class RecurrenceRule:
    recurrence_type: str
    interval: int = 1
    end_date: date = None


def validate_recurrence_rule(rule: RecurrenceRule, today=None) -> None:
    """
    Reject rules that cannot be materialized.

    Raises:
        RecurrenceError: unknown unit, interval outside 1..12, missing end
            date, end date not after today or more than 24 months ahead.
    """
    if today is None:
        today = timezone.localdate()

    if rule.recurrence_type not in RECURRENCE_TYPES:
        raise RecurrenceError(
            f"Invalid recurrence type '{rule.recurrence_type}'. "
            f"Choose one of: {', '.join(RECURRENCE_TYPES)}."
        )

    interval = rule.interval
    if isinstance(interval, bool) or not isinstance(interval, int) or interval <= 0:
        raise RecurrenceError("Recurrence interval must be a positive integer.")
    if interval > MAX_RECURRENCE_INTERVAL:
        raise RecurrenceError(
            f"Recurrence interval cannot be greater than {MAX_RECURRENCE_INTERVAL}."
        )

    if rule.end_date is None:
        raise RecurrenceError("A recurrence end date is required.")
    if rule.end_date <= today:
        raise RecurrenceError("Recurrence end date must be in the future.")
    if rule.end_date > today + relativedelta(months=MAX_RECURRENCE_MONTHS):
        raise RecurrenceError(
            f"Recurrence end date cannot be more than {MAX_RECURRENCE_MONTHS} months ahead."
        )


def advance(current: date, recurrence_type: str, interval: int) -> date:
    if recurrence_type == "daily":
        return current + timedelta(days=interval)
    if recurrence_type == "weekly":
        return current + timedelta(weeks=interval)
    if recurrence_type == "monthly":
        return current + relativedelta(months=interval)
    raise RecurrenceError(f"Invalid recurrence type '{recurrence_type}'.")


def generate_recurring_dates(seed: date, rule: RecurrenceRule, max_instances=None) -> list[date]:
    """
    Dates of a series, seed included, in ascending order.

    Stops at the first date after rule.end_date or once max_instances
    dates were produced (defaults to APPOINTMENT_MAX_RECURRENCE_INSTANCES).
    The rule is assumed to be valid.
    """
    if max_instances is None:
        max_instances = settings.APPOINTMENT_MAX_RECURRENCE_INSTANCES
    if max_instances <= 0:
        return []

    dates = [seed]
    current = seed
    while len(dates) < max_instances:
        current = advance(current, rule.recurrence_type, rule.interval)
        if current > rule.end_date:
            break
        dates.append(current)
    return dates


def describe_recurrence(rule: RecurrenceRule) -> str:
    """Human readable summary, e.g. "Every 2 weeks until 2024-02-01"."""
    singular, plural = _UNIT_LABELS.get(rule.recurrence_type, (rule.recurrence_type, rule.recurrence_type))
    if rule.interval == 1:
        every = f"Every {singular}"
    else:
        every = f"Every {rule.interval} {plural}"
    if rule.end_date is None:
        return every
    return f"{every} until {rule.end_date:%Y-%m-%d}"


def preview_recurrence(seed, rule, professional_id, start_time, end_time) -> dict:
    """
    Dates a recurring request would create, and which of them clash.

    A date clashes when the professional already has a non-cancelled
    appointment overlapping [start_time, end_time) on it. Nothing is
    written.
    """
    validate_recurrence_rule(rule)
    dates = generate_recurring_dates(seed, rule)

    conflicts = sorted(
        set(
            Appointment.objects.filter(
                professional_id=professional_id,
                date__in=dates,
                start_time__lt=end_time,
                end_time__gt=start_time,
            )
            .exclude(status=Appointment.Status.CANCELLED)
            .values_list("date", flat=True)
        )
    )

    return {
        "dates": dates,
        "count": len(dates),
        "conflicts": conflicts,
        "description": describe_recurrence(rule),
    }
