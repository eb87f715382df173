"""
Appointment writer.

Handles both booking flows:
1. Single appointment: lock the professional's day, re-check the
   interval against working hours, breaks, absences, appointments and
   group activities, then insert.
2. Recurring request: validate the rule, expand it into dates and
   bulk-insert one independent appointment per date, in batches.

Recurring series are not checked for conflicts: the caller is expected
to have looked at the preview (see recurrence.preview_recurrence).
"""

import logging
import time as time_module
from datetime import date

from django.conf import settings
from django.db import DatabaseError, transaction

from appointments.models import Appointment, GroupActivity
from appointments.services.errors import (
    BatchInsertError,
    BookingError,
    SlotUnavailableError,
    TooManyInstancesError,
)
from appointments.services.recurrence import (
    RecurrenceRule,
    generate_recurring_dates,
    validate_recurrence_rule,
)
from professionals.services import is_professional_available

logger = logging.getLogger(__name__)

# Request-only fields that never reach the appointments table
RECURRENCE_FIELDS = (
    "is_recurring",
    "recurrence_type",
    "recurrence_interval",
    "recurrence_end_date",
)


def _strip_recurrence_fields(template: dict) -> dict:
    return {k: v for k, v in template.items() if k not in RECURRENCE_FIELDS}


def _row_fields(template: dict) -> dict:
    fields = _strip_recurrence_fields(template)
    fields.pop("date", None)
    return fields


def rule_from_template(template: dict):
    """Build a RecurrenceRule from the request fields, or None for a one-off booking."""
    if not template.get("is_recurring"):
        return None
    interval = template.get("recurrence_interval")
    return RecurrenceRule(
        recurrence_type=template.get("recurrence_type"),
        interval=1 if interval is None else interval,
        end_date=template.get("recurrence_end_date"),
    )


def create_appointment(template: dict, appointment_date: date) -> Appointment:
    """
    Create a single appointment on appointment_date.

    Uses select_for_update() on the professional's appointments for the
    day so two concurrent bookings of the same interval cannot both pass
    the availability check.

    Raises:
        SlotUnavailableError: the interval falls outside the professional's
            working hours, touches a break or an approved absence, or
            overlaps a non-cancelled appointment or group activity.
    """
    fields = _row_fields(template)
    professional_id = fields["professional_id"]
    start_time = fields["start_time"]
    end_time = fields["end_time"]

    with transaction.atomic():
        # Force evaluation to acquire the locks
        list(
            Appointment.objects.select_for_update()
            .filter(professional_id=professional_id, date=appointment_date)
            .values_list("id", flat=True)
        )

        if not is_professional_available(
            professional_id,
            appointment_date,
            start_time,
            end_time,
            clinic_id=fields.get("clinic_id"),
        ):
            logger.info(
                "[BOOKING] %s-%s on %s outside the schedule of professional %s",
                start_time,
                end_time,
                appointment_date,
                professional_id,
            )
            raise SlotUnavailableError("The professional is not working at that time.")

        clashing_appointment = (
            Appointment.objects.filter(
                professional_id=professional_id,
                date=appointment_date,
                start_time__lt=end_time,
                end_time__gt=start_time,
            )
            .exclude(status=Appointment.Status.CANCELLED)
            .exists()
        )
        clashing_activity = (
            GroupActivity.objects.filter(
                professional_id=professional_id,
                date=appointment_date,
                start_time__lt=end_time,
                end_time__gt=start_time,
            )
            .exclude(status=GroupActivity.Status.CANCELLED)
            .exists()
        )
        if clashing_appointment or clashing_activity:
            logger.info(
                "[BOOKING] Slot %s-%s on %s taken for professional %s",
                start_time,
                end_time,
                appointment_date,
                professional_id,
            )
            raise SlotUnavailableError()

        appointment = Appointment.objects.create(date=appointment_date, **fields)

    logger.info("[BOOKING] Created appointment %s", appointment.id)
    return appointment


def create_recurring_appointments(template: dict, rule: RecurrenceRule) -> list[Appointment]:
    """
    Materialize a recurring request as independent appointments.

    The template's date is the first occurrence. Rows are inserted in
    batches of APPOINTMENT_BATCH_SIZE with a short pause in between;
    each batch commits on its own.

    Raises:
        RecurrenceError: the rule is invalid.
        TooManyInstancesError: the rule yields more dates than allowed.
        BookingError: the rule yields no date at all.
        BatchInsertError: a batch failed; earlier batches stay committed.
    """
    validate_recurrence_rule(rule)

    limit = settings.APPOINTMENT_MAX_RECURRENCE_INSTANCES
    dates = generate_recurring_dates(template["date"], rule, max_instances=limit + 1)
    if len(dates) > limit:
        raise TooManyInstancesError(limit)
    if not dates:
        raise BookingError("The recurrence produced no dates.", code="no_dates")

    fields = _row_fields(template)
    rows = [Appointment(date=d, **fields) for d in dates]

    batch_size = settings.APPOINTMENT_BATCH_SIZE
    pause = settings.APPOINTMENT_BATCH_PAUSE_SECONDS

    created = []
    for offset in range(0, len(rows), batch_size):
        if offset and pause:
            time_module.sleep(pause)

        batch = rows[offset:offset + batch_size]
        try:
            with transaction.atomic():
                created.extend(Appointment.objects.bulk_create(batch))
        except DatabaseError as exc:
            logger.error(
                "[BOOKING] Batch starting at %s failed after %s appointments: %s",
                dates[offset],
                len(created),
                exc,
            )
            raise BatchInsertError(len(created)) from exc

    logger.info(
        "[BOOKING] Created %s recurring appointments for professional %s (%s)",
        len(created),
        fields.get("professional_id"),
        rule.recurrence_type,
    )
    return created


def create_appointments(template: dict, recurrence=None) -> list[Appointment]:
    """
    Entry point used by the API.

    Without a recurrence rule (given explicitly or through the template's
    is_recurring fields) a single appointment is created.
    """
    if recurrence is None:
        recurrence = rule_from_template(template)

    if recurrence is None:
        return [create_appointment(template, template["date"])]
    return create_recurring_appointments(template, recurrence)
