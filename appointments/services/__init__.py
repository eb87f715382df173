# appointments/services package
#
# All symbols from the sub-modules are re-exported here:
#
#   from appointments.services import BookingError, create_appointments
#   from appointments.services import RecurrenceRule, preview_recurrence

from appointments.services.errors import (  # noqa: F401
    BookingError,
    SlotUnavailableError,
    RecurrenceError,
    TooManyInstancesError,
    BatchInsertError,
)

from appointments.services.recurrence import (  # noqa: F401
    RECURRENCE_TYPES,
    MAX_RECURRENCE_INTERVAL,
    MAX_RECURRENCE_MONTHS,
    RecurrenceRule,
    advance,
    describe_recurrence,
    generate_recurring_dates,
    preview_recurrence,
    validate_recurrence_rule,
)

from appointments.services.booking_service import (  # noqa: F401
    RECURRENCE_FIELDS,
    create_appointment,
    create_appointments,
    create_recurring_appointments,
    rule_from_template,
)
