"""Exceptions raised by the appointment services."""


class BookingError(Exception):
    """Base exception for booking failures."""

    def __init__(self, message, code="booking_error"):
        self.message = message
        self.code = code
        super().__init__(self.message)


class SlotUnavailableError(BookingError):
    """Raised when the requested slot is no longer available."""

    def __init__(self, message="This time slot is no longer available. Please select another slot."):
        super().__init__(message, code="slot_unavailable")


class RecurrenceError(BookingError):
    """Raised when a recurrence rule is invalid."""

    def __init__(self, message):
        super().__init__(message, code="invalid_recurrence")


class TooManyInstancesError(BookingError):
    """Raised when a recurring request expands past the configured ceiling."""

    def __init__(self, limit):
        self.limit = limit
        super().__init__(
            f"Too many instances requested: a recurring booking can create at most {limit} appointments.",
            code="too_many_instances",
        )


class BatchInsertError(BookingError):
    """
    Raised when a batch of a recurring series fails to insert.

    Batches committed before the failure stay in the database;
    created_count says how many appointments they hold.
    """

    def __init__(self, created_count, message=None):
        self.created_count = created_count
        super().__init__(
            message or f"Recurring booking stopped after {created_count} appointments were created.",
            code="batch_insert_failed",
        )
