# professionals/services package
#
# The availability engine. Everything callers need is re-exported here:
#
#   from professionals.services import get_slots_for_professional
#   from professionals.services import get_slots_for_any_professional
#   from professionals.services import is_professional_available

from professionals.services.time_utils import (  # noqa: F401
    time_to_minutes,
    minutes_to_time,
    minutes_to_clock,
    overlaps,
)

from professionals.services.schedules import (  # noqa: F401
    ResolvedSchedule,
    resolve_schedule,
)

from professionals.services.commitments import (  # noqa: F401
    Commitments,
    has_approved_absence,
    load_commitments,
)

from professionals.services.slots import (  # noqa: F401
    SlotGenerationError,
    generate_slots,
    get_slots_for_professional,
    validate_slot_params,
)

from professionals.services.aggregator import (  # noqa: F401
    get_candidate_professionals,
    get_slots_for_any_professional,
)

from professionals.services.availability import (  # noqa: F401
    NEXT_SLOT_SEARCH_DAYS,
    get_next_available_slot,
    get_slots_for_date_range,
    is_professional_available,
)
