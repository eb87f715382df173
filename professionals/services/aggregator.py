"""
"Any professional" availability: merge the slots of every candidate.

Candidates are processed in order and the first professional that offers
a given (start_time, end_time) keeps it. No balancing is attempted.
"""

import logging

from django.contrib.auth import get_user_model
from django.db import DatabaseError

from clinics.models import ClinicStaff
from professionals.models import ProfessionalService

from .slots import get_slots_for_professional, validate_slot_params
from .time_utils import time_to_minutes

logger = logging.getLogger(__name__)

User = get_user_model()


def _clinic_professionals(clinic_id):
    """Active professionals with an active membership in the clinic."""
    member_ids = ClinicStaff.objects.filter(
        clinic_id=clinic_id,
        role="PROFESSIONAL",
        is_active=True,
    ).values_list("user_id", flat=True)
    return User.objects.filter(id__in=member_ids, is_active=True)


def get_candidate_professionals(clinic_id, service_id, professional_ids=None) -> list:
    """
    Professionals to consider for a service.

    Explicit professional_ids are kept in the given order (unknown ids or
    ids outside the clinic are dropped). Otherwise every active clinic
    professional qualified for the service, ordered by id; if nobody is
    qualified, every active clinic professional.
    """
    professionals = _clinic_professionals(clinic_id)

    if professional_ids:
        by_id = {p.id: p for p in professionals.filter(id__in=professional_ids)}
        return [by_id[pid] for pid in professional_ids if pid in by_id]

    qualified_ids = ProfessionalService.objects.filter(service_id=service_id).values_list(
        "professional_id", flat=True
    )
    qualified = list(professionals.filter(id__in=qualified_ids).order_by("id"))
    if qualified:
        return qualified

    logger.info(
        "[SLOTS] No professional qualified for service %s in clinic %s, using all",
        service_id,
        clinic_id,
    )
    return list(professionals.order_by("id"))


def get_slots_for_any_professional(
    clinic_id,
    service_id,
    target_date,
    duration_minutes,
    professional_ids=None,
    now=None,
    step=None,
    preferred_times=None,
) -> list[dict]:
    """
    Union of the candidates' slots, one entry per (start_time, end_time).

    A database failure while computing one professional's slots is logged
    and that professional is skipped; the others are still returned. An
    invalid duration or step raises SlotGenerationError before any query.

    Returns:
        Slots sorted by start time, each with professional_id and
        professional_name added.
    """
    validate_slot_params(duration_minutes, step)

    candidates = get_candidate_professionals(clinic_id, service_id, professional_ids)

    merged = {}
    for professional in candidates:
        try:
            slots = get_slots_for_professional(
                professional.id,
                target_date,
                duration_minutes,
                clinic_id=clinic_id,
                now=now,
                step=step,
                preferred_times=preferred_times,
            )
        except DatabaseError:
            logger.exception(
                "[SLOTS] Failed to compute slots for professional %s on %s",
                professional.id,
                target_date,
            )
            continue

        for slot in slots:
            key = (slot["start_time"], slot["end_time"])
            if key in merged:
                continue
            merged[key] = {
                **slot,
                "professional_id": professional.id,
                "professional_name": professional.name,
            }

    return sorted(merged.values(), key=lambda s: time_to_minutes(s["start_time"]))
