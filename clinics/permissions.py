from rest_framework import permissions

from .models import ClinicStaff


def is_clinic_member(user, clinic_id):
    """True if the user is an active staff member of the clinic (superusers always are)."""
    if not user or not user.is_authenticated:
        return False
    if user.is_superuser:
        return True
    try:
        clinic_id = int(clinic_id)
    except (TypeError, ValueError):
        return False
    return ClinicStaff.objects.filter(
        clinic_id=clinic_id,
        user=user,
        is_active=True,
        clinic__is_active=True,
    ).exists()


class IsClinicMember(permissions.BasePermission):
    """
    Allows access only to staff of the clinic named by the request.

    The clinic is read from the ``clinic_id`` query parameter or request body.
    Requests that name no clinic are let through so the view can answer
    with a 400 for the missing parameter.
    """

    message = "You are not a member of this clinic."

    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False
        clinic_id = request.query_params.get("clinic_id")
        if clinic_id is None and hasattr(request.data, "get"):
            clinic_id = request.data.get("clinic_id")
        if clinic_id in (None, ""):
            return True
        return is_clinic_member(request.user, clinic_id)
