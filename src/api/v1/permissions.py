"""Role checks and floor scoping for the pipeline API."""
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.permissions import SAFE_METHODS, BasePermission

from accounts.models import User


def _is_admin(user):
    return bool(getattr(user, "is_superuser", False) or getattr(user, "role", None) == User.Role.ADMIN)


def _is_manager_or_admin(user):
    return _is_admin(user) or getattr(user, "role", None) == User.Role.FLOOR_MANAGER


class IsAdmin(BasePermission):
    """Business admins only (cross-floor views and exports)."""

    def has_permission(self, request, view):
        return request.user.is_authenticated and _is_admin(request.user)


class IsManagerOrAdmin(BasePermission):
    """Allow access to floor managers and admins."""

    def has_permission(self, request, view):
        return request.user.is_authenticated and _is_manager_or_admin(request.user)


class CanWorkLeads(BasePermission):
    """Everyone on the floor may read; sales staff and managers may write."""

    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        if request.method in SAFE_METHODS:
            return True
        return _is_manager_or_admin(request.user) or request.user.role in User.SALES_ROLES


def _requested_floor(request):
    floor = request.query_params.get("floor")
    # A body ``floor`` only picks the floor of a new record.
    if floor in (None, "") and request.method == "POST" and isinstance(request.data, dict):
        floor = request.data.get("floor")
    if floor in (None, ""):
        return None
    try:
        floor = int(floor)
    except (TypeError, ValueError):
        raise ValidationError({"floor": "Floor must be a positive number."})
    if floor < 1:
        raise ValidationError({"floor": "Floor must be a positive number."})
    return floor


def resolve_floor(request, *, required=True):
    """Return the floor the request works on.

    Admins may pick any floor with ``?floor=``; everybody else is pinned to
    their own floor. Returns ``None`` only for admins with ``required=False``
    and no floor given, meaning "all floors".
    """
    user = request.user
    floor = _requested_floor(request)
    if _is_admin(user):
        if floor is None and required:
            raise ValidationError({"floor": "This field is required."})
        return floor

    if user.floor is None:
        raise PermissionDenied("No sales floor is set for this user.")
    if floor is not None and floor != user.floor:
        raise PermissionDenied("You do not have access to this floor.")
    return user.floor
