"""Team lookups consumed by the sales pipeline."""
from __future__ import annotations

import uuid
from dataclasses import dataclass

from accounts.models import User


@dataclass(frozen=True)
class Salesperson:
    """Read-only projection of a sales-eligible team member."""

    id: str
    name: str
    email: str
    role: str
    floor: int | None
    active_lead_count: int | None = None


def sales_eligible_users(floor: int | None = None):
    """Active users holding a sales role, optionally restricted to *floor*."""
    qs = User.objects.filter(is_active=True, role__in=User.SALES_ROLES)
    if floor is not None:
        qs = qs.filter(floor=floor)
    return qs.order_by("first_name", "last_name")


def to_salesperson(user: User, active_lead_count: int | None = None) -> Salesperson:
    return Salesperson(
        id=str(user.pk),
        name=user.get_full_name() or user.email,
        email=user.email,
        role=user.role,
        floor=user.floor,
        active_lead_count=active_lead_count,
    )


def get_salespeople(floor: int) -> list[Salesperson]:
    """Return the salespeople working on *floor*."""
    return [to_salesperson(user) for user in sales_eligible_users(floor)]


def get_salesperson(floor: int, salesperson_id) -> Salesperson | None:
    """Return the salesperson with *salesperson_id* on *floor*, or None."""
    try:
        pk = uuid.UUID(str(salesperson_id))
    except (TypeError, ValueError):
        return None
    user = sales_eligible_users(floor).filter(pk=pk).first()
    return to_salesperson(user) if user else None
