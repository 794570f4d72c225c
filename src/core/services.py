"""Service / helper functions shared across apps."""
from __future__ import annotations

from typing import Any

from core.models import AuditLog


def create_audit_log(
    actor,
    action: str,
    entity_type: str,
    entity_id: str,
    floor: int | None = None,
    before: dict[str, Any] | None = None,
    after: dict[str, Any] | None = None,
) -> AuditLog:
    """Create and return a new :class:`~core.models.AuditLog` entry."""
    if actor is not None and not getattr(actor, "is_authenticated", False):
        actor = None
    return AuditLog.objects.create(
        actor=actor,
        floor=floor,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        before_json=before,
        after_json=after,
    )
