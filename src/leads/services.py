"""Lead store, stage transitions and assignment.

All lead mutations go through this module: each runs in its own
transaction with a row lock on the lead, writes an audit entry and lets the
``post_save`` receiver in ``leads.signals`` announce the change once the
transaction commits.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from accounts.services import get_salespeople, get_salesperson
from catalog.services import get_product
from core.services import create_audit_log
from leads import stages
from leads.exceptions import InvalidAssignee, LeadValidationError, NotFound
from leads.models import Lead
from leads.retry import no_retry_transient, retry_transient

logger = logging.getLogger("jewellery")

EDITABLE_FIELDS = (
    "customer_name",
    "customer_phone",
    "customer_email",
    "product",
    "interest",
    "amount",
    "notes",
    "visited_at",
)
DEDICATED_FIELDS = {
    "floor": "The floor of a lead cannot change.",
    "stage": "Use the stage transition to move a lead.",
    "assigned_to": "Use assign or unassign to change the salesperson.",
}

REQUIRED = "This field is required."


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _snapshot(lead: Lead) -> dict:
    return {
        "customer_name": lead.customer_name,
        "customer_phone": lead.customer_phone,
        "customer_email": lead.customer_email,
        "product": str(lead.product_id) if lead.product_id else None,
        "interest": lead.interest,
        "amount": str(lead.amount),
        "stage": lead.stage,
        "assigned_to": str(lead.assigned_to_id) if lead.assigned_to_id else None,
        "notes": lead.notes,
    }


def _parse_uuid(value):
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def _lead_queryset(lead_id, *, lock=False):
    pk = _parse_uuid(lead_id)
    if pk is None:
        raise NotFound(f"Lead {lead_id} does not exist.")
    qs = Lead.objects.select_for_update() if lock else Lead.objects.select_related(
        "product", "assigned_to",
    )
    lead = qs.filter(pk=pk).first()
    if lead is None:
        raise NotFound(f"Lead {lead_id} does not exist.")
    return lead


def _clean_text(value) -> str:
    return (value or "").strip()


def _clean_amount(value, errors):
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        errors["amount"] = "Enter a valid amount."
        return None
    if not amount.is_finite():
        errors["amount"] = "Enter a valid amount."
        return None
    if amount < 0:
        errors["amount"] = "Amount cannot be negative."
        return None
    return amount.quantize(Decimal("0.01"))


def _clean_visited_at(value, errors):
    """Accept a datetime, a date, or an ISO string of either."""
    if isinstance(value, str):
        try:
            value = parse_datetime(value) or parse_date(value)
        except ValueError:
            value = None
    if isinstance(value, date) and not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if not isinstance(value, datetime):
        errors["visited_at"] = "Enter a valid date and time."
        return None
    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    return value


def _resolve_product(product, errors):
    """Return the catalog entry for *product* (instance or id), or None."""
    if product in (None, ""):
        return None
    product_id = getattr(product, "pk", product)
    info = get_product(product_id)
    if info is None:
        errors["product"] = "Unknown product."
    return info


def _parse_floor(floor, errors):
    try:
        floor = int(floor)
    except (TypeError, ValueError):
        errors["floor"] = "Floor must be a positive number."
        return None
    if floor < 1:
        errors["floor"] = "Floor must be a positive number."
        return None
    return floor


# ---------------------------------------------------------------------------
# Lead store
# ---------------------------------------------------------------------------

@no_retry_transient
def create_lead(
    *,
    floor,
    customer_name,
    customer_phone,
    customer_email="",
    product=None,
    interest="",
    amount=None,
    notes="",
    visited_at=None,
    actor=None,
) -> Lead:
    """Open a new lead at stage ``potential``.

    When a product is selected and no amount is given, the amount defaults
    to the product's current price.
    """
    errors = {}
    floor = _parse_floor(floor, errors)
    customer_name = _clean_text(customer_name)
    customer_phone = _clean_text(customer_phone)
    interest = _clean_text(interest)
    if not customer_name:
        errors["customer_name"] = REQUIRED
    if not customer_phone:
        errors["customer_phone"] = REQUIRED
    product_info = _resolve_product(product, errors)
    if product in (None, "") and not interest:
        errors["product"] = "Select a product or describe what the customer is interested in."
    if amount in (None, ""):
        amount = product_info.price if product_info else Decimal("0.00")
    amount = _clean_amount(amount, errors)
    if visited_at is None:
        visited_at = timezone.now()
    else:
        visited_at = _clean_visited_at(visited_at, errors)
    if errors:
        raise LeadValidationError(errors)

    with transaction.atomic():
        lead = Lead.objects.create(
            floor=floor,
            customer_name=customer_name,
            customer_phone=customer_phone,
            customer_email=_clean_text(customer_email),
            product_id=uuid.UUID(product_info.id) if product_info else None,
            interest=interest,
            amount=amount,
            notes=notes or "",
            visited_at=visited_at,
        )
        create_audit_log(
            actor=actor,
            action="LEAD_CREATE",
            entity_type="Lead",
            entity_id=str(lead.pk),
            floor=lead.floor,
            after=_snapshot(lead),
        )
    logger.info("Lead %s created on floor %s (amount %s)", lead.pk, lead.floor, lead.amount)
    return lead


@no_retry_transient
def update_lead(lead_id, *, actor=None, **fields) -> Lead:
    """Merge editable *fields* into the lead. Last write wins."""
    errors = {}
    for name in fields:
        if name in DEDICATED_FIELDS or name.endswith("_id") and name[:-3] in DEDICATED_FIELDS:
            errors[name] = DEDICATED_FIELDS.get(name) or DEDICATED_FIELDS[name[:-3]]
        elif name not in EDITABLE_FIELDS:
            errors[name] = "This field cannot be edited."
    if errors:
        raise LeadValidationError(errors)

    with transaction.atomic():
        lead = _lead_queryset(lead_id, lock=True)
        before = _snapshot(lead)

        for name in ("customer_name", "customer_phone"):
            if name in fields:
                value = _clean_text(fields[name])
                if not value:
                    errors[name] = REQUIRED
                setattr(lead, name, value)
        if "customer_email" in fields:
            lead.customer_email = _clean_text(fields["customer_email"])
        if "interest" in fields:
            lead.interest = _clean_text(fields["interest"])
        if "notes" in fields:
            lead.notes = fields["notes"] or ""
        if "visited_at" in fields:
            lead.visited_at = _clean_visited_at(fields["visited_at"], errors)
        if "product" in fields:
            product_info = _resolve_product(fields["product"], errors)
            lead.product_id = uuid.UUID(product_info.id) if product_info else None
            if product_info and "amount" not in fields:
                lead.amount = product_info.price
        if "amount" in fields:
            lead.amount = _clean_amount(fields["amount"], errors)
        if not lead.product_id and not lead.interest and "product" not in errors:
            errors["product"] = "Select a product or describe what the customer is interested in."
        if errors:
            raise LeadValidationError(errors)

        lead.save()
        create_audit_log(
            actor=actor,
            action="LEAD_UPDATE",
            entity_type="Lead",
            entity_id=str(lead.pk),
            floor=lead.floor,
            before=before,
            after=_snapshot(lead),
        )
    logger.info("Lead %s updated (%s)", lead.pk, ", ".join(sorted(fields)) or "touch")
    return lead


@retry_transient
def get_lead(lead_id) -> Lead:
    return _lead_queryset(lead_id)


def lead_queryset(
    *,
    queryset=None,
    floor=None,
    stage=None,
    assigned_to=None,
    created_from=None,
    created_to=None,
    search=None,
):
    """Filtered queryset of leads, newest first."""
    if queryset is None:
        queryset = Lead.objects.all()
    qs = queryset.select_related("product", "assigned_to").order_by("-created_at")
    if floor is not None:
        qs = qs.filter(floor=floor)
    if stage:
        qs = qs.filter(stage=stage)
    if assigned_to:
        if assigned_to == "unassigned":
            qs = qs.filter(assigned_to__isnull=True)
        else:
            pk = _parse_uuid(assigned_to)
            if pk is None:
                return qs.none()
            qs = qs.filter(assigned_to_id=pk)
    if created_from is not None:
        qs = qs.filter(created_at__gte=created_from)
    if created_to is not None:
        qs = qs.filter(created_at__lte=created_to)
    if search:
        qs = qs.filter(
            Q(customer_name__icontains=search)
            | Q(customer_phone__icontains=search)
            | Q(customer_email__icontains=search)
            | Q(product__name__icontains=search)
            | Q(interest__icontains=search)
        )
    return qs


@retry_transient
def list_leads(**filters) -> list[Lead]:
    return list(lead_queryset(**filters))


# ---------------------------------------------------------------------------
# Stage transitions
# ---------------------------------------------------------------------------

@no_retry_transient
def transition_stage(lead_id, target_stage, *, actor=None) -> Lead:
    """Move a lead to *target_stage*.

    Closed leads and unknown stage names raise ``InvalidTransition``.
    Requesting the current stage of an open lead only bumps ``updated_at``.
    """
    with transaction.atomic():
        lead = _lead_queryset(lead_id, lock=True)
        target = stages.check_transition(lead.stage, target_stage)
        old_stage = lead.stage
        lead.stage = target
        lead.closed_at = timezone.now() if stages.is_terminal(target) else None
        lead.save()
        create_audit_log(
            actor=actor,
            action="LEAD_MOVE_STAGE",
            entity_type="Lead",
            entity_id=str(lead.pk),
            floor=lead.floor,
            before={"stage": old_stage},
            after={"stage": target},
        )
    logger.info("Lead %s moved %s -> %s", lead.pk, old_stage, target)
    return lead


# ---------------------------------------------------------------------------
# Assignment
# ---------------------------------------------------------------------------

@retry_transient
def assign_lead(lead_id, salesperson_id, *, actor=None) -> Lead:
    """Hand the lead to a salesperson of its floor. Safe to repeat."""
    lead = _lead_queryset(lead_id, lock=True)
    salesperson = get_salesperson(lead.floor, salesperson_id)
    if salesperson is None:
        raise InvalidAssignee(
            errors={"salesperson_id": "No active salesperson with this id works on this floor."},
        )
    if str(lead.assigned_to_id) == salesperson.id:
        return lead

    previous = str(lead.assigned_to_id) if lead.assigned_to_id else None
    lead.assigned_to_id = uuid.UUID(salesperson.id)
    lead.save()
    create_audit_log(
        actor=actor,
        action="LEAD_ASSIGN",
        entity_type="Lead",
        entity_id=str(lead.pk),
        floor=lead.floor,
        before={"assigned_to": previous},
        after={"assigned_to": salesperson.id},
    )
    logger.info("Lead %s assigned to %s", lead.pk, salesperson.id)
    return lead


@retry_transient
def unassign_lead(lead_id, *, actor=None) -> Lead:
    lead = _lead_queryset(lead_id, lock=True)
    if lead.assigned_to_id is None:
        return lead
    previous = str(lead.assigned_to_id)
    lead.assigned_to = None
    lead.save()
    create_audit_log(
        actor=actor,
        action="LEAD_UNASSIGN",
        entity_type="Lead",
        entity_id=str(lead.pk),
        floor=lead.floor,
        before={"assigned_to": previous},
        after={"assigned_to": None},
    )
    logger.info("Lead %s unassigned from %s", lead.pk, previous)
    return lead


@retry_transient
def active_lead_count(salesperson_id) -> int:
    """Open leads currently assigned to *salesperson_id*."""
    pk = _parse_uuid(salesperson_id)
    if pk is None:
        return 0
    return (
        Lead.objects.filter(assigned_to_id=pk)
        .exclude(stage__in=stages.TERMINAL_STAGES)
        .count()
    )


@retry_transient
def list_salespeople_with_load(floor):
    """Salespeople of *floor* with their open lead count."""
    people = get_salespeople(floor)
    counts = dict(
        Lead.objects.filter(assigned_to_id__in=[p.id for p in people])
        .exclude(stage__in=stages.TERMINAL_STAGES)
        .order_by()
        .values("assigned_to_id")
        .annotate(n=Count("id"))
        .values_list("assigned_to_id", "n")
    )
    counts = {str(k): v for k, v in counts.items()}
    return [replace(p, active_lead_count=counts.get(p.id, 0)) for p in people]
