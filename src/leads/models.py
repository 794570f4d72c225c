"""Models for the sales lead pipeline."""
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from core.models import TimeStampedModel


class Stage(models.TextChoices):
    POTENTIAL = "potential", "Potential"
    DEMO = "demo", "Demo"
    PROPOSAL = "proposal", "Proposal"
    NEGOTIATION = "negotiation", "Negotiation"
    CLOSED_WON = "closed_won", "Closed won"
    CLOSED_LOST = "closed_lost", "Closed lost"


class Lead(TimeStampedModel):
    """A walk-in customer's deal, tracked from first visit to close.

    ``floor`` partitions leads between sales floors and never changes after
    creation. ``stage`` and ``assigned_to`` only move through
    ``leads.services``.
    """

    Stage = Stage

    floor = models.PositiveSmallIntegerField("floor", db_index=True)
    customer_name = models.CharField("customer name", max_length=255)
    customer_phone = models.CharField("customer phone", max_length=30)
    customer_email = models.EmailField("customer email", blank=True, default="")
    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="leads",
        verbose_name="product",
    )
    interest = models.CharField("interest", max_length=255, blank=True, default="")
    amount = models.DecimalField(
        "amount",
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    stage = models.CharField(
        "stage",
        max_length=20,
        choices=Stage.choices,
        default=Stage.POTENTIAL,
        db_index=True,
    )
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_leads",
        verbose_name="assigned to",
    )
    notes = models.TextField("notes", blank=True, default="")
    visited_at = models.DateTimeField("visited at", default=timezone.now)
    closed_at = models.DateTimeField("closed at", null=True, blank=True)

    class Meta:
        verbose_name = "lead"
        verbose_name_plural = "leads"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["floor", "stage"], name="lead_floor_stage_idx"),
            models.Index(fields=["floor", "created_at"], name="lead_floor_created_idx"),
            models.Index(fields=["assigned_to", "stage"], name="lead_assignee_stage_idx"),
        ]

    def __str__(self):
        return f"{self.customer_name} ({self.get_stage_display()})"

    @property
    def last_updated(self):
        return self.updated_at
