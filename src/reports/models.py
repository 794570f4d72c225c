"""Models for the reports app."""
from django.conf import settings
from django.db import models

from core.models import TimeStampedModel


class ImmutableReportError(Exception):
    """Raised when something tries to rewrite a stored sales report."""


class SalesReport(TimeStampedModel):
    """Snapshot of a floor's leads over a period.

    Written once by ``reports.services.generate_report``. Product names,
    prices and salesperson names are copied into ``report_data`` at
    generation time, so later catalog or team edits never change a report.
    """

    class Period(models.TextChoices):
        TODAY = "today", "Today"
        WEEK = "week", "This week"
        MONTH = "month", "This month"

    floor = models.PositiveSmallIntegerField("floor", db_index=True)
    period = models.CharField("period", max_length=10, choices=Period.choices)
    start_date = models.DateTimeField("start")
    end_date = models.DateTimeField("end")
    notes = models.TextField("notes", blank=True, default="")
    submitted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="submitted_reports",
        verbose_name="submitted by",
    )
    report_data = models.JSONField("report data", default=list, blank=True)
    summary = models.JSONField("summary", default=dict, blank=True)

    class Meta:
        verbose_name = "sales report"
        verbose_name_plural = "sales reports"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["floor", "created_at"], name="report_floor_created_idx"),
        ]

    def __str__(self):
        return f"Floor {self.floor} {self.get_period_display()} ({self.start_date:%Y-%m-%d})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableReportError("Sales reports cannot be modified once generated.")
        super().save(*args, **kwargs)
