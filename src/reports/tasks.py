"""Celery tasks for the reports app."""
import logging

from celery import shared_task
from django.conf import settings
from django.utils import timezone

logger = logging.getLogger("jewellery")


@shared_task(
    bind=True,
    name="reports.tasks.generate_floor_report",
    max_retries=3,
    default_retry_delay=30,
)
def generate_floor_report(self, floor, period, submitted_by_id=None, notes=""):
    """Generate one report off the request cycle. Returns the report id."""
    from accounts.models import User
    from leads.exceptions import TransientIO
    from reports.services import generate_report

    submitted_by = None
    if submitted_by_id:
        submitted_by = User.objects.filter(pk=submitted_by_id).first()
    try:
        report = generate_report(
            floor=floor,
            period=period,
            submitted_by=submitted_by,
            notes=notes,
        )
    except TransientIO as exc:
        logger.warning("generate_floor_report floor=%s retrying: %s", floor, exc)
        raise self.retry(exc=exc)
    return str(report.pk)


@shared_task(name="reports.tasks.daily_floor_reports")
def daily_floor_reports():
    """Write a ``today`` report for every floor that saw leads today.

    Runs at the end of each day (see ``config/celery.py`` beat schedule).
    """
    from leads.models import Lead
    from reports.models import SalesReport
    from reports.services import generate_report, resolve_period

    if not settings.REPORTS_DAILY_AUTOSUBMIT:
        logger.info("daily_floor_reports skipped: REPORTS_DAILY_AUTOSUBMIT is off.")
        return "skipped"

    today = timezone.localdate()
    start, end = resolve_period(SalesReport.Period.TODAY, today=today)
    floors = list(
        Lead.objects.filter(created_at__gte=start, created_at__lte=end)
        .order_by("floor")
        .values_list("floor", flat=True)
        .distinct()
    )
    created_count = 0
    failed = []
    for floor in floors:
        try:
            generate_report(
                floor=floor,
                period=SalesReport.Period.TODAY,
                notes="Automatic end-of-day report",
                today=today,
            )
        except Exception:
            logger.exception("daily_floor_reports failed for floor %s", floor)
            failed.append(floor)
            continue
        created_count += 1

    logger.info(
        "daily_floor_reports completed: %d reports created, %d failed.",
        created_count, len(failed),
    )
    if failed:
        return f"{created_count} reports created, {len(failed)} failed"
    return f"{created_count} reports created"
