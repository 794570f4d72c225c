"""Service functions for the reports app.

Reports aggregate a floor's leads over a period into an immutable
:class:`~reports.models.SalesReport`. Views stay thin and Celery tasks reuse
the same code path.
"""
import calendar
import logging
import uuid
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from django.db import transaction
from django.http import HttpResponse
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from catalog.services import get_products
from core.export import rows_to_csv_response
from core.services import create_audit_log
from leads.exceptions import LeadValidationError, NotFound
from leads.models import Stage
from leads.retry import no_retry_transient, retry_transient
from leads.services import lead_queryset
from reports.models import SalesReport

logger = logging.getLogger("jewellery")

NO_PRODUCT = "Product not selected"
UNASSIGNED = "Unassigned"
ZERO = Decimal("0.00")


# ---------------------------------------------------------------------------
# Periods
# ---------------------------------------------------------------------------

def resolve_period(period, today=None):
    """Return the ``(start, end)`` aware datetimes covered by *period*.

    ``week`` runs Monday to Sunday; on a Sunday it is the week that started
    six days earlier. ``end`` is the last microsecond of the final day.
    """
    if today is None:
        today = timezone.localdate()
    elif isinstance(today, datetime):
        today = timezone.localtime(today).date() if timezone.is_aware(today) else today.date()

    if period == SalesReport.Period.TODAY:
        first = last = today
    elif period == SalesReport.Period.WEEK:
        first = today - timedelta(days=today.weekday())
        last = first + timedelta(days=6)
    elif period == SalesReport.Period.MONTH:
        first = today.replace(day=1)
        last = date(today.year, today.month, calendar.monthrange(today.year, today.month)[1])
    else:
        raise LeadValidationError(
            {"period": f"Choose one of: {', '.join(SalesReport.Period.values)}."},
        )

    tz = timezone.get_current_timezone()
    start = timezone.make_aware(datetime.combine(first, time.min), tz)
    end = timezone.make_aware(datetime.combine(last, time.max), tz)
    return start, end


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

def _salesperson_name(user):
    if user is None:
        return UNASSIGNED
    return user.get_full_name() or user.email


def _enrich(leads):
    """Copy each lead with the product and salesperson details of right now."""
    products = get_products(str(lead.product_id) for lead in leads if lead.product_id)
    rows = []
    for lead in leads:
        product = products.get(str(lead.product_id)) if lead.product_id else None
        rows.append({
            "id": str(lead.pk),
            "customer_name": lead.customer_name,
            "customer_phone": lead.customer_phone,
            "floor": lead.floor,
            "stage": lead.stage,
            "amount": str(lead.amount),
            "product_id": str(lead.product_id) if lead.product_id else None,
            "product_name": product.name if product else NO_PRODUCT,
            "product_price": str(product.price) if product else "0.00",
            "interest": lead.interest,
            "assigned_to": str(lead.assigned_to_id) if lead.assigned_to_id else None,
            "salesperson_name": _salesperson_name(lead.assigned_to),
            "visited_at": lead.visited_at.isoformat() if lead.visited_at else None,
            "created_at": lead.created_at.isoformat(),
        })
    return rows


def summarize(rows):
    """Totals over enriched report rows."""
    by_stage = {stage: 0 for stage in Stage.values}
    by_salesperson = {}
    total_amount = ZERO
    total_revenue = ZERO

    for row in rows:
        amount = Decimal(row["amount"])
        won = row["stage"] == Stage.CLOSED_WON
        by_stage[row["stage"]] = by_stage.get(row["stage"], 0) + 1
        total_amount += amount
        if won:
            total_revenue += amount

        person = by_salesperson.setdefault(row["assigned_to"], {
            "salesperson_id": row["assigned_to"],
            "name": row["salesperson_name"],
            "leads": 0,
            "converted": 0,
            "revenue": ZERO,
        })
        person["leads"] += 1
        if won:
            person["converted"] += 1
            person["revenue"] += amount

    total = len(rows)
    converted = by_stage[Stage.CLOSED_WON]
    lost = by_stage[Stage.CLOSED_LOST]
    people = sorted(by_salesperson.values(), key=lambda p: (-p["revenue"], p["name"]))
    for person in people:
        person["revenue"] = str(person["revenue"])

    return {
        "total_leads": total,
        "converted_leads": converted,
        "lost_leads": lost,
        "open_leads": total - converted - lost,
        "total_amount": str(total_amount),
        "total_revenue": str(total_revenue),
        "conversion_rate": round(converted / total * 100, 1) if total else 0.0,
        "by_stage": by_stage,
        "by_salesperson": people,
    }


@no_retry_transient
def generate_report(*, floor, period, submitted_by=None, notes="", today=None):
    """Snapshot the leads of *floor* created during *period*."""
    try:
        floor = int(floor)
    except (TypeError, ValueError):
        raise LeadValidationError({"floor": "Floor must be a positive number."})
    if floor < 1:
        raise LeadValidationError({"floor": "Floor must be a positive number."})
    start, end = resolve_period(period, today=today)

    with transaction.atomic():
        leads = list(lead_queryset(floor=floor, created_from=start, created_to=end))
        rows = _enrich(leads)
        summary = summarize(rows)
        report = SalesReport.objects.create(
            floor=floor,
            period=period,
            start_date=start,
            end_date=end,
            notes=notes or "",
            submitted_by=submitted_by if getattr(submitted_by, "is_authenticated", False) else None,
            report_data=rows,
            summary=summary,
        )
        create_audit_log(
            actor=submitted_by,
            action="REPORT_GENERATE",
            entity_type="SalesReport",
            entity_id=str(report.pk),
            floor=floor,
            after={
                "period": period,
                "start_date": start.isoformat(),
                "end_date": end.isoformat(),
                "total_leads": summary["total_leads"],
                "total_revenue": summary["total_revenue"],
            },
        )
    logger.info(
        "Report %s generated for floor %s (%s): %d leads, revenue %s",
        report.pk, floor, period, summary["total_leads"], summary["total_revenue"],
    )
    return report


@retry_transient
def get_report(report_id):
    try:
        pk = uuid.UUID(str(report_id))
    except (TypeError, ValueError):
        raise NotFound(f"Report {report_id} does not exist.")
    report = SalesReport.objects.select_related("submitted_by").filter(pk=pk).first()
    if report is None:
        raise NotFound(f"Report {report_id} does not exist.")
    return report


def list_reports(floor=None):
    """Reports, newest first, optionally restricted to one floor."""
    qs = SalesReport.objects.select_related("submitted_by").order_by("-created_at")
    if floor is not None:
        qs = qs.filter(floor=floor)
    return qs


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

def _row_date(row):
    created = parse_datetime(row.get("created_at") or "")
    if created is None:
        return ""
    return timezone.localtime(created).strftime("%d/%m/%Y")


def _stage_label(row):
    try:
        return Stage(row.get("stage")).label
    except ValueError:
        return row.get("stage") or ""


REPORT_COLUMNS = [
    ("customer_name", "Customer Name"),
    ("product_name", "Product"),
    ("amount", "Amount"),
    (_stage_label, "Stage"),
    ("salesperson_name", "Salesperson"),
    (_row_date, "Created Date"),
]


def report_filename(report):
    day = timezone.localtime(report.created_at).date().isoformat()
    return f"floor-{report.floor}-{report.period}-report-{day}"


def export_report_csv(report):
    """One CSV row per lead captured in *report*."""
    return rows_to_csv_response(report.report_data, REPORT_COLUMNS, report_filename(report))


def export_report_excel(report):
    """Same rows as :func:`export_report_csv`, as an .xlsx workbook."""
    from openpyxl import Workbook
    from openpyxl.styles import Font

    wb = Workbook()
    ws = wb.active
    ws.title = f"Floor {report.floor}"

    ws.append([label for _, label in REPORT_COLUMNS])
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for row in report.report_data:
        values = []
        for field, _ in REPORT_COLUMNS:
            if callable(field):
                values.append(field(row))
            elif field == "amount":
                values.append(float(Decimal(row.get("amount") or "0")))
            else:
                values.append(row.get(field, ""))
        ws.append(values)

    summary = report.summary or {}
    ws.append([])
    ws.append(["Total leads", summary.get("total_leads", 0)])
    ws.append(["Converted", summary.get("converted_leads", 0)])
    ws.append(["Revenue", summary.get("total_revenue", "0.00")])

    response = HttpResponse(
        content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
    response["Content-Disposition"] = f'attachment; filename="{report_filename(report)}.xlsx"'
    wb.save(response)
    return response


def _submitter(report):
    if report.submitted_by is None:
        return "System"
    return report.submitted_by.get_full_name() or report.submitted_by.email


def _period_range(report):
    start = timezone.localtime(report.start_date).strftime("%d/%m/%Y")
    end = timezone.localtime(report.end_date).strftime("%d/%m/%Y")
    return f"{start} - {end}"


SUMMARY_COLUMNS = [
    (_submitter, "Manager"),
    ("floor", "Floor"),
    ("period", "Period"),
    (_period_range, "Dates"),
    (lambda r: (r.summary or {}).get("total_leads", 0), "Total Leads"),
    (lambda r: (r.summary or {}).get("converted_leads", 0), "Converted"),
    (lambda r: (r.summary or {}).get("total_revenue", "0.00"), "Revenue"),
    ("notes", "Notes"),
]


def export_reports_summary_csv(reports):
    """One row per report, for the admin overview download."""
    filename = f"sales-reports-summary-{timezone.localdate().isoformat()}"
    return rows_to_csv_response(reports, SUMMARY_COLUMNS, filename)
