import csv
import io

import openpyxl
import pytest
from django.utils import timezone

from leads import services
from leads.models import Stage
from reports.models import SalesReport
from reports.services import (
    export_report_csv,
    export_report_excel,
    export_reports_summary_csv,
    generate_report,
)


def _csv_rows(response):
    text = response.content.decode("utf-8")
    assert text.startswith("﻿")
    return list(csv.reader(io.StringIO(text.lstrip("﻿"))))


@pytest.fixture
def report(lead, make_lead, sales_user, manager_user):
    services.assign_lead(lead.pk, sales_user.pk)
    services.transition_stage(lead.pk, Stage.CLOSED_WON)
    make_lead(customer_name="Rahul Verma", amount="12000")
    return generate_report(floor=1, period="week", submitted_by=manager_user, notes="Week 42")


@pytest.mark.django_db
class TestReportExports:
    def test_csv_has_one_row_per_lead(self, report):
        response = export_report_csv(report)

        rows = _csv_rows(response)
        assert rows[0] == ["Customer Name", "Product", "Amount", "Stage", "Salesperson", "Created Date"]
        body = {row[0]: row for row in rows[1:]}
        assert len(body) == 2
        today = timezone.localdate().strftime("%d/%m/%Y")
        assert body["Priya Sharma"] == ["Priya Sharma", "Pearl Strand", "50000.00", "Closed won", "Rohan Gupta", today]
        assert body["Rahul Verma"][1:5] == ["Product not selected", "12000.00", "Potential", "Unassigned"]

    def test_csv_filename(self, report):
        response = export_report_csv(report)

        day = timezone.localdate().isoformat()
        assert response["Content-Type"].startswith("text/csv")
        assert response["Content-Disposition"] == f'attachment; filename="floor-1-week-report-{day}.csv"'

    def test_excel_export(self, report):
        response = export_report_excel(report)

        assert response["Content-Disposition"].endswith('.xlsx"')
        wb = openpyxl.load_workbook(io.BytesIO(response.content))
        ws = wb.active
        header = [cell.value for cell in ws[1]]
        assert header == ["Customer Name", "Product", "Amount", "Stage", "Salesperson", "Created Date"]
        names = {ws.cell(row=r, column=1).value for r in (2, 3)}
        assert names == {"Priya Sharma", "Rahul Verma"}

    def test_summary_csv_has_one_row_per_report(self, report):
        generate_report(floor=2, period="today")

        response = export_reports_summary_csv(SalesReport.objects.order_by("floor"))

        rows = _csv_rows(response)
        assert rows[0] == [
            "Manager", "Floor", "Period", "Dates", "Total Leads", "Converted", "Revenue", "Notes",
        ]
        assert rows[1][0] == "Vikram User"
        assert rows[1][1:3] == ["1", "week"]
        assert rows[1][4:] == ["2", "1", "50000.00", "Week 42"]
        assert rows[2][0] == "System"
        assert rows[2][4] == "0"
