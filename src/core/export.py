"""CSV export utilities."""
import csv

from django.http import HttpResponse


def _cell(row, field):
    if callable(field):
        return field(row)
    if isinstance(row, dict):
        val = row.get(field, "")
    else:
        val = getattr(row, field, "")
    return str(val) if val is not None else ""


def rows_to_csv_response(rows, columns, filename):
    """Convert an iterable of objects or dicts to a CSV HttpResponse.

    Args:
        rows: QuerySet, list of model instances or list of dicts
        columns: list of (field_name_or_callable, header_label) tuples.
            If field_name_or_callable is a string, the attribute (or dict key)
            is read. If it's callable, it's called with the row.
        filename: download filename (without extension)
    """
    response = HttpResponse(content_type="text/csv; charset=utf-8")
    response["Content-Disposition"] = f'attachment; filename="{filename}.csv"'
    # UTF-8 BOM for Excel compatibility
    response.write("\ufeff")

    writer = csv.writer(response)
    writer.writerow([col[1] for col in columns])

    iterator = rows.iterator() if hasattr(rows, "iterator") else rows
    for row in iterator:
        writer.writerow([_cell(row, field) for field, _ in columns])

    return response
