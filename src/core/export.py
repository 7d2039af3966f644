"""CSV export utilities."""
import csv
from decimal import Decimal

from django.http import HttpResponse


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    return str(value)


def rows_to_csv_response(rows, columns, filename):
    """Write ``rows`` to a downloadable CSV HttpResponse.

    Args:
        rows: any iterable of objects or dicts
        columns: list of (field_name_or_callable, header_label) tuples.
            A string is looked up as a dict key or attribute; a callable is
            called with the row.
        filename: download filename (without extension)
    """
    response = HttpResponse(content_type="text/csv; charset=utf-8")
    response["Content-Disposition"] = f'attachment; filename="{filename}.csv"'
    # UTF-8 BOM for Excel compatibility
    response.write("\ufeff")

    writer = csv.writer(response)
    writer.writerow([col[1] for col in columns])

    for row in rows:
        cells = []
        for field, _ in columns:
            if callable(field):
                cells.append(_cell(field(row)))
            elif isinstance(row, dict):
                cells.append(_cell(row.get(field)))
            else:
                cells.append(_cell(getattr(row, field, "")))
        writer.writerow(cells)

    return response


def queryset_to_csv_response(queryset, columns, filename):
    """Convert a queryset to a CSV HttpResponse, streaming with ``iterator()``."""
    return rows_to_csv_response(queryset.iterator(), columns, filename)
