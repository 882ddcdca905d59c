"""CSV rendering of payroll reports."""

import csv
import io

from escala.core.types import PayrollReport

CSV_COLUMNS = (
    "employee_id",
    "name",
    "hours_40h",
    "hours_20h",
    "paid_hours",
    "gross_40h",
    "gross_20h",
    "gross_value",
    "days_off",
    "lost_hours",
    "lost_value",
)


def payroll_report_to_csv(report: PayrollReport) -> str:
    """
    One row per employee followed by a TOTAL row with the net figures.

    Uses ';' as delimiter so spreadsheet locales with decimal commas open it.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=";")
    writer.writerow([*CSV_COLUMNS, "net_value"])

    for row in report["per_employee"]:
        writer.writerow([*(row[column] for column in CSV_COLUMNS), ""])

    totals = report["totals"]
    writer.writerow(
        [
            "TOTAL",
            "",
            totals["hours_40h"],
            totals["hours_20h"],
            totals["paid_hours"],
            totals["gross_40h"],
            totals["gross_20h"],
            totals["gross_value"],
            totals["days_off"],
            totals["lost_hours"],
            totals["lost_value"],
            totals["net_value"],
        ]
    )
    return buffer.getvalue()
