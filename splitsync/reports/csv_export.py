"""
CSV report export for a Group's expense history.

Generated on demand for download; never persisted.
"""

import csv
import io
import re
from datetime import date, datetime, timezone
from typing import Optional

from splitsync.models.ledger import Group


REPORT_HEADERS = ["Date", "Description", "Category", "Paid By", "Amount (INR)"]


def export_group_csv(
    group: Group,
    generated_at: Optional[datetime] = None,
) -> str:
    """
    Render the group's expenses as CSV text.

    Layout: a title row, a "generated on" row, a blank row, the header
    row, then one row per expense in history order (newest first).
    Payers no longer in the group show as "Unknown".
    """
    generated_at = generated_at or datetime.now(timezone.utc)

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([f"Group Report: {group.name}"])
    writer.writerow([f"Generated on: {generated_at.strftime('%Y-%m-%d %H:%M:%S')}"])
    writer.writerow([])
    writer.writerow(REPORT_HEADERS)

    for expense in group.expenses:
        writer.writerow([
            expense.timestamp.date().isoformat(),
            expense.description,
            expense.category.value,
            group.person_name(expense.paid_by_id),
            f"{expense.amount:.2f}",
        ])

    return buffer.getvalue()


def report_filename(group: Group, on: Optional[date] = None) -> str:
    """Download name: Report_<group name, whitespace as _>_<YYYY-MM-DD>.csv"""
    on = on or datetime.now(timezone.utc).date()
    safe_name = re.sub(r"\s+", "_", group.name.strip())
    return f"Report_{safe_name}_{on.isoformat()}.csv"
