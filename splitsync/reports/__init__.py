"""Report export package."""

from splitsync.reports.csv_export import (
    REPORT_HEADERS,
    export_group_csv,
    report_filename,
)

__all__ = ["REPORT_HEADERS", "export_group_csv", "report_filename"]
