"""Report rendering and persistence."""

from bulk_uploader.report.aggregator import ReportAggregator, report_file_name
from bulk_uploader.report.console import preview_tasks, print_report
from bulk_uploader.report.render import (
    format_duration,
    generate_summary,
    render,
    render_csv,
    render_json,
    report_frame,
    report_to_dict,
)

__all__ = [
    "ReportAggregator",
    "format_duration",
    "generate_summary",
    "preview_tasks",
    "print_report",
    "render",
    "render_csv",
    "render_json",
    "report_file_name",
    "report_frame",
    "report_to_dict",
]
