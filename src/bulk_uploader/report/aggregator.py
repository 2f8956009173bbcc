"""Persist execution reports as uniquely named artifacts."""

import logging
from datetime import datetime
from pathlib import Path
from uuid import uuid4

from bulk_uploader.config import ReportConfig, ReportFormat
from bulk_uploader.models import ExecutionReport
from bulk_uploader.report.render import generate_summary, render

logger = logging.getLogger(__name__)

FILE_PREFIX = "bulk-upload-report"


def report_file_name(extension: str, now: datetime | None = None) -> str:
    """``bulk-upload-report-<YYYYmmdd-HHMMSS>-<6 hex>.<ext>``; never reused across runs."""
    stamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
    return f"{FILE_PREFIX}-{stamp}-{uuid4().hex[:6]}.{extension}"


class ReportAggregator:
    """Renders a report and writes it into the report directory."""

    def __init__(self, directory: Path, fmt: ReportFormat = "json"):
        self.directory = Path(directory)
        self.fmt = fmt

    @classmethod
    def from_config(cls, config: ReportConfig) -> "ReportAggregator":
        return cls(config.directory, config.format)

    def write(self, report: ExecutionReport) -> str:
        """
        Write the report artifact.

        Returns:
            Path of the written file, or ``"(failed to write report: ...)"``
            when it could not be written
        """
        logger.info("Generating report for execution: %s", report.execution_id)
        try:
            content = render(report, self.fmt)
            self.directory.mkdir(parents=True, exist_ok=True)
            path = self.directory / report_file_name(self.fmt)
            path.write_text(content, encoding="utf-8")
        except (OSError, ValueError) as e:
            logger.error("Failed to generate report: %s", e)
            return f"(failed to write report: {e})"

        logger.info("Report generated successfully: %s", path)
        return str(path)

    def summary(self, report: ExecutionReport) -> str:
        return generate_summary(report)
