"""Serialize execution reports as full JSON, tabular CSV, or a text summary."""

import json
from datetime import datetime
from typing import Any

import polars as pl

from bulk_uploader.models import ExecutionReport, UploadResult, UploadStatus

CSV_SCHEMA = {
    "Index": pl.Int64,
    "DocumentId": pl.Utf8,
    "FilePath": pl.Utf8,
    "Status": pl.Utf8,
    "HttpStatus": pl.Int64,
    "DurationMs": pl.Int64,
    "Attempts": pl.Int64,
    "ErrorMessage": pl.Utf8,
}


def format_duration(duration_ms: int) -> str:
    """Human-readable duration: ``850ms``, ``12.34s`` or ``3m 5s``."""
    if duration_ms < 1000:
        return f"{duration_ms}ms"
    if duration_ms < 60_000:
        return f"{duration_ms / 1000:.2f}s"
    minutes, remainder = divmod(duration_ms, 60_000)
    return f"{minutes}m {remainder // 1000}s"


def _timestamp(value: datetime | None) -> str:
    return value.isoformat() if value is not None else ""


def result_to_dict(result: UploadResult) -> dict[str, Any]:
    """One entry of the ``results`` section; optional keys appear only when set."""
    task = result.task
    entry: dict[str, Any] = {
        "index": task.index,
        "documentId": task.document_id,
        "filePath": task.file_path,
        "status": result.status.value,
        "startedAt": _timestamp(result.started_at),
        "finishedAt": _timestamp(result.finished_at),
        "durationMs": result.duration_ms,
    }
    if result.http_status is not None:
        entry["httpStatus"] = result.http_status
    if result.attempt_count > 0:
        entry["attempts"] = result.attempt_count
    if result.last_error_message is not None:
        entry["errorMessage"] = result.last_error_message
    if result.failure_kind is not None:
        entry["failureKind"] = result.failure_kind.value
    if result.api_error is not None:
        api_error: dict[str, Any] = {
            "code": result.api_error.errorCode,
            "message": result.api_error.effective_message,
        }
        if result.api_error.traceId is not None:
            api_error["traceId"] = result.api_error.traceId
        entry["apiError"] = api_error
    if result.response_body is not None and result.is_success:
        entry["response"] = result.response_body
    return entry


def _failure_to_dict(result: UploadResult) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "index": result.task.index,
        "filePath": result.task.file_path,
        "error": result.last_error_message,
    }
    if result.http_status is not None:
        entry["httpStatus"] = result.http_status
    return entry


def report_to_dict(report: ExecutionReport) -> dict[str, Any]:
    """Full-detail structure with metadata, summary, results and failures sections."""
    metadata: dict[str, Any] = {
        "executionId": report.execution_id,
        "status": report.status.value,
        "startedAt": _timestamp(report.started_at),
        "finishedAt": _timestamp(report.finished_at),
        "durationMs": report.duration_ms,
        "durationFormatted": format_duration(report.duration_ms),
        "manifestPath": report.manifest_source,
    }
    if report.secondary_manifest_source is not None:
        metadata["secondaryManifestPath"] = report.secondary_manifest_source
    if report.error_message is not None:
        metadata["errorMessage"] = report.error_message

    data: dict[str, Any] = {
        "metadata": metadata,
        "summary": {
            "totalDocuments": report.total,
            "successful": report.succeeded,
            "failed": report.failed,
            "skipped": report.skipped,
            "errors": report.errored,
            "successRate": f"{report.success_rate:.2f}%",
        },
        "results": [result_to_dict(r) for r in report.results],
    }
    failures = [r for r in report.failures if r.status == UploadStatus.FAILED]
    if failures:
        data["failures"] = [_failure_to_dict(r) for r in failures]
    return data


def render_json(report: ExecutionReport) -> str:
    return json.dumps(report_to_dict(report), indent=2, ensure_ascii=False)


def report_frame(report: ExecutionReport) -> pl.DataFrame:
    """One row per result, typed so that an empty report still has every column."""
    results = report.results
    return pl.DataFrame(
        {
            "Index": [r.task.index for r in results],
            "DocumentId": [r.task.document_id for r in results],
            "FilePath": [r.task.file_path for r in results],
            "Status": [r.status.value for r in results],
            "HttpStatus": [r.http_status for r in results],
            "DurationMs": [r.duration_ms for r in results],
            "Attempts": [r.attempt_count for r in results],
            "ErrorMessage": [r.last_error_message for r in results],
        },
        schema=CSV_SCHEMA,
    )


def render_csv(report: ExecutionReport) -> str:
    return report_frame(report).write_csv()


RENDERERS = {
    "json": render_json,
    "csv": render_csv,
}


def render(report: ExecutionReport, fmt: str = "json") -> str:
    """Serialize a report in the named format (``json`` or ``csv``)."""
    try:
        renderer = RENDERERS[fmt.lower()]
    except KeyError:
        raise ValueError(f"Unsupported report format: {fmt}") from None
    return renderer(report)


def generate_summary(report: ExecutionReport) -> str:
    """Multi-line summary suitable for logging."""
    lines = [
        "",
        "BULK UPLOAD EXECUTION SUMMARY",
        f"  Execution ID:    {report.execution_id}",
        f"  Status:          {report.status.value}",
        f"  Duration:        {format_duration(report.duration_ms)}",
        f"  Total Documents: {report.total}",
        f"  Successful:      {report.succeeded}",
        f"  Failed:          {report.failed}",
        f"  Skipped:         {report.skipped}",
        f"  Errors:          {report.errored}",
        f"  Success Rate:    {report.success_rate:.1f}%",
    ]
    if report.error_message:
        lines.append(f"  Error:           {report.error_message}")
    if report.failures:
        lines.append("")
        lines.append("Failed Documents:")
        for failure in report.failures:
            lines.append(f"  - [{failure.task.index}] {failure.task.file_path}: {failure.last_error_message}")
    return "\n".join(lines)
