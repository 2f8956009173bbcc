"""Rich console rendering of tasks and reports."""

from rich.console import Console
from rich.table import Table

from bulk_uploader.models import ExecutionReport, ExecutionStatus, UploadTask
from bulk_uploader.report.render import format_duration

STATUS_STYLES = {
    ExecutionStatus.COMPLETED: "green",
    ExecutionStatus.COMPLETED_WITH_ERRORS: "yellow",
    ExecutionStatus.ABORTED: "red",
    ExecutionStatus.FAILED: "red",
}


def preview_tasks(tasks: list[UploadTask], console: Console, limit: int = 10):
    """Show the first few normalized tasks."""
    table = Table(title=f"Preview (first {min(limit, len(tasks))} of {len(tasks)})", show_header=True)
    table.add_column("#", style="dim")
    table.add_column("Document ID")
    table.add_column("File")
    table.add_column("Valid", justify="center")
    table.add_column("Issue")

    for task in tasks[:limit]:
        table.add_row(
            str(task.index),
            task.document_id[:36],
            (task.file_path or "-")[:60],
            "[green]yes[/green]" if task.file_valid else "[red]no[/red]",
            task.file_validation_error or "",
        )

    console.print(table)


def print_report(report: ExecutionReport, console: Console | None = None, failure_limit: int = 20):
    """Print run summary and failed documents."""
    if console is None:
        console = Console()

    style = STATUS_STYLES.get(report.status, "white")
    console.print(f"\n[bold]Execution {report.execution_id}:[/bold] [{style}]{report.status.value}[/{style}]")
    if report.error_message:
        console.print(f"  [red]{report.error_message}[/red]")

    summary = Table(show_header=True, header_style="bold")
    summary.add_column("Metric")
    summary.add_column("Value", justify="right")
    summary.add_row("Total documents", str(report.total))
    summary.add_row("Successful", str(report.succeeded))
    summary.add_row("Failed", str(report.failed))
    summary.add_row("Skipped", str(report.skipped))
    summary.add_row("Errors", str(report.errored))
    summary.add_row("Success rate", f"{report.success_rate:.2f}%")
    summary.add_row("Duration", format_duration(report.duration_ms))
    console.print(summary)

    if not report.failures:
        return

    console.print(f"\n[bold]Failed Documents ({len(report.failures)}):[/bold]")
    failures = Table(show_header=True, header_style="bold")
    failures.add_column("#", style="dim")
    failures.add_column("File")
    failures.add_column("HTTP", justify="right")
    failures.add_column("Attempts", justify="right")
    failures.add_column("Error")

    for result in report.failures[:failure_limit]:
        failures.add_row(
            str(result.task.index),
            (result.task.file_path or "-")[:60],
            str(result.http_status) if result.http_status is not None else "-",
            str(result.attempt_count),
            result.last_error_message or "",
        )

    console.print(failures)
