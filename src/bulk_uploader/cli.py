"""CLI entrypoint for bulk document uploads."""

import sys
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import ValidationError
from rich.console import Console

from bulk_uploader.config import BulkUploadConfig, describe_config, load_config
from bulk_uploader.errors import BulkUploadError, ConfigurationError, ManifestError
from bulk_uploader.log import configure_logging
from bulk_uploader.manifest import parse_manifest_text
from bulk_uploader.models import ExecutionStatus

app = typer.Typer(
    name="bulk-upload",
    help="Upload documents listed in a manifest to a document API",
    no_args_is_help=True,
)
console = Console()

# Default config path (src/bulk_uploader/cli.py -> repo root)
PACKAGE_ROOT = Path(__file__).parent.parent.parent
DEFAULT_CONFIG = PACKAGE_ROOT / "configs" / "bulk_upload.yaml"

STDIN = "-"

ConfigOption = Annotated[Path | None, typer.Option("--config", "-c", help="Config YAML path")]


def _load(config: Path | None) -> BulkUploadConfig:
    """Load config or exit with status 2."""
    if config is None and DEFAULT_CONFIG.exists():
        config = DEFAULT_CONFIG
    try:
        cfg = load_config(config)
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {config}[/red]")
        raise typer.Exit(2)
    except (ValidationError, ValueError) as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(2)

    configure_logging(cfg.logging.level, cfg.logging.file, console=console)
    return cfg


def _manifest_input(manifest: str | None, payload: str | None) -> tuple[Any, str | None]:
    """Resolve the manifest argument to (raw input, source label)."""
    if payload is not None and manifest is not None:
        raise typer.BadParameter("Give either a MANIFEST argument or --payload, not both")
    if payload is not None:
        return payload, None
    if manifest == STDIN:
        return sys.stdin.read(), "(stdin)"
    if manifest is not None:
        return Path(manifest), str(manifest)
    return None, None


@app.command()
def run(
    manifest: Annotated[str | None, typer.Argument(help="Manifest file, or '-' to read JSON from stdin")] = None,
    payload: Annotated[str | None, typer.Option("--payload", help="Manifest JSON given inline")] = None,
    config: ConfigOption = None,
    secondary: Annotated[Path | None, typer.Option(help="Secondary manifest with file locations")] = None,
    report_format: Annotated[str | None, typer.Option("--format", help="Report format: json or csv")] = None,
    report_dir: Annotated[Path | None, typer.Option(help="Directory for the report artifact")] = None,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Validate only, don't upload")] = False,
):
    """Upload every document in a manifest and write a report."""
    from bulk_uploader.pipeline import BulkUploadService
    from bulk_uploader.pipeline.service import PAYLOAD_SOURCE
    from bulk_uploader.report import preview_tasks, print_report

    cfg = _load(config)
    raw_input, source = _manifest_input(manifest, payload)

    if report_format is not None:
        if report_format.lower() not in ("json", "csv"):
            raise typer.BadParameter(f"Unsupported report format: {report_format}", param_hint="--format")
        cfg.report.format = report_format.lower()
    if report_dir is not None:
        cfg.report.directory = report_dir

    service = BulkUploadService(cfg, show_progress=True)

    if dry_run:
        console.print("[bold]Dry run: validating manifest, nothing will be uploaded[/bold]")
        target = raw_input if raw_input is not None else cfg.manifest.path
        if target is None:
            console.print("[red]No manifest given and manifest.path is not configured[/red]")
            raise typer.Exit(2)
        secondary_input = secondary or cfg.manifest.secondary_path
        try:
            validation = service.prepare(target, secondary_input)
        except ManifestError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)
        preview_tasks(validation.tasks, console)
        console.print(f"\nValid: {validation.valid_count}, Invalid: {len(validation.issues)}")
        return

    if not cfg.upload.endpoint:
        console.print("[red]No upload endpoint configured (upload.endpoint or BULK_UPLOAD_ENDPOINT)[/red]")
        raise typer.Exit(2)

    console.print(f"[bold]Target:[/bold] {cfg.upload.endpoint}")
    try:
        if raw_input is None or isinstance(raw_input, Path):
            outcome = service.run_from_path(raw_input, secondary)
        else:
            outcome = service.run_from_payload(
                raw_input,
                source=source or PAYLOAD_SOURCE,
                secondary=secondary or cfg.manifest.secondary_path,
            )
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(2)
    finally:
        service.close()

    print_report(outcome.report, console)
    if outcome.report_written:
        console.print(f"\n[green]Report saved to {outcome.report_path}[/green]")
    else:
        console.print(f"\n[red]{outcome.report_path}[/red]")

    if outcome.status != ExecutionStatus.COMPLETED:
        raise typer.Exit(1)


@app.command()
def validate(
    manifest: Annotated[Path, typer.Argument(help="Manifest file")],
    config: ConfigOption = None,
    secondary: Annotated[Path | None, typer.Option(help="Secondary manifest with file locations")] = None,
):
    """Check a manifest and the files it references without uploading."""
    from bulk_uploader.pipeline import BulkUploadService
    from bulk_uploader.report import preview_tasks

    cfg = _load(config)
    service = BulkUploadService(cfg)

    try:
        validation = service.prepare(manifest, secondary or cfg.manifest.secondary_path)
    except ManifestError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    preview_tasks(validation.tasks, console)
    console.print(f"\n{len(validation.tasks)} tasks, {validation.valid_count} valid")

    if validation.issues:
        console.print(f"\n[red]{len(validation.issues)} issues:[/red]")
        for message in validation.messages:
            console.print(f"  {message}")
        raise typer.Exit(1)

    console.print("[green]All files are valid[/green]")


@app.command()
def consume(config: ConfigOption = None):
    """Process upload requests from the Redis stream until interrupted."""
    from bulk_uploader.pipeline import BulkUploadService
    from bulk_uploader.queue import BulkUploadConsumer, connect

    cfg = _load(config)
    if not cfg.upload.endpoint:
        console.print("[red]No upload endpoint configured (upload.endpoint or BULK_UPLOAD_ENDPOINT)[/red]")
        raise typer.Exit(2)

    service = BulkUploadService(cfg)
    consumer = BulkUploadConsumer(connect(cfg.queue.redis_url), cfg.queue, service.run_from_payload)

    console.print(f"[bold]Listening on {cfg.queue.stream} ({cfg.queue.redis_url})[/bold]")
    try:
        consumer.run_forever()
    except KeyboardInterrupt:
        consumer.stop()
        console.print("\n[yellow]Stopped[/yellow]")
    finally:
        service.close()


@app.command()
def publish(
    manifest: Annotated[Path | None, typer.Argument(help="Manifest file to enqueue")] = None,
    payload: Annotated[str | None, typer.Option("--payload", help="Manifest JSON given inline")] = None,
    config: ConfigOption = None,
):
    """Enqueue a manifest on the Redis stream for a consumer to process."""
    from bulk_uploader.queue import BulkUploadProducer, connect

    cfg = _load(config)
    if (manifest is None) == (payload is None):
        raise typer.BadParameter("Give exactly one of a MANIFEST argument or --payload")

    try:
        text = payload if payload is not None else manifest.read_text(encoding="utf-8")
        document = parse_manifest_text(text, source=str(manifest or "--payload"))
    except OSError as e:
        console.print(f"[red]Could not read {manifest}: {e}[/red]")
        raise typer.Exit(1)
    except BulkUploadError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    producer = BulkUploadProducer(connect(cfg.queue.redis_url), cfg.queue.stream)
    message_id = producer.publish(document)
    console.print(f"[green]Published {message_id} to {cfg.queue.stream}[/green]")


@app.command("show-config")
def show_config(config: ConfigOption = None):
    """Print the effective configuration (header values are not shown)."""
    cfg = _load(config)
    console.print_json(data=describe_config(cfg))


@app.command()
def version():
    """Show version information."""
    from bulk_uploader import __version__

    console.print(f"bulk-uploader version {__version__}")


if __name__ == "__main__":
    app()
