"""End-to-end pipeline: normalize, validate, upload, report."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from bulk_uploader.config import BulkUploadConfig
from bulk_uploader.errors import ConfigurationError
from bulk_uploader.manifest import ManifestNormalizer
from bulk_uploader.manifest.loader import INLINE_SOURCE
from bulk_uploader.models import ExecutionReport, ExecutionStatus
from bulk_uploader.pipeline.executor import ABORT_REASON, UploadExecutor
from bulk_uploader.pipeline.validation import TaskValidator, ValidationResult
from bulk_uploader.report import ReportAggregator
from bulk_uploader.transport import HttpUploadTransport, Transport

logger = logging.getLogger(__name__)

PAYLOAD_SOURCE = "(direct JSON payload)"


@dataclass
class RunOutcome:
    """Where the run's report landed and how the run ended."""

    report_path: str
    report: ExecutionReport

    @property
    def status(self) -> ExecutionStatus:
        return self.report.status

    @property
    def report_written(self) -> bool:
        return not self.report_path.startswith("(")


class BulkUploadService:
    """
    Wires the normalizer, validator, executor and report aggregator together.

    Every run produces exactly one report artifact, whatever happens during
    the run. Independent runs share no mutable state apart from the transport,
    so the same service can serve the CLI and the queue consumer.
    """

    def __init__(
        self,
        config: BulkUploadConfig,
        transport: Transport | None = None,
        aggregator: ReportAggregator | None = None,
        sleep=None,
        show_progress: bool = False,
    ):
        self.config = config
        self.normalizer = ManifestNormalizer(config.manifest.correlation_key)
        self.validator = TaskValidator(config.upload.max_file_size_bytes)
        self.aggregator = aggregator or ReportAggregator.from_config(config.report)
        self.sleep = sleep
        self.show_progress = show_progress
        self._transport = transport
        self._owns_transport = transport is None

    @property
    def transport(self) -> Transport:
        if self._transport is None:
            self._transport = HttpUploadTransport(self.config.upload)
        return self._transport

    def close(self) -> None:
        """Release the HTTP session if this service opened one."""
        if self._owns_transport and self._transport is not None:
            self._transport.close()
            self._transport = None

    def prepare(self, raw_input: Any, secondary: Any | None = None) -> ValidationResult:
        """Normalize and validate without uploading. Manifest errors propagate."""
        tasks = self.normalizer.normalize(raw_input, secondary)
        return self.validator.validate(tasks)

    def run_from_path(
        self,
        manifest_path: Path | None = None,
        secondary_path: Path | None = None,
    ) -> RunOutcome:
        """Run the pipeline on a manifest file (defaults to the configured paths)."""
        manifest_path = manifest_path or self.config.manifest.path
        if manifest_path is None:
            raise ConfigurationError("No manifest path given and manifest.path is not configured")
        secondary_path = secondary_path or self.config.manifest.secondary_path

        report = ExecutionReport(
            manifest_source=str(manifest_path),
            secondary_manifest_source=str(secondary_path) if secondary_path else None,
        )
        return self._run(report, Path(manifest_path), Path(secondary_path) if secondary_path else None)

    def run_from_payload(
        self,
        payload: Any,
        source: str = PAYLOAD_SOURCE,
        secondary: Any | None = None,
    ) -> RunOutcome:
        """Run the pipeline on JSON text or already-parsed JSON.

        ``secondary`` takes the same forms as the secondary manifest of
        ``ManifestNormalizer.normalize``: a path, JSON text or parsed JSON.
        """
        if isinstance(secondary, Path):
            secondary_source = str(secondary)
        elif secondary is not None:
            secondary_source = INLINE_SOURCE
        else:
            secondary_source = None
        report = ExecutionReport(manifest_source=source, secondary_manifest_source=secondary_source)
        return self._run(report, payload, secondary)

    def _run(self, report: ExecutionReport, raw_input: Any, secondary: Any | None) -> RunOutcome:
        logger.info("Starting bulk upload execution %s (manifest: %s)", report.execution_id, report.manifest_source)
        report.mark_started()

        try:
            self._execute(report, raw_input, secondary)
        except Exception as e:
            logger.exception("Bulk upload execution %s failed", report.execution_id)
            if not report.is_finished:
                report.mark_failed(str(e))

        logger.info("[Phase 4/4] Generating report...")
        report_path = self.aggregator.write(report)
        logger.info(self.aggregator.summary(report))
        logger.info("Finished execution %s with status %s", report.execution_id, report.status.value)
        return RunOutcome(report_path=report_path, report=report)

    def _execute(self, report: ExecutionReport, raw_input: Any, secondary: Any | None) -> None:
        logger.info("[Phase 1/4] Parsing manifest...")
        tasks = self.normalizer.normalize(raw_input, secondary)
        logger.info("Parsed %d document entries", len(tasks))

        if not tasks:
            logger.warning("No documents found in manifest. Nothing to upload.")
            report.mark_completed()
            return

        logger.info("[Phase 2/4] Validating %d tasks...", len(tasks))
        validation = self.validator.validate(tasks)
        if self.config.behavior.pre_validate_manifest and validation.issues:
            logger.warning("Pre-validation found %d issues", len(validation.issues))
            for message in validation.messages:
                logger.warning("  - %s", message)

        logger.info("[Phase 3/4] Executing uploads...")
        # Runs with nothing to upload never need an endpoint
        executor = UploadExecutor(
            self.transport if validation.valid_count else None,
            self.config.policy(),
            sleep=self.sleep,
            show_progress=self.show_progress,
        )
        if executor.run(validation.tasks, report):
            report.mark_completed()
        else:
            logger.warning("Upload execution was aborted")
            report.mark_aborted(ABORT_REASON)
