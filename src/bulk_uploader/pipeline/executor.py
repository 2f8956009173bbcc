"""Sequential upload execution with retry, backoff and abort handling."""

import logging
import threading
from collections.abc import Callable

from tqdm import tqdm

from bulk_uploader.config import ExecutionPolicy
from bulk_uploader.errors import ConfigurationError
from bulk_uploader.models import ExecutionReport, FailureKind, UploadResult, UploadStatus, UploadTask
from bulk_uploader.transport import Transport

logger = logging.getLogger(__name__)

ABORT_REASON = "Execution stopped due to error (continueOnError=false)"
PROGRESS_EVERY = 10

RETRYABLE_HTTP_STATUSES = frozenset({408, 429})


class UploadExecutor:
    """
    Runs tasks strictly in index order against a transport.

    Each task gets up to ``policy.retry_count`` attempts with exponential
    backoff between them. A failed task aborts the run only when
    ``policy.continue_on_error`` is off; the unprocessed tail is then recorded
    as SKIPPED_ABORT.

    ``sleep`` receives the backoff delay in seconds and returns True when the
    wait was interrupted. The default waits on the executor's cancel event, so
    ``cancel()`` from another thread cuts the current backoff short.

    ``transport`` may be None when no task in the run is valid for upload.
    """

    def __init__(
        self,
        transport: Transport | None,
        policy: ExecutionPolicy,
        sleep: Callable[[float], bool] | None = None,
        show_progress: bool = False,
    ):
        self.transport = transport
        self.policy = policy
        self.show_progress = show_progress
        self._cancelled = threading.Event()
        self._sleep = sleep or self._cancelled.wait

    def cancel(self) -> None:
        """Interrupt the current task's backoff wait; the run itself carries on."""
        self._cancelled.set()

    def run(self, tasks: list[UploadTask], report: ExecutionReport) -> bool:
        """
        Process all tasks, adding one result per task to the report.

        Returns:
            True if every task was processed, False if the run was aborted
        """
        ordered = sorted(tasks, key=lambda t: t.index)
        total = len(ordered)

        with tqdm(total=total, desc="Uploading", unit="doc", disable=not self.show_progress) as progress:
            for position, task in enumerate(ordered, start=1):
                logger.info("Processing task [%d/%d]: %s", position, total, task.file_path or "(no file path)")

                result = self.process_task(task)
                report.add_result(result)
                progress.update(1)

                if not self.should_continue(result):
                    logger.warning("Stopping execution after task[%d] due to error", task.index)
                    for remaining in ordered[position:]:
                        report.add_result(UploadResult.skipped_abort(remaining))
                    return False

                if position % PROGRESS_EVERY == 0 or position == total:
                    logger.info(
                        "Progress: %d/%d tasks processed (%d successful, %d failed)",
                        position,
                        total,
                        report.succeeded,
                        report.failed,
                    )
        return True

    def process_task(self, task: UploadTask) -> UploadResult:
        if not task.file_valid:
            reason = task.file_validation_error or "File validation failed"
            if self.policy.skip_missing_files:
                logger.warning("Skipping task[%d]: %s", task.index, reason)
                return UploadResult.skipped_validation(task, reason)
            logger.error("Cannot process task[%d]: %s", task.index, reason)
            return UploadResult.failure(task, reason)

        return self.execute_with_retry(task)

    def execute_with_retry(self, task: UploadTask) -> UploadResult:
        if self.transport is None:
            raise ConfigurationError("No upload transport available for task uploads")
        # A cancel left over from an earlier task must not cut this one short
        self._cancelled.clear()
        max_attempts = self.policy.retry_count
        delay_ms = float(self.policy.retry_delay_ms)
        result: UploadResult | None = None

        for attempt in range(1, max_attempts + 1):
            logger.debug("Upload attempt %d/%d for task[%d]", attempt, max_attempts, task.index)
            result = self.transport.upload(task).with_attempts(attempt)

            if result.is_success:
                return result
            if not self.is_retryable(result):
                logger.debug("Error is not retryable for task[%d]", task.index)
                break
            if attempt == max_attempts:
                break

            logger.info(
                "Retry %d/%d for task[%d] after %dms delay",
                attempt + 1,
                max_attempts,
                task.index,
                delay_ms,
            )
            if self._sleep(delay_ms / 1000):
                # Cancellation only ends this task's retries
                self._cancelled.clear()
                logger.warning("Retry interrupted for task[%d]", task.index)
                break
            delay_ms *= self.policy.retry_backoff_multiplier

        if result is None:
            return UploadResult.failure(task, "No upload attempted")

        logger.error(
            "Upload gave up for task[%d] after %d attempt(s): %s",
            task.index,
            result.attempt_count,
            result.last_error_message,
        )
        return result

    @staticmethod
    def is_retryable(result: UploadResult) -> bool:
        if result.is_success or result.is_skipped:
            return False

        status = result.http_status
        if status is not None:
            if 500 <= status < 600 or status in RETRYABLE_HTTP_STATUSES:
                return True
            if 400 <= status < 500:
                return False

        if result.failure_kind in (FailureKind.CONNECTION_ERROR, FailureKind.TIMEOUT):
            return True

        # Unclassified failures get another attempt
        return True

    def should_continue(self, result: UploadResult) -> bool:
        if result.status == UploadStatus.SUCCESS or result.is_skipped:
            return True
        return self.policy.continue_on_error
