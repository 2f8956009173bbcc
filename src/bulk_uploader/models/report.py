"""Aggregate record of one pipeline run."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import uuid4

from bulk_uploader.models.result import UploadResult, UploadStatus, utcnow


class ExecutionStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    COMPLETED_WITH_ERRORS = "COMPLETED_WITH_ERRORS"
    ABORTED = "ABORTED"
    FAILED = "FAILED"


TERMINAL_STATUSES = frozenset(
    {
        ExecutionStatus.COMPLETED,
        ExecutionStatus.COMPLETED_WITH_ERRORS,
        ExecutionStatus.ABORTED,
        ExecutionStatus.FAILED,
    }
)


def new_execution_id() -> str:
    return f"exec-{uuid4().hex[:8]}"


@dataclass
class ExecutionReport:
    """
    Accumulates per-task results and the run's terminal state.

    Lifecycle: ``mark_started`` once, ``add_result`` once per task, then exactly
    one of ``mark_completed`` / ``mark_aborted`` / ``mark_failed``.
    """

    manifest_source: str
    execution_id: str = field(default_factory=new_execution_id)
    secondary_manifest_source: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    status: ExecutionStatus = ExecutionStatus.PENDING
    error_message: str | None = None
    results: list[UploadResult] = field(default_factory=list)
    failures: list[UploadResult] = field(default_factory=list)
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    errored: int = 0

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def success_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return self.succeeded / self.total * 100

    @property
    def duration_ms(self) -> int:
        if self.started_at is None or self.finished_at is None:
            return 0
        return int((self.finished_at - self.started_at).total_seconds() * 1000)

    @property
    def is_finished(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def all_success(self) -> bool:
        return self.failed == 0 and self.errored == 0

    def add_result(self, result: UploadResult) -> None:
        self.results.append(result)
        if result.status == UploadStatus.SUCCESS:
            self.succeeded += 1
        elif result.status == UploadStatus.FAILED:
            self.failed += 1
            self.failures.append(result)
        elif result.status == UploadStatus.ERROR:
            self.errored += 1
        else:
            self.skipped += 1

    def mark_started(self) -> None:
        self.started_at = utcnow()
        self.status = ExecutionStatus.RUNNING

    def mark_completed(self) -> None:
        if self.all_success:
            self._finish(ExecutionStatus.COMPLETED)
        else:
            self._finish(ExecutionStatus.COMPLETED_WITH_ERRORS)

    def mark_aborted(self, reason: str) -> None:
        self._finish(ExecutionStatus.ABORTED, reason)

    def mark_failed(self, reason: str) -> None:
        self._finish(ExecutionStatus.FAILED, reason)

    def _finish(self, status: ExecutionStatus, reason: str | None = None) -> None:
        if self.is_finished:
            raise RuntimeError(f"Report {self.execution_id} is already finalized as {self.status.value}")
        if self.started_at is None:
            self.started_at = utcnow()
        self.finished_at = utcnow()
        self.status = status
        self.error_message = reason

    def __str__(self) -> str:
        return (
            f"ExecutionReport[total={self.total}, success={self.succeeded}, failed={self.failed}, "
            f"skipped={self.skipped}, errors={self.errored}, rate={self.success_rate:.1f}%]"
        )
