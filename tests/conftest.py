"""Shared fixtures and test doubles."""

from collections.abc import Callable

import pytest

from bulk_uploader.config import BulkUploadConfig, ExecutionPolicy
from bulk_uploader.models import FailureKind, UploadResult, UploadStatus, UploadTask
from bulk_uploader.models.result import utcnow


def make_task(index: int = 0, file_path: str | None = "doc.pdf", valid: bool = True, **kwargs) -> UploadTask:
    task = UploadTask(index=index, document_id=f"doc-{index}", file_path=file_path, **kwargs)
    return task.with_validation(valid, None if valid else "File not found")


def http_result(task: UploadTask, status: int) -> UploadResult:
    ok = 200 <= status < 300
    return UploadResult(
        task=task,
        status=UploadStatus.SUCCESS if ok else UploadStatus.FAILED,
        started_at=utcnow(),
        http_status=status,
        response_body="{}",
        last_error_message=None if ok else f"HTTP {status}: error",
        failure_kind=None if ok else FailureKind.HTTP_ERROR,
    ).completed()


class StubTransport:
    """Transport double that answers from a per-call callable and records calls."""

    def __init__(self, respond: Callable[[UploadTask, int], UploadResult]):
        self.respond = respond
        self.calls: list[UploadTask] = []

    def upload(self, task: UploadTask) -> UploadResult:
        self.calls.append(task)
        return self.respond(task, len(self.calls))

    @classmethod
    def always(cls, status: int) -> "StubTransport":
        return cls(lambda task, _n: http_result(task, status))


class RecordingSleeper:
    """Records backoff delays instead of sleeping."""

    def __init__(self, interrupt_on: int | None = None):
        self.delays: list[float] = []
        self.interrupt_on = interrupt_on

    def __call__(self, seconds: float) -> bool:
        self.delays.append(seconds)
        return self.interrupt_on is not None and len(self.delays) >= self.interrupt_on


@pytest.fixture
def policy() -> ExecutionPolicy:
    return ExecutionPolicy(retry_count=3, retry_delay_ms=100, retry_backoff_multiplier=2.0)


@pytest.fixture
def config(tmp_path) -> BulkUploadConfig:
    return BulkUploadConfig(
        upload={"endpoint": "http://upload.test/api/documents"},
        retry={"count": 3, "delay_ms": 0},
        report={"directory": str(tmp_path / "reports")},
    )


@pytest.fixture
def pdf_files(tmp_path):
    """Two small readable files."""
    paths = []
    for name in ("a.pdf", "b.pdf"):
        path = tmp_path / name
        path.write_bytes(b"%PDF-1.4 test")
        paths.append(path)
    return paths
