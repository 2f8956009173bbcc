"""Value records shared by the pipeline components."""

from bulk_uploader.models.api_error import ApiError
from bulk_uploader.models.report import ExecutionReport, ExecutionStatus
from bulk_uploader.models.result import FailureKind, UploadResult, UploadStatus
from bulk_uploader.models.task import UploadTask

__all__ = [
    "ApiError",
    "ExecutionReport",
    "ExecutionStatus",
    "FailureKind",
    "UploadResult",
    "UploadStatus",
    "UploadTask",
]
