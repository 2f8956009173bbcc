"""Validation, execution and orchestration of bulk uploads."""

from bulk_uploader.pipeline.executor import UploadExecutor
from bulk_uploader.pipeline.service import BulkUploadService, RunOutcome
from bulk_uploader.pipeline.validation import TaskValidator, ValidationIssue, ValidationResult, validate_tasks

__all__ = [
    "BulkUploadService",
    "RunOutcome",
    "TaskValidator",
    "UploadExecutor",
    "ValidationIssue",
    "ValidationResult",
    "validate_tasks",
]
