"""Pre-upload checks on the files referenced by upload tasks."""

import logging
import os
from dataclasses import dataclass, field

from bulk_uploader.models import UploadTask

logger = logging.getLogger(__name__)

PATH_NOT_SPECIFIED = "File path not specified"
NOT_FOUND = "File not found"
NOT_A_FILE = "Path is not a file"
NOT_READABLE = "File not readable"
TOO_LARGE = "File exceeds maximum size limit"


@dataclass
class ValidationIssue:
    """One advisory problem found for a task."""

    index: int
    file_path: str | None
    reason: str
    size: int | None = None

    def __str__(self) -> str:
        if self.reason == PATH_NOT_SPECIFIED:
            return f"Task[{self.index}]: Missing file path"
        if self.reason == TOO_LARGE:
            return f"Task[{self.index}]: File too large ({self.size} bytes): {self.file_path}"
        return f"Task[{self.index}]: {self.reason}: {self.file_path}"


@dataclass
class ValidationResult:
    """Annotated tasks plus the diagnostics found while validating them."""

    tasks: list[UploadTask]
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.issues

    @property
    def messages(self) -> list[str]:
        return [str(issue) for issue in self.issues]

    @property
    def valid_count(self) -> int:
        return sum(1 for task in self.tasks if task.file_valid)


class TaskValidator:
    """
    Checks each task's file, in order: path given, exists, is a regular file,
    is readable, is within the size limit.

    Validation never raises. Every task comes back annotated with
    ``file_valid``/``file_validation_error``; what to do with invalid tasks is
    up to the executor's policy.
    """

    def __init__(self, max_file_size_bytes: int):
        self.max_file_size_bytes = max_file_size_bytes

    def validate(self, tasks: list[UploadTask]) -> ValidationResult:
        result = ValidationResult(tasks=[])
        for task in tasks:
            issue = self._check(task)
            if issue is None:
                result.tasks.append(task.with_validation(True))
            else:
                result.issues.append(issue)
                result.tasks.append(task.with_validation(False, issue.reason))

        if result.issues:
            logger.warning("Manifest validation found %d issues", len(result.issues))
        return result

    def _check(self, task: UploadTask) -> ValidationIssue | None:
        path = task.resolved_path
        if path is None:
            return ValidationIssue(task.index, task.file_path, PATH_NOT_SPECIFIED)

        try:
            if not path.exists():
                return ValidationIssue(task.index, task.file_path, NOT_FOUND)
            if not path.is_file():
                return ValidationIssue(task.index, task.file_path, NOT_A_FILE)
            if not os.access(path, os.R_OK):
                return ValidationIssue(task.index, task.file_path, NOT_READABLE)
            size = path.stat().st_size
        except OSError as exc:
            logger.debug("Could not inspect %s: %s", path, exc)
            return ValidationIssue(task.index, task.file_path, NOT_READABLE)

        if size > self.max_file_size_bytes:
            return ValidationIssue(task.index, task.file_path, TOO_LARGE, size=size)
        return None


def validate_tasks(tasks: list[UploadTask], max_file_size_bytes: int) -> ValidationResult:
    """Shortcut for ``TaskValidator(max_file_size_bytes).validate(tasks)``."""
    return TaskValidator(max_file_size_bytes).validate(tasks)
