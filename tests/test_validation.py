"""Tests for pre-upload file validation."""

import os
import sys

import pytest

from bulk_uploader.models import UploadTask
from bulk_uploader.pipeline.validation import (
    NOT_A_FILE,
    NOT_FOUND,
    NOT_READABLE,
    PATH_NOT_SPECIFIED,
    TOO_LARGE,
    TaskValidator,
    validate_tasks,
)


def task_for(index: int, file_path: str | None) -> UploadTask:
    return UploadTask(index=index, document_id=f"doc-{index}", file_path=file_path)


class TestTaskValidator:
    """Tests for TaskValidator.validate()."""

    def test_valid_file(self, tmp_path):
        """A readable file within the limit is marked valid."""
        path = tmp_path / "ok.pdf"
        path.write_bytes(b"12345")
        result = validate_tasks([task_for(0, str(path))], max_file_size_bytes=10)

        assert result.is_valid
        assert result.tasks[0].file_valid
        assert result.tasks[0].file_validation_error is None
        assert result.valid_count == 1

    @pytest.mark.parametrize("file_path", [None, "", "   "])
    def test_missing_path(self, file_path):
        result = validate_tasks([task_for(0, file_path)], max_file_size_bytes=10)
        assert result.tasks[0].file_validation_error == PATH_NOT_SPECIFIED
        assert result.messages == ["Task[0]: Missing file path"]

    def test_not_found(self, tmp_path):
        missing = str(tmp_path / "missing.pdf")
        result = validate_tasks([task_for(3, missing)], max_file_size_bytes=10)
        assert not result.tasks[0].file_valid
        assert result.tasks[0].file_validation_error == NOT_FOUND
        assert result.messages == [f"Task[3]: File not found: {missing}"]

    def test_directory_is_not_a_file(self, tmp_path):
        result = validate_tasks([task_for(0, str(tmp_path))], max_file_size_bytes=10)
        assert result.tasks[0].file_validation_error == NOT_A_FILE

    @pytest.mark.skipif(
        sys.platform == "win32" or (hasattr(os, "geteuid") and os.geteuid() == 0),
        reason="permission bits are not enforced",
    )
    def test_unreadable(self, tmp_path):
        path = tmp_path / "locked.pdf"
        path.write_bytes(b"x")
        path.chmod(0)
        try:
            result = validate_tasks([task_for(0, str(path))], max_file_size_bytes=10)
        finally:
            path.chmod(0o644)
        assert result.tasks[0].file_validation_error == NOT_READABLE

    def test_too_large(self, tmp_path):
        path = tmp_path / "big.pdf"
        path.write_bytes(b"x" * 11)
        result = validate_tasks([task_for(0, str(path))], max_file_size_bytes=10)
        assert result.tasks[0].file_validation_error == TOO_LARGE
        assert "11 bytes" in result.messages[0]

    def test_size_limit_is_inclusive(self, tmp_path):
        path = tmp_path / "edge.pdf"
        path.write_bytes(b"x" * 10)
        result = validate_tasks([task_for(0, str(path))], max_file_size_bytes=10)
        assert result.is_valid

    def test_returns_annotated_copies(self, tmp_path):
        """Input tasks are not modified; annotated copies are returned in order."""
        tasks = [task_for(0, str(tmp_path / "x.pdf")), task_for(1, None)]
        result = TaskValidator(max_file_size_bytes=10).validate(tasks)

        assert [t.index for t in result.tasks] == [0, 1]
        assert all(t.file_validation_error is None for t in tasks)
        assert len(result.issues) == 2
        assert result.valid_count == 0
