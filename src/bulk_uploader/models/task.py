"""Upload task record produced by manifest normalization."""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class UploadTask:
    """One document to upload.

    Tasks are built once by the manifest normalizer and annotated once by the
    validator (via ``with_validation``); they are never mutated in place.
    """

    index: int
    document_id: str
    file_path: str | None
    metadata: Any = field(default_factory=dict)
    application_metadata: Any | None = None
    header_overrides: dict[str, str] = field(default_factory=dict)
    file_valid: bool = False
    file_validation_error: str | None = None

    @property
    def resolved_path(self) -> Path | None:
        """Filesystem path for the document, or None when no path was given."""
        if not self.file_path or not self.file_path.strip():
            return None
        return Path(self.file_path).expanduser()

    def header(self, name: str) -> str | None:
        """Case-insensitive lookup of a header override."""
        wanted = name.lower()
        for key, value in self.header_overrides.items():
            if key.lower() == wanted:
                return value
        return None

    def with_validation(self, valid: bool, error: str | None = None) -> "UploadTask":
        return replace(self, file_valid=valid, file_validation_error=None if valid else error)

    def __str__(self) -> str:
        return f"UploadTask[index={self.index}, id={self.document_id}, file={self.file_path}, valid={self.file_valid}]"
