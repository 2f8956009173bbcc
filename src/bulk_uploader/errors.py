"""Exception hierarchy for manifest and pipeline failures.

Per-task upload failures are not exceptions; they are recorded on
``UploadResult.failure_kind`` and drive the retry policy instead.
"""


class BulkUploadError(Exception):
    """Base error carrying a stable error code and optional context."""

    default_code = "BULK-0000"

    def __init__(self, message: str, code: str | None = None, context: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.context = context

    def __str__(self) -> str:
        text = f"[{self.code}] {self.message}"
        if self.context:
            text += f" (context: {self.context})"
        return text


class ConfigurationError(BulkUploadError):
    """The configuration cannot support the requested operation."""

    default_code = "BULK-0001"


class ManifestError(BulkUploadError):
    """Any failure turning manifest input into upload tasks."""


class ManifestIOError(ManifestError):
    """The manifest source could not be read."""

    FILE_NOT_FOUND = "BULK-1001"
    IO_ERROR = "BULK-1006"
    default_code = IO_ERROR

    @classmethod
    def not_found(cls, path: str) -> "ManifestIOError":
        return cls(f"Manifest file not found: {path}", cls.FILE_NOT_FOUND, path)

    @classmethod
    def unreadable(cls, path: str, cause: Exception) -> "ManifestIOError":
        return cls(f"IO error reading manifest: {cause}", cls.IO_ERROR, path)


class ManifestSyntaxError(ManifestError):
    """The manifest source is not valid JSON."""

    default_code = "BULK-1002"


class ManifestFormatError(ManifestError):
    """The manifest parsed, but matches no supported shape."""

    default_code = "BULK-1003"


class ManifestMergeError(ManifestFormatError):
    """Primary and secondary manifests could not be combined."""

    default_code = "BULK-1005"
