"""Manifest shape detection.

Shapes are tried top-down; the first structural match wins:

1. MULTI_APPLICATION   {"requestHeaders": {...}, "applications": [{"applicationMetadata": {...}, "documents": [...]}]}
2. SINGLE_APPLICATION  {"requestHeaders": {...}, "applicationMetadata": {...}, "documents": [...]}
3. BATCHED             {"defaults": {...}, "batches": [{"defaults": {...}, "documents": [...]}]}
4. DOCUMENTS           {"defaults": {...}, "documents": [...]}
5. FILES               {"files": [{"path": "...", "name": "..."}]}
6. SIMPLE_ARRAY        [{"filePath": "...", "metadata": {...}}, ...]
7. SINGLE_DOCUMENT     {"filePath": "...", "metadata": {...}}
"""

from enum import Enum
from typing import Any

from bulk_uploader.errors import ManifestFormatError

# Known field names, first non-null match wins
FILE_PATH_FIELDS = ("filePath", "documentPath", "path", "file", "location", "sourcePath")
METADATA_FIELDS = ("metadata", "meta", "documentMetadata", "properties", "attributes")
ID_FIELDS = ("documentId", "id", "docId", "fileId", "correlationId", "key")
HEADER_FIELDS = ("X-User-Id", "X-Tenant-Id", "X-Workspace-Id", "Cookie")


class ManifestShape(str, Enum):
    MULTI_APPLICATION = "multi-application"
    SINGLE_APPLICATION = "single-application"
    BATCHED = "batched"
    DOCUMENTS = "documents"
    FILES = "files"
    SIMPLE_ARRAY = "simple-array"
    SINGLE_DOCUMENT = "single-document"


def first_text(node: dict[str, Any], fields: tuple[str, ...]) -> str | None:
    for name in fields:
        value = node.get(name)
        if isinstance(value, str):
            return value
    return None


def first_value(node: dict[str, Any], fields: tuple[str, ...]) -> Any | None:
    for name in fields:
        value = node.get(name)
        if value is not None:
            return value
    return None


def detect_shape(root: Any) -> ManifestShape:
    """Classify parsed manifest JSON, raising ManifestFormatError if nothing matches."""
    if isinstance(root, list):
        return ManifestShape.SIMPLE_ARRAY

    if not isinstance(root, dict):
        raise ManifestFormatError(
            f"Unsupported manifest format: root must be an array or object, got {type(root).__name__}"
        )

    if "applications" in root:
        return ManifestShape.MULTI_APPLICATION
    if "documents" in root and ("applicationMetadata" in root or "requestHeaders" in root):
        return ManifestShape.SINGLE_APPLICATION
    if "batches" in root:
        return ManifestShape.BATCHED
    if "documents" in root:
        return ManifestShape.DOCUMENTS
    if "files" in root:
        return ManifestShape.FILES
    if first_text(root, FILE_PATH_FIELDS) is not None:
        return ManifestShape.SINGLE_DOCUMENT

    raise ManifestFormatError(
        "Unsupported manifest format: expected 'applications', 'documents', 'batches', "
        f"'files' or a file path field, got keys {sorted(root)}"
    )
