"""Turn manifests of any supported shape into an ordered list of upload tasks."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from bulk_uploader.errors import ManifestFormatError, ManifestMergeError
from bulk_uploader.manifest.loader import load_manifest_source
from bulk_uploader.manifest.shapes import (
    FILE_PATH_FIELDS,
    HEADER_FIELDS,
    ID_FIELDS,
    METADATA_FIELDS,
    ManifestShape,
    detect_shape,
    first_text,
    first_value,
)
from bulk_uploader.models import UploadTask

logger = logging.getLogger(__name__)


@dataclass
class DocumentEntry:
    """A document node plus everything it inherits from its enclosing scopes."""

    node: dict[str, Any]
    inherited_headers: dict[str, str] = field(default_factory=dict)
    application_metadata: Any | None = None
    fresh_id: bool = False


def _header_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def _header_map(node: Any, where: str) -> dict[str, str]:
    if node is None:
        return {}
    if not isinstance(node, dict):
        raise ManifestFormatError(f"Unsupported manifest format: '{where}' must be an object")
    return {name: _header_text(value) for name, value in node.items() if value is not None}


def _overlay(headers: dict[str, str], overrides: dict[str, str]) -> dict[str, str]:
    """Apply overrides onto headers; names compare case-insensitively."""
    result = dict(headers)
    for name, value in overrides.items():
        for existing in [key for key in result if key.lower() == name.lower()]:
            del result[existing]
        result[name] = value
    return result


def _merge_defaults(*layers: Any) -> dict[str, Any]:
    """Shallow merge; later layers win. Non-object layers are ignored."""
    merged: dict[str, Any] = {}
    for layer in layers:
        if isinstance(layer, dict):
            merged.update(layer)
    return merged


def _as_node(entry: Any, position: str) -> dict[str, Any]:
    if isinstance(entry, dict):
        return entry
    if isinstance(entry, str):
        # A bare string entry is shorthand for a file path
        return {"filePath": entry}
    raise ManifestFormatError(
        f"Unsupported manifest format: document entry {position} must be an object or a path string"
    )


def _require_list(root: dict[str, Any], key: str) -> list[Any]:
    value = root.get(key)
    if not isinstance(value, list):
        raise ManifestFormatError(f"Unsupported manifest format: '{key}' field must be an array")
    return value


class ManifestNormalizer:
    """
    Detects the manifest shape and flattens it into UploadTasks.

    Task order is stable: applications (or batches) in listed order, documents
    in listed order within each. ``index`` is the zero-based position across
    the whole flattened sequence.
    """

    def __init__(self, correlation_key: str = "documentId"):
        self.correlation_key = correlation_key

    def normalize(self, raw_input: Any, secondary: Any | None = None) -> list[UploadTask]:
        """
        Normalize a manifest into upload tasks.

        Args:
            raw_input: Path to a manifest file, JSON text, or already-parsed JSON
            secondary: Optional secondary manifest (same accepted forms) that
                supplies file locations keyed by the correlation key

        Returns:
            Ordered list of UploadTask

        Raises:
            ManifestIOError: a manifest file cannot be read
            ManifestSyntaxError: a manifest is not valid JSON
            ManifestFormatError: the manifest matches no supported shape
        """
        root, source = load_manifest_source(raw_input)
        shape = detect_shape(root)
        logger.debug("Detected manifest format %s for %s", shape.value, source)

        entries = self.extract_entries(root, shape)
        logger.info("Extracted %d document entries from %s", len(entries), source)

        if secondary is not None:
            secondary_root, secondary_source = load_manifest_source(secondary)
            logger.info("Merging file locations from secondary manifest %s", secondary_source)
            entries = self.merge_locations(entries, secondary_root)

        tasks = [self._to_task(entry, index) for index, entry in enumerate(entries)]
        logger.info("Normalized %d upload tasks", len(tasks))
        return tasks

    # Extraction per shape

    def extract_entries(self, root: Any, shape: ManifestShape) -> list[DocumentEntry]:
        if shape == ManifestShape.MULTI_APPLICATION:
            return self._from_applications(root)
        if shape == ManifestShape.SINGLE_APPLICATION:
            return self._from_single_application(root)
        if shape == ManifestShape.BATCHED:
            return self._from_batches(root)
        if shape == ManifestShape.DOCUMENTS:
            defaults = root.get("defaults")
            return [
                DocumentEntry(_merge_defaults(defaults, _as_node(doc, f"documents[{i}]")))
                for i, doc in enumerate(_require_list(root, "documents"))
            ]
        if shape == ManifestShape.FILES:
            return [
                DocumentEntry(_as_node(doc, f"files[{i}]"))
                for i, doc in enumerate(_require_list(root, "files"))
            ]
        if shape == ManifestShape.SIMPLE_ARRAY:
            return [DocumentEntry(_as_node(doc, f"[{i}]")) for i, doc in enumerate(root)]
        return [DocumentEntry(root)]

    def _from_applications(self, root: dict[str, Any]) -> list[DocumentEntry]:
        shared_headers = _header_map(root.get("requestHeaders"), "requestHeaders")
        applications = _require_list(root, "applications")

        entries: list[DocumentEntry] = []
        for app_index, application in enumerate(applications):
            if not isinstance(application, dict):
                raise ManifestFormatError(
                    f"Unsupported manifest format: applications[{app_index}] must be an object"
                )
            entries.extend(
                self._application_documents(
                    application,
                    shared_headers,
                    label=f"applications[{app_index}]",
                )
            )
        return entries

    def _from_single_application(self, root: dict[str, Any]) -> list[DocumentEntry]:
        shared_headers = _header_map(root.get("requestHeaders"), "requestHeaders")
        if not isinstance(root.get("documents"), list):
            raise ManifestFormatError("Unsupported manifest format: 'documents' field must be an array")
        return self._application_documents(root, shared_headers, label="application", scoped_headers=False)

    def _application_documents(
        self,
        application: dict[str, Any],
        shared_headers: dict[str, str],
        label: str,
        scoped_headers: bool = True,
    ) -> list[DocumentEntry]:
        documents = application.get("documents")
        if not isinstance(documents, list) or not documents:
            logger.warning("%s has no documents; contributing zero tasks", label)
            return []

        headers = dict(shared_headers)
        if scoped_headers:
            headers = _overlay(headers, _header_map(application.get("requestHeaders"), f"{label}.requestHeaders"))
        application_metadata = application.get("applicationMetadata")

        return [
            DocumentEntry(
                node=_as_node(doc, f"{label}.documents[{i}]"),
                inherited_headers=headers,
                application_metadata=application_metadata,
                fresh_id=True,
            )
            for i, doc in enumerate(documents)
        ]

    def _from_batches(self, root: dict[str, Any]) -> list[DocumentEntry]:
        global_defaults = root.get("defaults")
        entries: list[DocumentEntry] = []
        for batch_index, batch in enumerate(_require_list(root, "batches")):
            if not isinstance(batch, dict):
                raise ManifestFormatError(f"Unsupported manifest format: batches[{batch_index}] must be an object")
            documents = batch.get("documents")
            if not isinstance(documents, list):
                logger.warning("batches[%d] has no documents array; skipping", batch_index)
                continue
            for doc_index, doc in enumerate(documents):
                node = _as_node(doc, f"batches[{batch_index}].documents[{doc_index}]")
                entries.append(DocumentEntry(_merge_defaults(global_defaults, batch.get("defaults"), node)))
        return entries

    # Split manifests

    def merge_locations(self, entries: list[DocumentEntry], secondary_root: Any) -> list[DocumentEntry]:
        """
        Fill in file locations from a secondary manifest.

        Entries whose id matches a secondary record gain the record's fields
        they don't already have. Unmatched entries pass through unchanged.
        """
        locations = self._location_map(secondary_root)
        if not locations:
            logger.warning("Secondary manifest contained no location mappings")
            return entries

        merged: list[DocumentEntry] = []
        matched = 0
        for entry in entries:
            doc_id = first_text(entry.node, ID_FIELDS)
            location = locations.get(doc_id) if doc_id is not None else None
            if location is None:
                merged.append(entry)
                continue
            matched += 1
            merged.append(
                DocumentEntry(
                    node={**location, **entry.node},
                    inherited_headers=entry.inherited_headers,
                    application_metadata=entry.application_metadata,
                    fresh_id=entry.fresh_id,
                )
            )
        logger.info("Matched %d of %d entries against secondary manifest", matched, len(entries))
        return merged

    def _location_map(self, secondary_root: Any) -> dict[str, dict[str, Any]]:
        if isinstance(secondary_root, list):
            locations = secondary_root
        elif isinstance(secondary_root, dict):
            locations = secondary_root.get("locations", secondary_root.get("files"))
        else:
            raise ManifestMergeError("Failed to merge manifests: secondary manifest must be an array or object")

        if not isinstance(locations, list):
            logger.warning("Secondary manifest does not contain a valid locations/files array")
            return {}

        mapping: dict[str, dict[str, Any]] = {}
        for location in locations:
            if not isinstance(location, dict):
                continue
            key = first_text(location, (self.correlation_key,)) or first_text(location, ID_FIELDS)
            if key is not None:
                mapping[key] = location
        logger.debug("Built location map with %d entries", len(mapping))
        return mapping

    # Conversion

    def _to_task(self, entry: DocumentEntry, index: int) -> UploadTask:
        node = entry.node

        document_id = None if entry.fresh_id else first_text(node, ID_FIELDS)
        metadata = first_value(node, METADATA_FIELDS)

        headers = _overlay(entry.inherited_headers, _header_map(node.get("headers"), "headers"))
        headers = _overlay(
            headers,
            {name: _header_text(node[name]) for name in HEADER_FIELDS if node.get(name) is not None},
        )

        return UploadTask(
            index=index,
            document_id=document_id or str(uuid4()),
            file_path=first_text(node, FILE_PATH_FIELDS),
            metadata=metadata if metadata is not None else {},
            application_metadata=entry.application_metadata,
            header_overrides=headers,
        )


def normalize(raw_input: Any, secondary: Any | None = None, correlation_key: str = "documentId") -> list[UploadTask]:
    """Shortcut for ``ManifestNormalizer(correlation_key).normalize(...)``."""
    return ManifestNormalizer(correlation_key).normalize(raw_input, secondary)
