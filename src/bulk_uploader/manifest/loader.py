"""Reading manifest sources into parsed JSON."""

import json
import logging
from pathlib import Path
from typing import Any

from bulk_uploader.errors import ManifestIOError, ManifestSyntaxError

logger = logging.getLogger(__name__)

INLINE_SOURCE = "(inline JSON)"


def parse_manifest_text(text: str | bytes, source: str = INLINE_SOURCE) -> Any:
    """Parse manifest JSON text, raising ManifestSyntaxError on bad input."""
    try:
        return json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ManifestSyntaxError(f"Failed to parse manifest as JSON: {exc}", context=source) from exc


def read_manifest(path: Path) -> Any:
    """
    Read and parse a manifest file.

    Raises:
        ManifestIOError: the file is missing or cannot be read
        ManifestSyntaxError: the file is not valid JSON
    """
    if not path.exists():
        raise ManifestIOError.not_found(str(path))

    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise ManifestIOError.unreadable(str(path), exc) from exc

    logger.debug("Read %d bytes from manifest %s", len(raw), path)
    return parse_manifest_text(raw, source=str(path))


def load_manifest_source(raw_input: Any) -> tuple[Any, str]:
    """
    Resolve any accepted manifest input to parsed JSON plus a descriptive label.

    Paths are read from disk, str/bytes are parsed as JSON text, and anything
    else is assumed to be JSON that was already parsed.
    """
    if isinstance(raw_input, Path):
        return read_manifest(raw_input), str(raw_input)
    if isinstance(raw_input, (str, bytes)):
        return parse_manifest_text(raw_input), INLINE_SOURCE
    return raw_input, INLINE_SOURCE
