"""Manifest loading, shape detection and normalization."""

from .loader import parse_manifest_text, read_manifest
from .normalizer import ManifestNormalizer, normalize
from .shapes import ManifestShape, detect_shape

__all__ = [
    "ManifestNormalizer",
    "ManifestShape",
    "detect_shape",
    "normalize",
    "parse_manifest_text",
    "read_manifest",
]
