"""Batch document uploads driven by JSON manifests."""

__version__ = "0.1.0"
