"""Upload transports."""

from bulk_uploader.transport.http import HttpUploadTransport, Transport

__all__ = ["HttpUploadTransport", "Transport"]
