"""Multipart HTTP upload transport built on requests."""

import json
import logging
from datetime import datetime
from typing import Protocol

import requests
from requests.structures import CaseInsensitiveDict

from bulk_uploader.config import UploadApiConfig
from bulk_uploader.errors import ConfigurationError
from bulk_uploader.models import ApiError, FailureKind, UploadResult, UploadStatus, UploadTask
from bulk_uploader.models.result import utcnow

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Anything that can perform one upload attempt for a task."""

    def upload(self, task: UploadTask) -> UploadResult: ...


class HttpUploadTransport:
    """
    Posts one document per request as multipart/form-data.

    The request carries two parts: the file itself and a JSON ``metadata``
    part. Every outcome is returned as an UploadResult; nothing raises out of
    ``upload``.
    """

    def __init__(self, config: UploadApiConfig, session: requests.Session | None = None):
        if not config.endpoint:
            raise ConfigurationError("Upload endpoint is not configured (upload.endpoint)")
        self.config = config
        self.endpoint = config.endpoint
        self.timeout = (config.connection_timeout_ms / 1000, config.read_timeout_ms / 1000)
        self.session = session or requests.Session()
        logger.info(
            "Upload transport ready for %s (connect timeout %dms, read timeout %dms)",
            self.endpoint,
            config.connection_timeout_ms,
            config.read_timeout_ms,
        )

    def build_headers(self, task: UploadTask) -> dict[str, str]:
        """Configured default headers overlaid by the task's own overrides."""
        headers = CaseInsensitiveDict(self.config.default_headers.as_headers())
        for name, value in task.header_overrides.items():
            if value is not None:
                headers[name] = value
        return dict(headers)

    def serialize_metadata(self, task: UploadTask) -> str:
        if task.metadata is None:
            return "{}"
        try:
            return json.dumps(task.metadata)
        except (TypeError, ValueError) as e:
            logger.warning("Failed to serialize metadata for task[%d], using empty object: %s", task.index, e)
            return "{}"

    def upload(self, task: UploadTask) -> UploadResult:
        started_at = utcnow()
        logger.debug("Starting upload for task[%d]: %s", task.index, task.file_path)

        try:
            path = task.resolved_path
            if path is None:
                raise ValueError("File not resolved")

            with open(path, "rb") as document:
                files = {
                    self.config.document_field: (path.name, document, "application/octet-stream"),
                    self.config.metadata_field: (None, self.serialize_metadata(task), "application/json"),
                }
                response = self.session.post(
                    self.endpoint,
                    files=files,
                    headers=self.build_headers(task),
                    timeout=self.timeout,
                )
        except requests.exceptions.Timeout as e:
            logger.error("Upload timeout for task[%d]: %s", task.index, e)
            return self._failure(task, started_at, FailureKind.TIMEOUT, f"Request timed out: {e}")
        except requests.exceptions.ConnectionError as e:
            logger.error("Upload connection error for task[%d]: %s", task.index, e)
            return self._failure(task, started_at, FailureKind.CONNECTION_ERROR, f"Connection error: {e}")
        except Exception as e:
            logger.exception("Unexpected error during upload for task[%d]", task.index)
            return UploadResult(
                task=task,
                status=UploadStatus.ERROR,
                started_at=started_at,
                last_error_message=f"Unexpected error: {e}",
                failure_kind=FailureKind.UNEXPECTED,
            ).completed()

        if 200 <= response.status_code < 300:
            logger.info("Upload successful for task[%d]: HTTP %d", task.index, response.status_code)
            return UploadResult(
                task=task,
                status=UploadStatus.SUCCESS,
                started_at=started_at,
                http_status=response.status_code,
                response_body=response.text,
            ).completed()

        api_error = ApiError.parse(response.text)
        message = api_error.effective_message if api_error else (response.reason or "Unexpected status")
        logger.warning("Upload failed for task[%d] with HTTP %d: %s", task.index, response.status_code, message)
        return UploadResult(
            task=task,
            status=UploadStatus.FAILED,
            started_at=started_at,
            http_status=response.status_code,
            response_body=response.text,
            api_error=api_error,
            last_error_message=f"HTTP {response.status_code}: {message}",
            failure_kind=FailureKind.HTTP_ERROR,
        ).completed()

    def is_endpoint_reachable(self) -> bool:
        """HEAD the endpoint; any HTTP answer counts as reachable."""
        try:
            self.session.head(self.endpoint, timeout=self.timeout)
            return True
        except requests.exceptions.RequestException as e:
            logger.warning("Endpoint reachability check failed: %s", e)
            return False

    def close(self) -> None:
        self.session.close()

    @staticmethod
    def _failure(task: UploadTask, started_at: datetime, kind: FailureKind, message: str) -> UploadResult:
        return UploadResult(
            task=task,
            status=UploadStatus.FAILED,
            started_at=started_at,
            last_error_message=message,
            failure_kind=kind,
        ).completed()
