"""Best-effort model of error bodies returned by the upload API."""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError


class ApiError(BaseModel):
    """Problem-detail (RFC 7807) error body plus common vendor extensions."""

    model_config = ConfigDict(extra="ignore")

    # RFC 7807
    type: str | None = None
    title: str | None = None
    status: int | None = None
    detail: str | None = None
    instance: str | None = None

    # Extensions
    errorCode: str | None = None
    traceId: str | None = None
    timestamp: str | int | float | None = None
    fieldErrors: Any = None

    # Legacy shapes
    message: str | None = None
    error: str | None = None
    path: str | None = None

    @property
    def effective_message(self) -> str:
        for candidate in (self.detail, self.message, self.title, self.error):
            if candidate and candidate.strip():
                return candidate
        return "Unknown error"

    @classmethod
    def parse(cls, body: str | bytes | None) -> "ApiError | None":
        """
        Decode a response body into an ApiError.

        Returns None when the body is empty, is not a JSON object, or carries
        none of the recognised fields.
        """
        if not body or not str(body).strip():
            return None
        try:
            data = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError, TypeError):
            return None
        if not isinstance(data, dict):
            return None
        try:
            parsed = cls.model_validate(data)
        except ValidationError:
            return None
        return parsed if parsed.model_fields_set else None
