"""Configuration loading and validation."""

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

ReportFormat = Literal["json", "csv"]

# Environment variables that win over values from the YAML file
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "BULK_UPLOAD_ENDPOINT": ("upload", "endpoint"),
    "BULK_UPLOAD_REPORT_DIR": ("report", "directory"),
    "BULK_UPLOAD_REDIS_URL": ("queue", "redis_url"),
}


def _expand(value: Any) -> Any:
    if value is None:
        return None
    return Path(os.path.expandvars(os.path.expanduser(str(value))))


class ManifestConfig(BaseModel):
    """Where manifests come from when none is given explicitly."""

    path: Path | None = None
    secondary_path: Path | None = None
    correlation_key: str = "documentId"

    @field_validator("path", "secondary_path", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path | None:
        """Expand environment variables and ~ in path."""
        return _expand(v)


class DefaultHeaders(BaseModel):
    """Headers sent with every upload unless a task overrides them."""

    user_id: str | None = None
    tenant_id: str | None = None
    workspace_id: str | None = None

    def as_headers(self) -> dict[str, str]:
        headers = {
            "X-User-Id": self.user_id,
            "X-Tenant-Id": self.tenant_id,
            "X-Workspace-Id": self.workspace_id,
        }
        return {name: value for name, value in headers.items() if value is not None}


class UploadApiConfig(BaseModel):
    """Target API and HTTP client settings."""

    endpoint: str | None = None
    connection_timeout_ms: int = Field(default=30_000, gt=0)
    read_timeout_ms: int = Field(default=60_000, gt=0)
    max_file_size_bytes: int = Field(default=100 * 1024 * 1024, gt=0)
    document_field: str = "document"
    metadata_field: str = "metadata"
    default_headers: DefaultHeaders = DefaultHeaders()


class RetryConfig(BaseModel):
    count: int = Field(default=3, ge=1)
    delay_ms: int = Field(default=1000, ge=0)
    backoff_multiplier: float = Field(default=2.0, ge=1.0)


class BehaviorConfig(BaseModel):
    skip_missing_files: bool = True
    continue_on_error: bool = True
    pre_validate_manifest: bool = True


class ReportConfig(BaseModel):
    directory: Path = Path("./reports")
    format: ReportFormat = "json"

    @field_validator("directory", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path:
        """Expand environment variables and ~ in path."""
        return _expand(v)

    @field_validator("format", mode="before")
    @classmethod
    def lower_format(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v


class QueueConfig(BaseModel):
    """Redis Streams front end."""

    enabled: bool = False
    redis_url: str = "redis://localhost:6379/0"
    stream: str = "bulk-upload-requests"
    group: str = "bulk-upload"
    consumer_name: str | None = None
    block_ms: int = Field(default=5000, ge=0)
    count: int = Field(default=1, ge=1)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file: Path | None = None

    @field_validator("file", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path | None:
        """Expand environment variables and ~ in path."""
        return _expand(v)


class ExecutionPolicy(BaseModel):
    """Run-level toggles that drive executor decisions."""

    retry_count: int = Field(default=3, ge=1)
    retry_delay_ms: int = Field(default=1000, ge=0)
    retry_backoff_multiplier: float = Field(default=2.0, ge=1.0)
    skip_missing_files: bool = True
    continue_on_error: bool = True


class BulkUploadConfig(BaseModel):
    """Complete service configuration."""

    manifest: ManifestConfig = ManifestConfig()
    upload: UploadApiConfig = UploadApiConfig()
    retry: RetryConfig = RetryConfig()
    behavior: BehaviorConfig = BehaviorConfig()
    report: ReportConfig = ReportConfig()
    queue: QueueConfig = QueueConfig()
    logging: LoggingConfig = LoggingConfig()

    def policy(self) -> ExecutionPolicy:
        return ExecutionPolicy(
            retry_count=self.retry.count,
            retry_delay_ms=self.retry.delay_ms,
            retry_backoff_multiplier=self.retry.backoff_multiplier,
            skip_missing_files=self.behavior.skip_missing_files,
            continue_on_error=self.behavior.continue_on_error,
        )


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            data.setdefault(section, {})
            data[section][key] = value
    return data


def load_config(config_path: Path | None = None) -> BulkUploadConfig:
    """
    Load service configuration.

    Values come from the YAML file (if given), then from environment
    variables (after loading any ``.env`` file).

    Args:
        config_path: YAML config file, or None to start from defaults

    Returns:
        Validated BulkUploadConfig
    """
    load_dotenv(override=True)

    data: dict[str, Any] = {}
    if config_path is not None:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping at the top level")

    return BulkUploadConfig(**_apply_env_overrides(data))


def describe_config(config: BulkUploadConfig) -> dict[str, Any]:
    """Safe-to-print view of the configuration; header values are not echoed."""
    headers = config.upload.default_headers
    return {
        "manifest": {
            "primaryPath": str(config.manifest.path) if config.manifest.path else None,
            "secondaryPath": str(config.manifest.secondary_path) if config.manifest.secondary_path else None,
            "correlationKey": config.manifest.correlation_key,
        },
        "upload": {
            "endpoint": config.upload.endpoint,
            "maxFileSizeBytes": config.upload.max_file_size_bytes,
            "connectionTimeoutMs": config.upload.connection_timeout_ms,
            "readTimeoutMs": config.upload.read_timeout_ms,
        },
        "retry": {
            "count": config.retry.count,
            "delayMs": config.retry.delay_ms,
            "backoffMultiplier": config.retry.backoff_multiplier,
        },
        "behavior": {
            "skipMissingFiles": config.behavior.skip_missing_files,
            "continueOnError": config.behavior.continue_on_error,
            "preValidateManifest": config.behavior.pre_validate_manifest,
        },
        "report": {
            "directory": str(config.report.directory),
            "format": config.report.format.upper(),
        },
        "defaultHeaders": {
            "userIdConfigured": headers.user_id is not None,
            "tenantIdConfigured": headers.tenant_id is not None,
            "workspaceIdConfigured": headers.workspace_id is not None,
        },
    }
