"""
Uploader configuration: immutable value plus environment loader.

Intent:
    Provide a single place to read the credentials, bucket coordinates and
    compression limits that drive an upload, and validate them before any
    network call is attempted.

Why:
    The host application owns the persisted settings and may change them
    between uploads. Passing a frozen value into each call means an in-flight
    upload never observes a half-edited configuration.

Env:
    OSS_ACCESS_KEY_ID, OSS_ACCESS_KEY_SECRET, OSS_BUCKET, OSS_REGION (required),
    OSS_CUSTOM_DOMAIN, OSS_PATH_PREFIX, OSS_COMPRESS, OSS_MAX_SIZE_MB,
    OSS_MAX_DIMENSION, OSS_MAX_RETRIES, OSS_TIMEOUT_SECONDS (optional).
"""
from __future__ import annotations

from dataclasses import dataclass, replace
import os

from .errors import ConfigError


PROVIDER_HOST_SUFFIX = "aliyuncs.com"

DEFAULT_PATH_PREFIX = "obsidian/"
DEFAULT_MAX_SIZE_MB = 0.3
DEFAULT_MAX_DIMENSION = 1280
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY = 1.0
DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class UploaderConfig:
    access_key_id: str = ""
    access_key_secret: str = ""
    bucket: str = ""
    region: str = ""  # e.g. oss-cn-hangzhou
    custom_domain: str = ""  # e.g. https://images.example.com
    path_prefix: str = DEFAULT_PATH_PREFIX
    compress_enabled: bool = True
    max_size_mb: float = DEFAULT_MAX_SIZE_MB
    max_dimension: int = DEFAULT_MAX_DIMENSION
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @property
    def endpoint(self) -> str:
        """Virtual-hosted bucket endpoint, e.g. https://b.oss-cn-hangzhou.aliyuncs.com"""
        return f"https://{self.bucket}.{self.region}.{PROVIDER_HOST_SUFFIX}"

    @property
    def public_base_url(self) -> str:
        return (self.custom_domain or "").strip().rstrip("/") or self.endpoint

    @property
    def max_size_bytes(self) -> int:
        return int(self.max_size_mb * 1024 * 1024)

    def missing_fields(self) -> list[str]:
        required = {
            "access_key_id": self.access_key_id,
            "access_key_secret": self.access_key_secret,
            "bucket": self.bucket,
            "region": self.region,
        }
        return [name for name, value in required.items() if not (value or "").strip()]

    def validate(self) -> None:
        """Raise ConfigError unless credentials, bucket and region are all set."""
        missing = self.missing_fields()
        if missing:
            raise ConfigError("missing OSS configuration: " + ", ".join(missing))
        if self.max_retries < 0:
            raise ConfigError("max_retries must be >= 0")
        if self.max_size_mb <= 0 or self.max_dimension <= 0:
            raise ConfigError("compression limits must be positive")

    def with_overrides(self, **changes) -> "UploaderConfig":
        return replace(self, **changes)


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    raise ConfigError(f"{name} must be true or false, got: {raw!r}")


def _number_env(name: str, default, cast):
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got: {raw!r}")


def load_uploader_config() -> UploaderConfig:
    """
    Build an UploaderConfig from environment variables.

    Behavior:
        - Reads the environment on every call; nothing is cached so edits made
          between uploads are picked up by the next one.
        - Does not validate required credentials; `UploaderConfig.validate()`
          runs at upload time so a partially configured host can still start.
        - Malformed numeric or boolean values raise ConfigError.
    """
    return UploaderConfig(
        access_key_id=(os.getenv("OSS_ACCESS_KEY_ID") or "").strip(),
        access_key_secret=(os.getenv("OSS_ACCESS_KEY_SECRET") or "").strip(),
        bucket=(os.getenv("OSS_BUCKET") or "").strip(),
        region=(os.getenv("OSS_REGION") or "").strip(),
        custom_domain=(os.getenv("OSS_CUSTOM_DOMAIN") or "").strip(),
        path_prefix=os.getenv("OSS_PATH_PREFIX", DEFAULT_PATH_PREFIX),
        compress_enabled=_bool_env("OSS_COMPRESS", True),
        max_size_mb=_number_env("OSS_MAX_SIZE_MB", DEFAULT_MAX_SIZE_MB, float),
        max_dimension=_number_env("OSS_MAX_DIMENSION", DEFAULT_MAX_DIMENSION, int),
        max_retries=_number_env("OSS_MAX_RETRIES", DEFAULT_MAX_RETRIES, int),
        timeout_seconds=_number_env("OSS_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS, float),
    )


__all__ = [
    "PROVIDER_HOST_SUFFIX",
    "DEFAULT_PATH_PREFIX",
    "DEFAULT_MAX_SIZE_MB",
    "DEFAULT_MAX_DIMENSION",
    "DEFAULT_MAX_RETRIES",
    "UploaderConfig",
    "load_uploader_config",
]
