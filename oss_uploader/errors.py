"""
Error taxonomy for the upload client.

Intent:
    Give callers (editor plugins, the CLI) one discriminable exception per
    failure class plus a human-readable message they can show verbatim.

Design:
    - Permanent: ConfigError, TransformError, ExistenceCheckError.
    - Transfer failures: AuthError, NetworkError. The orchestrator retries
      these and surfaces ExhaustedRetriesError once the bound is reached.
"""

from __future__ import annotations

from typing import Optional


class OssUploaderError(Exception):
    """Base class for all upload client failures."""


class ConfigError(OssUploaderError):
    """Required configuration (credentials, bucket, region) missing or malformed."""


class TransformError(OssUploaderError):
    """Payload could not be re-encoded within the configured limits."""


class ExistenceCheckError(OssUploaderError):
    """The HEAD probe failed with anything other than a not-found response."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NetworkError(OssUploaderError):
    """Transport failure or non-2xx response during transfer."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthError(NetworkError):
    """The store rejected the request signature or credentials (401/403)."""


class ExhaustedRetriesError(OssUploaderError):
    """All transfer attempts failed; `last_error` holds the final cause."""

    def __init__(self, last_error: Exception, *, attempts: int) -> None:
        super().__init__(f"upload failed after {attempts} attempts: {last_error}")
        self.last_error = last_error
        self.attempts = attempts


__all__ = [
    "OssUploaderError",
    "ConfigError",
    "TransformError",
    "ExistenceCheckError",
    "NetworkError",
    "AuthError",
    "ExhaustedRetriesError",
]
