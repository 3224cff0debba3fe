"""
Upload orchestration: hash -> dedup check -> compress -> sign -> PUT with retry.

Intent:
    The single public entry point used by editor integrations and the CLI.
    Callers hand in raw bytes plus the original filename and receive the
    public URL of the stored object, or one of the errors in
    `oss_uploader.errors`.

Behavior:
    - Configuration is validated before anything touches the network.
    - The storage key is derived from the original bytes, so a dedup hit
      returns immediately without compressing or uploading.
    - Transfer failures of any kind are retried with exponential backoff
      (base, 2*base, 4*base, ...). The last failure is surfaced wrapped in
      ExhaustedRetriesError.

Concurrency:
    An Uploader holds only its immutable config and the injected store, so
    one instance may serve concurrent uploads when the store's HTTP client
    allows it.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
import time
from typing import Callable, Optional

from .config import UploaderConfig
from .errors import ExhaustedRetriesError, OssUploaderError
from .imaging.compress import compress_in_background, should_compress
from .ports import ObjectStore, ProgressSink
from .storage.client import OssClient
from .storage.keys import content_type_for, extension_of, make_content_key, object_url

_log = logging.getLogger("oss_uploader.uploader")


@dataclass(frozen=True)
class UploadResult:
    url: str
    key: str
    existed: bool = False
    attempts: int = 0
    size: int = 0


def backoff_delays(max_retries: int, base_delay: float) -> list[float]:
    """Delays slept before each retry: [base, 2*base, 4*base, ...]."""
    return [base_delay * (2 ** n) for n in range(max(0, max_retries))]


class Uploader:
    """Content-addressed uploader bound to one immutable configuration."""

    def __init__(
        self,
        config: UploaderConfig,
        *,
        store: Optional[ObjectStore] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.cfg = config
        self._owns_store = store is None
        # Built up front so concurrent first uploads share one client
        self._store: ObjectStore = store if store is not None else OssClient(config)
        self._sleep = sleep

    def close(self) -> None:
        """Close the store if this uploader created it."""
        if self._owns_store:
            close = getattr(self._store, "close", None)
            if close is not None:
                close()

    def key_for(self, data: bytes, filename: str) -> str:
        return make_content_key(path_prefix=self.cfg.path_prefix, data=data, filename=filename)

    def url_for(self, key: str) -> str:
        return object_url(self.cfg.public_base_url, key)

    def upload(
        self,
        data: bytes,
        filename: str,
        *,
        progress: Optional[ProgressSink] = None,
        skip_exist_check: bool = False,
    ) -> UploadResult:
        """Upload `data` under its content address and return the result.

        Raises:
            ConfigError: credentials, bucket or region missing (no network call).
            ExistenceCheckError: the HEAD probe failed with anything but 404.
            TransformError: compression failed; nothing is uploaded.
            ExhaustedRetriesError: every PUT attempt failed.
        """
        self.cfg.validate()
        key = self.key_for(data, filename)
        url = self.url_for(key)
        store = self._store

        if not skip_exist_check and store.exists(key):
            _log.info("object exists, skipping upload key=%s", key)
            return UploadResult(url=url, key=key, existed=True)

        ext = extension_of(filename)
        payload = data
        if should_compress(ext, self.cfg.compress_enabled):
            future = compress_in_background(
                data,
                ext=ext,
                max_size_mb=self.cfg.max_size_mb,
                max_dimension=self.cfg.max_dimension,
                progress=progress,
            )
            payload = future.result()
            _log.debug("compressed key=%s bytes_in=%s bytes_out=%s", key, len(data), len(payload))

        content_type = content_type_for(filename)
        attempts = self._transfer_with_retry(key, payload, content_type, progress)
        _log.info("uploaded key=%s bytes=%s attempts=%s", key, len(payload), attempts)
        return UploadResult(url=url, key=key, existed=False, attempts=attempts, size=len(payload))

    def _transfer_with_retry(
        self,
        key: str,
        payload: bytes,
        content_type: str,
        progress: Optional[ProgressSink],
    ) -> int:
        """PUT `payload`, retrying every failure; return the attempt count used."""
        store = self._store
        delays = backoff_delays(self.cfg.max_retries, self.cfg.retry_base_delay)
        total = len(delays) + 1
        if progress is not None:
            progress("upload", 0.0)
        last_error: Optional[Exception] = None
        for attempt in range(1, total + 1):
            try:
                store.put_object(key=key, body=payload, content_type=content_type)
            except OssUploaderError as exc:
                last_error = exc
            else:
                if progress is not None:
                    progress("upload", 100.0)
                return attempt
            if attempt < total:
                delay = delays[attempt - 1]
                _log.warning(
                    "upload attempt %s/%s failed for key=%s: %s; retrying in %ss",
                    attempt, total, key, last_error, delay,
                )
                self._sleep(delay)
        assert last_error is not None
        _log.error("upload failed after %s attempts key=%s: %s", total, key, last_error)
        raise ExhaustedRetriesError(last_error, attempts=total) from last_error


def upload_bytes(
    config: UploaderConfig,
    data: bytes,
    filename: str,
    *,
    progress: Optional[ProgressSink] = None,
    skip_exist_check: bool = False,
) -> str:
    """One-shot helper returning only the public URL."""
    uploader = Uploader(config)
    try:
        return uploader.upload(data, filename, progress=progress, skip_exist_check=skip_exist_check).url
    finally:
        uploader.close()


__all__ = ["UploadResult", "Uploader", "backoff_delays", "upload_bytes"]
