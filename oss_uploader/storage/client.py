"""
Signed HEAD/PUT client for a single OSS bucket.

Intent:
    Implement the ObjectStore port with the two requests the uploader needs:
    a metadata-only existence probe and a single-shot object PUT.

Design:
    - Every call signs a fresh request (new Date header, new signature).
    - Uses httpx with redirects disabled; an unexpected redirect is treated
      as an error rather than followed to another host.
    - No retry here. The orchestrator owns the retry policy.

Security:
    Do not log Authorization values or secrets. Logged fields are limited to
    verb, key and status code.
"""
from __future__ import annotations

from datetime import datetime
import logging
from typing import Callable, Optional
from urllib.parse import quote
from xml.etree import ElementTree

import httpx

from ..config import UploaderConfig
from ..errors import AuthError, ExistenceCheckError, NetworkError
from .signing import SignedRequest, sign_request

_log = logging.getLogger("oss_uploader.storage")


def _error_detail(resp: httpx.Response) -> str:
    """Extract `Code: Message` from an OSS XML error body when present."""
    body = resp.content
    if not body or not body.lstrip().startswith(b"<"):
        return ""
    try:
        root = ElementTree.fromstring(body)
    except ElementTree.ParseError:
        return ""
    code = (root.findtext("Code") or "").strip()
    message = (root.findtext("Message") or "").strip()
    if code and message:
        return f"{code}: {message}"
    return code or message


class OssClient:
    """ObjectStore implementation speaking the OSS REST API over httpx."""

    def __init__(
        self,
        config: UploaderConfig,
        *,
        http_client: Optional[httpx.Client] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.cfg = config
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=config.timeout_seconds, follow_redirects=False)
        self._clock = clock

    # --- Helpers -----------------------------------------------------------------

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "OssClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def url_for(self, key: str) -> str:
        return f"{self.cfg.endpoint}/{quote(key.lstrip('/'), safe='/')}"

    def _sign(self, verb: str, key: str, content_type: str = "") -> SignedRequest:
        return sign_request(
            access_key_id=self.cfg.access_key_id,
            access_key_secret=self.cfg.access_key_secret,
            bucket=self.cfg.bucket,
            verb=verb,
            key=key,
            content_type=content_type,
            now=self._clock() if self._clock else None,
        )

    # --- Port methods ------------------------------------------------------------

    def exists(self, key: str) -> bool:
        """Probe `key` with a signed HEAD.

        Returns True on 2xx and False on 404. Everything else (403, 5xx,
        redirects, transport errors) raises ExistenceCheckError so that a
        failing probe is never mistaken for "absent".
        """
        signed = self._sign("HEAD", key)
        try:
            resp = self._http.request("HEAD", self.url_for(key), headers=signed.headers())
        except httpx.HTTPError as exc:
            _log.warning("HEAD %s failed: error=%s", key, type(exc).__name__)
            raise ExistenceCheckError(f"existence check failed: {exc}") from exc
        status = resp.status_code
        _log.debug("HEAD %s status=%s", key, status)
        if 200 <= status < 300:
            return True
        if status == 404:
            return False
        # HEAD responses carry no body; the OSS request id is the best hint
        request_id = resp.headers.get("x-oss-request-id", "")
        suffix = f" (request id {request_id})" if request_id else ""
        raise ExistenceCheckError(f"existence check failed: HTTP {status}{suffix}", status_code=status)

    def put_object(self, *, key: str, body: bytes, content_type: str) -> None:
        """Upload `body` to `key` in one signed PUT.

        Raises AuthError on 401/403 and NetworkError on transport failures or
        any other non-2xx status.
        """
        signed = self._sign("PUT", key, content_type)
        try:
            resp = self._http.request("PUT", self.url_for(key), headers=signed.headers(), content=body)
        except httpx.HTTPError as exc:
            _log.warning("PUT %s failed: error=%s", key, type(exc).__name__)
            raise NetworkError(f"upload request failed: {exc}") from exc
        status = resp.status_code
        _log.debug("PUT %s status=%s bytes=%s", key, status, len(body))
        if 200 <= status < 300:
            return
        detail = _error_detail(resp)
        message = f"upload failed: HTTP {status}" + (f" ({detail})" if detail else "")
        if status in (401, 403):
            raise AuthError(message, status_code=status)
        raise NetworkError(message, status_code=status)


__all__ = ["OssClient"]
