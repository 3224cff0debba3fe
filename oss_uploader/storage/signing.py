"""
OSS header signing (HMAC-SHA1, "OSS <id>:<signature>").

Why:
    The store authenticates each request by recomputing the signature over a
    canonical string. Any deviation in that string (an extra newline, a
    different date format) yields a silent 403, so the construction lives in
    small pure functions that are pinned by fixed vectors in the tests.

Canonical string:
    VERB\\n
    Content-MD5\\n        (always empty here)
    Content-Type\\n       (empty for HEAD)
    Date\\n               (RFC 1123, GMT)
    CanonicalizedOSSHeaders (x-oss-*, lowercased and sorted; usually none)
    CanonicalizedResource   (/bucket/key)

Security:
    Never log the secret or the resulting authorization value.
"""
from __future__ import annotations

import base64
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import format_datetime
import hashlib
import hmac
from typing import Mapping, Optional

AUTH_SCHEME = "OSS"


@dataclass(frozen=True)
class SignedRequest:
    verb: str
    resource: str
    content_type: str
    date: str
    authorization: str

    def headers(self) -> dict[str, str]:
        hdrs = {"Authorization": self.authorization, "Date": self.date}
        if self.content_type:
            hdrs["Content-Type"] = self.content_type
        return hdrs


def http_date(now: Optional[datetime] = None) -> str:
    """Format `now` (default: current UTC time) as an RFC 1123 GMT date."""
    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return format_datetime(moment.astimezone(timezone.utc), usegmt=True)


def canonical_resource(bucket: str, key: str) -> str:
    return f"/{bucket}/{key.lstrip('/')}"


def _canonical_oss_headers(oss_headers: Optional[Mapping[str, str]]) -> str:
    if not oss_headers:
        return ""
    items = {}
    for name, value in oss_headers.items():
        lname = name.strip().lower()
        if lname.startswith("x-oss-"):
            items[lname] = str(value).strip()
    return "".join(f"{name}:{items[name]}\n" for name in sorted(items))


def string_to_sign(
    verb: str,
    resource: str,
    *,
    date: str,
    content_type: str = "",
    content_md5: str = "",
    oss_headers: Optional[Mapping[str, str]] = None,
) -> str:
    return (
        f"{verb.upper()}\n{content_md5}\n{content_type}\n{date}\n"
        f"{_canonical_oss_headers(oss_headers)}{resource}"
    )


def sign(canonical: str, secret: str) -> str:
    """Return base64(HMAC-SHA1(secret, canonical))."""
    digest = hmac.new(secret.encode("utf-8"), canonical.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


def authorization_header(access_key_id: str, signature: str) -> str:
    return f"{AUTH_SCHEME} {access_key_id}:{signature}"


def sign_request(
    *,
    access_key_id: str,
    access_key_secret: str,
    bucket: str,
    verb: str,
    key: str,
    content_type: str = "",
    now: Optional[datetime] = None,
) -> SignedRequest:
    """Build a fresh SignedRequest for one network attempt.

    The date is taken at call time; callers must not reuse a SignedRequest
    across retries.
    """
    date = http_date(now)
    resource = canonical_resource(bucket, key)
    canonical = string_to_sign(verb, resource, date=date, content_type=content_type)
    token = authorization_header(access_key_id, sign(canonical, access_key_secret))
    return SignedRequest(
        verb=verb.upper(),
        resource=resource,
        content_type=content_type,
        date=date,
        authorization=token,
    )


__all__ = [
    "AUTH_SCHEME",
    "SignedRequest",
    "http_date",
    "canonical_resource",
    "string_to_sign",
    "sign",
    "authorization_header",
    "sign_request",
]
