"""
Helpers to derive content-addressed storage keys and public URLs.

Conventions:
    - Key shape: {path_prefix}{sha256_hex}.{ext}
    - The digest is taken over the ORIGINAL payload. Recompression happens
      later and never changes the key, so byte-identical sources always map to
      the same object regardless of compression settings.

Security:
    - Extensions are lowercased and filtered to alphanumerics.
    - Keys are percent-encoded for URLs; the signed resource uses the raw key.
"""
from __future__ import annotations

from hashlib import sha256 as _sha256
import mimetypes
import os
from urllib.parse import quote

IMAGE_EXTENSIONS = frozenset({"png", "jpg", "jpeg", "gif", "bmp", "webp"})


def content_hash(data: bytes) -> str:
    """Return the lowercase SHA-256 hex digest of `data`."""
    return _sha256(data).hexdigest()


def extension_of(filename: str | None) -> str:
    """Lowercase extension of `filename` without the dot ("" when absent)."""
    if not filename:
        return ""
    _, ext = os.path.splitext(os.path.basename(filename))
    return "".join(ch for ch in ext.lower() if ch.isalnum())


def is_image_extension(ext: str) -> bool:
    return (ext or "").lower() in IMAGE_EXTENSIONS


def make_content_key(*, path_prefix: str, data: bytes, filename: str) -> str:
    """Build the storage key for `data` uploaded under `filename`.

    Returns: {path_prefix}{sha256}.{ext}, or {path_prefix}{sha256} when the
    filename carries no extension.
    """
    digest = content_hash(data)
    ext = extension_of(filename)
    prefix = path_prefix or ""
    return f"{prefix}{digest}.{ext}" if ext else f"{prefix}{digest}"


def content_type_for(filename: str) -> str:
    """Content-Type declared on upload, derived from the extension only.

    Raster images use `image/<ext>` verbatim (so `.jpg` -> `image/jpg`); the
    bytes themselves are never sniffed.
    """
    ext = extension_of(filename)
    if is_image_extension(ext):
        return f"image/{ext}"
    guessed, _ = mimetypes.guess_type(f"x.{ext}") if ext else (None, None)
    return guessed or "application/octet-stream"


def object_url(base_url: str, key: str) -> str:
    return f"{base_url.rstrip('/')}/{quote(key, safe='/')}"


__all__ = [
    "IMAGE_EXTENSIONS",
    "content_hash",
    "extension_of",
    "is_image_extension",
    "make_content_key",
    "content_type_for",
    "object_url",
]
