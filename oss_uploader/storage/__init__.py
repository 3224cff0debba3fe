"""
OSS storage access: key derivation, request signing and the HTTP client.
"""
from .client import OssClient
from .keys import content_hash, content_type_for, make_content_key, object_url
from .signing import SignedRequest, sign, sign_request, string_to_sign

__all__ = [
    "OssClient",
    "SignedRequest",
    "content_hash",
    "content_type_for",
    "make_content_key",
    "object_url",
    "sign",
    "sign_request",
    "string_to_sign",
]
