"""
OssClient — wire-level behaviour of the HEAD probe and PUT upload.

Uses httpx.MockTransport so no request leaves the process.
"""
from __future__ import annotations

from datetime import datetime, timezone

import httpx
import pytest

FIXED_NOW = datetime(2019, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


def _client(config, handler):
    from oss_uploader.storage.client import OssClient

    http = httpx.Client(transport=httpx.MockTransport(handler), follow_redirects=False)
    return OssClient(config, http_client=http, clock=lambda: FIXED_NOW)


def test_exists_true_on_200_and_signs_head(config):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200)

    client = _client(config, handler)
    assert client.exists("obsidian/abc.png") is True

    req = seen[0]
    assert req.method == "HEAD"
    assert str(req.url) == "https://mybucket.oss-cn-hangzhou.aliyuncs.com/obsidian/abc.png"
    assert req.headers["Date"] == "Tue, 01 Jan 2019 00:00:00 GMT"
    assert req.headers["Authorization"] == "OSS AKID:Kc8Lv4ZAA920J90Fr6cQ0YwB5Mo="


def test_exists_false_only_on_404(config):
    client = _client(config, lambda request: httpx.Response(404))
    assert client.exists("obsidian/abc.png") is False


@pytest.mark.parametrize("status", [403, 500, 503, 302])
def test_exists_raises_on_other_statuses(config, status):
    from oss_uploader.errors import ExistenceCheckError

    client = _client(config, lambda request: httpx.Response(status, headers={"x-oss-request-id": "RID"}))
    with pytest.raises(ExistenceCheckError) as ei:
        client.exists("obsidian/abc.png")
    assert ei.value.status_code == status
    assert "RID" in str(ei.value)


def test_exists_wraps_transport_errors(config):
    from oss_uploader.errors import ExistenceCheckError

    def handler(request):
        raise httpx.ConnectError("dns failure", request=request)

    client = _client(config, handler)
    with pytest.raises(ExistenceCheckError) as ei:
        client.exists("obsidian/abc.png")
    assert isinstance(ei.value.__cause__, httpx.ConnectError)


def test_put_object_sends_signed_body(config):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200)

    client = _client(config, handler)
    client.put_object(key="obsidian/abc.png", body=b"PNGDATA", content_type="image/png")

    req = seen[0]
    assert req.method == "PUT"
    assert req.content == b"PNGDATA"
    assert req.headers["Content-Type"] == "image/png"
    assert req.headers["Authorization"] == "OSS AKID:r0kg9n23r6gJdx36CfhHub9IDL4="


def test_put_object_403_is_auth_error_with_provider_detail(config):
    from oss_uploader.errors import AuthError

    body = (
        b'<?xml version="1.0" encoding="UTF-8"?>\n<Error><Code>SignatureDoesNotMatch</Code>'
        b"<Message>The request signature we calculated does not match.</Message></Error>"
    )
    client = _client(config, lambda request: httpx.Response(403, content=body))
    with pytest.raises(AuthError) as ei:
        client.put_object(key="obsidian/abc.png", body=b"x", content_type="image/png")
    assert ei.value.status_code == 403
    assert "SignatureDoesNotMatch" in str(ei.value)


def test_put_object_500_is_network_error(config):
    from oss_uploader.errors import AuthError, NetworkError

    client = _client(config, lambda request: httpx.Response(500, content=b"oops"))
    with pytest.raises(NetworkError) as ei:
        client.put_object(key="obsidian/abc.png", body=b"x", content_type="image/png")
    assert not isinstance(ei.value, AuthError)
    assert ei.value.status_code == 500


def test_put_object_wraps_transport_errors(config):
    from oss_uploader.errors import NetworkError

    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    client = _client(config, handler)
    with pytest.raises(NetworkError):
        client.put_object(key="obsidian/abc.png", body=b"x", content_type="image/png")


def test_url_for_quotes_key(config):
    from oss_uploader.storage.client import OssClient

    client = OssClient(config, http_client=httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200))))
    assert client.url_for("my notes/a.png") == "https://mybucket.oss-cn-hangzhou.aliyuncs.com/my%20notes/a.png"


def test_each_request_is_signed_fresh(config):
    from oss_uploader.storage.client import OssClient

    moments = iter([FIXED_NOW, FIXED_NOW.replace(second=5)])
    dates: list[str] = []

    def handler(request):
        dates.append(request.headers["Date"])
        return httpx.Response(200)

    http = httpx.Client(transport=httpx.MockTransport(handler))
    client = OssClient(config, http_client=http, clock=lambda: next(moments))
    client.put_object(key="k.png", body=b"x", content_type="image/png")
    client.put_object(key="k.png", body=b"x", content_type="image/png")
    assert dates == ["Tue, 01 Jan 2019 00:00:00 GMT", "Tue, 01 Jan 2019 00:00:05 GMT"]
