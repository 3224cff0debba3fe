"""
Pytest configuration and shared fakes for the upload client tests.

Why: Most tests exercise the orchestrator against an in-memory store so they
never touch the network; wire-level tests use httpx.MockTransport instead.
"""
from __future__ import annotations

from io import BytesIO
import random

import pytest
from PIL import Image

from oss_uploader.config import UploaderConfig
from oss_uploader.errors import NetworkError


class FakeStore:
    """In-memory ObjectStore that records calls and can fail on demand."""

    def __init__(self, *, present: set[str] | None = None, failures: list[Exception] | None = None):
        self.present = set(present or ())
        self.failures = list(failures or [])
        self.exists_calls: list[str] = []
        self.put_calls: list[dict] = []

    def exists(self, key: str) -> bool:
        self.exists_calls.append(key)
        return key in self.present

    def put_object(self, *, key: str, body: bytes, content_type: str) -> None:
        self.put_calls.append({"key": key, "body": body, "content_type": content_type})
        if self.failures:
            raise self.failures.pop(0)
        self.present.add(key)


def failing(n: int, message: str = "boom") -> list[Exception]:
    return [NetworkError(f"{message} {i}", status_code=503) for i in range(n)]


@pytest.fixture
def config() -> UploaderConfig:
    return UploaderConfig(
        access_key_id="AKID",
        access_key_secret="secret",
        bucket="mybucket",
        region="oss-cn-hangzhou",
    )


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def sleeps() -> list[float]:
    return []


def noise_image_bytes(width: int, height: int, fmt: str = "PNG", *, seed: int = 7) -> bytes:
    """Random RGB noise; compresses badly, which is what size-limit tests need."""
    rng = random.Random(seed)
    img = Image.frombytes("RGB", (width, height), rng.randbytes(width * height * 3))
    buf = BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def solid_image_bytes(width: int, height: int, fmt: str = "PNG", color=(200, 30, 30)) -> bytes:
    img = Image.new("RGB", (width, height), color)
    buf = BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def make_noise_image():
    return noise_image_bytes


@pytest.fixture
def make_solid_image():
    return solid_image_bytes


@pytest.fixture
def make_store():
    return FakeStore


@pytest.fixture
def make_failures():
    return failing
