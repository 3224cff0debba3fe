"""
Ports used by the upload orchestrator.

Keep these small and framework-agnostic so tests can supply simple fakes.
"""
from __future__ import annotations

from typing import Protocol


class ProgressSink(Protocol):
    """Receives progress as (stage, percent).

    Stages are "compress" and "upload", always in that order and never
    interleaved. Ordering holds per stage only: each stage runs its own
    0..100 scale, so "upload" starts again at 0 after "compress" reaches
    100. Within a stage percentages are monotonically non-decreasing and
    100 is reported only on success.
    """

    def __call__(self, stage: str, percent: float) -> None: ...


class ObjectStore(Protocol):
    """Minimal interface to probe for and write a single object by key.

    Implementations sign every request themselves and raise the errors from
    `oss_uploader.errors`.
    """

    def exists(self, key: str) -> bool: ...

    def put_object(self, *, key: str, body: bytes, content_type: str) -> None: ...


__all__ = ["ProgressSink", "ObjectStore"]
