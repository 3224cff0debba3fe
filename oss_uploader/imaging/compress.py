"""
Size- and dimension-bounded image recompression with Pillow.

Pipeline:
- Decode the payload; reject anything Pillow cannot read.
- Return the input untouched when it already fits both limits.
- Downscale so the longest edge is at most `max_dimension` (Lanczos).
- Re-encode in the same format. While the result exceeds the byte limit,
  lower the encoder quality (JPEG/WEBP only, down to a floor), then shrink
  the image further.

Design:
- The format never changes; a PNG stays a PNG.
- Bounded number of encode attempts; if the limit is still not met the call
  raises TransformError instead of uploading an oversized payload.
- Progress is reported as ("compress", percent) from the worker thread.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from io import BytesIO
import logging
from typing import Optional

from PIL import Image

from ..errors import TransformError
from ..ports import ProgressSink
from ..storage.keys import is_image_extension

_log = logging.getLogger("oss_uploader.imaging")

PIL_FORMATS = {
    "png": "PNG",
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "gif": "GIF",
    "bmp": "BMP",
    "webp": "WEBP",
}
_LOSSY_FORMATS = {"JPEG", "WEBP"}

QUALITY_START = 85
QUALITY_FLOOR = 10
QUALITY_STEP = 15
SCALE_STEP = 0.8
MIN_EDGE = 16
MAX_ATTEMPTS = 20


class _Progress:
    """Clamp reported percentages so the sink only ever sees increases."""

    def __init__(self, sink: Optional[ProgressSink], stage: str) -> None:
        self._sink = sink
        self._stage = stage
        self._last = -1.0

    def __call__(self, percent: float) -> None:
        value = max(self._last, min(100.0, float(percent)))
        if value == self._last:
            return
        self._last = value
        if self._sink is not None:
            self._sink(self._stage, value)


def should_compress(ext: str, enabled: bool) -> bool:
    return bool(enabled) and is_image_extension(ext)


def _prepare_mode(img: Image.Image, fmt: str) -> Image.Image:
    if fmt == "JPEG":
        if img.mode in ("RGB", "L"):
            return img
        rgba = img.convert("RGBA")
        # JPEG has no alpha; flatten onto white
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    if fmt in ("WEBP", "BMP", "PNG") and img.mode not in ("1", "L", "P", "RGB", "RGBA"):
        return img.convert("RGBA" if "A" in img.getbands() else "RGB")
    return img


def _encode(img: Image.Image, fmt: str, quality: int) -> bytes:
    params: dict = {}
    if fmt in _LOSSY_FORMATS:
        params["quality"] = quality
    if fmt in ("PNG", "JPEG"):
        params["optimize"] = True
    buf = BytesIO()
    img.save(buf, format=fmt, **params)
    return buf.getvalue()


def compress_image(
    data: bytes,
    *,
    ext: str,
    max_size_mb: float,
    max_dimension: int,
    progress: Optional[ProgressSink] = None,
) -> bytes:
    """Recompress `data` so it fits `max_size_mb` and `max_dimension`.

    Parameters:
    - ext: lowercase file extension selecting the output format.
    - max_size_mb: byte limit in MiB (0.3 -> 314572 bytes).
    - max_dimension: maximum length of the longest edge in pixels.
    - progress: optional sink; receives ("compress", 0..100), monotonic,
      with 100 only on success.

    Returns the original bytes when no change is needed, otherwise the
    re-encoded image. Raises TransformError on undecodable input or when the
    limits cannot be met.
    """
    fmt = PIL_FORMATS.get((ext or "").lower())
    if fmt is None:
        raise TransformError(f"unsupported image type: {ext or '<none>'}")
    limit = int(max_size_mb * 1024 * 1024)
    report = _Progress(progress, "compress")
    report(0)

    try:
        img = Image.open(BytesIO(data))
        img.load()
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise TransformError(f"cannot decode image: {exc}") from exc

    width, height = img.size
    if len(data) <= limit and max(width, height) <= max_dimension:
        report(100)
        return data
    if getattr(img, "is_animated", False):
        raise TransformError("animated images cannot be recompressed without losing frames")

    base = _prepare_mode(img, fmt)
    scale = min(1.0, max_dimension / float(max(width, height)))
    quality = QUALITY_START
    out = b""
    for attempt in range(1, MAX_ATTEMPTS + 1):
        size = (max(1, round(width * scale)), max(1, round(height * scale)))
        frame = base if size == base.size else base.resize(size, Image.Resampling.LANCZOS)
        try:
            out = _encode(frame, fmt, quality)
        except (OSError, ValueError) as exc:
            raise TransformError(f"cannot encode {fmt}: {exc}") from exc
        _log.debug(
            "compress attempt=%s size=%sx%s quality=%s bytes=%s limit=%s",
            attempt, size[0], size[1], quality, len(out), limit,
        )
        if len(out) <= limit:
            report(100)
            return out
        report(attempt * 95 / MAX_ATTEMPTS)
        if fmt in _LOSSY_FORMATS and quality > QUALITY_FLOOR:
            quality = max(QUALITY_FLOOR, quality - QUALITY_STEP)
        elif max(size) <= MIN_EDGE:
            break
        else:
            scale *= SCALE_STEP

    raise TransformError(f"could not compress image below {limit} bytes (smallest attempt: {len(out)} bytes)")


def compress_in_background(
    data: bytes,
    *,
    ext: str,
    max_size_mb: float,
    max_dimension: int,
    progress: Optional[ProgressSink] = None,
) -> "Future[bytes]":
    """Run compress_image on a dedicated worker thread and return its Future.

    Each call gets its own single-thread executor, so concurrent uploads share
    no state. The executor is shut down without waiting; the submitted job
    still runs to completion.
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="oss-compress")
    try:
        return executor.submit(
            compress_image,
            data,
            ext=ext,
            max_size_mb=max_size_mb,
            max_dimension=max_dimension,
            progress=progress,
        )
    finally:
        executor.shutdown(wait=False)


__all__ = [
    "PIL_FORMATS",
    "should_compress",
    "compress_image",
    "compress_in_background",
]
