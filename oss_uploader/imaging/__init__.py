"""
Image recompression applied before upload.
"""

from .compress import compress_image, compress_in_background, should_compress

__all__ = ["compress_image", "compress_in_background", "should_compress"]
