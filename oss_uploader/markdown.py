"""
Rewrite local image embeds in a markdown note to point at an uploaded URL.

Handles both embed forms found in notes:
    ![[attachments/cat.png]]
    ![any alt text](attachments/cat.png)
"""
from __future__ import annotations

import os
import re
from typing import Optional


def default_alt(file_path: str) -> str:
    """Basename without extension, used as alt text for rewritten links."""
    base = os.path.basename(file_path)
    return re.sub(r"\.[^/.]+$", "", base)


def image_link(url: str, alt: str) -> str:
    return f"![{alt}]({url})"


def rewrite_image_links(
    content: str,
    file_path: str,
    url: str,
    *,
    alt: Optional[str] = None,
) -> tuple[str, int]:
    """Replace every embed of `file_path` in `content` with a link to `url`.

    The path is matched literally. Returns (new_content, replacements).
    """
    escaped = re.escape(file_path)
    pattern = re.compile(rf"!\[\[{escaped}\]\]|!\[[^\]]*\]\({escaped}\)")
    link = image_link(url, alt if alt is not None else default_alt(file_path))
    return pattern.subn(lambda _m: link, content)


def insert_image_link(content: str, url: str, alt: str, *, position: Optional[int] = None) -> str:
    """Insert `![alt](url)` plus a newline at `position` (default: end of text)."""
    link = image_link(url, alt) + "\n"
    if position is None:
        if content and not content.endswith("\n"):
            link = "\n" + link
        return content + link
    position = max(0, min(len(content), position))
    return content[:position] + link + content[position:]


__all__ = ["default_alt", "image_link", "rewrite_image_links", "insert_image_link"]
