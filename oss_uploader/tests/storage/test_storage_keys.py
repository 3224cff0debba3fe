"""
Storage keys — content addressing, extensions, content types and URLs.
"""
from __future__ import annotations

import re

import pytest


HELLO_SHA256 = "b94d27b9934d3e08a52e52d7da7dabfac484efe37a5380ee9088f7ace2efcde9"
EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def test_content_hash_is_lowercase_sha256_hex():
    from oss_uploader.storage.keys import content_hash

    assert content_hash(b"hello world") == HELLO_SHA256
    assert content_hash(b"") == EMPTY_SHA256
    assert re.fullmatch(r"[0-9a-f]{64}", content_hash(b"\x00\xff" * 100))


def test_make_content_key_shape_and_determinism():
    from oss_uploader.storage.keys import make_content_key

    first = make_content_key(path_prefix="obsidian/", data=b"hello world", filename="Cat.PNG")
    second = make_content_key(path_prefix="obsidian/", data=b"hello world", filename="dog.png")
    assert first == f"obsidian/{HELLO_SHA256}.png"
    # Only the extension of the filename matters
    assert first == second


def test_make_content_key_depends_on_bytes_not_name():
    from oss_uploader.storage.keys import make_content_key

    a = make_content_key(path_prefix="p/", data=b"a", filename="same.jpg")
    b = make_content_key(path_prefix="p/", data=b"b", filename="same.jpg")
    assert a != b


def test_make_content_key_without_extension_has_no_dot():
    from oss_uploader.storage.keys import make_content_key

    key = make_content_key(path_prefix="obsidian/", data=b"hello world", filename="README")
    assert key == f"obsidian/{HELLO_SHA256}"


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("a.png", "png"),
        ("dir/b.JPEG", "jpeg"),
        ("archive.tar.gz", "gz"),
        ("noext", ""),
        ("", ""),
        (None, ""),
    ],
)
def test_extension_of(filename, expected):
    from oss_uploader.storage.keys import extension_of

    assert extension_of(filename) == expected


def test_content_type_uses_extension_verbatim_for_images():
    from oss_uploader.storage.keys import content_type_for

    assert content_type_for("x.png") == "image/png"
    assert content_type_for("x.JPG") == "image/jpg"
    assert content_type_for("x.webp") == "image/webp"


def test_content_type_for_other_files_falls_back():
    from oss_uploader.storage.keys import content_type_for

    assert content_type_for("doc.pdf") == "application/pdf"
    assert content_type_for("blob") == "application/octet-stream"


def test_object_url_quotes_key_but_keeps_slashes():
    from oss_uploader.storage.keys import object_url

    assert object_url("https://cdn.example.com/", "p/h.png") == "https://cdn.example.com/p/h.png"
    assert object_url("https://cdn.example.com", "my notes/h.png") == "https://cdn.example.com/my%20notes/h.png"
