from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING

import pytest

from pricetag.domain.errors import AssetUnreadableError
from pricetag.domain.fingerprint import fingerprint_bytes, fingerprint_file, read_asset

if TYPE_CHECKING:
    from pathlib import Path


def test_fingerprint_bytes_is_sha256_hex() -> None:
    assert fingerprint_bytes(b"abc") == hashlib.sha256(b"abc").hexdigest()


def test_fingerprint_file_matches_fingerprint_of_its_bytes(png_image: Path) -> None:
    assert fingerprint_file(png_image) == fingerprint_bytes(png_image.read_bytes())


def test_fingerprint_distinguishes_content(tmp_path: Path) -> None:
    first = tmp_path / "a.png"
    second = tmp_path / "b.png"
    first.write_bytes(b"one")
    second.write_bytes(b"two")

    assert fingerprint_file(first) != fingerprint_file(second)


def test_fingerprint_does_not_normalise_line_endings() -> None:
    assert fingerprint_bytes(b"a\r\nb") != fingerprint_bytes(b"a\nb")


def test_missing_asset_raises_asset_unreadable(tmp_path: Path) -> None:
    missing = tmp_path / "missing.png"

    with pytest.raises(AssetUnreadableError) as exc:
        fingerprint_file(missing)

    assert exc.value.path == str(missing)

    with pytest.raises(AssetUnreadableError):
        read_asset(missing)
