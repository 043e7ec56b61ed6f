"""Content fingerprints for binary assets.

A fingerprint is the hex SHA-256 digest of the raw bytes. Two equal
fingerprints mean the asset is treated as unchanged; no line-ending or
metadata normalisation is applied since assets are binary.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

from .errors import AssetUnreadableError

_CHUNK_SIZE = 64 * 1024


def fingerprint_bytes(data: bytes) -> str:
    """Return the hex SHA-256 digest of ``data``."""
    return hashlib.sha256(data).hexdigest()


def fingerprint_file(path: str | Path) -> str:
    """Return the hex SHA-256 digest of the file at ``path``.

    Raises:
        AssetUnreadableError: If the file is missing or cannot be read.
    """
    digest = hashlib.sha256()
    try:
        with Path(path).open("rb") as handle:
            for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError as exc:
        raise AssetUnreadableError(str(path), exc.strerror or str(exc)) from exc
    return digest.hexdigest()


def read_asset(path: str | Path) -> bytes:
    """Read an asset for upload, mapping I/O failures to ``AssetUnreadableError``."""
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise AssetUnreadableError(str(path), exc.strerror or str(exc)) from exc
