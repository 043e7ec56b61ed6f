"""File location configuration helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

DEFAULT_CONFIG_FILENAME: Final[str] = "pricetag.toml"
DEFAULT_LOCK_FILENAME: Final[str] = "pricetag.lock.json"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    config_path: Path
    lock_path: Path

    def resolve_config_path(self) -> Path:
        return self.config_path.expanduser().resolve()

    def resolve_lock_path(self) -> Path:
        return self.lock_path.expanduser().resolve()


def get_storage_config(
    *,
    config_path: str | None = None,
    lock_path: str | None = None,
) -> StorageConfig:
    """Resolve file locations: explicit arguments, then environment, then defaults."""

    resolved_config = config_path or os.getenv("PRICETAG_CONFIG") or DEFAULT_CONFIG_FILENAME
    resolved_lock = lock_path or os.getenv("PRICETAG_LOCK") or DEFAULT_LOCK_FILENAME
    return StorageConfig(config_path=Path(resolved_config), lock_path=Path(resolved_lock))
