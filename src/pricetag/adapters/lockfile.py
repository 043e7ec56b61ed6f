"""JSON lock file holding the last-known remote state of every product.

The document is small and rewritten whole after every run::

    {
      "version": 1,
      "products": {
        "coins_100": {"remote_id": 123, "name": "100 Coins", "price": 99, ...}
      }
    }
"""

from __future__ import annotations

import json
import os
import tempfile
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pricetag.domain.errors import (
    LockStoreCorruptError,
    LockStoreUnreadableError,
    PersistFailureError,
)
from pricetag.domain.model import RemoteRecord

if TYPE_CHECKING:
    from collections.abc import Mapping

log = getLogger(__name__)

LOCK_VERSION = 1


class LockedProduct(BaseModel):
    model_config = ConfigDict(extra="ignore")

    remote_id: int
    name: str | None = None
    price: int | None = None
    description: str | None = None
    image_hash: str | None = None

    def to_record(self) -> RemoteRecord:
        return RemoteRecord(
            remote_id=self.remote_id,
            name=self.name,
            price=self.price,
            description=self.description,
            image_hash=self.image_hash,
        )

    @classmethod
    def from_record(cls, record: RemoteRecord) -> LockedProduct:
        return cls(
            remote_id=record.remote_id,
            name=record.name,
            price=record.price,
            description=record.description,
            image_hash=record.image_hash,
        )


class LockDocument(BaseModel):
    """Root model of the persisted lock file."""

    version: int = LOCK_VERSION
    products: dict[str, LockedProduct] = Field(default_factory=dict)


class JsonLockStore:
    """File-backed ``LockStore``.

    A missing or empty file is an empty ledger. A file that exists but does
    not parse is logged and also treated as empty, so the next successful run
    rewrites it. Writes go to a temporary sibling that replaces the target
    only once fully flushed.

    Args:
        path: Location of the lock file.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> dict[str, RemoteRecord]:
        try:
            document = self.read_document()
        except LockStoreCorruptError as exc:
            log.warning("%s; starting from an empty lock", exc)
            return {}
        return {key: product.to_record() for key, product in document.products.items()}

    def read_document(self) -> LockDocument:
        """Parse the lock file without the corrupt-file fallback.

        Raises:
            LockStoreUnreadableError: If the file exists but cannot be read.
            LockStoreCorruptError: If the content is not a valid lock document.
        """
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return LockDocument()
        except OSError as exc:
            raise LockStoreUnreadableError(f"Cannot read lock file {self.path}: {exc}") from exc
        if not raw.strip():
            return LockDocument()
        try:
            document = LockDocument.model_validate_json(raw)
        except (ValidationError, UnicodeDecodeError) as exc:
            raise LockStoreCorruptError(f"Lock file {self.path} is corrupt: {exc}") from exc
        if document.version != LOCK_VERSION:
            raise LockStoreCorruptError(
                f"Lock file {self.path} has unsupported version {document.version}"
            )
        return document

    def save(self, records: Mapping[str, RemoteRecord]) -> None:
        document = LockDocument(
            products={key: LockedProduct.from_record(records[key]) for key in sorted(records)},
        )
        payload = json.dumps(document.model_dump(mode="json"), indent=2) + "\n"
        try:
            _atomic_write_text(self.path, payload)
        except OSError as exc:
            raise PersistFailureError(f"Cannot write lock file {self.path}: {exc}") from exc
        log.debug("Wrote %d record(s) to %s", len(records), self.path)


def _atomic_write_text(path: Path, payload: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


__all__ = ["LOCK_VERSION", "JsonLockStore", "LockDocument", "LockedProduct"]
