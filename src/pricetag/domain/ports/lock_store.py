"""Port for the durable last-known-state ledger."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pricetag.domain.model import RemoteRecord


@runtime_checkable
class LockStore(Protocol):
    """Loads and saves the whole ``key -> RemoteRecord`` mapping.

    ``load`` returns an empty mapping for a missing or corrupt document and
    raises ``LockStoreUnreadableError`` only when the file cannot be read.
    ``save`` replaces the document atomically or raises
    ``PersistFailureError`` leaving the previous document untouched.
    """

    def load(self) -> dict[str, RemoteRecord]:
        ...

    def save(self, records: Mapping[str, RemoteRecord]) -> None:
        ...


__all__ = ["LockStore"]
