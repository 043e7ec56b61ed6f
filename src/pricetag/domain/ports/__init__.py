"""Domain port definitions for adapters."""

from __future__ import annotations

from .lock_store import LockStore
from .mutations import ProductMutationClient

__all__ = ["LockStore", "ProductMutationClient"]
