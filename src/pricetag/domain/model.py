"""Product declarations and last-known remote state (pure, dependency-light)."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path


class ProductType(StrEnum):
    """Remote product category; each has its own endpoints and rate ceiling."""

    DEV_PRODUCT = "dev_product"
    GAMEPASS = "gamepass"

    @property
    def label(self) -> str:
        return "DevProduct" if self is ProductType.DEV_PRODUCT else "Gamepass"


@dataclass(frozen=True, slots=True, kw_only=True)
class ProductDeclaration:
    """Desired state of one product as written in the config file."""

    product_type: ProductType
    name: str
    price: int
    description: str | None = None
    image: Path | None = None
    product_id: int | None = None

    def __post_init__(self) -> None:
        if self.price < 0:
            raise ValueError(f"Price must be non-negative, got {self.price}")


@dataclass(frozen=True, slots=True)
class Declaration:
    """All declared products keyed by their local key."""

    universe_id: int
    products: Mapping[str, ProductDeclaration] = field(default_factory=dict)

    def keys(self) -> list[str]:
        return sorted(self.products)


@dataclass(frozen=True, slots=True, kw_only=True)
class RemoteRecord:
    """Last successfully synced state of one product.

    Exists for a key iff the product was created (or adopted) remotely at
    least once. The cached fields are what the remote was last told.
    """

    remote_id: int
    name: str | None = None
    price: int | None = None
    description: str | None = None
    image_hash: str | None = None

    @classmethod
    def from_declaration(
        cls,
        remote_id: int,
        declared: ProductDeclaration,
        *,
        image_hash: str | None,
    ) -> RemoteRecord:
        return cls(
            remote_id=remote_id,
            name=declared.name,
            price=declared.price,
            description=declared.description,
            image_hash=image_hash,
        )

    def refreshed(self, declared: ProductDeclaration, *, image_hash: str | None) -> RemoteRecord:
        """Return a copy whose cached fields match ``declared``; ``remote_id`` is kept."""
        return replace(
            self,
            name=declared.name,
            price=declared.price,
            description=declared.description,
            image_hash=image_hash,
        )


@dataclass(frozen=True, slots=True)
class ReconciledProduct:
    """One row of the reconciled mapping handed to code generation."""

    key: str
    remote_id: int
    product_type: ProductType
    name: str


def reconciled_products(
    declaration: Declaration,
    records: Mapping[str, RemoteRecord],
) -> dict[str, ReconciledProduct]:
    """Map each declared key that has a remote id to its reconciled row.

    An explicit ``product_id`` in the declaration wins over the lock record.
    """

    reconciled: dict[str, ReconciledProduct] = {}
    for key in declaration.keys():
        declared = declaration.products[key]
        record = records.get(key)
        remote_id = declared.product_id or (record.remote_id if record else None)
        if remote_id is None:
            continue
        reconciled[key] = ReconciledProduct(
            key=key,
            remote_id=remote_id,
            product_type=declared.product_type,
            name=declared.name,
        )
    return reconciled
