"""Port for remote product mutations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, Self, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from pricetag.domain.model import ProductDeclaration, ProductType


@runtime_checkable
class ProductMutationClient(Protocol):
    """Create/update client scoped by product category.

    Implementations enforce each category's rate ceiling independently and
    retry transient failures. Failures surface as ``MutationError`` subclasses
    or ``AssetUnreadableError`` when an image cannot be read for upload.
    """

    async def __aenter__(self) -> Self:
        ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        ...

    async def create(
        self,
        product_type: ProductType,
        declared: ProductDeclaration,
        *,
        include_image: bool = True,
    ) -> int:
        """Create the product remotely and return its new remote id."""
        ...

    async def update(
        self,
        product_type: ProductType,
        remote_id: int,
        declared: ProductDeclaration,
        *,
        include_image: bool = False,
    ) -> None:
        """Overwrite the remote product's fields; success carries no body."""
        ...


__all__ = ["ProductMutationClient"]
