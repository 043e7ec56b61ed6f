"""HTTP client for Roblox developer products and game passes.

Each product category has its own endpoint family and its own rate gate:
requests for developer products never wait on game-pass admissions and
vice versa. Bodies are always ``multipart/form-data``.
"""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Self

import httpx
from pydantic import ValidationError

from pricetag.adapters.http_resilience import ResilientClient
from pricetag.domain.errors import AuthError, RateLimitedError, RejectedError, TransientError
from pricetag.domain.fingerprint import read_asset
from pricetag.domain.model import ProductDeclaration, ProductType

from .schema import DevProductCreated, ErrorResponse, GamePassCreated, ProductCreated

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from pricetag.config.http_resilience import ResilienceConfig
    from pricetag.config.roblox import RobloxConfig

log = getLogger(__name__)

API_KEY_HEADER = "x-api-key"
IMAGE_FIELD = "imageFile"
_MAX_DETAIL_LENGTH = 500

FormFields = list[tuple[str, tuple[str | None, bytes | str] | tuple[str, bytes, str]]]


@dataclass(frozen=True, slots=True)
class _Endpoint:
    collection_template: str
    created_model: type[ProductCreated]

    def collection(self, universe_id: int) -> str:
        return self.collection_template.format(universe_id=universe_id)

    def item(self, universe_id: int, remote_id: int) -> str:
        return f"{self.collection(universe_id)}/{remote_id}"


_ENDPOINTS: dict[ProductType, _Endpoint] = {
    ProductType.DEV_PRODUCT: _Endpoint(
        "/developer-products/v2/universes/{universe_id}/developer-products",
        DevProductCreated,
    ),
    ProductType.GAMEPASS: _Endpoint(
        "/game-passes/v1/universes/{universe_id}/game-passes",
        GamePassCreated,
    ),
}


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class RobloxProductsClient:
    """Rate-limited create/update client for one universe.

    Use as an async context manager; one ``ResilientClient`` (and thus one
    rate gate) is opened lazily per product category and closed on exit.

    Args:
        config: API key and per-category resilience settings.
        universe_id: Universe owning the products.
        client_factory: Builds the HTTP client for a category (tests inject
            mock transports here).
    """

    def __init__(
        self,
        *,
        config: RobloxConfig,
        universe_id: int,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._universe_id = universe_id
        self._client_factory = client_factory or _default_client_factory
        self._clients: dict[ProductType, ResilientClient] = {}

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        clients = list(self._clients.values())
        self._clients.clear()
        for client in clients:
            await client.aclose()

    async def create(
        self,
        product_type: ProductType,
        declared: ProductDeclaration,
        *,
        include_image: bool = True,
    ) -> int:
        endpoint = _ENDPOINTS[product_type]
        response = await self._mutate(
            "create",
            product_type,
            endpoint.collection(self._universe_id),
            declared,
            include_image=include_image,
        )
        try:
            created = endpoint.created_model.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            log.error(
                "Created %s %r but the response carried no id: %s",
                product_type.label,
                declared.name,
                response.text[:_MAX_DETAIL_LENGTH],
            )
            raise RejectedError(
                f"Unexpected create response for {product_type.label} {declared.name!r}",
                status_code=response.status_code,
                detail=response.text[:_MAX_DETAIL_LENGTH],
            ) from exc
        return created.remote_id

    async def update(
        self,
        product_type: ProductType,
        remote_id: int,
        declared: ProductDeclaration,
        *,
        include_image: bool = False,
    ) -> None:
        endpoint = _ENDPOINTS[product_type]
        await self._mutate(
            "update",
            product_type,
            endpoint.item(self._universe_id, remote_id),
            declared,
            include_image=include_image,
        )

    def _client_for(self, product_type: ProductType) -> ResilientClient:
        client = self._clients.get(product_type)
        if client is None:
            client = self._client_factory(self._config.resilience_for(product_type))
            self._clients[product_type] = client
        return client

    async def _mutate(
        self,
        action: str,
        product_type: ProductType,
        path: str,
        declared: ProductDeclaration,
        *,
        include_image: bool,
    ) -> httpx.Response:
        form = build_form(declared, include_image=include_image)
        client = self._client_for(product_type)
        send = client.post if action == "create" else client.patch
        try:
            response = await send(
                path,
                files=form,
                headers={API_KEY_HEADER: self._config.api_key},
            )
        except httpx.HTTPError as exc:
            raise TransientError(
                f"Failed to {action} {product_type.label} {declared.name!r}: {exc}"
            ) from exc
        raise_for_mutation_status(response, action=action, product_type=product_type)
        return response


def build_form(declared: ProductDeclaration, *, include_image: bool) -> FormFields:
    """Build multipart fields; text fields use a ``None`` filename so httpx
    always encodes ``multipart/form-data`` even without a file part.
    """
    form: FormFields = [
        ("name", (None, declared.name)),
        ("price", (None, str(declared.price))),
    ]
    if declared.description is not None:
        form.append(("description", (None, declared.description)))
    if include_image and declared.image is not None:
        content_type = mimetypes.guess_type(declared.image.name)[0] or "application/octet-stream"
        form.append((IMAGE_FIELD, (declared.image.name, read_asset(declared.image), content_type)))
    return form


def raise_for_mutation_status(
    response: httpx.Response,
    *,
    action: str,
    product_type: ProductType,
) -> None:
    """Map a final (post-retry) response status onto the mutation error taxonomy."""
    status = response.status_code
    if response.is_success:
        return
    detail = _error_detail(response)
    message = f"Failed to {action} {product_type.label}: {status} - {detail}"
    if status in (401, 403):
        raise AuthError(message, status_code=status, detail=detail)
    if status == 429:
        raise RateLimitedError(message, status_code=status, detail=detail)
    if status >= 500:
        raise TransientError(message, status_code=status, detail=detail)
    raise RejectedError(message, status_code=status, detail=detail)


def _error_detail(response: httpx.Response) -> str:
    text = response.text
    try:
        parsed = ErrorResponse.model_validate_json(text)
    except ValidationError:
        return text[:_MAX_DETAIL_LENGTH] or response.reason_phrase
    return parsed.detail() or text[:_MAX_DETAIL_LENGTH] or response.reason_phrase
