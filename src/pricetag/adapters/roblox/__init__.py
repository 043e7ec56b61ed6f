"""Public interface for the Roblox adapter."""

from __future__ import annotations

from .client import RobloxProductsClient, build_form, raise_for_mutation_status
from .schema import DevProductCreated, ErrorResponse, GamePassCreated, ProductCreated

__all__ = [
    "DevProductCreated",
    "ErrorResponse",
    "GamePassCreated",
    "ProductCreated",
    "RobloxProductsClient",
    "build_form",
    "raise_for_mutation_status",
]
