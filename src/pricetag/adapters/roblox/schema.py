"""Pydantic models describing the Roblox Open Cloud product payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RobloxBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ProductCreated(RobloxBaseModel):
    remote_id: int


class DevProductCreated(ProductCreated):
    remote_id: int = Field(alias="productId")


class GamePassCreated(ProductCreated):
    remote_id: int = Field(alias="gamePassId")


class ErrorItem(RobloxBaseModel):
    code: str | int | None = None
    message: str | None = None


class ErrorResponse(RobloxBaseModel):
    """Open Cloud error body; both the flat and the legacy ``errors`` list shapes."""

    code: str | int | None = None
    message: str | None = None
    errors: list[ErrorItem] = Field(default_factory=list)

    def detail(self) -> str | None:
        if self.message:
            return self.message
        messages = [item.message for item in self.errors if item.message]
        return "; ".join(messages) or None
