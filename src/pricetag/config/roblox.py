"""Roblox Open Cloud configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .env import optional_positive_int_env, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Mapping

ROBLOX_API_BASE_URL = "https://apis.roblox.com"
ROBLOX_TIMEOUT_SECONDS = 30.0
API_KEY_ENV_VAR = "ROBLOX_PRODUCTS_API_KEY"

DEV_PRODUCT_CATEGORY = "dev_product"
GAMEPASS_CATEGORY = "gamepass"

# Published Open Cloud write limits, per universe.
DEFAULT_RATE_LIMITS: dict[str, RateLimit] = {
    DEV_PRODUCT_CATEGORY: RateLimit(max_calls=3, per_seconds=1.0),
    GAMEPASS_CATEGORY: RateLimit(max_calls=5, per_seconds=1.0),
}
RATE_ENV_VARS: dict[str, str] = {
    DEV_PRODUCT_CATEGORY: "PRICETAG_DEV_PRODUCT_RATE",
    GAMEPASS_CATEGORY: "PRICETAG_GAMEPASS_RATE",
}


@dataclass(frozen=True, slots=True)
class RobloxConfig:
    """Credentials plus one resilience profile per product category.

    Built once at startup and handed to the client; nothing reads the
    environment after this point.
    """

    api_key: str
    resilience: Mapping[str, ResilienceConfig] = field(default_factory=dict)

    def resilience_for(self, category: str) -> ResilienceConfig:
        try:
            return self.resilience[category]
        except KeyError:
            return build_category_resilience(category)


def build_category_resilience(
    category: str,
    *,
    ratelimit: RateLimit | None = None,
    retry: RetryPolicy | None = None,
    base_url: str = ROBLOX_API_BASE_URL,
) -> ResilienceConfig:
    return ResilienceConfig(
        name=f"roblox-{category}",
        base_url=base_url,
        timeout_seconds=ROBLOX_TIMEOUT_SECONDS,
        retry=retry or RetryPolicy(),
        ratelimit=ratelimit or DEFAULT_RATE_LIMITS.get(category),
    )


def get_roblox_config(*, retry: RetryPolicy | None = None) -> RobloxConfig:
    values = require_env_vars((API_KEY_ENV_VAR,))
    resilience: dict[str, ResilienceConfig] = {}
    for category, default_rate in DEFAULT_RATE_LIMITS.items():
        override = optional_positive_int_env(RATE_ENV_VARS[category])
        ratelimit = (
            RateLimit(max_calls=override, per_seconds=1.0) if override is not None else default_rate
        )
        resilience[category] = build_category_resilience(
            category,
            ratelimit=ratelimit,
            retry=retry,
        )
    return RobloxConfig(api_key=values[API_KEY_ENV_VAR], resilience=resilience)
