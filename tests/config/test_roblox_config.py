from __future__ import annotations

from pathlib import Path

import pytest

from pricetag.config import (
    API_KEY_ENV_VAR,
    DEFAULT_CONFIG_FILENAME,
    DEFAULT_LOCK_FILENAME,
    ROBLOX_API_BASE_URL,
    MissingConfigurationError,
    RetryPolicy,
    get_roblox_config,
    get_storage_config,
)
from pricetag.domain.model import ProductType


def test_missing_api_key_is_reported() -> None:
    with pytest.raises(MissingConfigurationError, match=API_KEY_ENV_VAR):
        get_roblox_config()


def test_default_rate_limits_per_category(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(API_KEY_ENV_VAR, "secret")

    config = get_roblox_config()

    assert config.api_key == "secret"
    dev_products = config.resilience_for(ProductType.DEV_PRODUCT)
    game_passes = config.resilience_for(ProductType.GAMEPASS)
    assert dev_products.ratelimit is not None
    assert dev_products.ratelimit.max_calls == 3
    assert game_passes.ratelimit is not None
    assert game_passes.ratelimit.max_calls == 5
    assert dev_products.base_url == ROBLOX_API_BASE_URL
    assert dev_products.name != game_passes.name


def test_rate_limits_can_be_overridden(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(API_KEY_ENV_VAR, "secret")
    monkeypatch.setenv("PRICETAG_GAMEPASS_RATE", "2")

    config = get_roblox_config(retry=RetryPolicy(total=1))

    game_passes = config.resilience_for(ProductType.GAMEPASS)
    assert game_passes.ratelimit is not None
    assert game_passes.ratelimit.max_calls == 2
    assert game_passes.ratelimit.interval == pytest.approx(0.5)
    assert game_passes.retry.total == 1


def test_storage_config_defaults() -> None:
    storage = get_storage_config()

    assert storage.config_path == Path(DEFAULT_CONFIG_FILENAME)
    assert storage.lock_path == Path(DEFAULT_LOCK_FILENAME)


def test_storage_config_prefers_arguments_over_environment(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("PRICETAG_CONFIG", "from-env.toml")
    monkeypatch.setenv("PRICETAG_LOCK", "from-env.lock.json")

    storage = get_storage_config(config_path="explicit.toml")

    assert storage.config_path == Path("explicit.toml")
    assert storage.lock_path == Path("from-env.lock.json")
    assert storage.resolve_config_path().is_absolute()
