from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from pricetag.config.roblox import API_KEY_ENV_VAR, RATE_ENV_VARS

if TYPE_CHECKING:
    from pathlib import Path

_PRICETAG_ENV_VARS = (
    API_KEY_ENV_VAR,
    "PRICETAG_CONFIG",
    "PRICETAG_LOCK",
    *RATE_ENV_VARS.values(),
)


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _PRICETAG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def png_image(tmp_path: Path) -> Path:
    path = tmp_path / "assets" / "icon.png"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\x89PNG\r\n\x1a\nfake-image-bytes")
    return path
