from __future__ import annotations

import json
import logging
import os
from typing import TYPE_CHECKING

import pytest

from pricetag.adapters.lockfile import JsonLockStore
from pricetag.domain.errors import LockStoreUnreadableError, PersistFailureError
from pricetag.domain.model import RemoteRecord
from pricetag.domain.ports import LockStore

if TYPE_CHECKING:
    from pathlib import Path


def _records() -> dict[str, RemoteRecord]:
    return {
        "vip": RemoteRecord(remote_id=9001, name="VIP", price=400),
        "coins": RemoteRecord(
            remote_id=500,
            name="Coins",
            price=99,
            description="A pouch",
            image_hash="abc123",
        ),
    }


def test_json_lock_store_satisfies_the_port(tmp_path: Path) -> None:
    assert isinstance(JsonLockStore(tmp_path / "lock.json"), LockStore)


def test_missing_file_loads_as_empty(tmp_path: Path) -> None:
    assert JsonLockStore(tmp_path / "missing.json").load() == {}


def test_empty_file_loads_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "lock.json"
    path.write_text("  \n", encoding="utf-8")

    assert JsonLockStore(path).load() == {}


def test_saved_records_load_back_unchanged(tmp_path: Path) -> None:
    store = JsonLockStore(tmp_path / "lock.json")

    store.save(_records())

    assert store.load() == _records()


def test_saved_document_is_versioned_sorted_and_newline_terminated(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "lock.json"

    JsonLockStore(path).save(_records())

    raw = path.read_text(encoding="utf-8")
    assert raw.endswith("}\n")
    document = json.loads(raw)
    assert document["version"] == 1
    assert list(document["products"]) == ["coins", "vip"]
    assert document["products"]["coins"] == {
        "remote_id": 500,
        "name": "Coins",
        "price": 99,
        "description": "A pouch",
        "image_hash": "abc123",
    }


def test_corrupt_file_is_logged_and_treated_as_empty(
    tmp_path: Path,
    caplog: pytest.LogCaptureFixture,
) -> None:
    path = tmp_path / "lock.json"
    path.write_text("{not json", encoding="utf-8")
    caplog.set_level(logging.WARNING)

    assert JsonLockStore(path).load() == {}
    assert "corrupt" in caplog.text


def test_non_utf8_file_is_treated_as_corrupt(
    tmp_path: Path,
    caplog: pytest.LogCaptureFixture,
) -> None:
    path = tmp_path / "lock.json"
    path.write_bytes(b"\xff\xfe\x00garbage")
    caplog.set_level(logging.WARNING)

    assert JsonLockStore(path).load() == {}
    assert "corrupt" in caplog.text


def test_wrong_shape_is_treated_as_corrupt(tmp_path: Path) -> None:
    path = tmp_path / "lock.json"
    path.write_text(json.dumps({"version": 1, "products": {"a": {"name": "x"}}}), encoding="utf-8")

    assert JsonLockStore(path).load() == {}


def test_unknown_version_is_treated_as_corrupt(tmp_path: Path) -> None:
    path = tmp_path / "lock.json"
    path.write_text(json.dumps({"version": 99, "products": {}}), encoding="utf-8")

    assert JsonLockStore(path).load() == {}


def test_unreadable_file_is_fatal(tmp_path: Path) -> None:
    directory = tmp_path / "lock.json"
    directory.mkdir()

    with pytest.raises(LockStoreUnreadableError):
        JsonLockStore(directory).load()


def test_failed_replace_keeps_previous_document_and_cleans_up(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    path = tmp_path / "lock.json"
    store = JsonLockStore(path)
    store.save({"coins": RemoteRecord(remote_id=1, name="Coins", price=1)})
    before = path.read_text(encoding="utf-8")

    def failing_replace(*_args: object, **_kwargs: object) -> None:
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", failing_replace)

    with pytest.raises(PersistFailureError, match="disk full"):
        store.save(_records())

    assert path.read_text(encoding="utf-8") == before
    assert sorted(child.name for child in tmp_path.iterdir()) == ["lock.json"]
