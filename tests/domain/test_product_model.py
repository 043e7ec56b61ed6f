from __future__ import annotations

import pytest

from pricetag.domain.model import ProductType, RemoteRecord, reconciled_products
from tests.helpers.products import make_declaration, make_product, make_record


def test_product_type_labels() -> None:
    assert ProductType.DEV_PRODUCT.label == "DevProduct"
    assert ProductType.GAMEPASS.label == "Gamepass"
    assert ProductType("gamepass") is ProductType.GAMEPASS


def test_negative_price_is_rejected() -> None:
    with pytest.raises(ValueError, match="non-negative"):
        make_product(price=-1)


def test_zero_price_is_allowed() -> None:
    assert make_product(price=0).price == 0


def test_declaration_keys_are_sorted() -> None:
    declaration = make_declaration(
        {"b": make_product("B"), "a": make_product("A"), "c": make_product("C")}
    )

    assert declaration.keys() == ["a", "b", "c"]


def test_refreshed_record_keeps_remote_id() -> None:
    record = RemoteRecord(remote_id=500, name="Coins", price=99, image_hash="old")

    refreshed = record.refreshed(make_product("Coins", price=149), image_hash="new")

    assert refreshed.remote_id == 500
    assert refreshed.price == 149
    assert refreshed.image_hash == "new"
    assert record.price == 99


def test_reconciled_products_prefers_declared_product_id() -> None:
    pinned = make_product("Pinned", product_id=77)
    synced = make_product("Synced", product_type=ProductType.GAMEPASS)
    pending = make_product("Pending")
    declaration = make_declaration({"pinned": pinned, "synced": synced, "pending": pending})
    records = {
        "pinned": make_record(11, pinned),
        "synced": make_record(22, synced),
        "orphan": make_record(33, make_product("Gone")),
    }

    reconciled = reconciled_products(declaration, records)

    assert list(reconciled) == ["pinned", "synced"]
    assert reconciled["pinned"].remote_id == 77
    assert reconciled["synced"].remote_id == 22
    assert reconciled["synced"].product_type is ProductType.GAMEPASS
    assert reconciled["synced"].name == "Synced"
