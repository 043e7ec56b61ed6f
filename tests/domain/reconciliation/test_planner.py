from __future__ import annotations

from typing import TYPE_CHECKING

from pricetag.domain.errors import AssetUnreadableError
from pricetag.domain.model import ProductType
from pricetag.domain.reconciliation import DiffPlanner, SyncAction, plan_sync
from pricetag.domain.reconciliation.planner import ADOPTED_REASON, REMOTE_ID_REASON
from tests.helpers.products import (
    fixed_fingerprint,
    make_declaration,
    make_product,
    make_record,
)

if TYPE_CHECKING:
    from pathlib import Path


def test_new_keys_are_planned_as_creates_sorted_by_key() -> None:
    declaration = make_declaration(
        {
            "zeta": make_product("Zeta"),
            "alpha": make_product("Alpha", product_type=ProductType.GAMEPASS),
        }
    )

    plan = plan_sync(declaration, {})

    assert [entry.key for entry in plan.entries] == ["alpha", "zeta"]
    assert all(entry.action is SyncAction.CREATE for entry in plan.entries)
    assert plan.entries[0].product_type is ProductType.GAMEPASS
    assert plan.entries[0].remote_id is None


def test_matching_record_is_unchanged() -> None:
    declared = make_product("Coins", price=99, description="A pouch")
    declaration = make_declaration({"coins": declared})

    plan = plan_sync(declaration, {"coins": make_record(500, declared)})

    entry = plan.entries[0]
    assert entry.action is SyncAction.UNCHANGED
    assert entry.remote_id == 500
    assert plan.mutations() == ()


def test_price_change_is_an_update_with_reason() -> None:
    stored = make_product("Coins", price=99)
    declaration = make_declaration({"coins": make_product("Coins", price=149)})

    plan = plan_sync(declaration, {"coins": make_record(500, stored)})

    entry = plan.entries[0]
    assert entry.action is SyncAction.UPDATE
    assert entry.reason == ("price",)
    assert entry.remote_id == 500
    assert entry.upload_image is False
    assert entry.describe() == "update (price)"


def test_every_changed_field_is_listed() -> None:
    stored = make_product("Old", price=1, description="old")
    declaration = make_declaration(
        {"item": make_product("New", price=2, description=None)}
    )

    plan = plan_sync(declaration, {"item": make_record(1, stored)})

    assert plan.entries[0].reason == ("name", "price", "description")


def test_changed_image_fingerprint_uploads_image(png_image: Path) -> None:
    declared = make_product("Coins", image=png_image)
    declaration = make_declaration({"coins": declared})
    records = {"coins": make_record(500, declared, image_hash="hash-old")}

    plan = plan_sync(declaration, records, fingerprint=fixed_fingerprint("hash-new"))

    entry = plan.entries[0]
    assert entry.action is SyncAction.UPDATE
    assert entry.reason == ("image",)
    assert entry.upload_image is True
    assert entry.image_hash == "hash-new"


def test_same_image_fingerprint_is_unchanged(png_image: Path) -> None:
    declared = make_product("Coins", image=png_image)
    declaration = make_declaration({"coins": declared})
    records = {"coins": make_record(500, declared, image_hash="hash-1")}

    plan = plan_sync(declaration, records, fingerprint=fixed_fingerprint("hash-1"))

    assert plan.entries[0].action is SyncAction.UNCHANGED


def test_price_change_does_not_reupload_unchanged_image(png_image: Path) -> None:
    stored = make_product("Coins", price=99, image=png_image)
    declaration = make_declaration({"coins": make_product("Coins", price=149, image=png_image)})
    records = {"coins": make_record(500, stored, image_hash="hash-1")}

    plan = plan_sync(declaration, records, fingerprint=fixed_fingerprint("hash-1"))

    entry = plan.entries[0]
    assert entry.reason == ("price",)
    assert entry.upload_image is False


def test_removed_image_is_a_change() -> None:
    stored = make_product("Coins")
    declaration = make_declaration({"coins": make_product("Coins")})
    records = {"coins": make_record(500, stored, image_hash="hash-1")}

    plan = plan_sync(declaration, records)

    entry = plan.entries[0]
    assert entry.reason == ("image",)
    assert entry.image_hash is None
    assert entry.upload_image is False


def test_unreadable_image_is_assumed_changed(tmp_path: Path) -> None:
    missing = tmp_path / "missing.png"
    declared = make_product("Coins", image=missing)
    declaration = make_declaration({"coins": declared})
    records = {"coins": make_record(500, declared, image_hash="hash-1")}

    plan = plan_sync(declaration, records)

    entry = plan.entries[0]
    assert entry.action is SyncAction.UPDATE
    assert "image" in entry.reason
    assert entry.image_hash is None
    assert entry.upload_image is False


def test_unreadable_image_on_create_still_requests_upload(tmp_path: Path) -> None:
    def failing(path: Path) -> str:
        raise AssetUnreadableError(str(path), "gone")

    declaration = make_declaration({"coins": make_product("Coins", image=tmp_path / "x.png")})

    plan = plan_sync(declaration, {}, fingerprint=failing)

    entry = plan.entries[0]
    assert entry.action is SyncAction.CREATE
    assert entry.upload_image is True
    assert entry.image_hash is None


def test_record_without_declaration_is_orphaned() -> None:
    records = {"legacy": make_record(9, make_product("Legacy"))}

    plan = plan_sync(make_declaration(), records)

    entry = plan.entries[0]
    assert entry.action is SyncAction.ORPHANED
    assert entry.remote_id == 9
    assert plan.mutations() == ()


def test_declared_product_id_without_record_is_adopted() -> None:
    declaration = make_declaration({"coins": make_product("Coins", product_id=321)})

    plan = plan_sync(declaration, {})

    entry = plan.entries[0]
    assert entry.action is SyncAction.UPDATE
    assert entry.remote_id == 321
    assert entry.reason[0] == ADOPTED_REASON


def test_declared_product_id_overrides_record_id() -> None:
    stored = make_product("Coins")
    declaration = make_declaration({"coins": make_product("Coins", product_id=321)})

    plan = plan_sync(declaration, {"coins": make_record(500, stored)})

    entry = plan.entries[0]
    assert entry.action is SyncAction.UPDATE
    assert entry.remote_id == 321
    assert entry.reason == (REMOTE_ID_REASON,)


def test_plan_counts_cover_every_action() -> None:
    kept = make_product("Kept")
    declaration = make_declaration(
        {
            "kept": kept,
            "changed": make_product("Changed", price=5),
            "new": make_product("New"),
        }
    )
    records = {
        "kept": make_record(1, kept),
        "changed": make_record(2, make_product("Changed", price=4)),
        "gone": make_record(3, make_product("Gone")),
    }

    plan = DiffPlanner()(declaration, records)

    counts = plan.counts()
    assert counts[SyncAction.CREATE] == 1
    assert counts[SyncAction.UPDATE] == 1
    assert counts[SyncAction.UNCHANGED] == 1
    assert counts[SyncAction.ORPHANED] == 1
    assert [entry.key for entry in plan.mutations()] == ["changed", "new"]
