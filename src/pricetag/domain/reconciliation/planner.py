"""Diff planning between declared products and the lock records."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from pricetag.domain.errors import AssetUnreadableError
from pricetag.domain.fingerprint import fingerprint_file

from .plan import PlanEntry, SyncAction, SyncPlan

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pricetag.domain.model import Declaration, ProductDeclaration, RemoteRecord

Fingerprinter = Callable[[Path], str]

log = getLogger(__name__)

ADOPTED_REASON = "adopted"
REMOTE_ID_REASON = "remote_id"


def plan_sync(
    declaration: Declaration,
    records: Mapping[str, RemoteRecord],
    *,
    fingerprint: Fingerprinter = fingerprint_file,
) -> SyncPlan:
    """Compute one plan entry per key in the union of declaration and records.

    Entries are sorted by key. The only side effect is reading asset files to
    fingerprint them. On an update an unreadable asset is treated as changed
    and left off the request; a create always attaches its declared image, so
    an unreadable one fails that key when the request is built.
    """

    keys = sorted(set(declaration.products) | set(records))
    entries: list[PlanEntry] = []
    for key in keys:
        declared = declaration.products.get(key)
        record = records.get(key)
        if declared is None:
            assert record is not None  # noqa: S101
            entries.append(
                PlanEntry(key=key, action=SyncAction.ORPHANED, remote_id=record.remote_id)
            )
            continue
        entries.append(_plan_declared(key, declared, record, fingerprint))
    return SyncPlan(entries=tuple(entries))


def _plan_declared(
    key: str,
    declared: ProductDeclaration,
    record: RemoteRecord | None,
    fingerprint: Fingerprinter,
) -> PlanEntry:
    image_hash, image_readable = _current_image_hash(key, declared, fingerprint)
    has_uploadable_image = declared.image is not None and image_readable

    if record is None:
        if declared.product_id is not None:
            return PlanEntry(
                key=key,
                action=SyncAction.UPDATE,
                product_type=declared.product_type,
                reason=(ADOPTED_REASON, *_all_fields(declared)),
                remote_id=declared.product_id,
                image_hash=image_hash,
                upload_image=has_uploadable_image,
            )
        return PlanEntry(
            key=key,
            action=SyncAction.CREATE,
            product_type=declared.product_type,
            image_hash=image_hash,
            upload_image=declared.image is not None,
        )

    reason = _changed_fields(declared, record, image_hash, image_readable=image_readable)
    remote_id = record.remote_id
    upload_image = has_uploadable_image and "image" in reason
    if declared.product_id is not None and declared.product_id != record.remote_id:
        remote_id = declared.product_id
        reason = (REMOTE_ID_REASON, *reason)
        upload_image = has_uploadable_image

    if not reason:
        return PlanEntry(
            key=key,
            action=SyncAction.UNCHANGED,
            product_type=declared.product_type,
            remote_id=remote_id,
            image_hash=image_hash,
        )
    return PlanEntry(
        key=key,
        action=SyncAction.UPDATE,
        product_type=declared.product_type,
        reason=reason,
        remote_id=remote_id,
        image_hash=image_hash,
        upload_image=upload_image,
    )


def _current_image_hash(
    key: str,
    declared: ProductDeclaration,
    fingerprint: Fingerprinter,
) -> tuple[str | None, bool]:
    if declared.image is None:
        return None, True
    try:
        return fingerprint(declared.image), True
    except AssetUnreadableError as exc:
        log.warning("%s: %s; assuming the image changed", key, exc)
        return None, False


def _changed_fields(
    declared: ProductDeclaration,
    record: RemoteRecord,
    image_hash: str | None,
    *,
    image_readable: bool,
) -> tuple[str, ...]:
    changed: list[str] = []
    if record.name != declared.name:
        changed.append("name")
    if record.price != declared.price:
        changed.append("price")
    if record.description != declared.description:
        changed.append("description")
    if not image_readable or record.image_hash != image_hash:
        changed.append("image")
    return tuple(changed)


def _all_fields(declared: ProductDeclaration) -> tuple[str, ...]:
    fields = ["name", "price", "description"]
    if declared.image is not None:
        fields.append("image")
    return tuple(fields)


class DiffPlanner:
    """Callable wrapper around ``plan_sync`` with a fixed fingerprint function."""

    def __init__(self, fingerprint: Fingerprinter = fingerprint_file) -> None:
        self._fingerprint = fingerprint

    def __call__(
        self,
        declaration: Declaration,
        records: Mapping[str, RemoteRecord],
    ) -> SyncPlan:
        return plan_sync(declaration, records, fingerprint=self._fingerprint)
