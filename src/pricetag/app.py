"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from pricetag.adapters.declaration import load_declaration, write_default_config
from pricetag.adapters.lockfile import JsonLockStore
from pricetag.adapters.roblox import RobloxProductsClient
from pricetag.config import get_roblox_config, get_storage_config
from pricetag.domain.fingerprint import fingerprint_file
from pricetag.domain.model import Declaration, ProductType, reconciled_products
from pricetag.domain.ports import ProductMutationClient
from pricetag.domain.reconciliation import SyncEngine, plan_sync

if TYPE_CHECKING:
    from pathlib import Path

    from pricetag.config import RobloxConfig
    from pricetag.domain.reconciliation import SyncOutcome, SyncPlan
    from pricetag.domain.reconciliation.planner import Fingerprinter

ClientFactory = Callable[[Declaration], ProductMutationClient]


log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProductListing:
    """One declared product and where its remote id came from."""

    key: str
    product_type: ProductType
    name: str
    price: int
    remote_id: int | None
    source: str | None


def build_roblox_client(
    declaration: Declaration,
    *,
    config: RobloxConfig | None = None,
) -> RobloxProductsClient:
    return RobloxProductsClient(
        config=config or get_roblox_config(),
        universe_id=declaration.universe_id,
    )


def sync_products(
    *,
    config_path: str | None = None,
    lock_path: str | None = None,
    client_factory: ClientFactory | None = None,
    fingerprint: Fingerprinter = fingerprint_file,
) -> SyncOutcome:
    """Reconcile the declared products with Roblox and persist the lock file.

    The declaration is read before credentials are resolved, so an invalid
    file fails without touching the network.
    """

    storage = get_storage_config(config_path=config_path, lock_path=lock_path)
    declaration = load_declaration(storage.resolve_config_path())
    store = JsonLockStore(storage.resolve_lock_path())
    client = (client_factory or build_roblox_client)(declaration)

    log.info(
        "Syncing %s product(s) for universe %s",
        len(declaration.products),
        declaration.universe_id,
    )
    outcome = SyncEngine(client=client, fingerprint=fingerprint).run(declaration, store)
    log.info(f"Lock file saved to {store.path}")
    log.info(f"Summary: {outcome.report.summary()}")
    return outcome


def plan_products(
    *,
    config_path: str | None = None,
    lock_path: str | None = None,
    fingerprint: Fingerprinter = fingerprint_file,
) -> SyncPlan:
    """Compute the plan a sync would execute, without credentials or remote calls."""

    storage = get_storage_config(config_path=config_path, lock_path=lock_path)
    declaration = load_declaration(storage.resolve_config_path())
    records = JsonLockStore(storage.resolve_lock_path()).load()
    return plan_sync(declaration, records, fingerprint=fingerprint)


def list_products(
    *,
    config_path: str | None = None,
    lock_path: str | None = None,
) -> tuple[Declaration, list[ProductListing]]:
    storage = get_storage_config(config_path=config_path, lock_path=lock_path)
    declaration = load_declaration(storage.resolve_config_path())
    records = JsonLockStore(storage.resolve_lock_path()).load()
    reconciled = reconciled_products(declaration, records)

    listings: list[ProductListing] = []
    for key in declaration.keys():
        declared = declaration.products[key]
        row = reconciled.get(key)
        if row is None:
            source = None
        elif declared.product_id is not None:
            source = "config"
        else:
            source = "lock"
        listings.append(
            ProductListing(
                key=key,
                product_type=declared.product_type,
                name=declared.name,
                price=declared.price,
                remote_id=row.remote_id if row else None,
                source=source,
            )
        )
    return declaration, listings


def init_config(*, config_path: str | None = None, force: bool = False) -> Path:
    storage = get_storage_config(config_path=config_path)
    path = write_default_config(storage.config_path, force=force)
    log.info("Created config file: %s", path)
    return path
