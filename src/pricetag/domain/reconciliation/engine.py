"""Sync engine: plan, dispatch mutations concurrently, fold outcomes into the lock.

Tasks never touch the working records. Each task returns its outcome and the
aggregation step applies them one by one in plan order, so the report order
is the plan order whatever the completion order was.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from pricetag.domain.errors import (
    AssetUnreadableError,
    AuthError,
    MutationError,
    PersistFailureError,
    SyncAbortedError,
)
from pricetag.domain.fingerprint import fingerprint_file
from pricetag.domain.model import RemoteRecord

from .plan import PlanEntry, SyncAction, SyncPlan
from .planner import plan_sync
from .report import KeyResult, KeyStatus, SyncReport

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pricetag.domain.model import Declaration, ProductDeclaration
    from pricetag.domain.ports import LockStore, ProductMutationClient

    from .planner import Fingerprinter

log = getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class _MutationOutcome:
    entry: PlanEntry
    remote_id: int | None = None
    error: Exception | None = None


@dataclass(slots=True)
class SyncOutcome:
    """Updated records plus the report; ``fatal`` is set when the run was cut short."""

    records: dict[str, RemoteRecord]
    report: SyncReport
    plan: SyncPlan
    fatal: AuthError | None = None


class SyncEngine:
    """Drive a sync plan to completion with per-key failure isolation.

    Args:
        client: Category-scoped mutation client; entered once per run.
        fingerprint: Asset fingerprint function used while planning.
    """

    def __init__(
        self,
        *,
        client: ProductMutationClient,
        fingerprint: Fingerprinter = fingerprint_file,
    ) -> None:
        self._client = client
        self._fingerprint = fingerprint

    def plan(self, declaration: Declaration, records: Mapping[str, RemoteRecord]) -> SyncPlan:
        return plan_sync(declaration, records, fingerprint=self._fingerprint)

    def run(self, declaration: Declaration, store: LockStore) -> SyncOutcome:
        """Load the lock, reconcile, persist, and return the outcome.

        Raises:
            PersistFailureError: The lock could not be written; carries the report.
            SyncAbortedError: The API key was refused; completed work was persisted
                first and the error carries the report.
        """
        records = store.load()
        outcome = self.reconcile(declaration, records)
        try:
            store.save(outcome.records)
        except PersistFailureError as exc:
            raise PersistFailureError(str(exc), report=outcome.report) from exc
        if outcome.fatal is not None:
            raise SyncAbortedError(
                f"Sync aborted: {outcome.fatal}",
                report=outcome.report,
            ) from outcome.fatal
        return outcome

    def reconcile(
        self,
        declaration: Declaration,
        records: Mapping[str, RemoteRecord],
    ) -> SyncOutcome:
        return asyncio.run(self.reconcile_async(declaration, records))

    async def reconcile_async(
        self,
        declaration: Declaration,
        records: Mapping[str, RemoteRecord],
    ) -> SyncOutcome:
        plan = self.plan(declaration, records)
        counts = plan.counts()
        log.info(
            "Plan: %s create, %s update, %s unchanged, %s orphaned",
            counts[SyncAction.CREATE],
            counts[SyncAction.UPDATE],
            counts[SyncAction.UNCHANGED],
            counts[SyncAction.ORPHANED],
        )

        outcomes, fatal = await self._dispatch(plan, declaration)

        working = dict(records)
        results: list[KeyResult] = []
        for entry in plan.entries:
            result = self._apply(entry, outcomes.get(entry.key), declaration, working)
            results.append(result)
        return SyncOutcome(records=working, report=SyncReport(results), plan=plan, fatal=fatal)

    async def _dispatch(
        self,
        plan: SyncPlan,
        declaration: Declaration,
    ) -> tuple[dict[str, _MutationOutcome], AuthError | None]:
        mutations = plan.mutations()
        if not mutations:
            return {}, None

        tasks: dict[str, asyncio.Task[_MutationOutcome]] = {}
        fatal: AuthError | None = None
        async with self._client:
            try:
                async with asyncio.TaskGroup() as group:
                    for entry in mutations:
                        declared = declaration.products[entry.key]
                        tasks[entry.key] = group.create_task(
                            self._mutate(entry, declared),
                            name=f"pricetag-{entry.key}",
                        )
            except* AuthError as auth_errors:
                fatal = auth_errors.exceptions[0]  # type: ignore[assignment]
                log.error("Authentication refused, aborting remaining work: %s", fatal)

        outcomes: dict[str, _MutationOutcome] = {}
        for entry in mutations:
            task = tasks.get(entry.key)
            if task is None or task.cancelled():
                continue
            error = task.exception()
            if isinstance(error, AuthError):
                outcomes[entry.key] = _MutationOutcome(entry=entry, error=error)
                continue
            outcomes[entry.key] = task.result()
        return outcomes, fatal

    async def _mutate(self, entry: PlanEntry, declared: ProductDeclaration) -> _MutationOutcome:
        try:
            if entry.action is SyncAction.CREATE:
                remote_id = await self._client.create(
                    declared.product_type,
                    declared,
                    include_image=entry.upload_image,
                )
            else:
                assert entry.remote_id is not None  # noqa: S101
                await self._client.update(
                    declared.product_type,
                    entry.remote_id,
                    declared,
                    include_image=entry.upload_image,
                )
                remote_id = entry.remote_id
        except AuthError:
            raise
        except (MutationError, AssetUnreadableError) as exc:
            log.warning("[ERROR] %s - %s: %s", declared.product_type.label, entry.key, exc)
            return _MutationOutcome(entry=entry, error=exc)
        except Exception as exc:
            log.exception(
                "[ERROR] %s - %s: unexpected failure",
                declared.product_type.label,
                entry.key,
            )
            return _MutationOutcome(entry=entry, error=exc)

        log.info("[%s] %s - %s", entry.describe(), declared.product_type.label, entry.key)
        return _MutationOutcome(entry=entry, remote_id=remote_id)

    @staticmethod
    def _apply(
        entry: PlanEntry,
        outcome: _MutationOutcome | None,
        declaration: Declaration,
        working: dict[str, RemoteRecord],
    ) -> KeyResult:
        if entry.action is SyncAction.UNCHANGED:
            return KeyResult(
                key=entry.key,
                action=entry.action,
                status=KeyStatus.UNCHANGED,
                remote_id=entry.remote_id,
            )
        if entry.action is SyncAction.ORPHANED:
            log.info("[orphaned] %s is in the lock file but no longer declared", entry.key)
            return KeyResult(
                key=entry.key,
                action=entry.action,
                status=KeyStatus.ORPHANED,
                remote_id=entry.remote_id,
            )
        if outcome is None:
            return KeyResult(
                key=entry.key,
                action=entry.action,
                status=KeyStatus.ABORTED,
                reason=entry.reason,
                remote_id=entry.remote_id,
                error="aborted before completion",
            )
        if outcome.error is not None:
            return KeyResult(
                key=entry.key,
                action=entry.action,
                status=KeyStatus.FAILED,
                reason=entry.reason,
                remote_id=entry.remote_id,
                error=str(outcome.error),
                error_kind=type(outcome.error).__name__,
            )

        assert outcome.remote_id is not None  # noqa: S101
        declared = declaration.products[entry.key]
        existing = working.get(entry.key)
        if existing is not None and existing.remote_id == outcome.remote_id:
            working[entry.key] = existing.refreshed(declared, image_hash=entry.image_hash)
        else:
            working[entry.key] = RemoteRecord.from_declaration(
                outcome.remote_id,
                declared,
                image_hash=entry.image_hash,
            )
        status = KeyStatus.CREATED if entry.action is SyncAction.CREATE else KeyStatus.UPDATED
        return KeyResult(
            key=entry.key,
            action=entry.action,
            status=status,
            reason=entry.reason,
            remote_id=outcome.remote_id,
        )
