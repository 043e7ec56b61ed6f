"""Per-key outcome reporting for a sync run."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .plan import SyncAction


class KeyStatus(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    ORPHANED = "orphaned"
    FAILED = "failed"
    ABORTED = "aborted"


@dataclass(frozen=True, slots=True, kw_only=True)
class KeyResult:
    key: str
    action: SyncAction
    status: KeyStatus
    reason: tuple[str, ...] = ()
    remote_id: int | None = None
    error: str | None = None
    error_kind: str | None = None


@dataclass(slots=True)
class SyncReport:
    """Outcome of every key in plan order."""

    results: list[KeyResult] = field(default_factory=list["KeyResult"])

    def count(self, status: KeyStatus) -> int:
        return sum(1 for result in self.results if result.status is status)

    @property
    def created(self) -> int:
        return self.count(KeyStatus.CREATED)

    @property
    def updated(self) -> int:
        return self.count(KeyStatus.UPDATED)

    @property
    def unchanged(self) -> int:
        return self.count(KeyStatus.UNCHANGED)

    @property
    def orphaned(self) -> int:
        return self.count(KeyStatus.ORPHANED)

    @property
    def failed(self) -> int:
        return self.count(KeyStatus.FAILED)

    @property
    def aborted(self) -> int:
        return self.count(KeyStatus.ABORTED)

    @property
    def ok(self) -> bool:
        return self.failed == 0 and self.aborted == 0

    def result_for(self, key: str) -> KeyResult | None:
        for result in self.results:
            if result.key == key:
                return result
        return None

    def failures(self) -> list[KeyResult]:
        return [
            result
            for result in self.results
            if result.status in (KeyStatus.FAILED, KeyStatus.ABORTED)
        ]

    def counts(self) -> dict[KeyStatus, int]:
        counter = Counter(result.status for result in self.results)
        return {status: counter.get(status, 0) for status in KeyStatus}

    def summary(self) -> str:
        text = (
            f"{self.created} created, {self.updated} updated, {self.unchanged} unchanged, "
            f"{self.orphaned} orphaned, {self.failed} failed"
        )
        if self.aborted:
            text += f", {self.aborted} aborted"
        return text
