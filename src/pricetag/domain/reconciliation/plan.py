"""Sync plan types shared by the planner and the engine.

A plan is recomputed on every run and never persisted. It is the only
place that decides whether a key reaches the remote at all: ``unchanged``
and ``orphaned`` entries are reported but never dispatched.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pricetag.domain.model import ProductType


class SyncAction(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    UNCHANGED = "unchanged"
    ORPHANED = "orphaned"

    @property
    def is_mutation(self) -> bool:
        return self in (SyncAction.CREATE, SyncAction.UPDATE)


@dataclass(frozen=True, slots=True, kw_only=True)
class PlanEntry:
    """Planned action for one local key.

    ``image_hash`` is the fingerprint computed while planning; it is what
    gets cached on success so the next run compares against the same value.
    ``upload_image`` is set when the image must be attached to the request.
    """

    key: str
    action: SyncAction
    product_type: ProductType | None = None
    reason: tuple[str, ...] = ()
    remote_id: int | None = None
    image_hash: str | None = None
    upload_image: bool = False

    def describe(self) -> str:
        if self.action is SyncAction.UPDATE and self.reason:
            return f"{self.action} ({', '.join(self.reason)})"
        return str(self.action)


@dataclass(frozen=True, slots=True)
class SyncPlan:
    """Ordered plan for one run, sorted by key."""

    entries: tuple[PlanEntry, ...] = field(default_factory=tuple)

    def mutations(self) -> tuple[PlanEntry, ...]:
        return tuple(entry for entry in self.entries if entry.action.is_mutation)

    def counts(self) -> dict[SyncAction, int]:
        counter = Counter(entry.action for entry in self.entries)
        return {action: counter.get(action, 0) for action in SyncAction}
