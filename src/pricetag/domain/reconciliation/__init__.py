"""Reconciliation core: diff planning, mutation dispatch and reporting.

Flow for one run:
1) plan one action per key in the union of declaration and lock records
2) dispatch creates/updates concurrently under per-category gates
3) fold successful outcomes into a copy of the lock records
4) persist the records atomically and return the report
"""

from __future__ import annotations

from .engine import SyncEngine, SyncOutcome
from .plan import PlanEntry, SyncAction, SyncPlan
from .planner import DiffPlanner, plan_sync
from .report import KeyResult, KeyStatus, SyncReport

__all__ = [
    "DiffPlanner",
    "KeyResult",
    "KeyStatus",
    "PlanEntry",
    "SyncAction",
    "SyncEngine",
    "SyncOutcome",
    "SyncPlan",
    "SyncReport",
    "plan_sync",
]
