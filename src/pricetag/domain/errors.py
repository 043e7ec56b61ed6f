"""Error taxonomy for a reconciliation run.

Fatal errors (``ConfigUnreadableError``, ``LockStoreUnreadableError``,
``AuthError`` via ``SyncAbortedError``, ``PersistFailureError``) escalate to the
caller. Everything else is recovered per product key and surfaces in the sync
report.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .reconciliation.report import SyncReport


class PricetagError(RuntimeError):
    """Base class for pricetag failures."""


class ConfigUnreadableError(PricetagError):
    """Raised when the product declaration cannot be read or is invalid."""


class LockStoreCorruptError(PricetagError):
    """Raised when the lock document exists but cannot be parsed."""


class LockStoreUnreadableError(PricetagError):
    """Raised when the lock document exists but the file itself cannot be read."""


class AssetUnreadableError(PricetagError):
    """Raised when a referenced asset file cannot be read."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot read asset {path}: {reason}")
        self.path = path


class PersistFailureError(PricetagError):
    """Raised when the lock document cannot be written."""

    def __init__(self, message: str, *, report: SyncReport | None = None) -> None:
        super().__init__(message)
        self.report = report


class SyncAbortedError(PricetagError):
    """Raised when a fatal remote error stopped the run before all keys were processed."""

    def __init__(self, message: str, *, report: SyncReport) -> None:
        super().__init__(message)
        self.report = report


class MutationError(PricetagError):
    """A remote create/update failed for one product."""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        detail: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class RejectedError(MutationError):
    """The remote refused the payload (validation error). Never retried."""


class RateLimitedError(MutationError):
    """The remote kept answering 429 after all retries."""

    retryable = True


class TransientError(MutationError):
    """Network failure or 5xx that persisted after all retries."""

    retryable = True


class AuthError(MutationError):
    """The API key was refused. No further call can succeed."""
