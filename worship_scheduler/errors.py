"""Error kinds raised by the planning engine.

Every expected failure is one of the named kinds below. Only
StorageUnavailableError is worth retrying as-is; every other kind needs
different input or a different state first.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class EngineError(Exception):
    """Base class for all engine failures."""

    kind = "EngineError"
    retryable = False

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind)
        self.message = message or self.kind

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(kind={self.kind!r}, message={self.message!r})>"


class InvalidSlotWindowError(EngineError):
    kind = "InvalidSlotWindow"


class SlotFullError(EngineError):
    kind = "SlotFull"


class SlotExpiredError(EngineError):
    kind = "SlotExpired"


class AlreadyDecidedError(EngineError):
    kind = "AlreadyDecided"


class CapacityExceededError(EngineError):
    kind = "CapacityExceeded"


class UnfamiliarQuotaExceededError(EngineError):
    kind = "UnfamiliarQuotaExceeded"


class InvalidOrderError(EngineError):
    kind = "InvalidOrder"


class NotEligibleError(EngineError):
    kind = "NotEligible"


class NotFoundError(EngineError):
    kind = "NotFound"


class DuplicateContributionError(EngineError):
    kind = "DuplicateContribution"


class StorageUnavailableError(EngineError):
    """Connection loss, lock timeout or a write lost to a concurrent writer."""

    kind = "StorageUnavailable"
    retryable = True


ERROR_KINDS = {
    cls.kind: cls
    for cls in (
        InvalidSlotWindowError,
        SlotFullError,
        SlotExpiredError,
        AlreadyDecidedError,
        CapacityExceededError,
        UnfamiliarQuotaExceededError,
        InvalidOrderError,
        NotEligibleError,
        NotFoundError,
        DuplicateContributionError,
        StorageUnavailableError,
    )
}


@dataclass(frozen=True)
class GuardResult:
    """Outcome of a speculative invariant check. Never raised, only returned."""

    ok: bool
    reason: Optional[str] = None
    message: str = ""

    @classmethod
    def allow(cls) -> "GuardResult":
        return cls(ok=True)

    @classmethod
    def reject(cls, reason: str, message: str) -> "GuardResult":
        return cls(ok=False, reason=reason, message=message)

    def raise_for_reason(self) -> None:
        """Raise the matching EngineError when the guard rejected."""
        if self.ok:
            return
        raise ERROR_KINDS.get(self.reason, EngineError)(self.message)

    def __bool__(self) -> bool:
        return self.ok
