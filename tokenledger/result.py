"""
tokenledger.result — typed outcome of a ledger call.

CallStatus models the *logical* outcome of one invocation:
  - SUCCESS : operation applied; value, events and auth records are populated
  - REVERT  : a recoverable LedgerError; nothing was applied
  - ABORT   : a fatal invariant violation (e.g. UninitializedLedger); nothing
              was applied

`CallResult.unwrap()` returns the value or re-raises the carried error, which
is what `TokenClient` does for callers that prefer exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .context import AuthRecord, to_hex
from .errors import ErrorKind, LedgerError
from .events import Event, to_canonical


class CallStatus(str, Enum):
    SUCCESS = "success"
    REVERT = "revert"
    ABORT = "abort"

    @property
    def code(self) -> str:
        """Uppercase code form, e.g. 'SUCCESS' / 'REVERT' / 'ABORT'."""
        return self.value.upper()

    @property
    def is_success(self) -> bool:
        return self is CallStatus.SUCCESS

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value

    @classmethod
    def for_error(cls, err: LedgerError) -> "CallStatus":
        return cls.ABORT if err.fatal else cls.REVERT


def _plain(value: Any) -> Any:
    if isinstance(value, bytes):
        return to_hex(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


@dataclass(frozen=True)
class CallResult:
    """
    Outcome of one host invocation.

    Fields
    ------
    status:   CallStatus
    function: Entry point name.
    sequence: Ledger sequence the call executed at.
    value:    Return value on success (None for mutating operations).
    error:    The LedgerError on REVERT/ABORT.
    events:   Events published by the call (empty unless SUCCESS).
    auths:    Authorization requirements satisfied by the call.
    """
    status: CallStatus
    function: str
    sequence: int
    value: Any = None
    error: Optional[LedgerError] = None
    events: Tuple[Event, ...] = field(default_factory=tuple)
    auths: Tuple[AuthRecord, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.status.is_success

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error is not None else None

    def unwrap(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "status": self.status.code,
            "function": self.function,
            "sequence": self.sequence,
            "value": _plain(self.value),
            "events": [ev.to_dict() for ev in to_canonical(self.events)],
            "auths": [a.to_dict() for a in self.auths],
        }
        if self.error is not None:
            out["error"] = self.error.to_dict()
        return out


__all__ = ["CallStatus", "CallResult"]
