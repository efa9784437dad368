"""
tokenledger.errors — typed failures of token ledger operations.

Ledger operations communicate failures via *typed exceptions*. The host turns
them into a `CallResult` (see tokenledger.result) and discards every staged
write of the failed call, so a raised error never leaves partial state behind.

Hierarchy
---------
LedgerError (base, recoverable → REVERT)
 ├─ AlreadyInitialized     : initialize() on an initialized ledger
 ├─ InvalidDecimalRange    : decimal outside 0..255
 ├─ NegativeAmount         : amount argument < 0
 ├─ InsufficientBalance    : spend exceeds balance
 ├─ InsufficientAllowance  : spend exceeds live allowance
 ├─ InvalidExpiration      : positive allowance with an already-passed expiration
 ├─ AccountFrozen          : transfer-family operation from a frozen account
 ├─ Unauthorized           : required principal did not authorize the call
 ├─ InvalidAddress         : malformed address argument
 ├─ InvalidMetadata        : name/symbol not text, or too long
 ├─ ArithmeticOverflow     : amount or balance leaves the signed 128-bit range
 └─ LedgerInvariantError (fatal → ABORT)
     └─ UninitializedLedger : admin/metadata read before initialize()

These classes avoid importing other tokenledger modules so they can be used
from the storage layer without cycles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Optional


class ErrorKind(str, Enum):
    ALREADY_INITIALIZED = "AlreadyInitialized"
    INVALID_DECIMAL_RANGE = "InvalidDecimalRange"
    NEGATIVE_AMOUNT = "NegativeAmount"
    INSUFFICIENT_BALANCE = "InsufficientBalance"
    INSUFFICIENT_ALLOWANCE = "InsufficientAllowance"
    INVALID_EXPIRATION = "InvalidExpiration"
    ACCOUNT_FROZEN = "AccountFrozen"
    UNAUTHORIZED = "Unauthorized"
    INVALID_ADDRESS = "InvalidAddress"
    INVALID_METADATA = "InvalidMetadata"
    ARITHMETIC_OVERFLOW = "ArithmeticOverflow"
    UNINITIALIZED_LEDGER = "UninitializedLedger"
    INTERNAL = "Internal"

    @property
    def code(self) -> str:
        """Stable machine code, e.g. 'INSUFFICIENT_BALANCE'."""
        return self.name

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value


@dataclass(eq=False)
class LedgerError(Exception):
    """
    Base ledger error.

    Attributes:
        message: Human-readable explanation.
        code:    Stable machine code string (e.g., 'NEGATIVE_AMOUNT').
        data:    Optional structured details (kept JSON-serializable).
    """
    message: str = "ledger error"
    code: str = ErrorKind.INTERNAL.code
    data: Optional[Dict[str, Any]] = field(default=None)

    kind: ClassVar[ErrorKind] = ErrorKind.INTERNAL
    fatal: ClassVar[bool] = False

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.data:
            return f"{self.code}: {self.message} ({self.data})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for results/logs."""
        out: Dict[str, Any] = {"kind": self.kind.value, "code": self.code, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


def _details(data: Optional[Dict[str, Any]], **fields: Any) -> Optional[Dict[str, Any]]:
    d: Dict[str, Any] = {}
    if data:
        d.update(data)
    for k, v in fields.items():
        if v is None:
            continue
        d.setdefault(k, v.hex() if isinstance(v, (bytes, bytearray)) else v)
    return d or None


class _KindError(LedgerError):
    def __init__(self, message: str, *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code=self.kind.code, data=data)


class AlreadyInitialized(_KindError):
    kind = ErrorKind.ALREADY_INITIALIZED

    def __init__(self, message: str = "already initialized", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message, data=data)


class InvalidDecimalRange(_KindError):
    kind = ErrorKind.INVALID_DECIMAL_RANGE

    def __init__(
        self,
        message: str = "decimal must fit in a u8",
        *,
        decimal: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, data=_details(data, decimal=decimal))


class NegativeAmount(_KindError):
    kind = ErrorKind.NEGATIVE_AMOUNT

    def __init__(
        self,
        message: str = "negative amount is not allowed",
        *,
        amount: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, data=_details(data, amount=amount))


class InsufficientBalance(_KindError):
    """
    Spend exceeds the current balance of `address`.

    Usage:
        raise InsufficientBalance(address=addr, balance=50, amount=60)
    """
    kind = ErrorKind.INSUFFICIENT_BALANCE

    def __init__(
        self,
        message: str = "insufficient balance",
        *,
        address: Optional[bytes] = None,
        balance: Optional[int] = None,
        amount: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, data=_details(data, address=address, balance=balance, amount=amount))


class InsufficientAllowance(_KindError):
    kind = ErrorKind.INSUFFICIENT_ALLOWANCE

    def __init__(
        self,
        message: str = "insufficient allowance",
        *,
        owner: Optional[bytes] = None,
        spender: Optional[bytes] = None,
        allowance: Optional[int] = None,
        amount: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message,
            data=_details(data, owner=owner, spender=spender, allowance=allowance, amount=amount),
        )


class InvalidExpiration(_KindError):
    kind = ErrorKind.INVALID_EXPIRATION

    def __init__(
        self,
        message: str = "expiration_ledger is less than ledger seq when amount > 0",
        *,
        expiration_ledger: Optional[int] = None,
        sequence: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message, data=_details(data, expiration_ledger=expiration_ledger, sequence=sequence)
        )


class AccountFrozen(_KindError):
    kind = ErrorKind.ACCOUNT_FROZEN

    def __init__(
        self,
        message: str = "account is frozen",
        *,
        address: Optional[bytes] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, data=_details(data, address=address))


class Unauthorized(_KindError):
    kind = ErrorKind.UNAUTHORIZED

    def __init__(
        self,
        message: str = "authorization required",
        *,
        principal: Optional[bytes] = None,
        function: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, data=_details(data, principal=principal, function=function))


class InvalidAddress(_KindError):
    kind = ErrorKind.INVALID_ADDRESS

    def __init__(self, message: str = "invalid address", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message, data=data)


class InvalidMetadata(_KindError):
    """
    Token name or symbol is not text, or its UTF-8 form is too long.

    Usage:
        raise InvalidMetadata(field="name", length=70_000)
    """
    kind = ErrorKind.INVALID_METADATA

    def __init__(
        self,
        message: str = "invalid token metadata",
        *,
        field: Optional[str] = None,
        length: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, data=_details(data, field=field, length=length))


class ArithmeticOverflow(_KindError):
    kind = ErrorKind.ARITHMETIC_OVERFLOW

    def __init__(
        self,
        message: str = "value out of i128 range",
        *,
        value: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        # i128 extremes do not survive every JSON consumer; keep them as text.
        super().__init__(message, data=_details(data, value=str(value) if value is not None else None))


class LedgerInvariantError(_KindError):
    """
    A broken ledger invariant. Not recoverable by the caller; the host aborts
    the call and reports it with status ABORT.
    """
    kind = ErrorKind.INTERNAL
    fatal = True

    def __init__(self, message: str = "ledger invariant violated", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message, data=data)


class UninitializedLedger(LedgerInvariantError):
    kind = ErrorKind.UNINITIALIZED_LEDGER

    def __init__(
        self,
        message: str = "ledger is not initialized",
        *,
        entry: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, data=_details(data, entry=entry))


# -------- helper utilities ---------------------------------------------------


def error_to_result_fields(err: LedgerError) -> Dict[str, Any]:
    """
    Map a LedgerError to canonical result fields.

    Returns:
        {
          "status": "ABORT" | "REVERT",
          "error":  {kind, code, message, data?}
        }
    """
    status = "ABORT" if err.fatal else "REVERT"
    return {"status": status, "error": err.to_dict()}


__all__ = [
    "ErrorKind",
    "LedgerError",
    "LedgerInvariantError",
    "AlreadyInitialized",
    "InvalidDecimalRange",
    "NegativeAmount",
    "InsufficientBalance",
    "InsufficientAllowance",
    "InvalidExpiration",
    "AccountFrozen",
    "Unauthorized",
    "InvalidAddress",
    "InvalidMetadata",
    "ArithmeticOverflow",
    "UninitializedLedger",
    "error_to_result_fields",
]
