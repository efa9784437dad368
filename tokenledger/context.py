"""
tokenledger.context — ledger time, authorization, and the per-call context.

Every ledger operation receives a `CallContext` as its first argument. It
bundles everything the operation may observe or touch:

- `ledger`  : LedgerEnv, the current ledger sequence (the clock every TTL and
              allowance expiration is compared against) and timestamp
- `auth`    : AuthContext, the set of principals that authorized this call
- `storage` : Journal, staged tiered storage for this call only
- `events`  : EventSink, events buffered until the call commits
- `config`  : LedgerConfig, retention windows

There is no global clock and no global authorization state; two contexts
never share a journal or an event buffer.

Design notes
------------
- Addresses are raw bytes (1..64 bytes, no fixed length enforced).
- Hex strings (with or without "0x") are accepted by helpers and normalized to
  bytes.
- Ledger counters are u32.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple, Union

from .config import U32_MAX, LedgerConfig
from .errors import InvalidAddress, Unauthorized
from .events import EventSink
from .storage.journal import Journal

MAX_ADDRESS_BYTES = 64

AddressLike = Union[bytes, bytearray, memoryview, str]


# ----------------------------- helpers ----------------------------- #

class ContextError(ValueError):
    """Validation or coercion failure for LedgerEnv and friends."""


def _strip_0x(s: str) -> str:
    return s[2:] if s.startswith(("0x", "0X")) else s


def to_bytes(value: AddressLike) -> bytes:
    """
    Coerce `value` to bytes.
    - If str, interpret as hex (with or without '0x'); odd-length hex is rejected.
    - If a bytes-like object, copy to immutable bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        h = _strip_0x(value.strip())
        if len(h) % 2 != 0:
            raise ContextError(f"hex string must have even length, got {len(h)}")
        try:
            return bytes.fromhex(h)
        except ValueError as e:
            raise ContextError(f"invalid hex string: {value!r}") from e
    raise ContextError(f"cannot convert type {type(value).__name__} to bytes")


def to_hex(b: Union[bytes, bytearray, memoryview]) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + bytes(b).hex()


def to_address(value: Any, *, name: str = "address") -> bytes:
    """Normalize an address argument; raises InvalidAddress on bad input."""
    try:
        b = to_bytes(value)
    except ContextError as e:
        raise InvalidAddress(f"{name}: {e}", data={"arg": name}) from e
    if not b or len(b) > MAX_ADDRESS_BYTES:
        raise InvalidAddress(
            f"{name} must be 1..{MAX_ADDRESS_BYTES} bytes", data={"arg": name, "len": len(b)}
        )
    return b


def _require_u32(name: str, v: Any) -> int:
    if not isinstance(v, int) or isinstance(v, bool):
        raise ContextError(f"{name} must be int, got {type(v).__name__}")
    if v < 0 or v > U32_MAX:
        raise ContextError(f"{name} must fit in a u32, got {v}")
    return v


# ----------------------------- models ------------------------------ #

@dataclass(frozen=True)
class LedgerEnv:
    """
    Ledger time as supplied by the host.

    Fields
    ------
    sequence:   Ledger sequence number (u32), monotonically increasing.
    timestamp:  Close time of the ledger in seconds.
    network_id: Opaque network passphrase hash (may be empty).
    """
    sequence: int
    timestamp: int = 0
    network_id: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "sequence", _require_u32("sequence", self.sequence))
        if not isinstance(self.timestamp, int) or self.timestamp < 0:
            raise ContextError(f"timestamp must be a non-negative int, got {self.timestamp!r}")
        object.__setattr__(self, "network_id", to_bytes(self.network_id))

    def advanced(self, ledgers: int = 1, *, seconds_per_ledger: int = 5) -> "LedgerEnv":
        """The environment `ledgers` ledgers later."""
        if ledgers < 0:
            raise ContextError("ledger time cannot move backwards")
        return replace(
            self,
            sequence=self.sequence + ledgers,
            timestamp=self.timestamp + ledgers * seconds_per_ledger,
        )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LedgerEnv":
        return cls(
            sequence=_require_u32("sequence", d.get("sequence")),
            timestamp=d.get("timestamp", 0),
            network_id=to_bytes(d.get("network_id", b"")),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["network_id"] = to_hex(self.network_id)
        return d


@dataclass(frozen=True)
class AuthContext:
    """
    Authorization capability for one call: the principals whose signatures
    the host verified. `mock_all` authorizes everyone (tests, simulations).
    """
    principals: FrozenSet[bytes] = frozenset()
    mock_all: bool = False

    @classmethod
    def of(cls, *principals: AddressLike) -> "AuthContext":
        return cls(principals=frozenset(to_address(p, name="principal") for p in principals))

    @classmethod
    def mock_all_auths(cls) -> "AuthContext":
        return cls(mock_all=True)

    @classmethod
    def none(cls) -> "AuthContext":
        return cls()

    def authorizes(self, principal: bytes) -> bool:
        return self.mock_all or principal in self.principals


@dataclass(frozen=True)
class AuthRecord:
    """One satisfied authorization requirement: who authorized which call."""
    principal: bytes
    function: str
    args: Tuple[Any, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "principal": to_hex(self.principal),
            "function": self.function,
            "args": [to_hex(a) if isinstance(a, bytes) else a for a in self.args],
        }


@dataclass
class CallContext:
    """Everything one ledger operation may observe or mutate."""
    ledger: LedgerEnv
    auth: AuthContext
    storage: Journal
    events: EventSink = field(default_factory=EventSink)
    config: Optional[LedgerConfig] = None
    function: str = ""
    args: Tuple[Any, ...] = ()
    auths: List[AuthRecord] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.config is None:
            self.config = self.storage.config

    @property
    def sequence(self) -> int:
        return self.ledger.sequence

    def require_auth(self, principal: bytes) -> None:
        """
        Require that `principal` authorized this call. Records the
        requirement on success; raises Unauthorized otherwise.
        """
        if not self.auth.authorizes(principal):
            raise Unauthorized(principal=principal, function=self.function or None)
        self.auths.append(AuthRecord(principal, self.function, self.args))

    def authorized(self) -> Iterable[AuthRecord]:
        return tuple(self.auths)


__all__ = [
    "ContextError",
    "to_bytes",
    "to_hex",
    "to_address",
    "LedgerEnv",
    "AuthContext",
    "AuthRecord",
    "CallContext",
    "MAX_ADDRESS_BYTES",
]
