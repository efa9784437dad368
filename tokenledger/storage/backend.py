"""
tokenledger.storage.backend — three-tier key/value storage with TTLs.

The backend is the host-side store the ledger journal flushes into. Every
entry carries a `live_until` ledger sequence (inclusive); once the ledger
sequence passes it, the entry is logically absent. Nothing is deleted in the
background: readers check liveness lazily, and `purge_expired()` is an
explicit housekeeping call.

Tiers
-----
- INSTANCE   : durable, one retention window shared by every entry
               (admin, metadata, freeze flags)
- PERSISTENT : durable, per-entry renewable window (balances)
- TEMPORARY  : auto-expiring, per-entry window (allowances)

Instance-tier entries store ``live_until=0``; their liveness is governed by
the shared window returned by `instance_live_until()`.

Backend API
-----------
- load(tier, key) -> Optional[StoredEntry]
- store(tier, key, entry) -> None
- discard(tier, key) -> None
- keys(tier) -> list[bytes]
- instance_live_until() -> Optional[int]
- set_instance_live_until(live_until) -> None
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Protocol, Tuple, runtime_checkable

MAX_KEY_BYTES = 256
MAX_VALUE_BYTES = 64 * 1024


class StorageTier(str, Enum):
    INSTANCE = "instance"
    PERSISTENT = "persistent"
    TEMPORARY = "temporary"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value


@dataclass(frozen=True)
class StoredEntry:
    """An encoded value plus the last ledger sequence at which it is live."""
    value: bytes
    live_until: int

    def is_live(self, sequence: int) -> bool:
        return self.live_until >= sequence

    def ttl(self, sequence: int) -> int:
        """Remaining ledgers after `sequence` (negative once lapsed)."""
        return self.live_until - sequence


# ---------------------------- Backend API ---------------------------- #


@runtime_checkable
class StorageBackend(Protocol):
    """Minimal backend interface for tiered ledger storage."""

    def load(self, tier: StorageTier, key: bytes) -> Optional[StoredEntry]: ...
    def store(self, tier: StorageTier, key: bytes, entry: StoredEntry) -> None: ...
    def discard(self, tier: StorageTier, key: bytes) -> None: ...
    def keys(self, tier: StorageTier) -> List[bytes]: ...
    def instance_live_until(self) -> Optional[int]: ...
    def set_instance_live_until(self, live_until: Optional[int]) -> None: ...


class MemoryBackend(StorageBackend):
    """Thread-safe in-memory backend for local runs and tests."""

    def __init__(self) -> None:
        self._store: Dict[Tuple[StorageTier, bytes], StoredEntry] = {}
        self._instance_live_until: Optional[int] = None
        self._lock = threading.RLock()

    def load(self, tier: StorageTier, key: bytes) -> Optional[StoredEntry]:
        with self._lock:
            return self._store.get((tier, key))

    def store(self, tier: StorageTier, key: bytes, entry: StoredEntry) -> None:
        check_key(key)
        check_value(entry.value)
        with self._lock:
            self._store[(tier, key)] = entry

    def discard(self, tier: StorageTier, key: bytes) -> None:
        with self._lock:
            self._store.pop((tier, key), None)

    def keys(self, tier: StorageTier) -> List[bytes]:
        with self._lock:
            return sorted(k for (t, k) in self._store if t is tier)

    def instance_live_until(self) -> Optional[int]:
        with self._lock:
            return self._instance_live_until

    def set_instance_live_until(self, live_until: Optional[int]) -> None:
        with self._lock:
            self._instance_live_until = live_until

    # ---- housekeeping ---- #

    def purge_expired(self, sequence: int) -> int:
        """
        Physically drop entries whose window lapsed before `sequence`.
        Returns the number of entries removed. Reads never depend on this.
        """
        removed = 0
        with self._lock:
            window = self._instance_live_until
            instance_lapsed = window is not None and window < sequence
            for (tier, key), entry in list(self._store.items()):
                if tier is StorageTier.INSTANCE:
                    dead = instance_lapsed
                else:
                    dead = not entry.is_live(sequence)
                if dead:
                    del self._store[(tier, key)]
                    removed += 1
            if instance_lapsed:
                self._instance_live_until = None
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


# --------------------------- Validation helpers --------------------------- #


def check_key(key: bytes) -> None:
    if not isinstance(key, bytes):
        raise TypeError("storage key must be bytes")
    if len(key) == 0:
        raise ValueError("storage key must be non-empty")
    if len(key) > MAX_KEY_BYTES:
        raise ValueError(f"storage key too long (>{MAX_KEY_BYTES} bytes)")


def check_value(value: bytes) -> None:
    if not isinstance(value, bytes):
        raise TypeError("storage value must be bytes")
    if len(value) > MAX_VALUE_BYTES:
        raise ValueError(f"storage value too large (>{MAX_VALUE_BYTES} bytes)")


__all__ = [
    "StorageTier",
    "StoredEntry",
    "StorageBackend",
    "MemoryBackend",
    "check_key",
    "check_value",
    "MAX_KEY_BYTES",
    "MAX_VALUE_BYTES",
]
