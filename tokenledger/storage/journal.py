"""
tokenledger.storage.journal — staged writes, TTL changes, commit/revert.

A `Journal` layers overlays over a `StorageBackend` for the duration of one
ledger call. Writes, removals and TTL extensions go to the top overlay; reads
consult overlays from top → root and then the backend. `commit()` merges the
top overlay into its parent; `flush()` applies the root overlay to the
backend. `revert()` discards the top overlay.

Every read is evaluated against the journal's ledger `sequence`: an entry
whose window has elapsed is reported as absent, in every tier. The backend is
never asked to delete lapsed entries.

Intended usage
--------------
    j = Journal(backend, sequence=env.sequence, config=cfg)
    marker = j.checkpoint()
    j.persistent.set(BalanceKey(addr), 100)
    j.persistent.extend_ttl(BalanceKey(addr), cfg.balance_lifetime_threshold,
                            cfg.balance_bump_amount)
    j.commit_to(1)
    j.flush()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from tokenledger.config import LedgerConfig
from tokenledger.errors import LedgerInvariantError

from . import codec
from .backend import (StorageBackend, StorageTier, StoredEntry, check_key,
                      check_value)
from .keys import DataKey, encode_key

_Slot = Tuple[StorageTier, bytes]


def _check_slot(tier: StorageTier, key: bytes, value: Optional[bytes]) -> None:
    """Backend key/value limits, raised as a ledger invariant violation."""
    try:
        check_key(key)
        if value is not None:
            check_value(value)
    except (TypeError, ValueError) as e:
        raise LedgerInvariantError(
            f"storage entry rejected: {e}",
            data={"tier": tier.value, "key_len": len(key) if isinstance(key, bytes) else None},
        ) from e


# =============================================================================
# Overlay model
# =============================================================================


@dataclass
class _Overlay:
    """
    A single journal layer.

    - `entries`: staged entries per (tier, key). `None` means deletion.
    - `instance_live_until`: staged instance window, if changed in this layer.
    """

    entries: Dict[_Slot, Optional[StoredEntry]] = field(default_factory=dict)
    instance_live_until: Optional[int] = None

    def is_empty(self) -> bool:
        return not self.entries and self.instance_live_until is None


# =============================================================================
# Journal
# =============================================================================


class Journal:
    """
    A copy-on-write journal with nested checkpoints for one ledger call.

    Parameters
    ----------
    backend : StorageBackend
        The committed store.
    sequence : int
        Ledger sequence every liveness check and TTL is measured against.
    config : LedgerConfig
        Source of minimum/maximum entry lifetimes.
    """

    def __init__(self, backend: StorageBackend, *, sequence: int, config: LedgerConfig) -> None:
        self._backend = backend
        self.sequence = sequence
        self.config = config
        self._layers: List[_Overlay] = [_Overlay()]
        self.instance = TierView(self, StorageTier.INSTANCE)
        self.persistent = TierView(self, StorageTier.PERSISTENT)
        self.temporary = TierView(self, StorageTier.TEMPORARY)

    # --------------------------------------------------------------------- #
    # Checkpointing
    # --------------------------------------------------------------------- #

    def depth(self) -> int:
        """Number of overlays (>= 1)."""
        return len(self._layers)

    def begin(self) -> int:
        """Start a new checkpoint. Returns the new depth marker."""
        self._layers.append(_Overlay())
        return len(self._layers)

    def checkpoint(self) -> int:
        """Alias for `begin()`."""
        return self.begin()

    def commit(self) -> None:
        """Merge the top overlay into its parent. The root layer stays put."""
        if len(self._layers) == 1:
            return
        top = self._layers.pop()
        parent = self._layers[-1]
        parent.entries.update(top.entries)
        if top.instance_live_until is not None:
            parent.instance_live_until = top.instance_live_until

    def revert(self) -> None:
        """Discard the top overlay (or clear it if it's the root)."""
        if len(self._layers) > 1:
            self._layers.pop()
        else:
            self._layers[0] = _Overlay()

    def commit_to(self, marker: int) -> None:
        if marker < 1:
            raise ValueError("marker must be >= 1")
        while len(self._layers) > marker:
            self.commit()

    def revert_to(self, marker: int) -> None:
        if marker < 1:
            raise ValueError("marker must be >= 1")
        while len(self._layers) > marker:
            self.revert()

    def flush(self) -> int:
        """
        Commit every overlay and apply the result to the backend.
        Returns the number of entries written or discarded.

        Every staged entry is validated before the first one is written, so
        a rejected entry leaves the backend untouched.
        """
        self.commit_to(1)
        root = self._layers[0]
        for (tier, key), entry in root.entries.items():
            _check_slot(tier, key, entry.value if entry is not None else None)
        for (tier, key), entry in root.entries.items():
            if entry is None:
                self._backend.discard(tier, key)
            else:
                self._backend.store(tier, key, entry)
        if root.instance_live_until is not None:
            self._backend.set_instance_live_until(root.instance_live_until)
        n = len(root.entries)
        self._layers[0] = _Overlay()
        return n

    def pending(self) -> bool:
        return any(not layer.is_empty() for layer in self._layers)

    # --------------------------------------------------------------------- #
    # Raw slots
    # --------------------------------------------------------------------- #

    def _lookup(self, slot: _Slot) -> Optional[StoredEntry]:
        for layer in reversed(self._layers):
            if slot in layer.entries:
                return layer.entries[slot]
        return self._backend.load(*slot)

    def _stage(self, slot: _Slot, entry: Optional[StoredEntry]) -> None:
        _check_slot(slot[0], slot[1], entry.value if entry is not None else None)
        self._layers[-1].entries[slot] = entry

    def instance_live_until(self) -> Optional[int]:
        for layer in reversed(self._layers):
            if layer.instance_live_until is not None:
                return layer.instance_live_until
        return self._backend.instance_live_until()

    def instance_is_live(self) -> bool:
        window = self.instance_live_until()
        return window is not None and window >= self.sequence

    def _open_instance(self) -> None:
        """Start a fresh instance window if none is live; lapsed entries are dropped."""
        window = self.instance_live_until()
        if window is not None and window >= self.sequence:
            return
        if window is not None:
            stale = set(self._backend.keys(StorageTier.INSTANCE))
            for layer in self._layers:
                stale.update(k for (t, k) in layer.entries if t is StorageTier.INSTANCE)
            for key in stale:
                self._stage((StorageTier.INSTANCE, key), None)
        self._layers[-1].instance_live_until = self.sequence + self.config.min_persistent_ttl - 1

    def _min_ttl(self, tier: StorageTier) -> int:
        if tier is StorageTier.TEMPORARY:
            return self.config.min_temporary_ttl
        return self.config.min_persistent_ttl

    # --------------------------------------------------------------------- #
    # Entry API
    # --------------------------------------------------------------------- #

    def load(self, tier: StorageTier, key: bytes) -> Optional[StoredEntry]:
        """Live entry for `key`, or None if absent or lapsed."""
        entry = self._lookup((tier, key))
        if entry is None:
            return None
        if tier is StorageTier.INSTANCE:
            return entry if self.instance_is_live() else None
        return entry if entry.is_live(self.sequence) else None

    def store(self, tier: StorageTier, key: bytes, value: bytes) -> None:
        """
        Stage `value`. A live entry keeps its window; a new (or lapsed) entry
        starts with the tier's minimum lifetime.
        """
        if tier is StorageTier.INSTANCE:
            self._open_instance()
            self._stage((tier, key), StoredEntry(value, 0))
            return
        current = self.load(tier, key)
        if current is not None:
            live_until = current.live_until
        else:
            live_until = self.sequence + self._min_ttl(tier) - 1
        self._stage((tier, key), StoredEntry(value, live_until))

    def discard(self, tier: StorageTier, key: bytes) -> None:
        self._stage((tier, key), None)

    def ttl(self, tier: StorageTier, key: bytes) -> Optional[int]:
        """Remaining lifetime in ledgers, or None if the entry is not live."""
        entry = self.load(tier, key)
        if entry is None:
            return None
        if tier is StorageTier.INSTANCE:
            return self.instance_ttl()
        return entry.ttl(self.sequence)

    def extend_ttl(self, tier: StorageTier, key: bytes, threshold: int, extend_to: int) -> None:
        """
        If the entry's remaining lifetime is below `threshold`, extend it to
        `extend_to` ledgers from now (capped at the maximum entry lifetime).
        Extending a missing entry is an invariant violation.
        """
        if tier is StorageTier.INSTANCE:
            self.extend_instance_ttl(threshold, extend_to)
            return
        if threshold > extend_to:
            raise ValueError("threshold must not exceed extend_to")
        entry = self.load(tier, key)
        if entry is None:
            raise LedgerInvariantError(
                "cannot extend ttl of a missing entry", data={"tier": tier.value, "key": key.hex()}
            )
        if entry.ttl(self.sequence) < threshold:
            live_until = self.sequence + min(extend_to, self.config.max_entry_ttl)
            if live_until > entry.live_until:
                self._stage((tier, key), StoredEntry(entry.value, live_until))

    # ---- instance window ---- #

    def instance_ttl(self) -> Optional[int]:
        if not self.instance_is_live():
            return None
        return self.instance_live_until() - self.sequence  # type: ignore[operator]

    def extend_instance_ttl(self, threshold: int, extend_to: int) -> None:
        if threshold > extend_to:
            raise ValueError("threshold must not exceed extend_to")
        if not self.instance_is_live():
            raise LedgerInvariantError("cannot extend ttl of a lapsed instance")
        window = self.instance_live_until()
        assert window is not None
        if window - self.sequence < threshold:
            live_until = self.sequence + min(extend_to, self.config.max_entry_ttl)
            if live_until > window:
                self._layers[-1].instance_live_until = live_until


class TierView:
    """Typed access to one tier: DataKey in, decoded CBOR value out."""

    def __init__(self, journal: Journal, tier: StorageTier) -> None:
        self._journal = journal
        self.tier = tier

    def has(self, key: DataKey) -> bool:
        return self._journal.load(self.tier, encode_key(key)) is not None

    def get(self, key: DataKey, default: Any = None) -> Any:
        entry = self._journal.load(self.tier, encode_key(key))
        if entry is None:
            return default
        return codec.loads(entry.value)

    def set(self, key: DataKey, value: Any) -> None:
        self._journal.store(self.tier, encode_key(key), codec.dumps(value))

    def remove(self, key: DataKey) -> None:
        self._journal.discard(self.tier, encode_key(key))

    def extend_ttl(self, key: DataKey, threshold: int, extend_to: int) -> None:
        self._journal.extend_ttl(self.tier, encode_key(key), threshold, extend_to)

    def ttl(self, key: DataKey) -> Optional[int]:
        return self._journal.ttl(self.tier, encode_key(key))

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"TierView({self.tier.value})"


__all__ = ["Journal", "TierView"]
