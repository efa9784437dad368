"""
tokenledger.host — in-process host that runs ledger calls atomically.

Responsibilities
- invoke: build a CallContext (ledger time, authorization, a fresh journal and
  event sink), dispatch to a named entry point, then either flush the journal
  and publish the events, or discard both. Ledger errors come back as a typed
  CallResult; they are never raised out of `invoke`.
- ledger time: `advance()` / `set_sequence()` move the clock every expiry and
  TTL is measured against. Time only moves forward.
- introspection: committed event log, auth records of the last call, and the
  remaining TTL of any storage entry.

Design notes
- Calls are serialized with a re-entrant lock; one call sees no other call's
  staged writes.
- A non-ledger exception (a bug) discards the journal and propagates.
- The flush runs inside the guarded block; it validates every staged entry
  before writing any, so a rejected entry comes back as a typed result.

Usage
-----
    host = LedgerHost()
    host.mock_all_auths()
    token = host.client()
    token.initialize(admin, 7, "name", "symbol")
    token.mint(user, 1000)
    res = host.invoke("transfer", user, other, 2000, auth=AuthContext.of(user))
    assert res.error_kind is ErrorKind.INSUFFICIENT_BALANCE
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, List, Optional, Tuple

from . import logging as tlog
from .config import LedgerConfig, load_config
from .context import (AuthContext, AuthRecord, CallContext, ContextError,
                      LedgerEnv)
from .errors import LedgerError
from .events import Event, EventSink
from .result import CallResult, CallStatus
from .storage.backend import MemoryBackend, StorageBackend, StorageTier
from .storage.journal import Journal
from .storage.keys import DataKey, encode_key
from .token.contract import ENTRYPOINTS

log = tlog.get_logger("tokenledger.host")


class LedgerHost:
    """
    Owns one token ledger instance: its backend, clock and event log.

    Parameters
    ----------
    config : LedgerConfig | None
        Retention policy; defaults to `load_config()`.
    backend : StorageBackend | None
        Committed store; defaults to a fresh MemoryBackend.
    sequence, timestamp, network_id
        Initial ledger environment.
    """

    def __init__(
        self,
        config: Optional[LedgerConfig] = None,
        backend: Optional[StorageBackend] = None,
        *,
        sequence: int = 0,
        timestamp: int = 0,
        network_id: bytes = b"",
    ) -> None:
        self.config = config or load_config()
        self.backend = backend if backend is not None else MemoryBackend()
        self._env = LedgerEnv(sequence=sequence, timestamp=timestamp, network_id=network_id)
        self.default_auth = AuthContext.none()
        self._events: List[Event] = []
        self._last_auths: Tuple[AuthRecord, ...] = ()
        self._lock = threading.RLock()

    # ------------------------------------------------------------------ #
    # Ledger time
    # ------------------------------------------------------------------ #

    @property
    def ledger(self) -> LedgerEnv:
        return self._env

    @property
    def sequence(self) -> int:
        return self._env.sequence

    def advance(self, ledgers: int = 1) -> LedgerEnv:
        with self._lock:
            self._env = self._env.advanced(ledgers)
            return self._env

    def set_sequence(self, sequence: int) -> LedgerEnv:
        with self._lock:
            if sequence < self._env.sequence:
                raise ContextError(
                    f"ledger sequence cannot move backwards ({self._env.sequence} -> {sequence})"
                )
            return self.advance(sequence - self._env.sequence)

    # ------------------------------------------------------------------ #
    # Authorization
    # ------------------------------------------------------------------ #

    def mock_all_auths(self) -> None:
        """Authorize every principal on calls that do not pass `auth`."""
        self.default_auth = AuthContext.mock_all_auths()

    @property
    def last_auths(self) -> Tuple[AuthRecord, ...]:
        """Authorization requirements of the last call; empty if it failed."""
        return self._last_auths

    # ------------------------------------------------------------------ #
    # Invocation
    # ------------------------------------------------------------------ #

    def invoke(self, function: str, *args: Any, auth: Optional[AuthContext] = None) -> CallResult:
        fn = ENTRYPOINTS.get(function)
        if fn is None:
            raise ValueError(f"unknown entry point: {function!r}")

        with self._lock, tlog.trace_scope(function=function, sequence=self._env.sequence):
            env = self._env
            journal = Journal(self.backend, sequence=env.sequence, config=self.config)
            ctx = CallContext(
                ledger=env,
                auth=auth if auth is not None else self.default_auth,
                storage=journal,
                events=EventSink(),
                config=self.config,
                function=function,
                args=tuple(args),
            )
            journal.checkpoint()
            try:
                value = fn(ctx, *args)
                written = journal.flush()
            except LedgerError as err:
                journal.revert_to(1)
                journal.revert()
                self._last_auths = ()
                status = CallStatus.for_error(err)
                level = logging.WARNING if err.fatal else logging.INFO
                log.log(level, "call failed", extra={"status": status.code, "error": err.code})
                return CallResult(status=status, function=function, sequence=env.sequence, error=err)
            except Exception:
                journal.revert_to(1)
                journal.revert()
                self._last_auths = ()
                log.exception("call crashed")
                raise

            events = tuple(ctx.events.iter_events())
            self._events.extend(events)
            self._last_auths = tuple(ctx.auths)
            log.debug("call applied", extra={"writes": written, "events": len(events)})
            return CallResult(
                status=CallStatus.SUCCESS,
                function=function,
                sequence=env.sequence,
                value=value,
                events=events,
                auths=self._last_auths,
            )

    def client(self, auth: Optional[AuthContext] = None) -> "TokenClient":
        return TokenClient(self, auth)

    # ------------------------------------------------------------------ #
    # Introspection & housekeeping
    # ------------------------------------------------------------------ #

    @property
    def events(self) -> List[Event]:
        """Committed events, oldest first."""
        return list(self._events)

    def clear_events(self) -> None:
        self._events.clear()

    def _reader(self) -> Journal:
        return Journal(self.backend, sequence=self._env.sequence, config=self.config)

    def ttl(self, tier: StorageTier, key: DataKey) -> Optional[int]:
        """Remaining lifetime of a storage entry, or None if it is not live."""
        return self._reader().ttl(tier, encode_key(key))

    def instance_ttl(self) -> Optional[int]:
        return self._reader().instance_ttl()

    def read(self, tier: StorageTier, key: DataKey, default: Any = None) -> Any:
        """Decoded committed value as seen at the current sequence."""
        reader = self._reader()
        view = {
            StorageTier.INSTANCE: reader.instance,
            StorageTier.PERSISTENT: reader.persistent,
            StorageTier.TEMPORARY: reader.temporary,
        }[tier]
        return view.get(key, default)

    def purge_expired(self) -> int:
        """Physically drop lapsed entries from the backend, if it supports it."""
        purge = getattr(self.backend, "purge_expired", None)
        if purge is None:
            return 0
        with self._lock:
            removed = purge(self._env.sequence)
        log.debug("purged expired entries", extra={"removed": removed})
        return removed


class TokenClient:
    """
    Attribute-style access to the entry points of a host.

        token.transfer(a, b, 10)      -> value, or raises the LedgerError
        token.try_transfer(a, b, 10)  -> CallResult
    """

    def __init__(self, host: LedgerHost, auth: Optional[AuthContext] = None) -> None:
        self.host = host
        self.auth = auth

    def with_auth(self, *principals: Any) -> "TokenClient":
        return TokenClient(self.host, AuthContext.of(*principals))

    def __getattr__(self, attr: str) -> Callable[..., Any]:
        if attr.startswith("try_") and attr[4:] in ENTRYPOINTS:
            function = attr[4:]

            def _try(*args: Any) -> CallResult:
                return self.host.invoke(function, *args, auth=self.auth)

            return _try
        if attr in ENTRYPOINTS:

            def _call(*args: Any) -> Any:
                return self.host.invoke(attr, *args, auth=self.auth).unwrap()

            return _call
        raise AttributeError(attr)


__all__ = ["LedgerHost", "TokenClient"]
