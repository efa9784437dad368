# -*- coding: utf-8 -*-
"""
Pytest fixtures for the token ledger.

- Deterministic principal addresses derived from a tag (SHA3-256, 32 bytes).
- A fresh `LedgerHost` per test, starting at ledger sequence 0, with the
  default retention policy.
- `token`: an initialized ledger client with every authorization mocked.
- `make_ctx`: a bare `CallContext` over a given backend, for store-level tests.

Usage (inside a test file):
    def test_flow(token, host, accounts):
        token.mint(accounts.user1, 1000)
        assert token.balance(accounts.user1) == 1000
"""
from __future__ import annotations

import hashlib
import os
from types import SimpleNamespace
from typing import Callable, Optional

import pytest

# --- stable env for tests -----------------------------------------------------

os.environ.setdefault("PYTHONHASHSEED", "0")
os.environ.setdefault("TZ", "UTC")

from tokenledger.config import LedgerConfig  # noqa: E402
from tokenledger.context import AuthContext, CallContext, LedgerEnv  # noqa: E402
from tokenledger.events import EventSink  # noqa: E402
from tokenledger.host import LedgerHost, TokenClient  # noqa: E402
from tokenledger.storage.backend import MemoryBackend, StorageBackend  # noqa: E402
from tokenledger.storage.journal import Journal  # noqa: E402


def det_address(tag: str) -> bytes:
    """
    Produce a stable 32-byte address from a tag.
    """
    return hashlib.sha3_256(b"tokenledger:" + tag.encode("utf-8")).digest()


@pytest.fixture
def accounts() -> SimpleNamespace:
    return SimpleNamespace(
        admin=det_address("admin1"),
        admin2=det_address("admin2"),
        user1=det_address("user1"),
        user2=det_address("user2"),
        user3=det_address("user3"),
    )


@pytest.fixture
def config() -> LedgerConfig:
    return LedgerConfig.from_days()


@pytest.fixture
def host(config: LedgerConfig) -> LedgerHost:
    h = LedgerHost(config=config, sequence=0)
    h.mock_all_auths()
    return h


@pytest.fixture
def token(host: LedgerHost, accounts: SimpleNamespace) -> TokenClient:
    """Ledger initialized with decimal 7, name "name", symbol "symbol"."""
    client = host.client()
    client.initialize(accounts.admin, 7, "name", "symbol")
    return client


@pytest.fixture
def make_ctx(config: LedgerConfig) -> Callable[..., CallContext]:
    """
    Build a CallContext over `backend` at `sequence`. Staged writes stay in
    the returned context's journal until `ctx.storage.flush()`.
    """

    def _make(
        sequence: int = 0,
        backend: Optional[StorageBackend] = None,
        auth: Optional[AuthContext] = None,
        function: str = "test",
    ) -> CallContext:
        journal = Journal(backend if backend is not None else MemoryBackend(), sequence=sequence, config=config)
        journal.checkpoint()
        return CallContext(
            ledger=LedgerEnv(sequence=sequence),
            auth=auth if auth is not None else AuthContext.mock_all_auths(),
            storage=journal,
            events=EventSink(),
            config=config,
            function=function,
        )

    return _make
