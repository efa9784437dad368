# -*- coding: utf-8 -*-
"""
A failed call leaves storage, retention windows, and the event log exactly
as they were.
"""
from __future__ import annotations

import pytest

from tokenledger.errors import ErrorKind
from tokenledger.host import LedgerHost
from tokenledger.result import CallStatus
from tokenledger.storage import AllowanceKey, BalanceKey, StorageTier


def _snapshot(host: LedgerHost):
    backend = host.backend
    return (
        {
            tier: {k: backend.load(tier, k) for k in backend.keys(tier)}
            for tier in StorageTier
        },
        backend.instance_live_until(),
        len(host.events),
    )


def test_transfer_from_with_short_balance_keeps_allowance(host, token, accounts):
    user1, user2, user3 = accounts.user1, accounts.user2, accounts.user3
    token.mint(user1, 500)
    token.approve(user1, user3, 1000, 200)
    before = _snapshot(host)

    res = host.invoke("transfer_from", user3, user1, user2, 600)
    assert res.status is CallStatus.REVERT
    assert res.error_kind is ErrorKind.INSUFFICIENT_BALANCE
    assert res.events == ()
    assert _snapshot(host) == before
    assert token.allowance(user1, user3) == 1000


def test_failed_call_does_not_renew_anything(host, token, config, accounts):
    token.mint(accounts.user1, 100)
    host.advance(config.day_in_ledgers + 1)
    ttl_before = host.ttl(StorageTier.PERSISTENT, BalanceKey(accounts.user1))
    instance_before = host.instance_ttl()

    res = host.invoke("transfer", accounts.user1, accounts.user2, 101)
    assert res.error_kind is ErrorKind.INSUFFICIENT_BALANCE
    assert host.ttl(StorageTier.PERSISTENT, BalanceKey(accounts.user1)) == ttl_before
    assert host.instance_ttl() == instance_before


@pytest.mark.parametrize(
    "function, args",
    [
        ("mint", ("user1", -1)),
        ("transfer", ("user1", "user2", -5)),
        ("burn", ("user1", -1)),
        ("approve", ("user1", "user2", -1, 10)),
        ("transfer_from", ("user2", "user1", "user3", -1)),
        ("burn_from", ("user2", "user1", -1)),
    ],
)
def test_negative_amounts_rejected(host, token, accounts, function, args):
    token.mint(accounts.user1, 100)
    resolved = tuple(getattr(accounts, a) if isinstance(a, str) else a for a in args)
    before = _snapshot(host)

    res = host.invoke(function, *resolved)
    assert res.error_kind is ErrorKind.NEGATIVE_AMOUNT
    assert _snapshot(host) == before


def test_unauthorized_transfer_is_discarded(host, token, accounts):
    token.mint(accounts.user1, 100)
    before = _snapshot(host)

    res = token.with_auth(accounts.user2).try_transfer(accounts.user1, accounts.user2, 10)
    assert res.error_kind is ErrorKind.UNAUTHORIZED
    assert res.error.data["principal"] == accounts.user1.hex()
    assert _snapshot(host) == before
    assert host.last_auths == (), "auths of a failed call are not published"


def test_authorized_principal_via_client(host, token, accounts):
    token.mint(accounts.user1, 100)
    owner = token.with_auth(accounts.user1)
    owner.transfer(accounts.user1, accounts.user2, 10)
    assert token.balance(accounts.user2) == 10
    assert host.last_auths[0].principal == accounts.user1


def test_oversized_initialize_writes_nothing(config, accounts):
    host = LedgerHost(config=config)
    res = host.invoke("initialize", accounts.admin, 7, "n" * 70_000, "sym")

    assert res.status is CallStatus.REVERT
    assert res.error_kind is ErrorKind.INVALID_METADATA
    assert res.error.data == {"field": "name", "length": 70_000}
    assert len(host.backend) == 0
    assert host.backend.instance_live_until() is None

    # The ledger is still uninitialized and accepts a proper initialize.
    assert host.invoke("initialize", accounts.admin, 7, "n", "sym").ok
    assert len(host.backend) == 2


@pytest.mark.parametrize("name, symbol", [(123, "sym"), ("name", b"sym"), ("name", None)])
def test_non_text_metadata_is_a_typed_error(config, accounts, name, symbol):
    host = LedgerHost(config=config)
    res = host.invoke("initialize", accounts.admin, 7, name, symbol)
    assert res.status is CallStatus.REVERT
    assert res.error_kind is ErrorKind.INVALID_METADATA
    assert len(host.backend) == 0


def test_metadata_length_limit_counts_utf8_bytes(config, accounts):
    from tokenledger.token import MAX_TEXT_BYTES

    host = LedgerHost(config=config)
    res = host.invoke("initialize", accounts.admin, 7, "é" * (MAX_TEXT_BYTES // 2 + 1), "s")
    assert res.error_kind is ErrorKind.INVALID_METADATA

    assert host.invoke("initialize", accounts.admin, 7, "é" * (MAX_TEXT_BYTES // 2), "s").ok
    assert host.client().name() == "é" * (MAX_TEXT_BYTES // 2)


def test_success_publishes_events_once(host, token, accounts):
    token.mint(accounts.user1, 100)
    res = host.invoke("transfer", accounts.user1, accounts.user2, 10)
    assert res.ok
    assert len(res.events) == 1
    assert host.events[-1] is res.events[0]


def test_unknown_entry_point(host):
    with pytest.raises(ValueError):
        host.invoke("total_supply")


def test_non_ledger_exception_propagates_and_discards(host, token, accounts):
    token.mint(accounts.user1, 100)
    before = _snapshot(host)
    with pytest.raises(TypeError):
        host.invoke("mint", accounts.user1)
    assert _snapshot(host) == before


def test_sequence_cannot_move_backwards(host):
    from tokenledger.context import ContextError

    host.set_sequence(10)
    with pytest.raises(ContextError):
        host.set_sequence(9)
