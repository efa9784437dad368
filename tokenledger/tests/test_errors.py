# -*- coding: utf-8 -*-
from __future__ import annotations

import pytest

from tokenledger.errors import (AccountFrozen, ArithmeticOverflow,
                                ErrorKind, InsufficientBalance,
                                InvalidAddress, LedgerError,
                                LedgerInvariantError, NegativeAmount,
                                UninitializedLedger, error_to_result_fields)
from tokenledger.host import LedgerHost
from tokenledger.result import CallStatus
from tokenledger.token import I128_MAX


def test_error_payload():
    err = InsufficientBalance(address=b"\x01\x02", balance=10, amount=11)
    assert err.kind is ErrorKind.INSUFFICIENT_BALANCE
    assert err.to_dict() == {
        "kind": "InsufficientBalance",
        "code": "INSUFFICIENT_BALANCE",
        "message": "insufficient balance",
        "data": {"address": "0102", "balance": 10, "amount": 11},
    }
    assert str(err).startswith("INSUFFICIENT_BALANCE: insufficient balance")


def test_error_without_details_has_no_data():
    err = NegativeAmount()
    assert err.data is None
    assert "data" not in err.to_dict()


def test_uninitialized_is_fatal():
    err = UninitializedLedger(entry="admin")
    assert isinstance(err, LedgerInvariantError)
    assert isinstance(err, LedgerError)
    assert err.fatal
    assert error_to_result_fields(err)["status"] == "ABORT"
    assert error_to_result_fields(AccountFrozen())["status"] == "REVERT"


def test_operations_before_initialize_abort(config, accounts):
    host = LedgerHost(config=config)
    host.mock_all_auths()
    for function, args in [
        ("balance", (accounts.user1,)),
        ("mint", (accounts.user1, 1)),
        ("transfer", (accounts.user1, accounts.user2, 0)),
        ("set_admin", (accounts.admin2,)),
        ("name", ()),
    ]:
        res = host.invoke(function, *args)
        assert res.status is CallStatus.ABORT, function
        assert res.error_kind is ErrorKind.UNINITIALIZED_LEDGER
    assert host.events == []


def test_unwrap_raises_carried_error(config, accounts):
    host = LedgerHost(config=config)
    with pytest.raises(UninitializedLedger):
        host.client().decimals()


def test_try_methods_return_results(token, accounts):
    res = token.try_transfer(accounts.user1, accounts.user2, 1)
    assert not res.ok
    assert res.error_kind is ErrorKind.INSUFFICIENT_BALANCE
    assert res.value is None


def test_mint_overflow(token, accounts):
    token.mint(accounts.user1, I128_MAX)
    with pytest.raises(ArithmeticOverflow):
        token.mint(accounts.user1, 1)
    assert token.balance(accounts.user1) == I128_MAX


def test_amount_outside_i128_rejected(token, accounts):
    with pytest.raises(ArithmeticOverflow):
        token.mint(accounts.user1, I128_MAX + 1)


@pytest.mark.parametrize("bad", [b"", "0xzz", "abc", b"\x00" * 65, 12])
def test_invalid_address(token, bad):
    with pytest.raises(InvalidAddress):
        token.balance(bad)


def test_result_to_dict(host, token, accounts):
    token.mint(accounts.user1, 1000)
    ok = host.invoke("balance", accounts.user1).to_dict()
    assert ok["status"] == "SUCCESS"
    assert ok["value"] == "1000"
    assert "error" not in ok

    res = host.invoke("transfer", accounts.user1, accounts.user2, 10).to_dict()
    assert res["events"] == [
        {
            "name": "transfer",
            "args": [
                {"k": "from", "t": "b", "v": "0x" + accounts.user1.hex()},
                {"k": "to", "t": "b", "v": "0x" + accounts.user2.hex()},
                {"k": "amount", "t": "i", "v": "10"},
            ],
        }
    ]
    assert res["auths"] == [
        {
            "principal": "0x" + accounts.user1.hex(),
            "function": "transfer",
            "args": ["0x" + accounts.user1.hex(), "0x" + accounts.user2.hex(), 10],
        }
    ]

    bad = host.invoke("burn", accounts.user2, 1).to_dict()
    assert bad["status"] == "REVERT"
    assert bad["error"]["kind"] == "InsufficientBalance"
