# -*- coding: utf-8 -*-
from __future__ import annotations

import pytest

from tokenledger.context import AuthContext, AuthRecord
from tokenledger.errors import AccountFrozen, ErrorKind
from tokenledger.storage import FrozenKey, StorageTier


@pytest.fixture
def funded(token, accounts):
    token.mint(accounts.user1, 1000)
    token.mint(accounts.user2, 1000)
    token.approve(accounts.user1, accounts.user3, 500, 200)
    return token


def test_freeze_blocks_outgoing_transfer_family(host, funded, accounts):
    user1, user2, user3 = accounts.user1, accounts.user2, accounts.user3
    funded.freeze_account(user1)
    assert host.last_auths == (AuthRecord(accounts.admin, "freeze_account", (user1,)),)

    with pytest.raises(AccountFrozen):
        funded.transfer(user1, user2, 1)
    with pytest.raises(AccountFrozen):
        funded.transfer_from(user3, user1, user2, 1)
    with pytest.raises(AccountFrozen):
        funded.burn(user1, 1)
    with pytest.raises(AccountFrozen):
        funded.burn_from(user3, user1, 1)

    assert funded.balance(user1) == 1000
    assert funded.allowance(user1, user3) == 500


def test_frozen_account_can_receive_and_be_minted_to(funded, accounts):
    user1, user2 = accounts.user1, accounts.user2
    funded.freeze_account(user1)

    funded.mint(user1, 5)
    funded.transfer(user2, user1, 10)
    assert funded.balance(user1) == 1015


def test_freeze_does_not_affect_spender(funded, accounts):
    # user3 is frozen but spends from user1, who is not.
    funded.freeze_account(accounts.user3)
    funded.transfer_from(accounts.user3, accounts.user1, accounts.user2, 100)
    assert funded.balance(accounts.user2) == 1100


def test_unfreeze_restores_transfers(host, funded, accounts):
    funded.freeze_account(accounts.user1)
    funded.unfreeze_account(accounts.user1)
    assert host.read(StorageTier.INSTANCE, FrozenKey(accounts.user1)) is None

    funded.transfer(accounts.user1, accounts.user2, 100)
    assert funded.balance(accounts.user1) == 900


def test_freeze_events(host, funded, accounts):
    funded.freeze_account(accounts.user1)
    funded.unfreeze_account(accounts.user1)
    freeze, unfreeze = host.events[-2:]
    assert freeze.topic == "freeze_account"
    assert freeze.args == {"admin": accounts.admin, "account": accounts.user1}
    assert unfreeze.topic == "unfreeze_account"
    assert unfreeze.args == {"admin": accounts.admin, "account": accounts.user1}


def test_freeze_requires_admin(host, funded, accounts):
    res = funded.with_auth(accounts.user1).try_freeze_account(accounts.user2)
    assert res.error_kind is ErrorKind.UNAUTHORIZED
    assert host.read(StorageTier.INSTANCE, FrozenKey(accounts.user2)) is None

    res = host.invoke("unfreeze_account", accounts.user2, auth=AuthContext.none())
    assert res.error_kind is ErrorKind.UNAUTHORIZED

    funded.with_auth(accounts.admin).freeze_account(accounts.user2)
    assert host.read(StorageTier.INSTANCE, FrozenKey(accounts.user2)) is True


def test_freeze_is_idempotent(host, funded, accounts):
    funded.freeze_account(accounts.user1)
    funded.freeze_account(accounts.user1)
    assert host.read(StorageTier.INSTANCE, FrozenKey(accounts.user1)) is True
    funded.unfreeze_account(accounts.user2)
    assert host.read(StorageTier.INSTANCE, FrozenKey(accounts.user2)) is None
