# -*- coding: utf-8 -*-
"""
tokenledger.token.balance
=========================

Per-address balances in the persistent tier.

Every read of an existing balance and every write renews the entry: if its
remaining lifetime is below `balance_lifetime_threshold`, it is extended to
`balance_bump_amount` ledgers from now. Reading an address that has no entry
returns 0 and touches nothing.

A balance that reaches zero stays stored as an explicit zero.

Arithmetic is checked: a credit that would leave the i128 range raises
`ArithmeticOverflow`; a debit larger than the balance raises
`InsufficientBalance`. Amounts are assumed non-negative (validated by the
entry points).
"""
from __future__ import annotations

from tokenledger.context import CallContext
from tokenledger.errors import ArithmeticOverflow, InsufficientBalance
from tokenledger.storage.keys import BalanceKey

from . import I128_MAX

__all__ = ["read_balance", "write_balance", "receive_balance", "spend_balance"]


def _renew(ctx: CallContext, key: BalanceKey) -> None:
    ctx.storage.persistent.extend_ttl(
        key, ctx.config.balance_lifetime_threshold, ctx.config.balance_bump_amount
    )


def read_balance(ctx: CallContext, addr: bytes) -> int:
    """
    Return the balance of `addr` (0 if absent), renewing an existing entry.
    """
    key = BalanceKey(addr)
    value = ctx.storage.persistent.get(key)
    if value is None:
        return 0
    _renew(ctx, key)
    return value


def write_balance(ctx: CallContext, addr: bytes, amount: int) -> None:
    key = BalanceKey(addr)
    ctx.storage.persistent.set(key, amount)
    _renew(ctx, key)


def receive_balance(ctx: CallContext, addr: bytes, amount: int) -> None:
    balance = read_balance(ctx, addr)
    new = balance + amount
    if new > I128_MAX:
        raise ArithmeticOverflow("balance overflow", value=new)
    write_balance(ctx, addr, new)


def spend_balance(ctx: CallContext, addr: bytes, amount: int) -> None:
    balance = read_balance(ctx, addr)
    if balance < amount:
        raise InsufficientBalance(address=addr, balance=balance, amount=amount)
    write_balance(ctx, addr, balance - amount)
