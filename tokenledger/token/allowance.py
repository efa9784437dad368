# -*- coding: utf-8 -*-
"""
tokenledger.token.allowance
===========================

Spending allowances in the temporary tier.

An allowance is the pair (amount, expiration_ledger) under
`AllowanceKey(owner, spender)`. Writes are absolute: `write_allowance`
replaces whatever was stored.

Expiry is lazy and read-only. Once the ledger sequence passes
`expiration_ledger`, `read_allowance` reports amount 0 together with the
stored expiration; the record itself is left as it is. The storage window of
a positive allowance is set to end exactly at `expiration_ledger`, so the
temporary tier drops the record on its own afterwards.

    read_allowance    -> AllowanceValue(0, 0)            no record
                         AllowanceValue(0, expiration)   record, lapsed
                         AllowanceValue(amount, exp)     record, live
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from tokenledger.context import CallContext
from tokenledger.errors import InsufficientAllowance, InvalidExpiration
from tokenledger.storage.keys import AllowanceKey

__all__ = ["AllowanceValue", "read_allowance", "write_allowance", "spend_allowance"]


@dataclass(frozen=True)
class AllowanceValue:
    amount: int
    expiration_ledger: int

    def to_dict(self) -> Dict[str, Any]:
        return {"amount": self.amount, "expiration_ledger": self.expiration_ledger}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AllowanceValue":
        return cls(amount=int(d["amount"]), expiration_ledger=int(d["expiration_ledger"]))


def read_allowance(ctx: CallContext, owner: bytes, spender: bytes) -> AllowanceValue:
    raw = ctx.storage.temporary.get(AllowanceKey(owner, spender))
    if raw is None:
        return AllowanceValue(amount=0, expiration_ledger=0)
    stored = AllowanceValue.from_dict(raw)
    if stored.expiration_ledger < ctx.sequence:
        return AllowanceValue(amount=0, expiration_ledger=stored.expiration_ledger)
    return stored


def write_allowance(
    ctx: CallContext, owner: bytes, spender: bytes, amount: int, expiration_ledger: int
) -> None:
    """
    Store (amount, expiration_ledger) for (owner, spender).

    A positive amount needs an expiration no earlier than the current ledger,
    and no further out than the longest lifetime the temporary tier grants.
    """
    seq = ctx.sequence
    if amount > 0 and expiration_ledger < seq:
        raise InvalidExpiration(expiration_ledger=expiration_ledger, sequence=seq)
    if amount > 0 and expiration_ledger - seq > ctx.config.max_entry_ttl:
        raise InvalidExpiration(
            "expiration_ledger is beyond the maximum entry lifetime",
            expiration_ledger=expiration_ledger,
            sequence=seq,
        )

    key = AllowanceKey(owner, spender)
    ctx.storage.temporary.set(key, AllowanceValue(amount, expiration_ledger).to_dict())

    if amount > 0:
        live_for = expiration_ledger - seq
        ctx.storage.temporary.extend_ttl(key, live_for, live_for)


def spend_allowance(ctx: CallContext, owner: bytes, spender: bytes, amount: int) -> None:
    current = read_allowance(ctx, owner, spender)
    if current.amount < amount:
        raise InsufficientAllowance(
            owner=owner, spender=spender, allowance=current.amount, amount=amount
        )
    write_allowance(ctx, owner, spender, current.amount - amount, current.expiration_ledger)
