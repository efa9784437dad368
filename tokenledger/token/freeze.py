# -*- coding: utf-8 -*-
"""
tokenledger.token.freeze
========================

Per-address freeze flags, kept in the instance tier.

A flag is present (stored `True`) while the account is frozen and removed when
it is unfrozen; an absent flag means "not frozen". A frozen account cannot be
the source of transfer, transfer_from, burn or burn_from. Minting to it and
reading its balance still work.

The flags ride on the instance retention window, which every entry point
renews, so they need no renewal of their own.
"""
from __future__ import annotations

from tokenledger.context import CallContext
from tokenledger.errors import AccountFrozen
from tokenledger.storage.keys import FrozenKey

__all__ = ["is_frozen", "freeze", "unfreeze", "require_not_frozen"]


def is_frozen(ctx: CallContext, addr: bytes) -> bool:
    return bool(ctx.storage.instance.get(FrozenKey(addr), False))


def freeze(ctx: CallContext, addr: bytes) -> None:
    ctx.storage.instance.set(FrozenKey(addr), True)


def unfreeze(ctx: CallContext, addr: bytes) -> None:
    ctx.storage.instance.remove(FrozenKey(addr))


def require_not_frozen(ctx: CallContext, addr: bytes) -> None:
    """
    Raise AccountFrozen if `addr` is frozen.
    """
    if is_frozen(ctx, addr):
        raise AccountFrozen(address=addr)
