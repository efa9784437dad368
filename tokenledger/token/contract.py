# -*- coding: utf-8 -*-
"""
Fungible token ledger — public entry points
===========================================

Every entry point takes the per-call `CallContext` first and reads ledger
time, authorization, storage and the event sink from it; nothing is global.
Failures are raised as `LedgerError`s and the host discards the whole call.

Lifecycle
---------
``initialize`` moves the ledger from Uninitialized to Initialized, once.
Every other entry point requires the Initialized state and raises
`UninitializedLedger` otherwise.

Each Initialized-state entry point follows the same shape:

  1. renew the instance retention window
  2. require authorization from the relevant principal
  3. validate arguments (amount sign, expiration range, freeze flag)
  4. delegate to exactly one store for the mutation
  5. emit the event

Public interface
----------------
# admin (authorized by the current administrator)
initialize(admin, decimal, name, symbol) -> None          (no authorization)
mint(to, amount) -> None
set_admin(new_admin) -> None
freeze_account(account) -> None
unfreeze_account(account) -> None

# token interface
allowance(from_, spender) -> int
approve(from_, spender, amount, expiration_ledger) -> None  (from_)
balance(id_) -> int
transfer(from_, to, amount) -> None                         (from_)
transfer_from(spender, from_, to, amount) -> None           (spender)
burn(from_, amount) -> None                                 (from_)
burn_from(spender, from_, amount) -> None                   (spender)
decimals() -> int
name() -> str
symbol() -> str

Mint and set_admin ignore freeze flags; only the transfer/burn family checks
the source account.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Final

from tokenledger.context import CallContext, to_address
from tokenledger.errors import AlreadyInitialized

from . import (EVT_APPROVE, EVT_BURN, EVT_FREEZE, EVT_MINT, EVT_SET_ADMIN,
               EVT_TRANSFER, EVT_UNFREEZE, check_decimal, check_expiration,
               check_nonnegative_amount, check_text)
from .admin import has_administrator, read_administrator, write_administrator
from .allowance import read_allowance, spend_allowance, write_allowance
from .balance import read_balance, receive_balance, spend_balance
from .freeze import freeze, require_not_frozen, unfreeze
from .metadata import (TokenMetadata, read_decimal, read_name, read_symbol,
                       write_metadata)

# ------------------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------------------


def _renew_instance(ctx: CallContext) -> None:
    ctx.storage.extend_instance_ttl(
        ctx.config.instance_lifetime_threshold, ctx.config.instance_bump_amount
    )


def _enter(ctx: CallContext) -> bytes:
    """
    Require the Initialized state and renew the instance window.
    Returns the current administrator.
    """
    admin = read_administrator(ctx)
    _renew_instance(ctx)
    return admin


# ------------------------------------------------------------------------------
# Admin surface
# ------------------------------------------------------------------------------


def initialize(ctx: CallContext, admin: Any, decimal: int, name: str, symbol: str) -> None:
    """
    One-time setup: store the administrator and the token metadata.
    """
    admin = to_address(admin, name="admin")
    if has_administrator(ctx):
        raise AlreadyInitialized()
    metadata = TokenMetadata(
        decimal=check_decimal(decimal),
        name=check_text(name, name="name"),
        symbol=check_text(symbol, name="symbol"),
    )
    write_administrator(ctx, admin)
    write_metadata(ctx, metadata)


def mint(ctx: CallContext, to: Any, amount: int) -> None:
    to = to_address(to, name="to")
    admin = _enter(ctx)
    ctx.require_auth(admin)
    amount = check_nonnegative_amount(amount)

    receive_balance(ctx, to, amount)
    ctx.events.emit(EVT_MINT, {"admin": admin, "to": to, "amount": amount})


def set_admin(ctx: CallContext, new_admin: Any) -> None:
    new_admin = to_address(new_admin, name="new_admin")
    admin = _enter(ctx)
    ctx.require_auth(admin)

    write_administrator(ctx, new_admin)
    ctx.events.emit(EVT_SET_ADMIN, {"admin": admin, "new_admin": new_admin})


def freeze_account(ctx: CallContext, account: Any) -> None:
    account = to_address(account, name="account")
    admin = _enter(ctx)
    ctx.require_auth(admin)

    freeze(ctx, account)
    ctx.events.emit(EVT_FREEZE, {"admin": admin, "account": account})


def unfreeze_account(ctx: CallContext, account: Any) -> None:
    account = to_address(account, name="account")
    admin = _enter(ctx)
    ctx.require_auth(admin)

    unfreeze(ctx, account)
    ctx.events.emit(EVT_UNFREEZE, {"admin": admin, "account": account})


# ------------------------------------------------------------------------------
# Token interface
# ------------------------------------------------------------------------------


def allowance(ctx: CallContext, from_: Any, spender: Any) -> int:
    from_ = to_address(from_, name="from")
    spender = to_address(spender, name="spender")
    _enter(ctx)
    return read_allowance(ctx, from_, spender).amount


def approve(
    ctx: CallContext, from_: Any, spender: Any, amount: int, expiration_ledger: int
) -> None:
    from_ = to_address(from_, name="from")
    spender = to_address(spender, name="spender")
    _enter(ctx)
    ctx.require_auth(from_)
    amount = check_nonnegative_amount(amount)
    expiration_ledger = check_expiration(expiration_ledger)

    write_allowance(ctx, from_, spender, amount, expiration_ledger)
    ctx.events.emit(
        EVT_APPROVE,
        {"from": from_, "spender": spender, "amount": amount, "expiration_ledger": expiration_ledger},
    )


def balance(ctx: CallContext, id_: Any) -> int:
    id_ = to_address(id_, name="id")
    _enter(ctx)
    return read_balance(ctx, id_)


def transfer(ctx: CallContext, from_: Any, to: Any, amount: int) -> None:
    from_ = to_address(from_, name="from")
    to = to_address(to, name="to")
    _enter(ctx)
    ctx.require_auth(from_)
    amount = check_nonnegative_amount(amount)
    require_not_frozen(ctx, from_)

    spend_balance(ctx, from_, amount)
    receive_balance(ctx, to, amount)
    ctx.events.emit(EVT_TRANSFER, {"from": from_, "to": to, "amount": amount})


def transfer_from(ctx: CallContext, spender: Any, from_: Any, to: Any, amount: int) -> None:
    spender = to_address(spender, name="spender")
    from_ = to_address(from_, name="from")
    to = to_address(to, name="to")
    _enter(ctx)
    ctx.require_auth(spender)
    amount = check_nonnegative_amount(amount)
    require_not_frozen(ctx, from_)

    spend_allowance(ctx, from_, spender, amount)
    spend_balance(ctx, from_, amount)
    receive_balance(ctx, to, amount)
    ctx.events.emit(EVT_TRANSFER, {"from": from_, "to": to, "amount": amount})


def burn(ctx: CallContext, from_: Any, amount: int) -> None:
    from_ = to_address(from_, name="from")
    _enter(ctx)
    ctx.require_auth(from_)
    amount = check_nonnegative_amount(amount)
    require_not_frozen(ctx, from_)

    spend_balance(ctx, from_, amount)
    ctx.events.emit(EVT_BURN, {"from": from_, "amount": amount})


def burn_from(ctx: CallContext, spender: Any, from_: Any, amount: int) -> None:
    spender = to_address(spender, name="spender")
    from_ = to_address(from_, name="from")
    _enter(ctx)
    ctx.require_auth(spender)
    amount = check_nonnegative_amount(amount)
    require_not_frozen(ctx, from_)

    spend_allowance(ctx, from_, spender, amount)
    spend_balance(ctx, from_, amount)
    ctx.events.emit(EVT_BURN, {"from": from_, "amount": amount})


def decimals(ctx: CallContext) -> int:
    _enter(ctx)
    return read_decimal(ctx)


def name(ctx: CallContext) -> str:
    _enter(ctx)
    return read_name(ctx)


def symbol(ctx: CallContext) -> str:
    _enter(ctx)
    return read_symbol(ctx)


# ------------------------------------------------------------------------------
# Dispatch table
# ------------------------------------------------------------------------------

ENTRYPOINTS: Final[Dict[str, Callable[..., Any]]] = {
    "initialize": initialize,
    "mint": mint,
    "set_admin": set_admin,
    "freeze_account": freeze_account,
    "unfreeze_account": unfreeze_account,
    "allowance": allowance,
    "approve": approve,
    "balance": balance,
    "transfer": transfer,
    "transfer_from": transfer_from,
    "burn": burn,
    "burn_from": burn_from,
    "decimals": decimals,
    "name": name,
    "symbol": symbol,
}

__all__ = list(ENTRYPOINTS) + ["ENTRYPOINTS"]
