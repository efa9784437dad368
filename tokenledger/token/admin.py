# -*- coding: utf-8 -*-
"""
tokenledger.token.admin
=======================

Administrator storage for the token ledger.

- check whether an administrator exists (`has_administrator`)
- read the administrator (`read_administrator`)
- overwrite the administrator (`write_administrator`)

The administrator lives in the instance tier under `AdminKey()`. This module
does not check authorization; the entry points in `contract` require the
current administrator's authorization before calling `write_administrator`.

Safety notes
------------
- `read_administrator` on an uninitialized ledger is an invariant violation
  (`UninitializedLedger`), not a recoverable error.
- `write_administrator` overwrites unconditionally; the only-once rule for
  `initialize` is enforced by the caller via `has_administrator`.
"""
from __future__ import annotations

from tokenledger.context import CallContext
from tokenledger.errors import UninitializedLedger
from tokenledger.storage.keys import AdminKey

__all__ = ["has_administrator", "read_administrator", "write_administrator"]


def has_administrator(ctx: CallContext) -> bool:
    return ctx.storage.instance.has(AdminKey())


def read_administrator(ctx: CallContext) -> bytes:
    """
    Return the current administrator address.
    """
    admin = ctx.storage.instance.get(AdminKey())
    if admin is None:
        raise UninitializedLedger(entry="admin")
    return admin


def write_administrator(ctx: CallContext, admin: bytes) -> None:
    ctx.storage.instance.set(AdminKey(), admin)
