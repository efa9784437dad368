# -*- coding: utf-8 -*-
"""
tokenledger.token
=================

Stores and public operations of the fungible token ledger.

Layout
------
- admin       : single administrator address        (instance tier)
- metadata    : decimal / name / symbol, immutable  (instance tier)
- balance     : per-address i128 balance            (persistent tier, self-renewing)
- allowance   : per-(owner, spender) grant          (temporary tier, lazy expiry)
- freeze      : per-address frozen flag             (instance tier)
- contract    : the public entry points

This module holds the shared conventions only: event names, numeric domain
and argument validation. It performs no storage I/O.

Events (names as bytes)
-----------------------
  - b"mint"             {"admin", "to", "amount"}
  - b"set_admin"        {"admin", "new_admin"}
  - b"approve"          {"from", "spender", "amount", "expiration_ledger"}
  - b"transfer"         {"from", "to", "amount"}
  - b"burn"             {"from", "amount"}
  - b"freeze_account"   {"admin", "account"}
  - b"unfreeze_account" {"admin", "account"}

Numeric domain
--------------
  - Amounts are signed 128-bit integers; entry points reject negatives.
  - Ledger counters (expiration_ledger) are u32.
  - decimal is a u8.
  - name and symbol are text of at most MAX_TEXT_BYTES bytes as UTF-8.
"""

from __future__ import annotations

from typing import Any, Final

from tokenledger.config import U32_MAX
from tokenledger.errors import (ArithmeticOverflow, InvalidDecimalRange,
                                InvalidExpiration, InvalidMetadata,
                                NegativeAmount)

# -----------------------------------------------------------------------------
# Public constants
# -----------------------------------------------------------------------------

I128_MIN: Final[int] = -(2**127)
I128_MAX: Final[int] = 2**127 - 1
U8_MAX: Final[int] = 255
MAX_TEXT_BYTES: Final[int] = 1024

EVT_MINT: Final[bytes] = b"mint"
EVT_SET_ADMIN: Final[bytes] = b"set_admin"
EVT_APPROVE: Final[bytes] = b"approve"
EVT_TRANSFER: Final[bytes] = b"transfer"
EVT_BURN: Final[bytes] = b"burn"
EVT_FREEZE: Final[bytes] = b"freeze_account"
EVT_UNFREEZE: Final[bytes] = b"unfreeze_account"


# -----------------------------------------------------------------------------
# Validation helpers
# -----------------------------------------------------------------------------


def _is_int(n: Any) -> bool:
    return isinstance(n, int) and not isinstance(n, bool)


def check_i128(n: Any) -> int:
    """
    Ensure `n` is an integer inside the signed 128-bit range.
    """
    if not _is_int(n) or n < I128_MIN or n > I128_MAX:
        raise ArithmeticOverflow(value=n if _is_int(n) else None)
    return n


def check_nonnegative_amount(amount: Any) -> int:
    """
    Ensure `amount` is an i128 and not negative.
    """
    amount = check_i128(amount)
    if amount < 0:
        raise NegativeAmount(amount=amount)
    return amount


def check_decimal(decimal: Any) -> int:
    if not _is_int(decimal) or decimal < 0 or decimal > U8_MAX:
        raise InvalidDecimalRange(decimal=decimal if _is_int(decimal) else None)
    return decimal


def check_expiration(expiration_ledger: Any) -> int:
    """
    Ensure `expiration_ledger` is a u32 ledger sequence.
    """
    if not _is_int(expiration_ledger) or expiration_ledger < 0 or expiration_ledger > U32_MAX:
        raise InvalidExpiration(
            "expiration_ledger must be a u32 ledger sequence",
            expiration_ledger=expiration_ledger if _is_int(expiration_ledger) else None,
        )
    return expiration_ledger


def check_text(value: Any, *, name: str) -> str:
    """
    Ensure `value` is a str of at most MAX_TEXT_BYTES bytes as UTF-8.
    """
    if not isinstance(value, str):
        raise InvalidMetadata(f"{name} must be str, got {type(value).__name__}", field=name)
    size = len(value.encode("utf-8", "surrogatepass"))
    if size > MAX_TEXT_BYTES:
        raise InvalidMetadata(f"{name} longer than {MAX_TEXT_BYTES} bytes", field=name, length=size)
    return value


__all__ = [
    "I128_MIN",
    "I128_MAX",
    "U8_MAX",
    "MAX_TEXT_BYTES",
    "EVT_MINT",
    "EVT_SET_ADMIN",
    "EVT_APPROVE",
    "EVT_TRANSFER",
    "EVT_BURN",
    "EVT_FREEZE",
    "EVT_UNFREEZE",
    "check_i128",
    "check_nonnegative_amount",
    "check_decimal",
    "check_expiration",
    "check_text",
]
