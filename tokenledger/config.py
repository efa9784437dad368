"""
tokenledger.config — retention windows and storage TTL caps.

This module centralizes the data-retention policy of the token ledger. It has
NO third-party deps and is safe to import very early.

All durations are measured in ledgers (one ledger ≈ 5 seconds, so one day is
17_280 ledgers by default).

Configuration precedence:
  1) Environment variables (TOKENLEDGER_*)
  2) Hardcoded defaults below

Key env vars:
  - TOKENLEDGER_DAY_IN_LEDGERS        (int)  default: 17_280
  - TOKENLEDGER_INSTANCE_BUMP_DAYS    (int)  default: 7
  - TOKENLEDGER_BALANCE_BUMP_DAYS     (int)  default: 30
  - TOKENLEDGER_MIN_PERSISTENT_TTL    (int)  default: 4_096
  - TOKENLEDGER_MIN_TEMPORARY_TTL     (int)  default: 1
  - TOKENLEDGER_MAX_ENTRY_TTL         (int)  default: 3_110_400  (180 days)

Renewal thresholds are derived: an entry is renewed once its remaining
lifetime drops below ``bump_amount - day_in_ledgers``.

Usage:
    from tokenledger.config import load_config
    CFG = load_config()
    CFG.balance_bump_amount
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Any, Dict

U32_MAX = 2**32 - 1

DEFAULT_DAY_IN_LEDGERS = 17_280
DEFAULT_INSTANCE_BUMP_DAYS = 7
DEFAULT_BALANCE_BUMP_DAYS = 30


# ----------------------------- helpers ---------------------------------------


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        v = int(raw, 0)
    except ValueError:
        return default
    if v < min_v:
        return min_v
    if v > max_v:
        return max_v
    return v


# ------------------------------- config --------------------------------------


@dataclass(frozen=True)
class LedgerConfig:
    day_in_ledgers: int

    # Instance tier (admin, metadata, freeze flags share one window)
    instance_bump_amount: int
    instance_lifetime_threshold: int

    # Persistent tier, per balance entry
    balance_bump_amount: int
    balance_lifetime_threshold: int

    # Host caps
    min_persistent_ttl: int
    min_temporary_ttl: int
    max_entry_ttl: int

    def __post_init__(self) -> None:
        for name in (
            "day_in_ledgers",
            "instance_bump_amount",
            "instance_lifetime_threshold",
            "balance_bump_amount",
            "balance_lifetime_threshold",
            "min_persistent_ttl",
            "min_temporary_ttl",
            "max_entry_ttl",
        ):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool) or v < 0 or v > U32_MAX:
                raise ValueError(f"{name} must be a u32 integer, got {v!r}")
        if self.instance_lifetime_threshold > self.instance_bump_amount:
            raise ValueError("instance_lifetime_threshold exceeds instance_bump_amount")
        if self.balance_lifetime_threshold > self.balance_bump_amount:
            raise ValueError("balance_lifetime_threshold exceeds balance_bump_amount")

    @classmethod
    def from_days(
        cls,
        *,
        day_in_ledgers: int = DEFAULT_DAY_IN_LEDGERS,
        instance_bump_days: int = DEFAULT_INSTANCE_BUMP_DAYS,
        balance_bump_days: int = DEFAULT_BALANCE_BUMP_DAYS,
        min_persistent_ttl: int = 4_096,
        min_temporary_ttl: int = 1,
        max_entry_ttl: int = 3_110_400,
    ) -> "LedgerConfig":
        instance_bump = instance_bump_days * day_in_ledgers
        balance_bump = balance_bump_days * day_in_ledgers
        return cls(
            day_in_ledgers=day_in_ledgers,
            instance_bump_amount=instance_bump,
            instance_lifetime_threshold=max(0, instance_bump - day_in_ledgers),
            balance_bump_amount=balance_bump,
            balance_lifetime_threshold=max(0, balance_bump - day_in_ledgers),
            min_persistent_ttl=min_persistent_ttl,
            min_temporary_ttl=min_temporary_ttl,
            max_entry_ttl=max_entry_ttl,
        )

    def with_overrides(self, **changes: Any) -> "LedgerConfig":
        return replace(self, **changes)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "day_in_ledgers": self.day_in_ledgers,
            "instance_bump_amount": self.instance_bump_amount,
            "instance_lifetime_threshold": self.instance_lifetime_threshold,
            "balance_bump_amount": self.balance_bump_amount,
            "balance_lifetime_threshold": self.balance_lifetime_threshold,
            "min_persistent_ttl": self.min_persistent_ttl,
            "min_temporary_ttl": self.min_temporary_ttl,
            "max_entry_ttl": self.max_entry_ttl,
        }


@lru_cache(maxsize=1)
def load_config() -> LedgerConfig:
    """
    Build and cache a LedgerConfig from environment + defaults.
    """
    day = _env_int("TOKENLEDGER_DAY_IN_LEDGERS", DEFAULT_DAY_IN_LEDGERS, min_v=1, max_v=1_000_000)
    return LedgerConfig.from_days(
        day_in_ledgers=day,
        instance_bump_days=_env_int(
            "TOKENLEDGER_INSTANCE_BUMP_DAYS", DEFAULT_INSTANCE_BUMP_DAYS, min_v=1, max_v=180
        ),
        balance_bump_days=_env_int(
            "TOKENLEDGER_BALANCE_BUMP_DAYS", DEFAULT_BALANCE_BUMP_DAYS, min_v=1, max_v=180
        ),
        min_persistent_ttl=_env_int("TOKENLEDGER_MIN_PERSISTENT_TTL", 4_096, min_v=1, max_v=U32_MAX),
        min_temporary_ttl=_env_int("TOKENLEDGER_MIN_TEMPORARY_TTL", 1, min_v=1, max_v=U32_MAX),
        max_entry_ttl=_env_int("TOKENLEDGER_MAX_ENTRY_TTL", 3_110_400, min_v=1, max_v=U32_MAX),
    )


# Module-level singleton for convenience; load_config() stays the canonical
# (cached) accessor.
CFG: LedgerConfig = load_config()

__all__ = ["LedgerConfig", "load_config", "CFG", "U32_MAX"]
