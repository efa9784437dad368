# -*- coding: utf-8 -*-
"""Token metadata (decimal, name, symbol), written once by initialize."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from tokenledger.context import CallContext
from tokenledger.errors import UninitializedLedger
from tokenledger.storage.keys import MetadataKey

__all__ = ["TokenMetadata", "read_metadata", "read_decimal", "read_name", "read_symbol", "write_metadata"]


@dataclass(frozen=True)
class TokenMetadata:
    decimal: int
    name: str
    symbol: str

    def to_dict(self) -> Dict[str, Any]:
        return {"decimal": self.decimal, "name": self.name, "symbol": self.symbol}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TokenMetadata":
        return cls(decimal=int(d["decimal"]), name=str(d["name"]), symbol=str(d["symbol"]))


def read_metadata(ctx: CallContext) -> TokenMetadata:
    raw = ctx.storage.instance.get(MetadataKey())
    if raw is None:
        raise UninitializedLedger(entry="metadata")
    return TokenMetadata.from_dict(raw)


def read_decimal(ctx: CallContext) -> int:
    return read_metadata(ctx).decimal


def read_name(ctx: CallContext) -> str:
    return read_metadata(ctx).name


def read_symbol(ctx: CallContext) -> str:
    return read_metadata(ctx).symbol


def write_metadata(ctx: CallContext, metadata: TokenMetadata) -> None:
    ctx.storage.instance.set(MetadataKey(), metadata.to_dict())
