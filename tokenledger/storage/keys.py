"""
Storage key space of the token ledger.

Keys are a closed tagged union. Each variant encodes to the canonical CBOR
array ``[tag, *fields]`` so two different variants can never produce the
same storage key, whatever their field bytes.

    AdminKey()                       -> ["Admin"]
    MetadataKey()                    -> ["Metadata"]
    BalanceKey(address)              -> ["Balance", address]
    AllowanceKey(owner, spender)     -> ["Allowance", owner, spender]
    FrozenKey(address)               -> ["Frozen", address]
"""

from __future__ import annotations

from dataclasses import astuple, dataclass
from typing import ClassVar, Dict, Type, Union

from . import codec


@dataclass(frozen=True)
class AdminKey:
    tag: ClassVar[str] = "Admin"


@dataclass(frozen=True)
class MetadataKey:
    tag: ClassVar[str] = "Metadata"


@dataclass(frozen=True)
class BalanceKey:
    address: bytes
    tag: ClassVar[str] = "Balance"


@dataclass(frozen=True)
class AllowanceKey:
    owner: bytes
    spender: bytes
    tag: ClassVar[str] = "Allowance"


@dataclass(frozen=True)
class FrozenKey:
    address: bytes
    tag: ClassVar[str] = "Frozen"


DataKey = Union[AdminKey, MetadataKey, BalanceKey, AllowanceKey, FrozenKey]

_BY_TAG: Dict[str, Type] = {
    cls.tag: cls for cls in (AdminKey, MetadataKey, BalanceKey, AllowanceKey, FrozenKey)
}


def encode_key(key: DataKey) -> bytes:
    """Canonical storage bytes for `key`."""
    if type(key) not in _BY_TAG.values():
        raise TypeError(f"not a ledger storage key: {key!r}")
    return codec.dumps([key.tag, *astuple(key)])


def decode_key(raw: bytes) -> DataKey:
    """Inverse of `encode_key` (used by introspection and housekeeping)."""
    items = codec.loads(raw)
    if not isinstance(items, list) or not items or items[0] not in _BY_TAG:
        raise codec.CodecError(f"not a ledger storage key: {raw.hex()}")
    return _BY_TAG[items[0]](*items[1:])


__all__ = [
    "AdminKey",
    "MetadataKey",
    "BalanceKey",
    "AllowanceKey",
    "FrozenKey",
    "DataKey",
    "encode_key",
    "decode_key",
]
