"""
tokenledger.storage.codec
=========================

Canonical CBOR encode/decode for storage keys and values.

- Deterministic map ordering (RFC 8949 "canonical CBOR")
- Shortest integer encodings; i128 extremes travel as CBOR bignums
- Stable bytes/strings handling

Public API
----------
dumps(obj) -> bytes
loads(data: (bytes|bytearray|memoryview)) -> Any

Notes
-----
* Keys in mappings MUST be of type (str | int | bytes). Floats or other
  non-canonical keys are rejected to avoid non-determinism.
* Dataclasses and Enums are converted to plain Python types before encoding.
"""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Union

import cbor2


class CodecError(Exception):
    """Raised for canonical CBOR violations or encode/decode failures."""


_KeyType = Union[str, int, bytes]


def _is_key_type(k: Any) -> bool:
    return isinstance(k, (str, int, bytes)) and not isinstance(k, bool)


def _to_plain(obj: Any) -> Any:
    """Convert dataclasses/Enums/bytearray/memoryview etc. to plain types."""
    if obj is None or isinstance(obj, (bool, int, str, bytes)):
        return obj
    if isinstance(obj, (bytearray, memoryview)):
        return bytes(obj)
    if isinstance(obj, Enum):
        return _to_plain(obj.value)
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: _to_plain(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, Mapping):
        out: Dict[_KeyType, Any] = {}
        for k, v in obj.items():
            if not _is_key_type(k):
                raise CodecError(
                    f"Non-canonical mapping key type {type(k).__name__}; "
                    "only str|int|bytes are allowed"
                )
            out[k] = _to_plain(v)
        return out
    if isinstance(obj, (tuple, list)):
        return [_to_plain(x) for x in obj]
    raise CodecError(f"cannot encode value of type {type(obj).__name__}")


# -------------------------- Encode / Decode (public) --------------------------------


def dumps(obj: Any) -> bytes:
    """
    Encode to canonical CBOR bytes.

    Rejects floats and custom objects; ledger state is integers, bytes and text.
    """
    plain = _to_plain(obj)
    try:
        return cbor2.dumps(plain, canonical=True)
    except (cbor2.CBOREncodeError, TypeError, ValueError) as e:
        raise CodecError(f"CBOR encode failed: {e}") from e


def loads(data: Union[bytes, bytearray, memoryview]) -> Any:
    """Decode CBOR bytes; arrays come back as lists."""
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise CodecError(f"expected bytes-like input, got {type(data).__name__}")
    try:
        return cbor2.loads(bytes(data))
    except (cbor2.CBORDecodeError, ValueError) as e:
        raise CodecError(f"CBOR decode failed: {e}") from e


__all__ = ["dumps", "loads", "CodecError"]
