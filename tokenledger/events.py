from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from .errors import LedgerInvariantError

MAX_EVENT_NAME_BYTES = 32
MAX_KEY_LEN = 32
MAX_BYTES_LEN = 256
MAX_INT_BITS = 128  # amounts are i128; ledger counters are u32

_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

ArgValue = Any  # constrained at runtime


@dataclass(frozen=True)
class Event:
    """A ledger event as published to the host."""

    name: bytes
    args: Dict[str, ArgValue]

    @property
    def topic(self) -> str:
        return self.name.decode("ascii")


@dataclass(frozen=True)
class CanonicalEvent:
    """
    Canonical event representation for results and logs:

        name: event name as text ("transfer")
        args: sequence of {"k", "t", "v"} dicts
              t="b" => bytes encoded as 0x-prefixed hex
              t="i" => integer (decimal string, i128 does not fit JSON numbers)
              t="z" => boolean
    """

    name: str
    args: Sequence[Mapping[str, Any]]

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "args": [dict(a) for a in self.args]}


def _invalid(message: str, **data: Any) -> LedgerInvariantError:
    return LedgerInvariantError(message, data=data)


class EventSink:
    """Per-call buffer of emitted events; the host publishes it on commit."""

    def __init__(self) -> None:
        self._events: List[Event] = []

    # --- Validation helpers -------------------------------------------------

    def _check_name(self, name: Any) -> bytes:
        if not isinstance(name, (bytes, bytearray)):
            raise _invalid("event name must be bytes", where="name_type")
        b = bytes(name)
        if len(b) == 0:
            raise _invalid("event name must be non-empty", where="name_empty")
        if len(b) > MAX_EVENT_NAME_BYTES:
            raise _invalid("event name too long", where="name_length", len=len(b))
        return b

    def _check_key(self, key: Any) -> str:
        if not isinstance(key, str) or not key:
            raise _invalid("event key must be a non-empty str", where="key_type")
        if len(key) > MAX_KEY_LEN:
            raise _invalid("event key too long", where="key_length", len=len(key))
        if not _KEY_RE.match(key):
            raise _invalid("event key has invalid characters", where="key_grammar", key=key)
        return key

    def _check_value(self, value: Any) -> ArgValue:
        if isinstance(value, (bytes, bytearray)):
            b = bytes(value)
            if len(b) > MAX_BYTES_LEN:
                raise _invalid("event bytes arg too long", where="value_bytes_length", len=len(b))
            return b

        if isinstance(value, bool):
            # bool is a subclass of int, so check it before int.
            return value

        if isinstance(value, int):
            if value.bit_length() > MAX_INT_BITS:
                raise _invalid("event int arg out of range", where="value_int_bits")
            return int(value)

        raise _invalid(
            "unsupported event arg type", where="value_type", py_type=type(value).__name__
        )

    # --- Core sink operations -----------------------------------------------

    def emit(self, name: bytes, args: Mapping[Any, Any]) -> Event:
        bname = self._check_name(name)
        if not isinstance(args, Mapping):
            raise _invalid("event args must be a mapping", where="args_type")

        checked: Dict[str, ArgValue] = {}
        for raw_k, raw_v in args.items():
            checked[self._check_key(raw_k)] = self._check_value(raw_v)

        ev = Event(bname, checked)
        self._events.append(ev)
        return ev

    def clear(self) -> None:
        self._events.clear()

    def iter_events(self) -> Iterable[Event]:
        return tuple(self._events)

    def __len__(self) -> int:
        return len(self._events)


def to_canonical(events: Iterable[Event]) -> List[CanonicalEvent]:
    """Convert events into their canonical (JSON-friendly) form."""
    out: List[CanonicalEvent] = []
    for ev in events:
        enc_args: List[Dict[str, Any]] = []
        for k, v in ev.args.items():
            if isinstance(v, (bytes, bytearray)):
                enc_args.append({"k": k, "t": "b", "v": "0x" + bytes(v).hex()})
            elif isinstance(v, bool):
                enc_args.append({"k": k, "t": "z", "v": v})
            else:
                enc_args.append({"k": k, "t": "i", "v": str(int(v))})
        out.append(CanonicalEvent(name=ev.topic, args=enc_args))
    return out


__all__ = ["Event", "CanonicalEvent", "EventSink", "to_canonical"]
