"""
tokenledger.logging
-------------------

Structured logging for the ledger host.

Records carry context-local fields (trace_id, function, sequence, ...) bound
with `contextvars`, so every line emitted while a call runs can be tied back
to that call. Two output shapes are available: one JSON object per line, or a
plain ``ts | LEVEL | logger | fields | message`` line for terminals.

Usage
-----
    from tokenledger import logging as tlog

    tlog.configure(json=False, level="INFO")  # once at process start
    log = tlog.get_logger(__name__)

    with tlog.trace_scope(function="transfer", sequence=1234):
        log.info("invoking", extra={"caller": b"\\xab"})

The host opens a `trace_scope` around every invocation; callers only need to
configure handlers.
"""

from __future__ import annotations

import datetime as _dt
import json
import logging
import os
import sys
import traceback
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import IO, Any, Dict, Iterator, Optional, Tuple, Union

_LOG_CONTEXT: ContextVar[Dict[str, Any]] = ContextVar("tokenledger_log_context", default={})

# Printed first, in this order, by the text formatter.
CONTEXT_KEYS = ("trace_id", "function", "sequence", "component")

# Attributes every LogRecord has; anything else on a record came from `extra`.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


# ----------------------------
# Context
# ----------------------------


def context() -> Dict[str, Any]:
    """Return a *copy* of the active logging context."""
    return dict(_LOG_CONTEXT.get())


def bind(**fields: Any) -> None:
    cur = context()
    cur.update({k: _coerce_value(v) for k, v in fields.items()})
    _LOG_CONTEXT.set(cur)


def unbind(*keys: str) -> None:
    cur = context()
    for k in keys:
        cur.pop(k, None)
    _LOG_CONTEXT.set(cur)


def clear_context() -> None:
    _LOG_CONTEXT.set({})


def short_uuid() -> str:
    return uuid.uuid4().hex[:12]


@contextmanager
def trace_scope(trace_id: Optional[str] = None, **fields: Any) -> Iterator[str]:
    """
    Bind a trace id (reusing the enclosing one, else a fresh one) plus
    `fields` for the duration of the block. The previous context is restored
    on exit, even if the block raises.
    """
    token = _LOG_CONTEXT.set(context())
    try:
        tid = trace_id or _LOG_CONTEXT.get().get("trace_id") or short_uuid()
        bind(trace_id=tid, **fields)
        yield tid
    finally:
        _LOG_CONTEXT.reset(token)


# ----------------------------
# Formatting
# ----------------------------


def _coerce_value(v: Any) -> Any:
    """Make `v` JSON-friendly; ledger addresses (bytes) become 0x-hex."""
    if v is None or isinstance(v, (bool, int, float, str)):
        return v
    if isinstance(v, (bytes, bytearray, memoryview)):
        return "0x" + bytes(v).hex()
    if isinstance(v, Enum):
        return _coerce_value(v.value)
    if isinstance(v, (list, tuple, set, frozenset)):
        return [_coerce_value(x) for x in v]
    if isinstance(v, dict):
        return {str(k): _coerce_value(x) for k, x in v.items()}
    if is_dataclass(v) and not isinstance(v, type):
        return _coerce_value(asdict(v))
    return str(v)


def _record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        k: v
        for k, v in record.__dict__.items()
        if k not in _RECORD_ATTRS and not k.startswith("_")
    }


def _timestamp(record: logging.LogRecord) -> str:
    ts = _dt.datetime.fromtimestamp(record.created, tz=_dt.timezone.utc)
    return ts.isoformat(timespec="milliseconds")


def _exc_text(record: logging.LogRecord) -> Optional[str]:
    if not record.exc_info:
        return None
    return "".join(traceback.format_exception(*record.exc_info)).rstrip()


class JSONFormatter(logging.Formatter):
    """One JSON object per record: base fields, then context, then extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": _timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "pid": record.process,
            "tid": record.thread,
        }
        payload.update(context())
        for k, v in _record_extras(record).items():
            payload.setdefault(k, _coerce_value(v))
        err = _exc_text(record)
        if err:
            payload["err"] = err
        return json.dumps(payload, separators=(",", ":"), default=str)


class TextFormatter(logging.Formatter):
    """
    One line per record:
      2026-01-05T12:34:56.789+00:00 | INFO  | tokenledger.host | trace_id=ab12 function=transfer error=X | call failed
    """

    def __init__(self, stream: Optional[IO[str]] = None):
        super().__init__()
        self.stream = stream

    def format(self, record: logging.LogRecord) -> str:
        ctx = context()
        parts = [f"{k}={ctx[k]}" for k in CONTEXT_KEYS if ctx.get(k) is not None]
        parts += [
            f"{k}={_coerce_value(v)}"
            for k, v in _record_extras(record).items()
            if k not in ctx
        ]

        line = f"{_timestamp(record)} | {record.levelname:<5} | {record.name}"
        if parts:
            line += " | " + " ".join(parts)
        line += f" | {record.getMessage()}"

        err = _exc_text(record)
        if err:
            line += "\n" + err
        return line


# ----------------------------
# Setup
# ----------------------------


def configure(
    *,
    json: Optional[bool] = None,
    level: Union[str, int] = "INFO",
    stream: IO[str] = sys.stderr,
    propagate_existing: bool = False,
) -> None:
    """
    Install a console handler on the root logger.

    Parameters
    ----------
    json : bool | None
        JSON lines if True, text if False. None consults
        TOKENLEDGER_LOG_FORMAT=(json|text), then picks text for a TTY.
    level : str | int
        Minimum level for the root logger and the handler.
    stream : TextIO
        Destination stream (default: stderr).
    propagate_existing : bool
        Keep handlers that are already installed.
    """
    lvl = _coerce_level(level)
    root = logging.getLogger()
    root.setLevel(lvl)
    if not propagate_existing:
        for h in list(root.handlers):
            root.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setLevel(lvl)
    handler.setFormatter(JSONFormatter() if _decide_json(json, stream) else TextFormatter(stream))
    root.addHandler(handler)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "tokenledger")


def with_fields(logger: logging.Logger, **fields: Any) -> "ContextAdapter":
    """Adapter that adds constant `fields` to every record of `logger`."""
    return ContextAdapter(logger, extra={k: _coerce_value(v) for k, v in fields.items()})


class ContextAdapter(logging.LoggerAdapter):
    def process(self, msg: Any, kwargs: Dict[str, Any]) -> Tuple[Any, Dict[str, Any]]:
        extra = kwargs.get("extra")
        kwargs["extra"] = {**self.extra, **extra} if isinstance(extra, dict) else dict(self.extra)
        return msg, kwargs


def _coerce_level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


def _decide_json(json_flag: Optional[bool], stream: Any) -> bool:
    if json_flag is not None:
        return json_flag
    env = os.environ.get("TOKENLEDGER_LOG_FORMAT", "").strip().lower()
    if env in ("json", "text"):
        return env == "json"
    try:
        return not stream.isatty()
    except (AttributeError, ValueError):
        return True


__all__ = [
    "configure",
    "get_logger",
    "with_fields",
    "bind",
    "unbind",
    "clear_context",
    "context",
    "trace_scope",
    "short_uuid",
    "JSONFormatter",
    "TextFormatter",
    "ContextAdapter",
    "CONTEXT_KEYS",
]
