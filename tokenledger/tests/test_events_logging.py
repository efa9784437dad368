# -*- coding: utf-8 -*-
from __future__ import annotations

import io
import json
import logging

import pytest

from tokenledger import logging as tlog
from tokenledger.errors import LedgerInvariantError
from tokenledger.events import EventSink, to_canonical


# ---------------------------------------------------------------------------- events


def test_sink_validates_and_buffers():
    sink = EventSink()
    ev = sink.emit(b"mint", {"to": b"\x01", "amount": 5, "ok": True})
    assert ev.topic == "mint"
    assert len(sink) == 1
    assert sink.iter_events() == (ev,)
    sink.clear()
    assert len(sink) == 0


@pytest.mark.parametrize(
    "name, args, where",
    [
        ("mint", {}, "name_type"),
        (b"", {}, "name_empty"),
        (b"x" * 33, {}, "name_length"),
        (b"mint", {"": 1}, "key_type"),
        (b"mint", {"bad-key": 1}, "key_grammar"),
        (b"mint", {"v": 2**200}, "value_int_bits"),
        (b"mint", {"v": b"\x00" * 257}, "value_bytes_length"),
        (b"mint", {"v": 1.0}, "value_type"),
    ],
)
def test_sink_rejects_malformed_events(name, args, where):
    sink = EventSink()
    with pytest.raises(LedgerInvariantError) as ei:
        sink.emit(name, args)
    assert ei.value.data["where"] == where
    assert len(sink) == 0


def test_canonical_form_is_json_safe():
    sink = EventSink()
    sink.emit(b"approve", {"from": b"\xab", "amount": 2**127 - 1, "flag": False})
    (canon,) = to_canonical(sink.iter_events())
    assert canon.to_dict() == {
        "name": "approve",
        "args": [
            {"k": "from", "t": "b", "v": "0xab"},
            {"k": "amount", "t": "i", "v": str(2**127 - 1)},
            {"k": "flag", "t": "z", "v": False},
        ],
    }
    json.dumps(canon.to_dict())


# --------------------------------------------------------------------------- logging


@pytest.fixture
def clean_context():
    tlog.clear_context()
    yield
    tlog.clear_context()


def test_trace_scope_binds_and_restores(clean_context):
    tlog.bind(component="test")
    with tlog.trace_scope("abc", function="mint") as tid:
        assert tid == "abc"
        ctx = tlog.context()
        assert ctx["trace_id"] == "abc"
        assert ctx["function"] == "mint"
    assert tlog.context() == {"component": "test"}


def test_json_formatter_includes_context_and_extras(clean_context):
    logger = logging.getLogger("tokenledger.test.json")
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(tlog.JSONFormatter())
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    try:
        with tlog.trace_scope("t-1", sequence=42):
            logger.info("hello", extra={"who": b"\x01\x02"})
    finally:
        logger.removeHandler(handler)

    payload = json.loads(stream.getvalue())
    assert payload["msg"] == "hello"
    assert payload["trace_id"] == "t-1"
    assert payload["sequence"] == 42
    assert payload["who"] == "0x0102"


def test_text_formatter_one_line(clean_context):
    stream = io.StringIO()
    fmt = tlog.TextFormatter(stream)
    record = logging.LogRecord("tokenledger.host", logging.INFO, __file__, 1, "call failed", None, None)
    record.error = "INSUFFICIENT_BALANCE"
    with tlog.trace_scope("t-2", function="transfer"):
        line = fmt.format(record)
    assert "trace_id=t-2 function=transfer" in line
    assert "error=INSUFFICIENT_BALANCE" in line
    assert line.endswith("| call failed")


def test_with_fields_adapter_merges_extra():
    adapter = tlog.with_fields(logging.getLogger("tokenledger.test"), component=b"\xff")
    msg, kwargs = adapter.process("m", {"extra": {"x": 1}})
    assert kwargs["extra"] == {"component": "0xff", "x": 1}


def test_failed_call_is_logged(host, token, accounts, caplog):
    caplog.set_level(logging.INFO, logger="tokenledger.host")
    host.invoke("transfer", accounts.user1, accounts.user2, 1)

    failures = [r for r in caplog.records if r.getMessage() == "call failed"]
    assert len(failures) == 1
    assert failures[0].levelno == logging.INFO
    assert failures[0].error == "INSUFFICIENT_BALANCE"
    assert failures[0].status == "REVERT"


def test_abort_is_logged_as_warning(config, accounts, caplog):
    from tokenledger.host import LedgerHost

    caplog.set_level(logging.INFO, logger="tokenledger.host")
    LedgerHost(config=config).invoke("balance", accounts.user1)
    (record,) = [r for r in caplog.records if r.getMessage() == "call failed"]
    assert record.levelno == logging.WARNING
    assert record.status == "ABORT"
