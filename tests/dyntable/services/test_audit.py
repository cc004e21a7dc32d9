from __future__ import annotations

import asyncio
import logging

from dyntable.core.schema import ActionDef, AuditConfig, ColumnDef, TableConfig
from dyntable.services.audit import AuditEvent, InMemoryAuditLog, LoggingAuditSink, emit, now_iso
from dyntable.services.dispatcher import ActionDispatcher


def _make_event(outcome: str = "attempted") -> AuditEvent:
    return AuditEvent(action_id="delete", row_ids=("a",), outcome=outcome, timestamp=now_iso(), role="admin")


def test_logging_sink_writes_structured_record(caplog):
    with caplog.at_level(logging.INFO, logger="dyntable.audit"):
        LoggingAuditSink()(_make_event("succeeded"))

    record = caplog.records[-1]
    assert record.name == "dyntable.audit"
    assert record.audit["action_id"] == "delete"
    assert record.audit["outcome"] == "succeeded"


def test_failing_sync_sink_is_swallowed():
    def broken(_event):
        raise RuntimeError("sink down")

    emit(broken, _make_event())


def test_async_sink_outside_loop_is_dropped_quietly():
    calls = []

    async def sink(event):
        calls.append(event)

    emit(sink, _make_event())
    assert calls == []


def test_async_sink_does_not_block_dispatch():
    received = []
    gate = {}

    async def slow_sink(event):
        await gate["event"].wait()
        received.append(event.outcome)

    async def failing_sink(_event):
        raise RuntimeError("audit backend down")

    async def run(sink):
        gate["event"] = asyncio.Event()
        edit = ActionDef("edit", "Edit", lambda row: None)
        config = TableConfig(
            id="t",
            title="T",
            columns=[ColumnDef("name", "Name")],
            actions=[edit],
            audit=AuditConfig(enabled=True, track_actions=True),
        )
        dispatcher = ActionDispatcher(config, None, audit_sink=sink)
        outcome = await dispatcher.dispatch(edit, row={"_id": 1})
        delivered_before_release = list(received)
        gate["event"].set()
        for _ in range(5):
            await asyncio.sleep(0)
        return outcome, delivered_before_release

    outcome, early = asyncio.run(run(slow_sink))
    assert outcome.ok
    assert early == []
    assert received == ["attempted", "succeeded"]

    outcome, _ = asyncio.run(run(failing_sink))
    assert outcome.ok


def test_in_memory_log_filters_by_action():
    log = InMemoryAuditLog()
    log(_make_event("attempted"))
    log(AuditEvent("edit", (), "succeeded", now_iso(), None))

    assert log.outcomes() == ["attempted", "succeeded"]
    assert log.outcomes("edit") == ["succeeded"]
