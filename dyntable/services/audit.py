from __future__ import annotations

import asyncio
import datetime as dt
import inspect
import logging
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("dyntable.audit")

AuditSink = Callable[["AuditEvent"], Any]

# Strong references to in-flight async sink calls so they are not collected mid-flight
_pending: Set[asyncio.Future] = set()


@dataclass(frozen=True)
class AuditEvent:
    """
    One stage of one action dispatch.

    outcome is one of: attempted, rejected, declined, confirmed, succeeded, failed
    """
    action_id: str
    row_ids: Tuple[Any, ...]
    outcome: str
    timestamp: str
    role: Any
    table_id: str = ""
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["row_ids"] = list(self.row_ids)
        return data


def now_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


class LoggingAuditSink:
    """Writes audit events to the `dyntable.audit` logger as structured records."""

    def __init__(self, level: int = logging.INFO):
        self.level = level

    def __call__(self, event: AuditEvent) -> None:
        audit_logger.log(self.level, "Table action %s", event.outcome, extra={"audit": event.to_dict()})


class InMemoryAuditLog:
    """Keeps every event in order. Useful for hosts that show an action history."""

    def __init__(self):
        self.events: List[AuditEvent] = []

    def __call__(self, event: AuditEvent) -> None:
        self.events.append(event)

    def outcomes(self, action_id: Optional[str] = None) -> List[str]:
        return [e.outcome for e in self.events if action_id is None or e.action_id == action_id]


def _log_sink_failure(task: asyncio.Future) -> None:
    _pending.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning("Audit sink failed", extra={"error": repr(exc)})


def emit(sink: Optional[AuditSink], event: AuditEvent) -> None:
    """
    Best-effort delivery. Never raises and never waits: an async sink is
    scheduled on the running loop and left to finish on its own.
    """
    if sink is None:
        return
    try:
        result = sink(event)
    except Exception:
        logger.exception("Audit sink failed", extra={"action_id": event.action_id})
        return

    if not inspect.isawaitable(result):
        return
    try:
        loop = asyncio.get_running_loop()
        task = asyncio.ensure_future(result, loop=loop)
    except RuntimeError:
        # No running loop to hand the coroutine to
        if inspect.iscoroutine(result):
            result.close()
        logger.warning("Dropped async audit event outside an event loop", extra={"action_id": event.action_id})
        return
    _pending.add(task)
    task.add_done_callback(_log_sink_failure)
