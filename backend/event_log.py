from __future__ import annotations

import json
import logging
import threading
from collections import deque
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Deque, Dict, List, Literal, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

Level = Literal["info", "error", "success"]

MAX_PANEL_ENTRIES = 100
MAX_SAFE_INTEGER = 2 ** 53 - 1


class LogEntry(BaseModel):
    timestamp: str
    source: str
    level: Level
    message: str
    data: Any = None


Listener = Callable[[LogEntry], None]


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    if isinstance(value, BaseException):
        return {"error": value.__class__.__name__, "message": str(value)}
    if isinstance(value, (Decimal, datetime)):
        return str(value)
    return repr(value)


def _parse_int(literal: str) -> Any:
    value = int(literal)
    # Beyond this a JavaScript number loses precision
    return value if abs(value) <= MAX_SAFE_INTEGER else literal


def to_json_safe(data: Any) -> Any:
    """Round-trip through JSON so subscribers only ever see plain values.

    Integers outside the JavaScript safe range and NaN/Infinity come back as strings.
    """
    if data is None:
        return None
    return json.loads(json.dumps(data, default=_json_default), parse_int=_parse_int, parse_constant=str)


class EventLog:
    """Process-wide publish/subscribe sink for debug events.

    Subscribers are called synchronously in emit order. The dev panel view
    keeps the most recent entries only.
    """

    def __init__(self, max_entries: int = MAX_PANEL_ENTRIES) -> None:
        self._listeners: List[Listener] = []
        self._entries: Deque[LogEntry] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unbind() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unbind

    def emit(self, entry: LogEntry) -> None:
        with self._lock:
            self._entries.append(entry)
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(entry)
            except Exception:
                logger.exception("Event log listener failed")

    def recent(self, limit: Optional[int] = None) -> List[LogEntry]:
        """Entries newest first."""
        with self._lock:
            items = list(reversed(self._entries))
        return items[:limit] if limit else items

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


EVENTS = EventLog()


def _forward_to_logging(entry: LogEntry) -> None:
    lvl = logging.ERROR if entry.level == "error" else logging.INFO
    logging.getLogger(f"events.{entry.source}").log(lvl, "%s %s", entry.message, "" if entry.data is None else entry.data)


EVENTS.subscribe(_forward_to_logging)


def log_event(source: str, level: Level, message: str, data: Any = None) -> LogEntry:
    entry = LogEntry(
        timestamp=datetime.now(timezone.utc).isoformat(),
        source=source,
        level=level,
        message=message,
        data=to_json_safe(data),
    )
    EVENTS.emit(entry)
    return entry


def entries_as_dicts(limit: Optional[int] = None) -> List[Dict[str, Any]]:
    return [e.model_dump() for e in EVENTS.recent(limit)]
