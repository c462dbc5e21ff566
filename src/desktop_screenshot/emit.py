"""Structured capture events.

An event is a dict delivered to every subscribed handler:

    {"event_type": "...", "timestamp": "...", "source": {"tool": "..."}, "data": {...}}

Nothing is subscribed by default, so library callers stay silent. The CLI
calls configure(), which subscribes a JsonLineWriter on stderr: one JSON
object per line, easy to tell apart from log lines.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, TextIO

log = logging.getLogger(__name__)

EventHandler = Callable[[dict], None]

# event_type -> keys its payload may carry
EVENT_FIELDS: Dict[str, List[str]] = {
    "config.resolved": ["config_path", "source"],
    "operation.started": ["operation_id", "mode", "destination"],
    "desktop.resolved": ["session", "desktop"],
    "tool.failed": ["args", "outcome", "returncode", "stderr"],
    "operation.completed": [
        "operation_id", "mode", "destination", "success", "desktop", "error_message",
    ],
    "error.handled": ["error_type", "message", "mode"],
    "shutdown": [],
}

EVENT_CATALOG = [
    {"event_type": event_type, "data_fields": fields}
    for event_type, fields in EVENT_FIELDS.items()
]


class JsonLineWriter:
    """Handler that writes each event as a single JSON line.

    With no stream given, sys.stderr is looked up on every write so that
    redirection after subscription is honoured.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream

    def __call__(self, event: dict) -> None:
        stream = self.stream or sys.stderr
        stream.write(json.dumps(event, default=str) + "\n")
        stream.flush()


_source = "desktop-screenshot"
_handlers: List[EventHandler] = []
_writer: Optional[JsonLineWriter] = None


def configure(source: str, stderr: bool = True) -> None:
    """Name the event source and switch JSON lines on stderr on or off."""
    global _source, _writer
    _source = source
    if _writer is not None:
        remove_handler(_writer)
        _writer = None
    if stderr:
        _writer = JsonLineWriter()
        add_handler(_writer)


def add_handler(handler: EventHandler) -> None:
    _handlers.append(handler)


def remove_handler(handler: EventHandler) -> None:
    if handler in _handlers:
        _handlers.remove(handler)


def make_event(
    event_type: str,
    data: Dict[str, Any],
    source: Optional[str] = None,
) -> dict:
    return {
        "event_type": event_type,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "source": {"tool": source or _source},
        "data": data,
    }


def emit(
    event_type: str,
    data: Dict[str, Any],
    source: Optional[str] = None,
) -> None:
    """Deliver an event to every handler.

    A handler that raises is logged at debug level and skipped; the
    remaining handlers still receive the event.

    Args:
        event_type: One of EVENT_FIELDS, e.g. "operation.completed"
        data: Event payload
        source: Source name for this event only
    """
    if event_type not in EVENT_FIELDS:
        log.debug("Emitting uncatalogued event %s", event_type)
    event = make_event(event_type, data, source)
    for handler in list(_handlers):
        try:
            handler(event)
        except Exception as e:
            log.debug("Event handler %r failed on %s: %s", handler, event_type, e)
