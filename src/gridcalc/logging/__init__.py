"""Structured event logging for gridcalc.

Provides an event schema, a filesystem NDJSON sink, and emit helpers
that never raise.
"""

from gridcalc.logging.events import (
    EventLevel,
    EventType,
    GridcalcEvent,
    clear_log_dir,
    emit,
    emit_info,
    emit_warning,
    set_log_dir,
    truncate_context,
)
from gridcalc.logging.sink import EventSink

__all__ = [
    "EventLevel",
    "EventSink",
    "EventType",
    "GridcalcEvent",
    "clear_log_dir",
    "emit",
    "emit_info",
    "emit_warning",
    "set_log_dir",
    "truncate_context",
]
