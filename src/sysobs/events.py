"""NDJSON event decoding and classification.

Implementation rules enforced here:
- Malformed lines are dropped, never raised
- Unreadable input is an empty event list
- Fixed event kinds only (EventKind); no partial or case-insensitive matches

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Union

logger = logging.getLogger(__name__)

UNSUPPORTED_EVENT = "unsupported_event"


class EventKind(Enum):
    """Supported event kinds. Value is the event_type string on the wire."""

    PLACEMENT_DECISION = "placement_decision"
    LOG_SCAN = "log_scan"
    STATE_VAULT_CAPTURE = "state_vault_capture"
    UNMANAGED_DETECTION = "unmanaged_detection"
    UNMANAGED_SUGGESTION = "unmanaged_suggestion"

    @property
    def type_name(self) -> str:
        """Bebop schema type this kind is encoded as."""
        return SCHEMA_TYPES[self]


SCHEMA_TYPES: Dict[EventKind, str] = {
    EventKind.PLACEMENT_DECISION: "PlacementDecision",
    EventKind.LOG_SCAN: "LogScan",
    EventKind.STATE_VAULT_CAPTURE: "StateVaultCapture",
    EventKind.UNMANAGED_DETECTION: "UnmanagedDetection",
    EventKind.UNMANAGED_SUGGESTION: "UnmanagedSuggestion",
}


class UnsupportedEventError(ValueError):
    """Raised when an event's event_type is missing or not a known kind."""

    kind = UNSUPPORTED_EVENT

    def __init__(self, event_type: Any):
        self.event_type = event_type
        super().__init__(
            f"Unsupported event_type {event_type!r}. "
            f"Supported: {supported_event_types()}"
        )


def supported_event_types() -> List[str]:
    """List supported event_type strings in declaration order."""
    return [kind.value for kind in EventKind]


def classify(event: Dict[str, Any]) -> EventKind:
    """Map an event's event_type to its EventKind.

    Raises UnsupportedEventError for absent, non-string or unknown types.
    """
    event_type = event.get("event_type")
    if not isinstance(event_type, str):
        raise UnsupportedEventError(event_type)
    try:
        return EventKind(event_type)
    except ValueError:
        raise UnsupportedEventError(event_type) from None


def decode_lines(content: Union[str, bytes]) -> List[Dict[str, Any]]:
    """Decode newline-delimited JSON into event dicts.

    Only "\\n" separates lines. Blank lines are skipped. Lines that are not
    valid UTF-8 or JSON, or that decode to something other than an object,
    are dropped silently.
    """
    events: List[Dict[str, Any]] = []
    dropped = 0

    lines = content.split(b"\n") if isinstance(content, bytes) else content.split("\n")
    for line in lines:
        try:
            if isinstance(line, bytes):
                line = line.decode("utf-8")
            if not line.strip():
                continue
            value = json.loads(line)
        except (UnicodeDecodeError, json.JSONDecodeError):
            dropped += 1
            continue
        if not isinstance(value, dict):
            dropped += 1
            continue
        events.append(value)

    if dropped:
        logger.debug(f"Dropped {dropped} undecodable line(s)")
    return events


def read_events(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """Read and decode an NDJSON file.

    A file that cannot be read is treated the same as a file with no events.
    Bad bytes only drop the line they are on.
    """
    path = Path(path).expanduser()
    try:
        content = path.read_bytes()
    except OSError as e:
        logger.warning(f"Could not read events from {path}: {e}")
        return []

    events = decode_lines(content)
    logger.debug(f"Decoded {len(events)} event(s) from {path}")
    return events
