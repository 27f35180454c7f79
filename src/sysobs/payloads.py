# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Payload projection for Bebop encoding.

Each supported event kind has a payload dataclass whose fields match the
Bebop schema exactly. Fields are read from the event's nested "payload"
object; anything missing gets the field's default, anything extra is dropped.
"""

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Union

from sysobs.events import EventKind


def _source(obj: Any) -> Dict[str, Any]:
    """Return obj if it is a dict, else an empty dict."""
    return obj if isinstance(obj, dict) else {}


def _items(obj: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    """Return the list at key with non-dict elements replaced by {}."""
    values = obj.get(key, [])
    if not isinstance(values, list):
        return []
    return [_source(value) for value in values]


def confidence_text(value: Any) -> str:
    """Coerce an origin_confidence value to text.

    Example:
        >>> confidence_text(0.87)
        '0.87'
        >>> confidence_text(True)
        'true'
        >>> confidence_text(None)
        ''
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value)


@dataclass
class Finding:
    """One log_scan finding."""

    source: str = ""
    category: str = ""
    line: str = ""

    @classmethod
    def from_payload(cls, obj: Dict[str, Any]) -> "Finding":
        return cls(
            source=obj.get("source", ""),
            category=obj.get("category", ""),
            line=obj.get("line", ""),
        )


@dataclass
class Entry:
    """One unmanaged detection/suggestion entry."""

    path: str = ""
    name: str = ""
    kind: str = ""
    origin: str = ""
    suggested_surface: str = ""
    suggested_route: str = ""
    origin_confidence: str = ""

    @classmethod
    def from_payload(cls, obj: Dict[str, Any]) -> "Entry":
        return cls(
            path=obj.get("path", ""),
            name=obj.get("name", ""),
            kind=obj.get("kind", ""),
            origin=obj.get("origin", ""),
            suggested_surface=obj.get("suggested_surface", ""),
            suggested_route=obj.get("suggested_route", ""),
            origin_confidence=confidence_text(obj.get("origin_confidence")),
        )


@dataclass
class PlacementDecision:
    operation_id: str = ""
    package_id: str = ""
    intent: str = ""
    profile: str = ""
    selected_surface: str = ""
    result: str = ""
    dry_run: bool = False

    @classmethod
    def from_payload(cls, obj: Dict[str, Any]) -> "PlacementDecision":
        return cls(
            operation_id=obj.get("operation_id", ""),
            package_id=obj.get("package_id", ""),
            intent=obj.get("intent", ""),
            profile=obj.get("profile", ""),
            selected_surface=obj.get("selected_surface", ""),
            result=obj.get("result", ""),
            dry_run=obj.get("dry_run", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class LogScan:
    findings: List[Finding] = field(default_factory=list)
    since: str = ""
    limit: int = 0

    @classmethod
    def from_payload(cls, obj: Dict[str, Any]) -> "LogScan":
        return cls(
            findings=[Finding.from_payload(f) for f in _items(obj, "findings")],
            since=obj.get("since", ""),
            limit=obj.get("limit", 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class StateVaultCapture:
    operation_id: str = ""
    package_id: str = ""
    vault_path: str = ""
    entry_dir: str = ""
    dry_run: bool = False

    @classmethod
    def from_payload(cls, obj: Dict[str, Any]) -> "StateVaultCapture":
        return cls(
            operation_id=obj.get("operation_id", ""),
            package_id=obj.get("package_id", ""),
            vault_path=obj.get("vault_path", ""),
            entry_dir=obj.get("entry_dir", ""),
            dry_run=obj.get("dry_run", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class UnmanagedDetection:
    entries: List[Entry] = field(default_factory=list)

    @classmethod
    def from_payload(cls, obj: Dict[str, Any]) -> "UnmanagedDetection":
        return cls(entries=[Entry.from_payload(e) for e in _items(obj, "entries")])

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class UnmanagedSuggestion:
    entries: List[Entry] = field(default_factory=list)

    @classmethod
    def from_payload(cls, obj: Dict[str, Any]) -> "UnmanagedSuggestion":
        return cls(entries=[Entry.from_payload(e) for e in _items(obj, "entries")])

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


Payload = Union[
    PlacementDecision,
    LogScan,
    StateVaultCapture,
    UnmanagedDetection,
    UnmanagedSuggestion,
]

# One payload type per EventKind; kept in lockstep with events.SCHEMA_TYPES
PAYLOAD_TYPES = {
    EventKind.PLACEMENT_DECISION: PlacementDecision,
    EventKind.LOG_SCAN: LogScan,
    EventKind.STATE_VAULT_CAPTURE: StateVaultCapture,
    EventKind.UNMANAGED_DETECTION: UnmanagedDetection,
    EventKind.UNMANAGED_SUGGESTION: UnmanagedSuggestion,
}


def project(kind: EventKind, event: Dict[str, Any]) -> Payload:
    """Project a raw event into the payload dataclass for its kind.

    Args:
        kind: Classified event kind
        event: Raw event dict; fields are read from event["payload"]

    Returns:
        Payload dataclass with every schema field populated
    """
    payload_type = PAYLOAD_TYPES[kind]
    return payload_type.from_payload(_source(event.get("payload")))


def payload_for(event_type: str, event: Dict[str, Any]) -> Dict[str, Any]:
    """Project by event_type string, returning {} for unknown types."""
    try:
        kind = EventKind(event_type)
    except ValueError:
        return {}
    return project(kind, event).to_dict()
