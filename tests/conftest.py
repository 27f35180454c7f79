# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Pytest configuration and shared fixtures."""

import json
import tempfile
from pathlib import Path
from typing import Any, Dict, List

import pytest

from sysobs.encoder import EncoderError


class FakeEncoder:
    """In-process stand-in for bebopc."""

    def __init__(self, available: bool = True, frame: bytes = b"\x01frame", fail: bool = False):
        self.available = available
        self.frame = frame
        self.fail = fail
        self.calls: List[Dict[str, Any]] = []
        self.probes = 0

    def is_available(self) -> bool:
        self.probes += 1
        return self.available

    def encode(self, schema_path: Path, type_name: str, json_bytes: bytes) -> bytes:
        self.calls.append(
            {
                "schema_path": schema_path,
                "type_name": type_name,
                "payload": json.loads(json_bytes),
            }
        )
        if self.fail:
            raise EncoderError(type_name, "exited with code 1", 1)
        return self.frame


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_encoder():
    return FakeEncoder()


@pytest.fixture
def missing_encoder():
    return FakeEncoder(available=False)


@pytest.fixture
def failing_encoder():
    return FakeEncoder(fail=True)


@pytest.fixture
def placement_event() -> Dict[str, Any]:
    """Sample placement_decision event."""
    return {
        "event_type": "placement_decision",
        "timestamp": "2025-01-15T10:30:00Z",
        "payload": {
            "operation_id": "op-123",
            "package_id": "firefox",
            "intent": "install",
            "profile": "workstation",
            "selected_surface": "flatpak",
            "result": "placed",
            "dry_run": True,
            "extra": "ignored",
        },
    }


@pytest.fixture
def detection_event() -> Dict[str, Any]:
    """Sample unmanaged_detection event with mixed confidence types."""
    return {
        "event_type": "unmanaged_detection",
        "timestamp": "2025-01-15T10:31:00Z",
        "payload": {
            "entries": [
                {
                    "path": "/usr/local/bin/tool",
                    "name": "tool",
                    "kind": "binary",
                    "origin": "manual",
                    "suggested_surface": "asdf",
                    "suggested_route": "asdf install tool",
                    "origin_confidence": 0.87,
                },
                {"name": "other", "origin_confidence": "high"},
            ]
        },
    }


@pytest.fixture
def events_file(temp_dir, placement_event):
    """NDJSON file with one valid event, one bad line and one unknown kind."""
    path = temp_dir / "events.jsonl"
    lines = [
        json.dumps(placement_event),
        "{not json",
        json.dumps({"event_type": "unknown_kind", "timestamp": "2025-01-15T10:32:00Z"}),
    ]
    path.write_text("\n".join(lines) + "\n")
    return path
