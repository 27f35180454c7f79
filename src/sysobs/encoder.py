"""Bebop encoding via the bebopc subprocess.

Implementation rules enforced here:
- bebopc missing: write the JSON payload instead and warn (degraded mode)
- bebopc present but failing (non-zero exit, timeout): EncoderError, no JSON
- One temp JSON file per encode call, always removed afterwards

Transport: bebopc CLI via subprocess

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import json
import logging
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

from sysobs.events import EventKind

logger = logging.getLogger(__name__)

BEBOPC_FAILED = "bebopc_failed"

DEFAULT_BINARY = "bebopc"
DEFAULT_TIMEOUT = 60

# Bundled schema, resolved once at import
SCHEMA_PATH = (Path(__file__).parent / "schemas" / "ambientops_events.bop").resolve()


class EncoderError(RuntimeError):
    """Raised when bebopc runs but does not produce a frame."""

    kind = BEBOPC_FAILED

    def __init__(self, type_name: str, message: str, returncode: Optional[int] = None):
        self.type_name = type_name
        self.returncode = returncode
        super().__init__(f"bebopc failed for {type_name}: {message}")


class FrameEncoder(Protocol):
    """Anything that can turn a JSON payload into a Bebop frame."""

    def is_available(self) -> bool:
        ...

    def encode(self, schema_path: Path, type_name: str, json_bytes: bytes) -> bytes:
        ...


class BebopcEncoder:
    """Encodes JSON payloads by shelling out to bebopc."""

    def __init__(self, binary: str = DEFAULT_BINARY, timeout: int = DEFAULT_TIMEOUT):
        """
        Initialize encoder.

        Args:
            binary: bebopc executable name or path
            timeout: Seconds to wait for bebopc before treating it as failed
        """
        self.binary = binary
        self.timeout = timeout

    def is_available(self) -> bool:
        """Check if the bebopc binary is on PATH."""
        return shutil.which(self.binary) is not None

    def encode(self, schema_path: Path, type_name: str, json_bytes: bytes) -> bytes:
        """
        Encode a JSON payload into a Bebop frame.

        Args:
            schema_path: Path to the .bop schema file
            type_name: Schema type to encode as (e.g., "LogScan")
            json_bytes: Serialized payload

        Returns:
            Binary frame from bebopc stdout

        Raises:
            EncoderError: If bebopc exits non-zero, times out or cannot start
        """
        with tempfile.NamedTemporaryFile(
            prefix="bebop_payload_", suffix=".json", delete=False
        ) as tmp:
            tmp.write(json_bytes)
            tmp_path = tmp.name

        cmd = [
            self.binary,
            "encode",
            "--schema",
            str(schema_path),
            "--type",
            type_name,
            "--json",
            tmp_path,
        ]
        logger.debug(f"Executing: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            raise EncoderError(type_name, f"timed out after {self.timeout}s")
        except OSError as e:
            raise EncoderError(type_name, str(e))
        finally:
            os.unlink(tmp_path)

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            message = f"exited with code {result.returncode}"
            if stderr:
                # First line of stderr is usually the useful part
                message = f"{message}: {stderr.splitlines()[0]}"
            raise EncoderError(type_name, message, result.returncode)

        return result.stdout


def output_path(out_dir: Union[str, Path], event: Dict[str, Any], ext: str) -> Path:
    """
    Build the output file path for an event.

    Not unique: events with the same type and timestamp map to the same path
    and the later one overwrites the earlier.

    Example:
        >>> output_path("out", {"event_type": "log_scan", "timestamp": "2024-01-01T00:00:00Z"}, "bebop")
        PosixPath('out/log_scan_2024-01-01T00-00-00Z.bebop')
    """
    # null counts as absent
    event_type = event.get("event_type")
    if event_type is None:
        event_type = "event"
    timestamp = event.get("timestamp")
    if timestamp is None:
        timestamp = "unknown"
    timestamp = str(timestamp).replace(":", "-")
    return Path(out_dir) / f"{event_type}_{timestamp}.{ext}"


def encode_event(
    event: Dict[str, Any],
    kind: EventKind,
    payload: Dict[str, Any],
    out_dir: Union[str, Path],
    encoder: FrameEncoder,
    schema_path: Path = SCHEMA_PATH,
    available: Optional[bool] = None,
) -> Path:
    """
    Write one event as a Bebop frame, or as JSON when bebopc is missing.

    Args:
        event: Raw event (used for naming)
        kind: Classified event kind
        payload: Normalized payload dict
        out_dir: Output directory (must exist)
        encoder: Frame encoder
        schema_path: Bebop schema file
        available: Cached availability probe; probed when None

    Returns:
        Path of the written file

    Raises:
        EncoderError: If the encoder is available but fails
    """
    if available is None:
        available = encoder.is_available()

    json_text = json.dumps(payload)

    if not available:
        logger.warning("bebopc not found; writing JSON payload instead")
        path = output_path(out_dir, event, "json")
        path.write_text(json_text, encoding="utf-8")
        return path

    frame = encoder.encode(schema_path, kind.type_name, json_text.encode("utf-8"))
    path = output_path(out_dir, event, "bebop")
    path.write_bytes(frame)
    return path
