# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
NDJSON to Bebop conversion pipeline.

Decodes events, classifies and projects each one, then hands it to the
encoder. Every event gets exactly one ConversionResult; a failed event never
stops the ones after it.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from sysobs.encoder import SCHEMA_PATH, BebopcEncoder, EncoderError, FrameEncoder, encode_event
from sysobs.events import UnsupportedEventError, classify, read_events
from sysobs.payloads import project

logger = logging.getLogger(__name__)


@dataclass
class ConversionResult:
    """Outcome of converting one event."""

    event_type: Optional[str]
    path: Optional[Path] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Converter:
    """Converts events using a fixed encoder and schema."""

    def __init__(
        self,
        encoder: Optional[FrameEncoder] = None,
        schema_path: Optional[Path] = None,
    ):
        """
        Initialize converter.

        Args:
            encoder: Frame encoder (default: BebopcEncoder on PATH)
            schema_path: Bebop schema file (default: bundled schema)
        """
        self.encoder = encoder if encoder is not None else BebopcEncoder()
        self.schema_path = Path(schema_path) if schema_path else SCHEMA_PATH

    def convert_event(
        self,
        event: Dict[str, Any],
        out_dir: Union[str, Path],
        available: Optional[bool] = None,
    ) -> ConversionResult:
        """
        Convert a single event into one output file.

        Args:
            event: Raw event dict
            out_dir: Existing output directory
            available: Cached encoder availability; probed when None

        Returns:
            ConversionResult with path on success, error kind on failure
        """
        event_type = event.get("event_type")

        try:
            kind = classify(event)
        except UnsupportedEventError as e:
            logger.error(str(e))
            return ConversionResult(event_type=event_type, error=e.kind)

        payload = project(kind, event).to_dict()

        try:
            path = encode_event(
                event,
                kind,
                payload,
                out_dir,
                self.encoder,
                schema_path=self.schema_path,
                available=available,
            )
        except EncoderError as e:
            logger.error(str(e))
            return ConversionResult(event_type=event_type, error=e.kind)

        logger.debug(f"Wrote {path}")
        return ConversionResult(event_type=event_type, path=path)

    def convert_file(
        self, input_path: Union[str, Path], out_dir: Union[str, Path]
    ) -> List[ConversionResult]:
        """
        Convert every event in an NDJSON file.

        Args:
            input_path: NDJSON file (unreadable means no events)
            out_dir: Output directory, created with parents if missing

        Returns:
            One ConversionResult per decoded event, in input order
        """
        out_dir = Path(out_dir).expanduser()
        out_dir.mkdir(parents=True, exist_ok=True)

        events = read_events(input_path)
        if not events:
            return []

        available = self.encoder.is_available()
        if not available:
            logger.info("bebopc not available; output will be JSON")

        results = []
        for i, event in enumerate(events, 1):
            logger.debug(f"Event {i}/{len(events)}")
            results.append(self.convert_event(event, out_dir, available=available))

        return results


def convert_file(
    input_path: Union[str, Path],
    out_dir: Union[str, Path],
    encoder: Optional[FrameEncoder] = None,
    schema_path: Optional[Path] = None,
) -> List[ConversionResult]:
    """Convert an NDJSON file with a one-off Converter."""
    return Converter(encoder=encoder, schema_path=schema_path).convert_file(input_path, out_dir)


def summarize(results: List[ConversionResult]) -> Dict[str, int]:
    """Tally results for reporting."""
    succeeded = [r for r in results if r.ok]
    return {
        "total": len(results),
        "succeeded": len(succeeded),
        "failed": len(results) - len(succeeded),
        "bebop": sum(1 for r in succeeded if r.path.suffix == ".bebop"),
        "json": sum(1 for r in succeeded if r.path.suffix == ".json"),
    }
