"""Local JSONL run log for conversions.

Implementation rules enforced here:
- Fixed record types only: convert.started, convert.completed
- Append-only JSONL, no rotation, no truncation
- convert.completed carries the run summary and every failed event's kind

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from sysobs.converter import ConversionResult, summarize


ALLOWED_RECORD_TYPES = frozenset({
    "convert.started",
    "convert.completed",
})


def new_run_id() -> str:
    """Generate a run ID like convert-20250101120000-1a2b3c4d."""
    return (
        f"convert-{datetime.now(timezone.utc).strftime('%Y%m%d%H%M%S')}-"
        f"{uuid.uuid4().hex[:8]}"
    )


class RunLog:
    """Append-only JSONL log of conversion runs."""

    def __init__(self, log_path: Path):
        self.log_path = Path(log_path).expanduser()
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def record(
        self,
        record_type: str,
        run_id: str,
        status: str,
        payload: Optional[dict] = None,
        error_message: Optional[str] = None,
    ) -> None:
        if record_type not in ALLOWED_RECORD_TYPES:
            raise ValueError(
                f"Unknown record_type '{record_type}'. Allowed: {sorted(ALLOWED_RECORD_TYPES)}"
            )

        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": record_type,
            "run_id": run_id,
            "status": status,
            "payload": payload or {},
        }
        if error_message:
            record["error_message"] = error_message

        with self.log_path.open("a") as f:
            f.write(json.dumps(record) + "\n")

    def started(self, run_id: str, input_path: str, outdir: str) -> None:
        self.record("convert.started", run_id, "success", {"input": input_path, "outdir": outdir})

    def completed(self, run_id: str, results: List[ConversionResult]) -> None:
        """Record a finished run.

        Status is "failed" if any event failed. Failures are listed in input
        order as {"index", "event_type", "error"}, where index is the event's
        position among decoded events.
        """
        summary = summarize(results)
        failures = [
            {"index": i, "event_type": r.event_type, "error": r.error}
            for i, r in enumerate(results)
            if not r.ok
        ]
        status = "success" if not failures else "failed"
        self.record("convert.completed", run_id, status, dict(summary, failures=failures))

    def aborted(self, run_id: str, error: Exception) -> None:
        """Record a run that stopped before all events were converted."""
        self.record("convert.completed", run_id, "failed", error_message=str(error))
