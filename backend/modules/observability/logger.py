"""
Structured JSON logger for planning passes: append-only, one object per line (.jsonl).

Usage:
    from modules.observability.logger import StructuredLogger

    plan_log = StructuredLogger()
    plan_log.log("sess_abc123", "pipeline_start", {"city": "Austin"})

Logs are written to  <LOGS_DIR>/<session_id>.jsonl  (config.LOGS_DIR,
backend/logs by default).

Event types emitted by the planner, in order:
    pipeline_start   preferences summary, strategy, time range
    fetch_failed     data source error (the pass stops here)
    filtered         candidates / matched / active filters
    ranked           strategy and the top scores
    itinerary_built  item count, total cost, total duration
"""

from __future__ import annotations

import json
import os
import threading
from datetime import datetime, timezone
from pathlib import Path

import config

PLANNING_EVENTS = frozenset({
    "pipeline_start", "fetch_failed", "filtered", "ranked", "itinerary_built",
})


class StructuredLogger:
    """Thread-safe, append-only JSONL logger."""

    def __init__(self, logs_dir: Path | str | None = None) -> None:
        self._logs_dir = Path(logs_dir) if logs_dir else Path(config.LOGS_DIR)
        self._lock = threading.Lock()
        self._handles: dict[str, object] = {}  # session_id -> file handle

    @property
    def logs_dir(self) -> Path:
        return self._logs_dir

    # ── public API ────────────────────────────────────────────────────────

    def log(self, session_id: str, event_type: str, payload: dict) -> None:
        """Append one structured JSON record to ``<session_id>.jsonl``."""
        if event_type not in PLANNING_EVENTS:
            raise ValueError(f"unknown event type {event_type!r}; expected one of {sorted(PLANNING_EVENTS)}")
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "session_id": session_id,
            "event_type": event_type,
            "payload": payload,
        }
        line = json.dumps(record, default=str, ensure_ascii=False) + "\n"

        with self._lock:
            fh = self._handles.get(session_id)
            if fh is None:
                fh = self._open(session_id)
            fh.write(line)  # type: ignore[union-attr]
            fh.flush()  # type: ignore[union-attr]

    def read(self, session_id: str) -> list[dict]:
        """All records logged for *session_id*, oldest first ([] if none)."""
        path = self._logs_dir / f"{session_id}.jsonl"
        if not path.exists():
            return []
        with self._lock, open(path, "r", encoding="utf-8") as fh:
            return [json.loads(line) for line in fh if line.strip()]

    def close(self, session_id: str | None = None) -> None:
        """Close one or all open file handles."""
        with self._lock:
            if session_id:
                fh = self._handles.pop(session_id, None)
                if fh:
                    fh.close()  # type: ignore[union-attr]
            else:
                for fh in self._handles.values():
                    fh.close()  # type: ignore[union-attr]
                self._handles.clear()

    # ── internals ─────────────────────────────────────────────────────────

    def _open(self, session_id: str):  # noqa: ANN202
        os.makedirs(self._logs_dir, exist_ok=True)
        path = self._logs_dir / f"{session_id}.jsonl"
        fh = open(path, "a", encoding="utf-8")  # noqa: SIM115
        self._handles[session_id] = fh
        return fh
