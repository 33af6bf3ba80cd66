from __future__ import annotations

import json
import os
import threading
from typing import Any, Dict, Optional, TextIO


class TelemetryLogger:
    """Structured JSONL logger for simulation ticks.

    Thread-safe, append-only logging of dict records, one JSON object per line.
    Anything with a `to_dict()` method (such as a session TickResult) can be
    passed to `log_tick`.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        self._lock = threading.Lock()
        self._fp: Optional[TextIO] = open(self.path, "a", encoding="utf-8")
        self.records_written = 0

    def __enter__(self) -> "TelemetryLogger":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def log_record(self, record: Dict[str, Any]) -> None:
        """Append a single record to the JSONL file."""
        if self._fp is None:
            return
        line = json.dumps(record, separators=(",", ":"))
        with self._lock:
            self._fp.write(line + "\n")
            self._fp.flush()
            self.records_written += 1

    def log_tick(self, result: Any) -> None:
        self.log_record(result.to_dict())

    def close(self) -> None:
        if self._fp is not None:
            self._fp.close()
            self._fp = None
