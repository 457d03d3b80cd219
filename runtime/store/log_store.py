"""
LogStore: append-only event log for Briefdesk lifecycle events.

With a log_dir configured, events are written as JSON lines to:

    <log_dir>/events_YYYY-MM-DD.jsonl

Without one, events are only emitted through `logging`.
"""

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


logger = logging.getLogger(__name__)


class LogStore:
    """Date-based JSONL event sink."""

    def __init__(self, log_dir: Optional[str] = None):
        self.log_dir = Path(log_dir) if log_dir else None
        self._lock = threading.Lock()

    def log_event(self, event_type: str, payload: dict) -> None:
        """Append an event. Failures are logged and never propagate."""
        now = datetime.now(timezone.utc)
        logger.info("[EVENT] %s: %s", event_type, payload)

        if self.log_dir is None:
            return

        record = {
            "timestamp": now.isoformat(),
            "event_type": event_type,
            "payload": payload,
        }
        path = self.log_dir / f"events_{now.date().isoformat()}.jsonl"
        try:
            with self._lock:
                self.log_dir.mkdir(parents=True, exist_ok=True)
                with path.open("a", encoding="utf-8") as f:
                    f.write(json.dumps(record, ensure_ascii=False, default=str) + "\n")
        except OSError:
            logger.warning("[EVENT] Could not write %s to %s", event_type, path, exc_info=True)
