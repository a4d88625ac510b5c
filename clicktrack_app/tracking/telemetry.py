"""
In-process sink for ingestion outcomes.

Click tracking never raises to its caller, so every TrackResult is
recorded here instead. The counters are exposed on /health.
"""

import threading
from collections import Counter
from datetime import datetime, timezone
from typing import Dict, Optional

from .models import TrackResult


class IngestTelemetry:
    """Thread-safe success/failure counters for click ingestion"""

    def __init__(self):
        self._lock = threading.Lock()
        self._succeeded = 0
        self._failed: Counter = Counter()
        self._last_error: Optional[str] = None
        self._last_error_at: Optional[datetime] = None

    def record(self, result: TrackResult) -> None:
        with self._lock:
            if result.success:
                self._succeeded += 1
                return
            self._failed[result.reason or "unexpected"] += 1
            self._last_error = result.error
            self._last_error_at = datetime.now(timezone.utc)

    def snapshot(self) -> Dict:
        with self._lock:
            return {
                "succeeded": self._succeeded,
                "failed": sum(self._failed.values()),
                "failed_by_reason": dict(self._failed),
                "last_error": self._last_error,
                "last_error_at": self._last_error_at.isoformat() if self._last_error_at else None,
            }

    def reset(self) -> None:
        """Clear all counters (for testing)"""
        with self._lock:
            self._succeeded = 0
            self._failed.clear()
            self._last_error = None
            self._last_error_at = None
