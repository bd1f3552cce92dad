"""
Reconciliation status shared between the controller and the health server.
"""

import threading
import time
from typing import Any, Dict, Optional


class ReconciliationStatus:
    """
    Thread-safe record of the outcome of reconciliation passes.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.passes = 0
        self.errors = 0
        self.last_run: Optional[float] = None
        self.last_error: Optional[str] = None
        self.last_evaluations = 0
        self.last_applied_zones: list = []

    def record_success(self, evaluations: int, applied_zones: list) -> None:
        with self._lock:
            self.passes += 1
            self.last_run = time.time()
            self.last_error = None
            self.last_evaluations = evaluations
            self.last_applied_zones = list(applied_zones)

    def record_failure(self, error: BaseException, applied_zones: Optional[list] = None) -> None:
        with self._lock:
            self.passes += 1
            self.errors += 1
            self.last_run = time.time()
            self.last_error = str(error)
            self.last_applied_zones = list(applied_zones or [])

    @property
    def healthy(self) -> bool:
        with self._lock:
            return self.last_error is None

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "status": "healthy" if self.last_error is None else "unhealthy",
                "passes": self.passes,
                "errors": self.errors,
                "last_run": self.last_run,
                "last_error": self.last_error,
                "last_evaluations": self.last_evaluations,
                "last_applied_zones": list(self.last_applied_zones),
            }
