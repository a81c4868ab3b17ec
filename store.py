import threading
from collections import deque
from typing import Deque, List, Optional

from config import HISTORY_CAPACITY
from models import Run


class RunHistory:
    """
    Bounded in-memory log of finished collection runs.

    Runs are kept in insertion order; once `capacity` is reached the oldest
    run is dropped. A single lock makes every operation atomic, and only
    terminal (frozen) runs are ever inserted, so a reader never sees a run
    that is still being built.
    """

    def __init__(self, capacity: int = HISTORY_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._runs: Deque[Run] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def append(self, run: Run) -> None:
        with self._lock:
            self._runs.append(run)

    def recent(self, n: int) -> List[Run]:
        """Last `n` runs, oldest first."""
        if n <= 0:
            return []
        with self._lock:
            runs = list(self._runs)
        return runs[-n:]

    def find(self, run_id: str) -> Optional[Run]:
        with self._lock:
            for run in self._runs:
                if run.id == run_id:
                    return run
        return None

    def latest(self) -> Optional[Run]:
        with self._lock:
            return self._runs[-1] if self._runs else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._runs)
