"""
Click id generation strategies.
Uses Strategy Pattern to allow different id generation algorithms.

Both strategies produce ids laid out as unix_seconds * 1000 + residue,
so ids sort by click time at second resolution.
"""

import secrets
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable


class ClickIdStrategy(ABC):
    """Abstract base class for click id generation strategies"""

    @abstractmethod
    def next_id(self) -> int:
        """
        Generate a numeric click id.

        Returns:
            A non-negative integer that fits in UInt64
        """
        pass


class TimestampRandomClickIdStrategy(ClickIdStrategy):
    """
    Wall-clock seconds plus a random low-order component.

    Pros: Stateless, safe to call from any thread or process
    Cons: Two clicks in the same second can draw the same residue
          (the store has no uniqueness constraint on id)
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock

    def next_id(self) -> int:
        return int(self.clock()) * 1000 + secrets.randbelow(1000)


class MonotonicClickIdStrategy(ClickIdStrategy):
    """
    Same id layout, strictly increasing within one process.

    Starts from a random residue each second and bumps past the last
    issued id when needed. Under a burst of more than 1000 clicks in a
    second the residue spills into the next second's range, which keeps
    ordering but shifts the seconds component forward.

    Pros: No duplicates from a single process
    Cons: Shared lock, no guarantee across processes
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._last_id = 0
        self._lock = threading.Lock()

    def next_id(self) -> int:
        candidate = int(self.clock()) * 1000 + secrets.randbelow(1000)
        with self._lock:
            if candidate <= self._last_id:
                candidate = self._last_id + 1
            self._last_id = candidate
        return candidate
