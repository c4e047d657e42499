from abc import ABC, abstractmethod
from typing import Callable


class Scheduler(ABC):
    """Timer port used by the acceptance engine."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable, *args):
        """Run ``callback(*args)`` after ``delay`` seconds; returns a handle with ``cancel()``."""
