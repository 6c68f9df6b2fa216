"""Process-wide sequence handing out quote offer numbers."""
import logging
import threading
from typing import Callable, Optional

from .errors import QuoteNumberSequenceError

logger = logging.getLogger(__name__)


class QuoteNumberSequence:
    """
    One integer behind a lock. Initialised once at startup from the highest stored
    number, then incremented in memory for every new quote offer.
    """

    def __init__(self, start: int = 1):
        self._next = start
        self._lock = threading.Lock()

    @classmethod
    def from_store(cls, read_max: Callable[[], Optional[int]], strict: bool = False) -> "QuoteNumberSequence":
        """
        Build the sequence from the store's current maximum.

        Args:
            read_max: Returns the highest stored quote number, or None on an empty store
            strict: Raise instead of restarting at 1 when ``read_max`` fails

        Raises:
            QuoteNumberSequenceError: if ``read_max`` fails and ``strict`` is set
        """
        try:
            current = read_max()
        except Exception as exc:
            if strict:
                raise QuoteNumberSequenceError(f"Could not read the highest quote offer number: {exc}") from exc
            # Restarting at 1 can collide with numbers already stored.
            logger.warning(f"Failed to initialise quote offer numbers from the store, restarting at 1: {exc}")
            return cls(1)

        start = (current or 0) + 1
        logger.info(f"Quote offer numbers start at {start}")
        return cls(start)

    def next(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value

    def peek(self) -> int:
        with self._lock:
            return self._next
