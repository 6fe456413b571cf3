"""
Ordered commit coordination for concurrent fragment workers.

Fragments of one chunk are loaded in parallel and finish in whatever order
disk and filtering allow, but their bytes must reach the output file in
list order. The WriteSequencer hands out write turns by slot index.

Design Decisions:
    - A condition variable instead of polling, so waiting workers sleep
    - Every slot advances the sequence exactly once, whether its worker
      wrote, failed or raised, so one bad fragment never stalls the rest
    - The turn holder writes outside the lock; only it may write at a time
"""

import threading
from contextlib import contextmanager


class WriteSequencer:
    """
    Grants exclusive write turns to slots 0, 1, 2, ... in order.

    Attributes:
        size: Number of slots expected.

    Example:
        >>> seq = WriteSequencer(3)
        >>> # in the worker for slot i:
        >>> with seq.turn(i):
        ...     out.write(data)
    """

    def __init__(self, size: int):
        self.size = size
        # Index of the slot allowed to write next
        self._next = 0
        self._cond = threading.Condition()

    @property
    def next_index(self) -> int:
        with self._cond:
            return self._next

    @property
    def done(self) -> bool:
        """True once every slot has taken its turn."""
        return self.next_index >= self.size

    @contextmanager
    def turn(self, index: int):
        """
        Block until slot `index` may write, then yield.

        The sequence advances to index + 1 when the block exits, including
        when it exits with an exception.

        Raises:
            IndexError: If index is outside [0, size).
        """
        if not 0 <= index < self.size:
            raise IndexError(f"Slot {index} out of range for {self.size} slots")

        with self._cond:
            self._cond.wait_for(lambda: self._next == index)
        try:
            yield
        finally:
            with self._cond:
                self._next = index + 1
                self._cond.notify_all()
