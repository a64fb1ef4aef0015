"""
Single-flight latch

At most one logical execution of a stage per process. A second trigger is
rejected immediately (never queued, never blocked).
"""

import threading


class SingleFlight:
    """
    Atomic compare-and-set latch backed by a non-blocking lock acquire

    Works across threads and across asyncio tasks (acquire never awaits).

    Example:
        >>> latch = SingleFlight("indicator-calc")
        >>> if not latch.try_acquire():
        ...     return already_in_progress()
        >>> try:
        ...     run()
        ... finally:
        ...     latch.release()
    """

    def __init__(self, name: str):
        self.name = name
        self._lock = threading.Lock()

    def try_acquire(self) -> bool:
        """Set the latch if it is free; False if already held"""
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        """Clear the latch (safe to call only by the holder)"""
        if self._lock.locked():
            self._lock.release()

    @property
    def in_progress(self) -> bool:
        return self._lock.locked()

    def __repr__(self) -> str:
        state = "busy" if self.in_progress else "idle"
        return f"SingleFlight({self.name}, {state})"
