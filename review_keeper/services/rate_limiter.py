"""Request pacing for the GitHub API"""
import threading
import time
from typing import Callable


class RateLimiter:
    """Spaces calls evenly so at most max_per_second requests start per second.

    There is no queue or background task: the only state is the time of the
    latest request. The first call never blocks.
    """

    def __init__(
        self,
        max_per_second: int,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_per_second <= 0:
            raise ValueError(f"max_per_second must be positive, got {max_per_second}")
        self.max_per_second = max_per_second
        self.min_interval = 1.0 / max_per_second
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        # Start as if the last request happened a full second ago
        self._last_request = clock() - 1.0

    def wait(self) -> None:
        """Block until min_interval has passed since the previous request."""
        with self._lock:
            elapsed = self._clock() - self._last_request
            wait_time = self.min_interval - elapsed
            if wait_time <= 0:
                self._last_request = self._clock()
                return

        # Sleep outside the lock so other callers can compute their own wait
        self._sleep(wait_time)

        with self._lock:
            self._last_request = self._clock()

    def stop(self) -> None:
        """No-op: this limiter owns no background resources."""
