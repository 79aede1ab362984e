import time
from typing import Any, Callable, List, Optional


class ThrottledQueue:
    """Runs queued tasks one at a time with a minimum interval between starts.

    Used for third-party lookups that must respect a requests-per-second
    ceiling. The clock and sleep functions are injectable so the spacing can
    be checked without waiting.
    """

    def __init__(self, min_interval: float,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep) -> None:
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._tasks: List[Callable[[], Any]] = []
        self._last_start: Optional[float] = None

    def __len__(self) -> int:
        return len(self._tasks)

    def submit(self, task: Callable[[], Any]) -> None:
        self._tasks.append(task)

    def _wait_turn(self) -> None:
        if self._last_start is None:
            return
        remaining = self.min_interval - (self._clock() - self._last_start)
        if remaining > 0:
            self._sleep(remaining)

    def run_next(self) -> Any:
        """Run the oldest queued task once its slot comes up and return its result."""
        task = self._tasks.pop(0)
        self._wait_turn()
        self._last_start = self._clock()
        return task()

    def drain(self) -> List[Any]:
        results = []
        while self._tasks:
            results.append(self.run_next())
        return results
