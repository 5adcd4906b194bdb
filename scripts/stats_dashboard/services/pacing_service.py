#------------------------------------------------------------
#                      pacing_service.py
#        Enforces a minimum interval between upstream
#                       API requests.

import time
from typing import Callable, Optional

class PacingPolicy:

    # This function does store the interval and the time sources.
    # Sleep and clock are injectable so callers can swap them out.
    def __init__(
        self,
        min_interval_seconds: float,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.min_interval_seconds = max(0.0, float(min_interval_seconds))
        self._sleep = sleep
        self._clock = clock
        self._last_request: Optional[float] = None

    # This function does block until the next request may be issued.
    # The first call returns immediately and only the remainder is slept.
    def wait(self) -> float:
        now = self._clock()
        slept = 0.0
        if self._last_request is not None:
            remaining = self.min_interval_seconds - (now - self._last_request)
            if remaining > 0:
                self._sleep(remaining)
                slept = remaining
                now = self._clock()
        self._last_request = now
        return slept

    def reset(self) -> None:
        self._last_request = None
