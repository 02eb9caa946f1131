from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

from geopy.extra.rate_limiter import RateLimiter

from .errors import ProcessingError

"""Request pacing for the geocoding provider.

geopy's RateLimiter spaces consecutive calls at least ``min_interval``
seconds apart (the first one runs immediately). RequestThrottle adds a
cancel signal: a set ``threading.Event`` stops the next call, or the wait
before it, with GeocodeCancelledError.
"""

__all__ = [
    "GeocodeCancelledError",
    "RequestThrottle",
]


class GeocodeCancelledError(ProcessingError):
    """Raised when the cancel signal is set during a geocoding batch."""


class RequestThrottle(RateLimiter):
    """RateLimiter around one geocode callable, with cancellation.

    Failed calls are not retried and exceptions are not swallowed: each
    address gets one request and the caller classifies the outcome.
    ``clock`` / ``sleep`` replace geopy's timer and sleep. Without a custom
    ``sleep``, waits go through ``Event.wait`` when a cancel event is given.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        min_interval: float = 1.0,
        *,
        cancel_event: threading.Event | None = None,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        if min_interval < 0:
            raise ValueError(f"min_interval must be >= 0, got {min_interval}")
        super().__init__(
            func,
            min_delay_seconds=min_interval,
            max_retries=0,
            swallow_exceptions=False,
        )
        self.cancel_event = cancel_event
        self._clock_fn = clock
        self._sleep_fn = sleep

    @property
    def min_interval(self) -> float:
        return self.min_delay_seconds

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def _clock(self) -> float:
        if self._clock_fn is not None:
            return self._clock_fn()
        return super()._clock()

    def _sleep(self, seconds: float) -> None:
        if self.cancel_event is not None and self._sleep_fn is None:
            # Event.wait returns True as soon as the event is set
            if self.cancel_event.wait(seconds):
                raise GeocodeCancelledError("geocoding cancelled while waiting for the rate limit")
            return
        if self.cancelled:
            raise GeocodeCancelledError("geocoding cancelled while waiting for the rate limit")
        if self._sleep_fn is not None:
            self._sleep_fn(seconds)
            return
        super()._sleep(seconds)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        if self.cancelled:
            raise GeocodeCancelledError("geocoding cancelled")
        return super().__call__(*args, **kwargs)
