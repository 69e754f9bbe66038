"""Circuit breaker for calls to a remote booking API.

Clients fail fast while the API is down instead of queueing retries.

States:
- CLOSED: calls pass through, failures are counted
- OPEN: calls fail immediately until the cool-down has elapsed
- HALF_OPEN: one trial call decides between CLOSED and OPEN
"""
import threading
import time
from enum import Enum
from typing import Any, Callable, Optional

from salon_booking.logging_config import get_logger

logger = get_logger(__name__)


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerOpen(Exception):
    """Raised instead of calling while the circuit is open."""

    def __init__(self, name: str, retry_after: float):
        self.name = name
        self.retry_after = retry_after
        super().__init__(f"Circuit '{name}' is open. Retry after {retry_after:.1f}s")


class CircuitBreaker:
    """Counts consecutive failures of a remote call and short-circuits it."""

    def __init__(
        self,
        name: str = "booking-api",
        failure_threshold: int = 5,
        reset_timeout: float = 60.0,
        time_func: Optional[Callable[[], float]] = None,
    ):
        """
        Args:
            name: Label used in logs and errors
            failure_threshold: Consecutive failures before opening
            reset_timeout: Seconds open before a half-open trial
            time_func: Monotonic time source (tests pass a fake)
        """
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        self.name = name
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self._time = time_func or time.monotonic
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self.failure_count = 0
        self.opened_at: Optional[float] = None

    @property
    def state(self) -> str:
        return self._state.value

    def call(self, func: Callable[..., Any], *args, **kwargs) -> Any:
        """
        Run func under the breaker.

        Raises:
            CircuitBreakerOpen: circuit is open and the cool-down is running
            Exception: whatever func raises (counted as a failure)
        """
        self._before_call()
        try:
            result = func(*args, **kwargs)
        except Exception:
            self._on_failure()
            raise
        self._on_success()
        return result

    def reset(self) -> None:
        with self._lock:
            self._state = CircuitState.CLOSED
            self.failure_count = 0
            self.opened_at = None

    def _before_call(self) -> None:
        with self._lock:
            if self._state != CircuitState.OPEN:
                return
            remaining = self.reset_timeout - (self._time() - self.opened_at)
            if remaining > 0:
                raise CircuitBreakerOpen(self.name, remaining)
            self._state = CircuitState.HALF_OPEN
            logger.info("circuit_half_open", circuit=self.name)

    def _on_success(self) -> None:
        with self._lock:
            self.failure_count = 0
            if self._state == CircuitState.HALF_OPEN:
                self._state = CircuitState.CLOSED
                self.opened_at = None
                logger.info("circuit_closed", circuit=self.name)

    def _on_failure(self) -> None:
        with self._lock:
            self.failure_count += 1
            if self._state == CircuitState.HALF_OPEN:
                self._open()
                logger.warning("circuit_reopened", circuit=self.name)
            elif self.failure_count >= self.failure_threshold:
                self._open()
                logger.error(
                    "circuit_opened",
                    circuit=self.name,
                    failures=self.failure_count,
                    reset_timeout=self.reset_timeout
                )

    def _open(self) -> None:
        self._state = CircuitState.OPEN
        self.opened_at = self._time()
