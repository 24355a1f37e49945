"""
Database circuit breaker and retry for SMTP delivery.

``db_circuit_breaker`` guards every repository call.  After
``CB_FAILURE_THRESHOLD`` consecutive connection-level failures it rejects
calls with :class:`CircuitBreakerError` (rendered as 503 + ``Retry-After``)
until ``CB_RECOVERY_TIMEOUT`` seconds have passed, then admits one trial
call whose outcome closes or re-opens the circuit.  Query errors such as
``IntegrityError`` pass through without counting.

``retry_async`` re-awaits a coroutine on a caller-chosen set of transient
errors.  The email service uses it with the SMTP connection errors only;
authentication and recipient refusals fail on the first attempt.
"""

import asyncio
import functools
import logging
import random
import time
from enum import Enum
from typing import Any, Callable, Optional, Tuple, Type

from sqlalchemy.exc import InterfaceError, OperationalError

from irm.core.config import settings

logger = logging.getLogger(__name__)

ExceptionTypes = Tuple[Type[BaseException], ...]


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerError(Exception):
    """A call was rejected without reaching the database."""

    def __init__(self, name: str, retry_after: float):
        self.name = name
        self.retry_after = retry_after
        super().__init__(f"Circuit '{name}' is OPEN; retry in {retry_after:.1f}s")


class CircuitBreaker:
    """
    Consecutive-failure breaker for one dependency.

    Only exceptions listed in ``trips_on`` count as failures.  While the
    circuit is HALF_OPEN exactly one trial call runs; concurrent callers are
    rejected until it settles.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int,
        recovery_timeout: float,
        trips_on: ExceptionTypes,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.trips_on = trips_on

        self._failures = 0
        self._opened_at: Optional[float] = None
        self._trial_running = False

    @property
    def state(self) -> CircuitState:
        if self._opened_at is None:
            return CircuitState.CLOSED
        if time.monotonic() - self._opened_at >= self.recovery_timeout:
            return CircuitState.HALF_OPEN
        return CircuitState.OPEN

    def retry_after(self) -> float:
        if self._opened_at is None:
            return 0.0
        return max(0.0, self.recovery_timeout - (time.monotonic() - self._opened_at))

    async def call(self, func: Callable, *args: Any, **kwargs: Any) -> Any:
        state = self.state
        if state == CircuitState.OPEN or (
            state == CircuitState.HALF_OPEN and self._trial_running
        ):
            raise CircuitBreakerError(self.name, self.retry_after())

        trial = state == CircuitState.HALF_OPEN
        if trial:
            self._trial_running = True
        try:
            result = await func(*args, **kwargs)
        except self.trips_on as exc:
            self._on_failure(exc)
            raise
        finally:
            if trial:
                self._trial_running = False

        if self._opened_at is not None:
            logger.info("Circuit '%s' → CLOSED after %d failures", self.name, self._failures)
        self._failures = 0
        self._opened_at = None
        return result

    def _on_failure(self, exc: BaseException) -> None:
        self._failures += 1
        if self._failures >= self.failure_threshold:
            self._opened_at = time.monotonic()
            logger.error(
                "Circuit '%s' → OPEN for %.1fs after %d failures (last: %s)",
                self.name,
                self.recovery_timeout,
                self._failures,
                type(exc).__name__,
            )
        else:
            logger.warning(
                "Circuit '%s' failure %d/%d: %s",
                self.name,
                self._failures,
                self.failure_threshold,
                type(exc).__name__,
            )

    def get_status(self) -> dict:
        """Summary for ``/health``."""
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self._failures,
            "failure_threshold": self.failure_threshold,
            "retry_after_s": round(self.retry_after(), 1),
        }


db_circuit_breaker = CircuitBreaker(
    name="database",
    failure_threshold=settings.CB_FAILURE_THRESHOLD,
    recovery_timeout=settings.CB_RECOVERY_TIMEOUT,
    # Lost or refused connections; asyncpg and aiosqlite surface these as
    # OperationalError/InterfaceError once SQLAlchemy wraps them.
    trips_on=(OperationalError, InterfaceError, ConnectionError, TimeoutError),
)


def retry_async(
    retry_on: ExceptionTypes,
    attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
    jitter: bool = True,
    label: Optional[str] = None,
) -> Callable:
    """
    Decorator: await the wrapped coroutine up to ``attempts`` times.

    Only exceptions in ``retry_on`` are retried.  The n-th retry waits
    ``base_delay * 2**(n - 1)`` seconds capped at ``max_delay``, plus up to
    half as much again with ``jitter``.  The final error is re-raised.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    def decorator(func: Callable) -> Callable:
        name = label or getattr(func, "__qualname__", repr(func))

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(1, attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except retry_on as exc:
                    if attempt == attempts:
                        logger.error(
                            "%s failed after %d attempts: %s: %s",
                            name,
                            attempts,
                            type(exc).__name__,
                            exc,
                        )
                        raise
                    delay = min(base_delay * 2 ** (attempt - 1), max_delay)
                    if jitter:
                        delay += random.uniform(0, delay / 2)
                    logger.warning(
                        "%s attempt %d/%d failed (%s: %s); retrying in %.2fs",
                        name,
                        attempt,
                        attempts,
                        type(exc).__name__,
                        exc,
                        delay,
                    )
                    await asyncio.sleep(delay)

        return wrapper

    return decorator
