"""
Circuit breaker for calls to the Strava API.

After ``failure_threshold`` consecutive upstream failures the breaker opens and
calls fail fast with CircuitBreakerOpenError instead of queueing background
tasks behind timeouts. After ``timeout_seconds`` a limited number of trial
calls is let through; ``success_threshold`` successes close it again, any
failure reopens it.

Exceptions listed in ``ignored_exceptions`` are answers from a healthy
upstream (e.g. a 404 for a deleted activity) and count as successes.
"""
import inspect
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ParamSpec, TypeVar

from activity_webhook.core.exceptions import ActivityNotFoundError, CircuitBreakerOpenError
from activity_webhook.core.logging import get_logger

logger = get_logger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class CircuitBreakerConfig:
    failure_threshold: int = 5
    success_threshold: int = 2
    timeout_seconds: float = 30.0
    half_open_max_calls: int = 3
    ignored_exceptions: tuple[type[BaseException], ...] = ()


class CircuitBreaker:
    """One breaker per upstream service, shared across the process"""

    _registry: dict[str, "CircuitBreaker"] = {}
    _registry_lock = threading.Lock()

    def __init__(self, service_name: str, config: CircuitBreakerConfig | None = None):
        self.service_name = service_name
        self.config = config or CircuitBreakerConfig()
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._successes = 0
        self._trial_calls = 0
        self._opened_at = 0.0

    @classmethod
    def get_instance(cls, service_name: str, config: CircuitBreakerConfig | None = None) -> "CircuitBreaker":
        with cls._registry_lock:
            breaker = cls._registry.get(service_name)
            if breaker is None:
                breaker = cls._registry[service_name] = cls(service_name, config)
            return breaker

    @classmethod
    def reset_all(cls) -> None:
        """Forget every registered breaker (tests)"""
        with cls._registry_lock:
            cls._registry.clear()

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def is_closed(self) -> bool:
        return self._state is CircuitState.CLOSED

    @property
    def is_open(self) -> bool:
        return self._state is CircuitState.OPEN

    @property
    def is_half_open(self) -> bool:
        return self._state is CircuitState.HALF_OPEN

    def _set_state(self, new_state: CircuitState) -> None:
        # caller holds self._lock
        old_state, self._state = self._state, new_state
        self._successes = 0
        if new_state is CircuitState.HALF_OPEN:
            self._trial_calls = 0
        elif new_state is CircuitState.CLOSED:
            self._failures = 0

        logger.info(
            f"Circuit breaker '{self.service_name}' is now {new_state.value}",
            extra_data={
                "service": self.service_name,
                "old_state": old_state.value,
                "new_state": new_state.value,
            },
        )

    async def record_success(self) -> None:
        with self._lock:
            if self._state is CircuitState.HALF_OPEN:
                self._successes += 1
                if self._successes >= self.config.success_threshold:
                    self._set_state(CircuitState.CLOSED)
            elif self._state is CircuitState.CLOSED:
                self._failures = 0

    async def record_failure(self, error: Exception | None = None) -> None:
        with self._lock:
            self._failures += 1
            self._opened_at = time.time()

            logger.warning(
                f"Circuit breaker '{self.service_name}' recorded failure",
                extra_data={
                    "service": self.service_name,
                    "failure_count": self._failures,
                    "threshold": self.config.failure_threshold,
                    "error": str(error) if error else None,
                },
            )

            if self._state is CircuitState.HALF_OPEN or self._failures >= self.config.failure_threshold:
                self._set_state(CircuitState.OPEN)

    async def can_execute(self) -> bool:
        with self._lock:
            if self._state is CircuitState.OPEN:
                if time.time() - self._opened_at < self.config.timeout_seconds:
                    return False
                # first trial call after the cool-down
                self._set_state(CircuitState.HALF_OPEN)
                return True

            if self._state is CircuitState.HALF_OPEN:
                if self._trial_calls >= self.config.half_open_max_calls:
                    return False
                self._trial_calls += 1

            return True

    def get_retry_after(self) -> float:
        """Seconds until the next trial call is allowed; 0 unless open"""
        if self._state is not CircuitState.OPEN:
            return 0.0
        return max(0.0, self.config.timeout_seconds - (time.time() - self._opened_at))

    def snapshot(self) -> dict[str, Any]:
        return {
            "service": self.service_name,
            "state": self._state.value,
            "failure_count": self._failures,
            "success_count": self._successes,
            "half_open_calls": self._trial_calls,
            "retry_after_seconds": round(self.get_retry_after(), 2),
        }

    async def execute(self, func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
        """
        Call ``func`` through the breaker.

        Raises CircuitBreakerOpenError without calling ``func`` while open.
        """
        if not await self.can_execute():
            raise CircuitBreakerOpenError(self.service_name, self.get_retry_after())

        try:
            result = func(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
        except self.config.ignored_exceptions:
            await self.record_success()
            raise
        except Exception as e:
            await self.record_failure(e)
            raise

        await self.record_success()
        return result


def get_strava_circuit_breaker() -> CircuitBreaker:
    """Breaker shared by every StravaClient; a 404 is not an outage"""
    return CircuitBreaker.get_instance(
        "strava",
        CircuitBreakerConfig(
            failure_threshold=5,
            success_threshold=2,
            timeout_seconds=30.0,
            ignored_exceptions=(ActivityNotFoundError,),
        ),
    )
