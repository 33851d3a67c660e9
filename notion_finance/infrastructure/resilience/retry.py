"""Retry with exponential backoff as an explicit state machine

Each attempt either succeeds (done) or fails. A failure is classified into the
error taxonomy and handed to ``next_step``, a pure function that decides
whether to give up or to wait and try again. ``RetryExecutor`` drives the
machine with an injectable sleep and random source.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

from notion_finance.config import settings
from notion_finance.domain.exceptions import FinanceServiceError, RequestTimeoutError, ServerError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RetryHook = Callable[[int, FinanceServiceError, float], None]


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    jitter: float = 0.1  # upper bound of the random fraction added to each delay

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_retries=settings.max_retries,
            base_delay=settings.base_delay_seconds,
            max_delay=settings.max_delay_seconds,
        )


@dataclass(frozen=True)
class Retry:
    delay: float


@dataclass(frozen=True)
class GiveUp:
    error: FinanceServiceError
    exhausted: bool


@dataclass(frozen=True)
class RetryOutcome(Generic[T]):
    value: T
    retry_count: int


def compute_delay(policy: RetryPolicy, attempt: int, jitter_fraction: float) -> float:
    """Backoff before retrying after failed attempt ``attempt`` (0-based)"""
    return min(policy.max_delay, policy.base_delay * (2**attempt) * (1 + jitter_fraction))


def classify_error(exc: BaseException) -> FinanceServiceError:
    """Map any failure onto the error taxonomy"""
    if isinstance(exc, FinanceServiceError):
        return exc
    if isinstance(exc, asyncio.TimeoutError):
        return RequestTimeoutError("Operation timed out")
    return ServerError(f"Unexpected error: {exc}", details={"exception": type(exc).__name__})


def next_step(
    policy: RetryPolicy, attempt: int, error: FinanceServiceError, jitter_fraction: float
) -> Union[Retry, GiveUp]:
    """Transition out of a failed attempt.

    Non-retryable errors stop immediately. Retryable errors stop once
    ``max_retries`` retries have been spent, otherwise wait either the
    server-provided retry-after or the computed backoff.
    """
    if not error.retryable:
        return GiveUp(error, exhausted=False)
    if attempt >= policy.max_retries:
        return GiveUp(error, exhausted=True)
    retry_after = getattr(error, "retry_after", None)
    if retry_after is not None:
        return Retry(delay=max(float(retry_after), 0.0))
    return Retry(delay=compute_delay(policy, attempt, jitter_fraction))


class RetryExecutor:
    """Run an async call under a retry policy and a per-attempt timeout"""

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        timeout: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: Callable[[], float] = random.random,
    ):
        self.policy = policy or RetryPolicy.from_settings()
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self._sleep = sleep
        self._rng = rng

    async def _attempt(self, call: Callable[[], Awaitable[T]]) -> T:
        try:
            return await asyncio.wait_for(call(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise RequestTimeoutError(
                f"Operation exceeded {self.timeout}s timeout", details={"timeout_seconds": self.timeout}
            ) from e

    async def run(
        self,
        call: Callable[[], Awaitable[T]],
        operation: str,
        on_retry: Optional[RetryHook] = None,
    ) -> RetryOutcome[T]:
        """
        Invoke ``call`` until it succeeds or the policy gives up.

        Raises:
            FinanceServiceError: The classified error of the final attempt
        """
        attempt = 0
        while True:
            try:
                value = await self._attempt(call)
                return RetryOutcome(value=value, retry_count=attempt)
            except Exception as exc:
                error = classify_error(exc)
                step = next_step(self.policy, attempt, error, self._rng() * self.policy.jitter)

                if isinstance(step, GiveUp):
                    if step.exhausted:
                        logger.error(
                            "Retries exhausted",
                            extra={"operation": operation, "attempts": attempt + 1, "error_code": error.code},
                        )
                    if error is exc:
                        raise
                    raise error from exc

                logger.warning(
                    "Retrying operation",
                    extra={
                        "operation": operation,
                        "attempt": attempt + 1,
                        "error_code": error.code,
                        "delay_seconds": round(step.delay, 3),
                    },
                )
                if on_retry is not None:
                    on_retry(attempt, error, step.delay)
                await self._sleep(step.delay)
                attempt += 1
