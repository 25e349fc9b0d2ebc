"""Service for executing provider calls with automatic retries.

Implements exponential backoff with jitter for transient errors like rate
limits (429) or dropped connections. The executor knows nothing about what
the operation does or who is watching: retry decisions are delegated to the
policy's predicate and reported through an optional callback.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from jobfit.domain.events.api_events import RetryScheduled

logger = logging.getLogger(__name__)

# Default Configuration Constants (overridden from settings by the composition root)
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY_S = 2.0
DEFAULT_MAX_DELAY_S = 30.0
JITTER_RATIO = 0.3


def _never_retry(error: BaseException) -> bool:
    return False


@dataclass(frozen=True)
class RetryPolicy:
    """Immutable retry configuration passed per invocation."""
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay_s: float = DEFAULT_BASE_DELAY_S
    max_delay_s: float = DEFAULT_MAX_DELAY_S
    retry_predicate: Callable[[BaseException], bool] = _never_retry

    def backoff_delay(self, attempt_index: int) -> float:
        """Delay before the next attempt, without jitter.

        ``attempt_index`` is the 0-based index of the attempt that just failed.
        """
        return min(self.base_delay_s * (2 ** attempt_index), self.max_delay_s)


RetryCallback = Callable[[RetryScheduled], None]


class BackoffExecutor:
    """Runs a fallible async operation under a RetryPolicy."""

    def __init__(
        self,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: Callable[[], float] = random.random,
    ):
        """Initializes the executor.

        Args:
            sleep: Coroutine used to wait between attempts.
            rng: Source of uniform floats in [0, 1) for jitter.
        """
        self._sleep = sleep
        self._rng = rng

    def compute_delay(self, policy: RetryPolicy, attempt_index: int) -> float:
        """Backoff delay plus jitter in ``[0, JITTER_RATIO * delay)``."""
        delay = policy.backoff_delay(attempt_index)
        jitter = self._rng() * JITTER_RATIO * delay
        return delay + jitter

    async def execute(
        self,
        operation: Callable[[], Awaitable[Any]],
        policy: RetryPolicy,
        on_retry: Optional[RetryCallback] = None,
        operation_name: Optional[str] = None,
    ) -> Any:
        """Executes ``operation`` until it succeeds or the policy gives up.

        Args:
            operation: Zero-argument callable returning an awaitable.
            policy: Attempt limit, delays and the retry predicate.
            on_retry: Called once per scheduled retry, before sleeping.
            operation_name: Label used in logs and events.

        Returns:
            Whatever the operation returns.

        Raises:
            Exception: The operation's last error, unchanged, when it is not
                retryable or the final attempt failed.
        """
        max_attempts = max(1, policy.max_attempts)
        name = operation_name or getattr(operation, "__name__", "operation")

        attempt = 0
        while True:
            try:
                return await operation()
            except Exception as e:
                is_last_attempt = attempt >= max_attempts - 1
                if is_last_attempt or not policy.retry_predicate(e):
                    if is_last_attempt and max_attempts > 1:
                        logger.error(f"Max attempts ({max_attempts}) reached for {name}. Last error: {e}")
                    else:
                        logger.debug(f"Not retrying {name} after {type(e).__name__} on attempt {attempt + 1}")
                    raise

                delay = self.compute_delay(policy, attempt)
                logger.warning(
                    f"Retry attempt {attempt + 1}/{max_attempts} for {name} "
                    f"after {delay:.2f}s due to: {type(e).__name__}: {e}"
                )
                if on_retry is not None:
                    on_retry(RetryScheduled(
                        attempt_number=attempt + 1,
                        max_attempts=max_attempts,
                        delay_seconds=delay,
                        error=e,
                        operation=name,
                    ))
                await self._sleep(delay)
                attempt += 1
