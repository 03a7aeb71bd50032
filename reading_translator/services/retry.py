import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    stop_any,
    wait_exponential,
)

from reading_translator.logconf import logger
from reading_translator.models.annotated_result import RetryBudget
from reading_translator.models.errors import ProviderExhausted, ProviderOverloaded
from reading_translator.settings import settings

T = TypeVar("T")


class RetryController:
    """
    Retries provider calls that fail with ``ProviderOverloaded``.

    The n-th retry waits ``initial_delay * 2**(n-1)`` seconds (capped at
    ``max_delay``). Calls stop after ``max_attempts`` attempts, or earlier
    once the invocation's provider budget is spent. Any other error is
    raised on the spot, without sleeping.
    """

    def __init__(
        self,
        max_attempts: Optional[int] = None,
        initial_delay: Optional[float] = None,
        max_delay: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.max_attempts = max_attempts or settings.provider_max_attempts
        self.initial_delay = settings.provider_initial_delay if initial_delay is None else initial_delay
        self.max_delay = max_delay or settings.provider_max_delay
        self._sleep = sleep

    async def call(self, fn: Callable[[], Awaitable[T]], budget: RetryBudget) -> T:
        def _budget_spent(retry_state) -> bool:
            return budget.provider_retries_remaining <= 0

        def _before_sleep(retry_state) -> None:
            budget.consume_provider_retry()
            logger.warning(
                "Provider overloaded (attempt %d/%d), retrying in %.1fs",
                retry_state.attempt_number,
                self.max_attempts,
                retry_state.next_action.sleep,
            )

        retrying = AsyncRetrying(
            retry=retry_if_exception_type(ProviderOverloaded),
            wait=wait_exponential(multiplier=self.initial_delay, max=self.max_delay),
            stop=stop_any(stop_after_attempt(self.max_attempts), _budget_spent),
            before_sleep=_before_sleep,
            sleep=self._sleep,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    result = await fn()
        except RetryError as e:
            attempts = e.last_attempt.attempt_number
            logger.error("Provider still overloaded after %d attempt(s), giving up", attempts)
            raise ProviderExhausted(attempts) from e.last_attempt.exception()
        return result
