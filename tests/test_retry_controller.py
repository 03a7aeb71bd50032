import asyncio

import pytest

from reading_translator.models.annotated_result import RetryBudget
from reading_translator.models.errors import ProviderError, ProviderExhausted, ProviderOverloaded
from reading_translator.services.retry import RetryController


def overloaded():
    return ProviderOverloaded("overloaded", status_code=529)


class FlakyCall:
    """Plays the given outcomes, then stays overloaded forever."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        outcome = self.outcomes.pop(0) if self.outcomes else overloaded()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def test_recovers_after_two_overloads(recording_sleep):
    fn = FlakyCall(overloaded(), overloaded(), "ok")
    budget = RetryBudget(8, 1)

    result = asyncio.run(RetryController(sleep=recording_sleep).call(fn, budget))

    assert result == "ok"
    assert fn.calls == 3
    assert recording_sleep.delays == [1.0, 2.0]
    assert budget.provider_retries_remaining == 6


def test_gives_up_after_max_attempts(recording_sleep):
    fn = FlakyCall()

    with pytest.raises(ProviderExhausted) as excinfo:
        asyncio.run(RetryController(sleep=recording_sleep).call(fn, RetryBudget(8, 1)))

    assert fn.calls == 4
    assert excinfo.value.attempts == 4
    assert recording_sleep.delays == [1.0, 2.0, 4.0]
    assert isinstance(excinfo.value.__cause__, ProviderOverloaded)


def test_other_errors_are_not_retried(recording_sleep):
    fn = FlakyCall(ProviderError("bad key", status_code=401), "never")

    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(RetryController(sleep=recording_sleep).call(fn, RetryBudget(8, 1)))

    assert not isinstance(excinfo.value, ProviderOverloaded)
    assert excinfo.value.status_code == 401
    assert fn.calls == 1
    assert recording_sleep.delays == []


def test_invocation_budget_stops_retries_early(recording_sleep):
    fn = FlakyCall()
    budget = RetryBudget(1, 1)

    with pytest.raises(ProviderExhausted):
        asyncio.run(RetryController(sleep=recording_sleep).call(fn, budget))

    assert fn.calls == 2
    assert recording_sleep.delays == [1.0]
    assert budget.provider_retries_remaining == 0


def test_budget_is_shared_across_calls(recording_sleep):
    controller = RetryController(sleep=recording_sleep)
    budget = RetryBudget(2, 1)

    asyncio.run(controller.call(FlakyCall(overloaded(), "first"), budget))
    with pytest.raises(ProviderExhausted):
        asyncio.run(controller.call(FlakyCall(), budget))

    assert budget.provider_retries_remaining == 0


def test_delay_is_capped(recording_sleep):
    controller = RetryController(max_attempts=5, initial_delay=1.0, max_delay=3.0, sleep=recording_sleep)

    with pytest.raises(ProviderExhausted):
        asyncio.run(controller.call(FlakyCall(), RetryBudget(8, 1)))

    assert recording_sleep.delays == [1.0, 2.0, 3.0, 3.0]


def test_initial_delay_scales_schedule(recording_sleep):
    controller = RetryController(initial_delay=0.5, sleep=recording_sleep)
    fn = FlakyCall(overloaded(), overloaded(), overloaded(), "ok")

    assert asyncio.run(controller.call(fn, RetryBudget(8, 1))) == "ok"
    assert recording_sleep.delays == [0.5, 1.0, 2.0]
