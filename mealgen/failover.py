"""
Retry and failover policy as a pure state transition function

    TryingProvider(i, n) --SUCCESS--> Succeeded(i)
    TryingProvider(i, n) --RETRYABLE_FAILURE, n < max--> TryingProvider(i, n + 1)
    TryingProvider(i, n) --RETRYABLE_FAILURE, n = max--> TryingProvider(i + 1, 1)
    TryingProvider(i, n) --TERMINAL_FAILURE--> TryingProvider(i + 1, 1)
    TryingProvider(last, ...) --exhausted--> AllProvidersExhausted

Attempts are 1-based.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Union


class Outcome(Enum):
    SUCCESS = "success"
    RETRYABLE_FAILURE = "retryable_failure"
    TERMINAL_FAILURE = "terminal_failure"


@dataclass(frozen=True)
class TryingProvider:
    index: int
    attempt: int = 1


@dataclass(frozen=True)
class Succeeded:
    index: int


@dataclass(frozen=True)
class AllProvidersExhausted:
    pass


FailoverState = Union[TryingProvider, Succeeded, AllProvidersExhausted]


def initial_state(provider_count: int) -> FailoverState:
    if provider_count <= 0:
        return AllProvidersExhausted()
    return TryingProvider(0, 1)


def _advance(index: int, provider_count: int) -> FailoverState:
    if index + 1 < provider_count:
        return TryingProvider(index + 1, 1)
    return AllProvidersExhausted()


def next_state(state: FailoverState, outcome: Outcome, max_attempts: Sequence[int]) -> FailoverState:
    """
    Transition after one attempt. max_attempts holds each provider's retry
    budget in failover order; its length is the provider count.
    """
    if not isinstance(state, TryingProvider):
        raise ValueError(f"No transition out of terminal state {state!r}")

    if outcome == Outcome.SUCCESS:
        return Succeeded(state.index)

    if outcome == Outcome.RETRYABLE_FAILURE and state.attempt < max_attempts[state.index]:
        return TryingProvider(state.index, state.attempt + 1)

    return _advance(state.index, len(max_attempts))


def backoff_delay(retry_delay: float, attempt: int) -> float:
    """Linear backoff after failed attempt n"""
    return retry_delay * attempt
