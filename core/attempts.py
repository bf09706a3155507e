"""
Attempt state machine for plan execution.

CONSTRAINED(n) runs the routed tool sequence as planned. After the last
constrained attempt fails, a single ESCALATED attempt lets the model choose
tools freely. Every path ends in COMPLETED or TERMINATED.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict


class AttemptPhase(Enum):
    """Execution phase of a request."""
    CONSTRAINED = "constrained"
    ESCALATED = "escalated"
    COMPLETED = "completed"
    TERMINATED = "terminated"


class AttemptOutcome(Enum):
    """Outcome of one attempt."""
    SUCCESS = "success"
    FAILURE = "failure"


TERMINAL_PHASES = frozenset({AttemptPhase.COMPLETED, AttemptPhase.TERMINATED})


@dataclass(frozen=True)
class AttemptState:
    """
    Current attempt.

    Attributes:
        phase: Execution phase
        attempt: 1-based attempt number within the request
    """
    phase: AttemptPhase
    attempt: int = 1

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES


def initial_state() -> AttemptState:
    return AttemptState(AttemptPhase.CONSTRAINED, 1)


def _from_constrained(state: AttemptState, outcome: AttemptOutcome, max_constrained: int) -> AttemptState:
    if outcome == AttemptOutcome.SUCCESS:
        return AttemptState(AttemptPhase.COMPLETED, state.attempt)
    if state.attempt < max_constrained:
        return AttemptState(AttemptPhase.CONSTRAINED, state.attempt + 1)
    return AttemptState(AttemptPhase.ESCALATED, state.attempt + 1)


def _from_escalated(state: AttemptState, outcome: AttemptOutcome, max_constrained: int) -> AttemptState:
    if outcome == AttemptOutcome.SUCCESS:
        return AttemptState(AttemptPhase.COMPLETED, state.attempt)
    return AttemptState(AttemptPhase.TERMINATED, state.attempt)


def _terminal(state: AttemptState, outcome: AttemptOutcome, max_constrained: int) -> AttemptState:
    return state


_TRANSITIONS: Dict[AttemptPhase, Callable[[AttemptState, AttemptOutcome, int], AttemptState]] = {
    AttemptPhase.CONSTRAINED: _from_constrained,
    AttemptPhase.ESCALATED: _from_escalated,
    AttemptPhase.COMPLETED: _terminal,
    AttemptPhase.TERMINATED: _terminal,
}

_missing = set(AttemptPhase) - set(_TRANSITIONS)
if _missing:
    raise RuntimeError(f"No transition defined for phases: {sorted(p.value for p in _missing)}")


def next_state(state: AttemptState, outcome: AttemptOutcome, max_constrained: int) -> AttemptState:
    """
    Transition after an attempt finishes.

    Args:
        state: The attempt that just finished
        outcome: Whether it succeeded
        max_constrained: Number of constrained attempts before escalating

    Returns:
        The next AttemptState; terminal states map to themselves
    """
    return _TRANSITIONS[state.phase](state, outcome, max(1, max_constrained))
