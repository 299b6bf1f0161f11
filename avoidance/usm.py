"""A small state machine driven by transitions out of the current state."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Generic, TypeVar

StateT = TypeVar("StateT")


class Transition(enum.Enum):
    REPEAT = enum.auto()
    NEXT1 = enum.auto()
    NEXT2 = enum.auto()
    NEXT3 = enum.auto()
    NEXT4 = enum.auto()
    ERROR = enum.auto()


class StateMachine(ABC, Generic[StateT]):
    """Runs the current state and moves on unless it asks to repeat."""

    def __init__(self, starting_state: StateT) -> None:
        self._current_state = starting_state

    @property
    def state(self) -> StateT:
        return self._current_state

    def iterate_once(self) -> None:
        """Run the current state once and apply the resulting transition."""
        transition = self.run_current_state()
        if transition is not Transition.REPEAT:
            self._current_state = self.choose_next_state(self._current_state, transition)

    @abstractmethod
    def run_current_state(self) -> Transition:
        """Do the work of the current state and report the transition."""

    @abstractmethod
    def choose_next_state(self, current_state: StateT, transition: Transition) -> StateT:
        """Map a state and a transition to the next state."""


def choose_from_table(
    table: Mapping[StateT, Mapping[Transition, StateT]],
    current_state: StateT,
    transition: Transition,
    error_state: StateT,
) -> StateT:
    """Look up the next state in a transition table, falling back to error_state."""
    return table.get(current_state, {}).get(transition, error_state)