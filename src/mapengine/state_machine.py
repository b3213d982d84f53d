"""Event-driven finite state machine.

States carry optional on_enter/on_exit hooks and transitions are keyed by
(from_state, event).  Sending an event that has no transition out of the
current state is ignored, so callers can send "zoom" while already zooming
without checking first.

Used by:
  MapSurface animation:  idle <-> zooming <-> panning
  Feature visibility:    hidden <-> visible
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from loguru import logger

Hook = Callable[[], None]
StateListener = Callable[[str, str, str], None]


@dataclass
class State:
    """A named state with optional enter/exit side effects."""

    name: str
    on_enter: Hook | None = None
    on_exit: Hook | None = None


@dataclass
class Transition:
    """Move from ``from_state`` to ``to_state`` when ``event`` is sent."""

    from_state: str
    to_state: str
    event: str
    on_transition: Hook | None = None


class StateMachine:
    """Finite state machine driven by named events."""

    def __init__(
        self,
        states: list[State],
        transitions: list[Transition],
        initial_state: str,
    ) -> None:
        self._states: dict[str, State] = {s.name: s for s in states}
        self._transitions: dict[tuple[str, str], Transition] = {}
        self._listeners: list[StateListener] = []

        for t in transitions:
            for name in (t.from_state, t.to_state):
                if name not in self._states:
                    raise ValueError(f"Transition state '{name}' not found")
            self._transitions[(t.from_state, t.event)] = t

        if initial_state not in self._states:
            raise ValueError(f"Initial state '{initial_state}' not found")
        self._current = self._states[initial_state]
        if self._current.on_enter:
            self._current.on_enter()

    @property
    def current(self) -> State:
        return self._current

    @property
    def state_names(self) -> list[str]:
        return list(self._states)

    def can(self, event: str) -> bool:
        """True if ``event`` has a transition out of the current state."""
        return (self._current.name, event) in self._transitions

    def send(self, event: str) -> str | None:
        """Fire ``event``.

        Returns:
            The new state name, or None if the event is not valid in the
            current state (the machine is left unchanged).
        """
        transition = self._transitions.get((self._current.name, event))
        if transition is None:
            logger.debug(f"Ignored event '{event}' in state '{self._current.name}'")
            return None
        self._enter(self._states[transition.to_state], event, transition.on_transition)
        return self._current.name

    def force_state(self, name: str) -> None:
        """Jump straight to ``name``, running exit/enter hooks."""
        if name not in self._states:
            raise ValueError(f"State '{name}' not found")
        self._enter(self._states[name], "force", None)

    def add_listener(self, callback: StateListener) -> None:
        """Call ``callback(previous, current, event)`` after each change."""
        self._listeners.append(callback)

    def remove_listener(self, callback: StateListener) -> None:
        try:
            self._listeners.remove(callback)
        except ValueError:
            pass

    def _enter(self, target: State, event: str, on_transition: Hook | None) -> None:
        previous = self._current
        if previous.on_exit:
            previous.on_exit()
        if on_transition:
            on_transition()
        self._current = target
        if target.on_enter:
            target.on_enter()
        for callback in list(self._listeners):
            callback(previous.name, target.name, event)
