"""Animation FSM for a MapSurface.

  idle --zoom--> zooming --pan--> panning
  idle --pan---> panning --zoom-> zooming
  zooming/panning --settle--> idle

Only the smooth-zoom animation sends events; ``settle`` is sent when an
animation finishes, never by callers.
"""

from __future__ import annotations

from enum import Enum

from mapengine.state_machine import State, StateMachine, Transition


class MapState(str, Enum):
    IDLE = "idle"
    ZOOMING = "zooming"
    PANNING = "panning"


ZOOM = "zoom"
PAN = "pan"
SETTLE = "settle"


def create_map_state_machine() -> StateMachine:
    """Create the idle/zooming/panning machine, starting in idle."""
    states = [State(s.value) for s in MapState]
    transitions = [
        Transition(MapState.IDLE.value, MapState.ZOOMING.value, ZOOM),
        Transition(MapState.IDLE.value, MapState.PANNING.value, PAN),
        Transition(MapState.ZOOMING.value, MapState.PANNING.value, PAN),
        Transition(MapState.PANNING.value, MapState.ZOOMING.value, ZOOM),
        Transition(MapState.ZOOMING.value, MapState.IDLE.value, SETTLE),
        Transition(MapState.PANNING.value, MapState.IDLE.value, SETTLE),
    ]
    return StateMachine(states=states, transitions=transitions, initial_state=MapState.IDLE.value)
