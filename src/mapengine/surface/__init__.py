"""Map surface: layer registry and the smooth zoom/pan state machine."""

from mapengine.surface.animation import SmoothZoomAnimator
from mapengine.surface.map_surface import MapSurface
from mapengine.surface.states import MapState, create_map_state_machine

__all__ = ["MapState", "MapSurface", "SmoothZoomAnimator", "create_map_state_machine"]
