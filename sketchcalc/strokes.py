"""Pointer events to strokes.

The renderer is a two-state machine. IDLE -> DRAWING on pointer down,
DRAWING -> DRAWING on every move (one segment per move), DRAWING -> IDLE on
pointer up, which hands the finished stroke to the history.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence, Tuple

from .history import HistoryStack
from .surface import Color, RasterSurface

DRAW_WIDTH = 5
ERASE_WIDTH = 15
DEFAULT_COLOR = "white"


class StrokePhase(Enum):
    IDLE = "idle"
    DRAWING = "drawing"


@dataclass(frozen=True)
class PointerEvent:
    client_x: float
    client_y: float

    @classmethod
    def from_mouse(cls, client_x: float, client_y: float) -> "PointerEvent":
        return cls(client_x, client_y)

    @classmethod
    def from_touch(cls, touches: Sequence[Tuple[float, float]],
                   fallback: Optional[Tuple[float, float]] = None) -> "PointerEvent":
        """First active touch wins; ``fallback`` covers touch-end events with no touches left."""
        if touches:
            x, y = touches[0]
            return cls(x, y)
        if fallback is None:
            raise ValueError("Touch event carries no touch points")
        return cls(*fallback)


def canvas_position(event: PointerEvent, origin: Tuple[float, float] = (0, 0)) -> Tuple[float, float]:
    """Client coordinates -> coordinates relative to the canvas' top-left corner."""
    return (event.client_x - origin[0], event.client_y - origin[1])


@dataclass
class StrokeState:
    color: Color = DEFAULT_COLOR
    line_width: int = DRAW_WIDTH
    erase_mode: bool = False
    phase: StrokePhase = StrokePhase.IDLE
    last_point: Optional[Tuple[float, float]] = field(default=None)

    @property
    def active(self) -> bool:
        return self.phase is StrokePhase.DRAWING


class StrokeRenderer:
    def __init__(self, surface: RasterSurface, history: HistoryStack, color: Color = DEFAULT_COLOR):
        self.surface = surface
        self.history = history
        self.state = StrokeState(color=color)
        self._moved = False

    @property
    def phase(self) -> StrokePhase:
        return self.state.phase

    @property
    def stroke_color(self) -> Color:
        return self.surface.background if self.state.erase_mode else self.state.color

    @property
    def stroke_width(self) -> int:
        return ERASE_WIDTH if self.state.erase_mode else DRAW_WIDTH

    # --- mode changes, never touch the buffer ---

    def set_color(self, color: Color):
        self.state.color = color
        self.state.erase_mode = False
        self.state.line_width = DRAW_WIDTH

    def set_erase(self, enabled: bool):
        self.state.erase_mode = enabled
        self.state.line_width = self.stroke_width

    def toggle_erase(self) -> bool:
        self.set_erase(not self.state.erase_mode)
        return self.state.erase_mode

    # --- transitions ---

    def pointer_down(self, x: float, y: float):
        # a second down while drawing restarts the path without a snapshot
        self.state.phase = StrokePhase.DRAWING
        self.state.last_point = (x, y)
        self._moved = False

    def pointer_move(self, x: float, y: float) -> bool:
        if self.state.phase is not StrokePhase.DRAWING:
            return False
        x0, y0 = self.state.last_point
        self.surface.paint_segment(x0, y0, x, y, self.stroke_color, self.stroke_width)
        self.state.last_point = (x, y)
        self._moved = True
        return True

    def pointer_up(self) -> bool:
        """Finish the stroke. Returns False (and snapshots nothing) when idle."""
        if self.state.phase is not StrokePhase.DRAWING:
            return False
        if not self._moved:
            x, y = self.state.last_point
            self.surface.paint_dot(x, y, self.stroke_color, self.stroke_width)
        self.state.phase = StrokePhase.IDLE
        self.state.last_point = None
        self.history.snapshot()
        return True
