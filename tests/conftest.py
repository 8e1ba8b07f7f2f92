import pytest

from sketchcalc.history import HistoryStack
from sketchcalc.strokes import StrokeRenderer
from sketchcalc.surface import RasterSurface


@pytest.fixture
def surface() -> RasterSurface:
    return RasterSurface(120, 60)


@pytest.fixture
def history(surface: RasterSurface) -> HistoryStack:
    return HistoryStack(surface)


@pytest.fixture
def renderer(surface: RasterSurface, history: HistoryStack) -> StrokeRenderer:
    return StrokeRenderer(surface, history)


def draw_stroke(target, y: float, x0: float = 10, x1: float = 100) -> None:
    """One horizontal stroke through any object exposing pointer_down/move/up."""
    target.pointer_down(x0, y)
    target.pointer_move((x0 + x1) / 2, y)
    target.pointer_move(x1, y)
    target.pointer_up()
