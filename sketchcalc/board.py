"""The drawing board: what the toolbar buttons and the canvas talk to."""

import logging
from typing import Callable, List, Optional

from .config import Settings
from .errors import AnalysisInProgressError, ParseError, UpstreamError
from .history import HistoryStack
from .overlay import format_result, render_result
from .parsing import AnalysisRecord
from .strokes import DEFAULT_COLOR, StrokeRenderer
from .surface import BACKGROUND_COLOR, RasterSurface

logger = logging.getLogger(__name__)

PALETTE = ("red", "green", "blue", "yellow", "white")

Analyzer = Callable[[bytes], List[AnalysisRecord]]


class DrawingBoard:
    def __init__(self, width: int, height: int, settings: Optional[Settings] = None):
        depth = settings.history_depth if settings is not None else None
        self.surface = RasterSurface(width, height, BACKGROUND_COLOR)
        self.history = HistoryStack(self.surface, max_depth=depth)
        self.renderer = StrokeRenderer(self.surface, self.history, DEFAULT_COLOR)
        self.running = False

    @property
    def color(self):
        return self.renderer.state.color

    @property
    def erasing(self) -> bool:
        return self.renderer.state.erase_mode

    # --- toolbar ---

    def select_color(self, color):
        self.renderer.set_color(color)

    def toggle_eraser(self) -> bool:
        return self.renderer.toggle_erase()

    def clear_screen(self):
        self.surface.clear()
        self.history.snapshot()

    def undo(self) -> bool:
        return self.history.undo()

    def redo(self) -> bool:
        return self.history.redo()

    # --- canvas ---

    def pointer_down(self, x: float, y: float):
        self.renderer.pointer_down(x, y)

    def pointer_move(self, x: float, y: float) -> bool:
        return self.renderer.pointer_move(x, y)

    def pointer_up(self) -> bool:
        return self.renderer.pointer_up()

    # --- run ---

    def export_image(self) -> bytes:
        return self.surface.export_image_bytes("JPEG")

    def show_result(self, records: List[AnalysisRecord]) -> Optional[str]:
        if not records:
            return None
        text = format_result(records[0])
        render_result(self.surface, text)
        return text

    def begin_run(self) -> bytes:
        if self.running:
            raise AnalysisInProgressError("An analysis is already running")
        image_bytes = self.export_image()
        self.running = True
        return image_bytes

    def finish_run(self, records: Optional[List[AnalysisRecord]] = None,
                   error: Optional[Exception] = None) -> Optional[str]:
        self.running = False
        if error is not None:
            logger.error("Error during analysis: %s", error)
            return None
        return self.show_result(records or [])

    def run(self, analyze: Analyzer) -> Optional[str]:
        """Send the drawing to ``analyze`` and paint the first result.

        Relay and parse failures are logged and leave the canvas untouched.
        """
        image_bytes = self.begin_run()
        try:
            records = analyze(image_bytes)
        except (UpstreamError, ParseError) as e:
            return self.finish_run(error=e)
        except BaseException:
            self.running = False
            raise
        return self.finish_run(records)
