from typing import Callable, List

from PIL import ImageDraw, ImageFont

from .parsing import AnalysisRecord
from .surface import RasterSurface

FONT_SIZE = 40
LINE_HEIGHT = 50
TEXT_COLOR = "white"
MAX_WIDTH_RATIO = 0.8


def wrap_text(text: str, max_width: float, measure: Callable[[str], float]) -> List[str]:
    """Greedy word wrap.

    A word joins the current line while ``measure(line + word + " ")`` stays within
    ``max_width``. Words are never split, so a lone over-wide word overflows.
    """
    words = text.split()
    lines = []
    line = ""
    for i, word in enumerate(words):
        test_line = line + word + " "
        if measure(test_line) > max_width and i > 0:
            lines.append(line.rstrip())
            line = word + " "
        else:
            line = test_line
    if words:
        lines.append(line.rstrip())
    return lines


def load_font(size: int = FONT_SIZE):
    try:
        return ImageFont.truetype("DejaVuSans.ttf", size)
    except OSError:
        return ImageFont.load_default(size=size)


def render_result(surface: RasterSurface, text: str, font=None) -> List[str]:
    """Clear the surface and draw ``text`` centred, first line at mid-height."""
    font = font or load_font()
    surface.clear()
    draw = ImageDraw.Draw(surface.image)

    def measure(s: str) -> float:
        return draw.textlength(s, font=font)

    lines = wrap_text(text, surface.width * MAX_WIDTH_RATIO, measure)
    cx = surface.width / 2
    line_y = surface.height / 2
    for line in lines:
        left, top, right, bottom = draw.textbbox((0, 0), line, font=font)
        draw.text(
            (cx - (right - left) / 2 - left, line_y - (bottom - top) / 2 - top),
            line,
            fill=TEXT_COLOR,
            font=font,
        )
        line_y += LINE_HEIGHT
    return lines


def format_result(record: AnalysisRecord) -> str:
    return f"{record.expr} = {record.result}"
