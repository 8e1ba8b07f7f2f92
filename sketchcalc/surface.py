"""Raster surface: a Pillow RGBA image the user paints into."""

import math
from dataclasses import dataclass
from io import BytesIO
from typing import Tuple, Union

from PIL import Image, ImageColor, ImageDraw

from .errors import InvalidDimensionsError

Color = Union[str, Tuple[int, int, int], Tuple[int, int, int, int]]

BACKGROUND_COLOR = "black"

# Segments are rasterised at this multiple of the canvas resolution and
# box-filtered back down, which gives coverage-based anti-aliasing.
SUPERSAMPLE = 4


def to_rgba(color: Color) -> Tuple[int, int, int, int]:
    if isinstance(color, str):
        return ImageColor.getcolor(color, "RGBA")
    if len(color) == 3:
        return (color[0], color[1], color[2], 255)
    return tuple(color)


@dataclass(frozen=True)
class Snapshot:
    """Immutable copy of the whole pixel buffer."""
    size: Tuple[int, int]
    data: bytes

    @property
    def width(self) -> int:
        return self.size[0]

    @property
    def height(self) -> int:
        return self.size[1]

    def to_image(self) -> Image.Image:
        return Image.frombytes("RGBA", self.size, self.data)


class RasterSurface:
    def __init__(self, width: int, height: int, background: Color = BACKGROUND_COLOR):
        if not isinstance(width, int) or not isinstance(height, int) or width <= 0 or height <= 0:
            raise InvalidDimensionsError(f"Canvas size must be positive integers, got {width}x{height}")
        self.width = width
        self.height = height
        self.background = to_rgba(background)
        self._image = Image.new("RGBA", (width, height), self.background)

    @property
    def image(self) -> Image.Image:
        return self._image

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def get_pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        return self._image.getpixel((x, y))

    def clear(self):
        self._image.paste(self.background, (0, 0, self.width, self.height))

    def _stamp(self, left: int, top: int, right: int, bottom: int, color: Color, render):
        """Rasterise ``render`` into a supersampled mask over a box and composite it."""
        left, top = max(0, left), max(0, top)
        right, bottom = min(self.width, right), min(self.height, bottom)
        if left >= right or top >= bottom:
            return
        box_w, box_h = right - left, bottom - top
        mask = Image.new("L", (box_w * SUPERSAMPLE, box_h * SUPERSAMPLE), 0)
        render(ImageDraw.Draw(mask), lambda x, y: ((x - left) * SUPERSAMPLE, (y - top) * SUPERSAMPLE))
        mask = mask.resize((box_w, box_h), Image.Resampling.BOX)
        self._image.paste(to_rgba(color), (left, top, right, bottom), mask)

    def paint_segment(self, x0: float, y0: float, x1: float, y1: float, color: Color, width: float):
        """Draw an anti-aliased segment with round caps."""
        if width <= 0:
            return
        pad = width / 2 + 1
        r = width * SUPERSAMPLE / 2

        def render(draw, scale):
            p0, p1 = scale(x0, y0), scale(x1, y1)
            draw.line([p0, p1], fill=255, width=max(1, round(width * SUPERSAMPLE)))
            for px, py in (p0, p1):
                draw.ellipse([px - r, py - r, px + r, py + r], fill=255)

        self._stamp(
            int(math.floor(min(x0, x1) - pad)),
            int(math.floor(min(y0, y1) - pad)),
            int(math.ceil(max(x0, x1) + pad)),
            int(math.ceil(max(y0, y1) + pad)),
            color,
            render,
        )

    def paint_dot(self, x: float, y: float, color: Color, width: float):
        self.paint_segment(x, y, x, y, color, width)

    def export_image_bytes(self, fmt: str = "JPEG", **save_kwargs) -> bytes:
        image = self._image
        if fmt.upper() in ("JPEG", "JPG"):
            image = image.convert("RGB")
            fmt = "JPEG"
        buff = BytesIO()
        image.save(buff, format=fmt, **save_kwargs)
        return buff.getvalue()

    def capture(self) -> Snapshot:
        return Snapshot(size=self.size, data=self._image.tobytes())

    def restore(self, snapshot: Snapshot):
        if snapshot.size != self.size:
            raise InvalidDimensionsError(
                f"Snapshot is {snapshot.width}x{snapshot.height}, canvas is {self.width}x{self.height}"
            )
        self._image = snapshot.to_image()
