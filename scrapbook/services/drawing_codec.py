"""
Freehand drawing codec.

A page drawing is stored as JSON bytes:
{
    "strokes": [
        {"color": "#RRGGBB", "width": 5.0, "points": [[x, y], ...]}
    ]
}
Point coordinates are in page space, the same space as element positions.
"""

import logging

from PIL import Image, ImageDraw
from pydantic import BaseModel, Field, ValidationError

from scrapbook.models.color import BLACK, hex_to_rgb
from scrapbook.models.page import HexColor, Point

logger = logging.getLogger(__name__)

DEFAULT_STROKE_WIDTH = 5.0


class Stroke(BaseModel):
    """One freehand line in a single color and width."""

    color: HexColor = BLACK
    width: float = Field(default=DEFAULT_STROKE_WIDTH, gt=0)
    points: list[Point] = Field(default_factory=list)


class Drawing(BaseModel):
    """All strokes drawn on a page, oldest first."""

    strokes: list[Stroke] = Field(default_factory=list)


class DrawingCodec:
    """Converts page drawing bytes to strokes and rasterizes them with Pillow."""

    def decode(self, drawing_data: bytes | None) -> Drawing | None:
        """Parse drawing bytes. Returns None when absent or unreadable."""
        if not drawing_data:
            return None

        try:
            return Drawing.model_validate_json(drawing_data)
        except ValidationError as e:
            logger.warning("Could not decode page drawing (%d bytes): %s", len(drawing_data), e)
            return None

    def encode(self, drawing: Drawing) -> bytes:
        return drawing.model_dump_json().encode("utf-8")

    def rasterize(
        self, drawing: Drawing, size: tuple[int, int], scale: float = 1.0
    ) -> Image.Image:
        """Render the drawing onto a transparent RGBA image of ``size * scale`` pixels."""
        width, height = (max(1, round(dimension * scale)) for dimension in size)
        image = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        draw = ImageDraw.Draw(image)

        for stroke in drawing.strokes:
            if not stroke.points:
                continue

            fill = hex_to_rgb(stroke.color) + (255,)
            line_width = max(1, round(stroke.width * scale))
            points = [(point.x * scale, point.y * scale) for point in stroke.points]

            if len(points) == 1:
                x, y = points[0]
                radius = line_width / 2
                draw.ellipse((x - radius, y - radius, x + radius, y + radius), fill=fill)
            else:
                draw.line(points, fill=fill, width=line_width, joint="curve")

        return image


drawing_codec = DrawingCodec()
