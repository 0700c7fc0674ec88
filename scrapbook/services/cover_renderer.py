from PIL import Image, ImageDraw, ImageFont

from scrapbook.services.image_processor import image_processor

# Twice the 220x320 cover as displayed
COVER_SIZE = (440, 640)
COVER_BACKGROUND = (153, 189, 222)
TITLE_COLOR = (255, 255, 255, 230)  # white at 90% opacity
TITLE_FONT_SIZE = 40
TITLE_MARGIN = 20


class CoverRenderer:
    """Produces the cover image bytes stored with each scrapbook."""

    def prepare_cover(self, image_data: bytes) -> bytes:
        """
        Normalize a user-chosen cover to JPEG.

        Raises:
            ValueError: If the bytes are not a readable image.
        """
        return image_processor.to_jpeg(image_data)

    def render_placeholder(self, title: str) -> bytes:
        """Draw a plain cover showing the scrapbook title."""
        cover = Image.new("RGBA", COVER_SIZE, COVER_BACKGROUND + (255,))
        overlay = Image.new("RGBA", COVER_SIZE, (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)
        font = ImageFont.load_default(size=TITLE_FONT_SIZE)

        text = self._fit_title(draw, title, font, COVER_SIZE[0] - 2 * TITLE_MARGIN)
        left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
        x = (COVER_SIZE[0] - (right - left)) / 2 - left
        y = (COVER_SIZE[1] - (bottom - top)) / 2 - top
        draw.text((x, y), text, font=font, fill=TITLE_COLOR)

        cover = Image.alpha_composite(cover, overlay)
        return image_processor.encode_jpeg(cover)

    def _fit_title(
        self, draw: ImageDraw.ImageDraw, title: str, font, max_width: int
    ) -> str:
        """Shorten the title with an ellipsis until it fits on one line."""
        if draw.textlength(title, font=font) <= max_width:
            return title

        text = title
        while text and draw.textlength(text + "...", font=font) > max_width:
            text = text[:-1]
        return text + "..."


cover_renderer = CoverRenderer()
