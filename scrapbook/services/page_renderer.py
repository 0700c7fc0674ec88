import logging

from PIL import Image, ImageDraw, ImageFont

from scrapbook import config
from scrapbook.models.color import hex_to_rgb
from scrapbook.models.page import MAX_FONT_SIZE, ElementKind, PageElement, ScrapbookPage
from scrapbook.models.schemas import PageStyle
from scrapbook.services.image_processor import image_processor
from scrapbook.services.transform_engine import clamp_scale, render_order

logger = logging.getLogger(__name__)

PAPER_COLOR = (242, 240, 235)
PATTERN_COLOR = (200, 199, 196)
PATTERN_SPACING = 24
DOT_RADIUS = 1.5

# Image elements are laid out at this width before their own scale
IMAGE_BASE_WIDTH = 150
PLACEHOLDER_COLOR = (190, 190, 190, 255)
TEXT_PADDING = 8


class PageRenderer:
    """Rasterizes a page for previews and the slideshow."""

    def render_background(
        self, style: PageStyle, size: tuple[int, int] | None = None
    ) -> Image.Image:
        width, height = size or (config.PAGE_WIDTH, config.PAGE_HEIGHT)
        image = Image.new("RGBA", (width, height), PAPER_COLOR + (255,))
        draw = ImageDraw.Draw(image)
        style = PageStyle(style)

        if style in (PageStyle.LINED, PageStyle.GRID):
            for y in range(PATTERN_SPACING, height, PATTERN_SPACING):
                draw.line([(0, y), (width, y)], fill=PATTERN_COLOR, width=1)

        if style == PageStyle.GRID:
            for x in range(PATTERN_SPACING, width, PATTERN_SPACING):
                draw.line([(x, 0), (x, height)], fill=PATTERN_COLOR, width=1)

        if style == PageStyle.DOTTED:
            for y in range(PATTERN_SPACING, height, PATTERN_SPACING):
                for x in range(PATTERN_SPACING, width, PATTERN_SPACING):
                    draw.ellipse(
                        (x - DOT_RADIUS, y - DOT_RADIUS, x + DOT_RADIUS, y + DOT_RADIUS),
                        fill=PATTERN_COLOR,
                    )

        return image

    def render_page(
        self,
        page: ScrapbookPage,
        style: PageStyle = PageStyle.PLAIN,
        drawing_image: Image.Image | None = None,
        size: tuple[int, int] | None = None,
    ) -> Image.Image:
        """
        Compose background, drawing layer and elements bottom to top.

        ``drawing_image`` is a pre-rendered drawing layer. When it is missing
        the page is rendered without its drawing.
        """
        image = self.render_background(style, size)

        if drawing_image is not None:
            layer = drawing_image.convert("RGBA")
            if layer.size != image.size:
                layer = layer.resize(image.size, Image.Resampling.LANCZOS)
            image = Image.alpha_composite(image, layer)

        for element in render_order(page.elements):
            tile = self._render_tile(element)
            left = round(element.position.x - tile.width / 2)
            top = round(element.position.y - tile.height / 2)
            # paste clips tiles hanging over the page edge
            image.paste(tile, (left, top), tile)

        return image.convert("RGB")

    def _render_tile(self, element: PageElement) -> Image.Image:
        """Render and rotate one element. A failure only replaces that element with a placeholder."""
        try:
            tile = self._render_element(element)
            return tile.rotate(-element.rotation, expand=True, resample=Image.Resampling.BICUBIC)
        except (OSError, ValueError) as e:
            logger.warning("Could not render element %s: %s", element.id, e)
            return self._placeholder(element)

    def _placeholder(self, element: PageElement) -> Image.Image:
        width = max(1, round(IMAGE_BASE_WIDTH * clamp_scale(element.scale)))
        return Image.new("RGBA", (width, width), PLACEHOLDER_COLOR)

    def _render_element(self, element: PageElement) -> Image.Image:
        if element.kind == ElementKind.TEXT:
            return self._render_text(element)

        source = image_processor.load_image(element.image_data)
        if source is None:
            return self._placeholder(element)

        width = max(1, round(IMAGE_BASE_WIDTH * clamp_scale(element.scale)))
        source = source.convert("RGBA")
        height = max(1, round(source.height * width / source.width))
        return source.resize((width, height), Image.Resampling.LANCZOS)

    def _render_text(self, element: PageElement) -> Image.Image:
        font_size = min(max(element.font_size, 1.0), MAX_FONT_SIZE) * clamp_scale(element.scale)
        font = ImageFont.load_default(size=font_size)
        measure = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
        left, top, right, bottom = measure.textbbox((0, 0), element.text, font=font)

        tile = Image.new(
            "RGBA",
            (right - left + 2 * TEXT_PADDING, bottom - top + 2 * TEXT_PADDING),
            (0, 0, 0, 0),
        )
        draw = ImageDraw.Draw(tile)
        draw.text(
            (TEXT_PADDING - left, TEXT_PADDING - top),
            element.text,
            font=font,
            fill=hex_to_rgb(element.text_color) + (255,),
        )
        return tile


page_renderer = PageRenderer()
