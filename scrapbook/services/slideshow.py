import asyncio
import logging
import uuid

from PIL import Image

from scrapbook import config
from scrapbook.models.page import ScrapbookPage
from scrapbook.models.schemas import PageStyle
from scrapbook.services.drawing_codec import drawing_codec
from scrapbook.services.page_renderer import page_renderer

logger = logging.getLogger(__name__)


class Slideshow:
    """Full-screen playback of a scrapbook's pages."""

    def __init__(
        self,
        pages: list[ScrapbookPage],
        page_style: PageStyle = PageStyle.PLAIN,
        interval: float = config.SLIDESHOW_INTERVAL,
        size: tuple[int, int] | None = None,
    ) -> None:
        self.pages = list(pages)
        self.page_style = page_style
        self.interval = interval
        self.size = size or (config.PAGE_WIDTH, config.PAGE_HEIGHT)
        self.current_index = 0
        self.rendered_drawings: dict[uuid.UUID, Image.Image] = {}

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def advance(self) -> int:
        """Move to the next page, wrapping around. A single page stays put."""
        if self.page_count > 1:
            self.current_index = (self.current_index + 1) % self.page_count
        return self.current_index

    def go_to(self, index: int) -> int:
        if not 0 <= index < self.page_count:
            raise IndexError(f"Page {index} does not exist")
        self.current_index = index
        return self.current_index

    async def prerender_drawings(self, scale: float = 1.0) -> dict[uuid.UUID, Image.Image]:
        """
        Rasterize every page drawing off the event loop.

        Pages whose drawing cannot be decoded are left out of the cache and
        render without a drawing layer.
        """
        pages = [page for page in self.pages if page.drawing_data]
        images = await asyncio.gather(
            *(asyncio.to_thread(self._rasterize, page, scale) for page in pages)
        )

        self.rendered_drawings = {
            page.id: image for page, image in zip(pages, images) if image is not None
        }
        logger.debug("Pre-rendered %d of %d page drawings", len(self.rendered_drawings), len(pages))
        return self.rendered_drawings

    def _rasterize(self, page: ScrapbookPage, scale: float) -> Image.Image | None:
        drawing = drawing_codec.decode(page.drawing_data)
        if drawing is None:
            return None
        return drawing_codec.rasterize(drawing, self.size, scale)

    def render(self, index: int | None = None) -> Image.Image:
        """Render a page (the current one by default) using whatever drawings are cached."""
        if index is None:
            index = self.current_index
        if not 0 <= index < self.page_count:
            raise IndexError(f"Page {index} does not exist")

        page = self.pages[index]
        return page_renderer.render_page(
            page,
            self.page_style,
            drawing_image=self.rendered_drawings.get(page.id),
            size=self.size,
        )
