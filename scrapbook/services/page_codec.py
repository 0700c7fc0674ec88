import logging
import math
import uuid

from pydantic import TypeAdapter
from pydantic_core import PydanticSerializationError

from scrapbook.models.page import ScrapbookPage
from scrapbook.models.schemas import DecodeResult

logger = logging.getLogger(__name__)


class BodyEncodeError(RuntimeError):
    """Raised when a page list cannot be serialized into a scrapbook body."""


def _first_non_finite(pages: list[ScrapbookPage]) -> uuid.UUID | None:
    """Id of the first element holding an inf or nan number, if any."""
    for page in pages:
        for element in page.elements:
            values = (
                element.position.x,
                element.position.y,
                element.scale,
                element.rotation,
                element.z_index,
                element.font_size,
            )
            if not all(math.isfinite(value) for value in values):
                return element.id
    return None


class PageCodec:
    """Converts between a list of pages and the bytes stored as a scrapbook body."""

    def __init__(self) -> None:
        self._adapter = TypeAdapter(list[ScrapbookPage])

    def decode(self, data: bytes | None) -> list[ScrapbookPage]:
        """
        Decode a scrapbook body into pages.

        Never fails: a missing, empty or unreadable body yields a single
        blank page. Use ``decode_report`` to find out whether data was lost.
        """
        return self.decode_report(data).pages

    def decode_report(self, data: bytes | None) -> DecodeResult:
        """Decode a scrapbook body and report whether unreadable data was discarded."""
        if not data:
            return DecodeResult(pages=[ScrapbookPage()])

        try:
            pages = self._adapter.validate_json(data)
        except ValueError as e:
            logger.warning("Discarding unreadable scrapbook body (%d bytes): %s", len(data), e)
            return DecodeResult(pages=[ScrapbookPage()], recovered=True, error=str(e))

        if not pages:
            pages = [ScrapbookPage()]

        return DecodeResult(pages=pages)

    def encode(self, pages: list[ScrapbookPage]) -> bytes:
        """
        Encode pages into a scrapbook body.

        Raises:
            BodyEncodeError: If the pages cannot be serialized, including any
                non-finite number, which JSON would silently turn into null.
                Nothing should be written to storage in that case.
        """
        element_id = _first_non_finite(pages)
        if element_id is not None:
            logger.error("Refusing to encode element %s with a non-finite number", element_id)
            raise BodyEncodeError(f"Element {element_id} holds a non-finite number")

        try:
            return self._adapter.dump_json(pages, by_alias=True, exclude_none=True)
        except (PydanticSerializationError, TypeError, ValueError) as e:
            logger.exception("Failed to encode %d scrapbook pages", len(pages))
            raise BodyEncodeError(f"Failed to encode scrapbook pages: {e}") from e


page_codec = PageCodec()
