import uuid
from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, Field

from scrapbook.models.color import BLACK
from scrapbook.models.page import (
    DEFAULT_FONT_NAME,
    DEFAULT_FONT_SIZE,
    MAX_FONT_SIZE,
    Blob,
    Finite,
    HexColor,
    ScrapbookPage,
)

FontSize = Annotated[float, Field(gt=0, le=MAX_FONT_SIZE, allow_inf_nan=False)]


class PageStyle(str, Enum):
    """Background pattern drawn behind every page of a scrapbook."""

    PLAIN = "Plain"
    LINED = "Lined"
    GRID = "Grid"
    DOTTED = "Dotted"


class Scrapbook(BaseModel):
    """A stored scrapbook with its cover and serialized page body."""

    id: uuid.UUID
    title: str
    creation_date: datetime
    page_style: PageStyle = PageStyle.PLAIN
    cover_image: Blob | None = None
    body: Blob | None = None


class ScrapbookSummary(BaseModel):
    """Scrapbook metadata returned by the API, without cover or body bytes."""

    id: uuid.UUID
    title: str
    creation_date: datetime
    page_style: PageStyle


class ScrapbookCreate(BaseModel):
    """Request to create a scrapbook. A blank title is saved as "Untitled"."""

    title: str = ""
    page_style: PageStyle = PageStyle.PLAIN


class ScrapbookUpdate(BaseModel):
    """Partial update of scrapbook metadata. None leaves a field unchanged."""

    title: str | None = None
    page_style: PageStyle | None = None


class DecodeResult(BaseModel):
    """Internal result of decoding a scrapbook body."""

    pages: list[ScrapbookPage]
    recovered: bool = False  # True when unreadable data was replaced by a blank page
    error: str | None = None


class PagesResponse(BaseModel):
    """Decoded pages of a scrapbook."""

    pages: list[ScrapbookPage]
    recovered: bool = False


class TextElementCreate(BaseModel):
    """Request to add a text element to a page."""

    text: str
    text_color: HexColor = BLACK
    font_size: FontSize = DEFAULT_FONT_SIZE
    font_name: str = DEFAULT_FONT_NAME


class TextElementUpdate(BaseModel):
    """Restyle of a text element. None leaves a field unchanged."""

    text: str | None = None
    text_color: HexColor | None = None
    font_size: FontSize | None = None
    font_name: str | None = None


class MoveRequest(BaseModel):
    """Net translation of a finished drag gesture."""

    dx: Finite
    dy: Finite


class ScaleRequest(BaseModel):
    """Magnification factor of a pinch gesture, relative to the scale at its start."""

    magnification: Finite = Field(gt=0)


class SlideshowInfo(BaseModel):
    """Playback settings of a scrapbook slideshow."""

    page_count: int
    interval: float
    page_ids: list[uuid.UUID]
