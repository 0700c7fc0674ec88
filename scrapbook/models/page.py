"""
Page and element models stored inside a scrapbook body.

Serialization format of one page (absent optionals are omitted):
{
    "id": "UUID",
    "elements": [
        {
            "id": "UUID",
            "imageData": "<base64>",
            "text": "Hello",
            "textColor": "#RRGGBB",
            "fontSize": 18.0,
            "fontName": "System",
            "position": [200.0, 300.0],
            "scale": 1.0,
            "rotation": 0.0,
            "zIndex": 1700000000.0
        }
    ],
    "drawingData": "<base64>"
}
"""

import base64
import time
import uuid
from enum import Enum
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    model_serializer,
    model_validator,
)

from scrapbook.models.color import BLACK, normalize_hex

DEFAULT_FONT_SIZE = 18.0
DEFAULT_FONT_NAME = "System"
DEFAULT_POSITION = (200.0, 300.0)
MAX_FONT_SIZE = 200.0


def _decode_blob(value: Any) -> Any:
    if isinstance(value, str):
        return base64.b64decode(value, validate=True)
    return value


def _encode_blob(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


# Raw bytes in Python, standard base64 text in JSON
Blob = Annotated[
    bytes,
    BeforeValidator(_decode_blob),
    PlainSerializer(_encode_blob, return_type=str, when_used="json"),
]

# UUIDs are written upper-case in JSON, either case is accepted on input
Identifier = Annotated[
    uuid.UUID,
    PlainSerializer(lambda value: str(value).upper(), return_type=str, when_used="json"),
]

HexColor = Annotated[str, BeforeValidator(normalize_hex)]

# JSON has no inf or nan, so they must never get into a page
Finite = Annotated[float, Field(allow_inf_nan=False)]


class Point(BaseModel):
    """2D point in page coordinates, serialized as ``[x, y]``."""

    model_config = ConfigDict(frozen=True)

    x: Finite = 0.0
    y: Finite = 0.0

    @model_validator(mode="before")
    @classmethod
    def _from_pair(cls, data: Any) -> Any:
        if isinstance(data, (list, tuple)):
            if len(data) != 2:
                raise ValueError("a point needs exactly two coordinates")
            return {"x": data[0], "y": data[1]}
        return data

    @model_serializer
    def _as_pair(self) -> list[float]:
        return [self.x, self.y]

    def __add__(self, other: "Point") -> "Point":
        """Raises ValueError when a coordinate overflows to infinity."""
        return Point(x=self.x + other.x, y=self.y + other.y)


class ElementKind(str, Enum):
    """How an element is rendered, derived from which payload it carries."""

    IMAGE = "image"
    TEXT = "text"
    PLACEHOLDER = "placeholder"


class PageElement(BaseModel):
    """
    A single image or text item placed on a page.

    Use ``PageElement.create`` (or ``from_image`` / ``from_text``) to build new
    elements: it enforces that exactly one payload is set. Plain construction
    and decoding accept records with both or neither payload, and ``kind``
    resolves them as image first, then text, then placeholder.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Identifier = Field(default_factory=uuid.uuid4)

    image_data: Blob | None = Field(default=None, alias="imageData")
    text: str | None = None

    # Only meaningful for text elements
    text_color: HexColor = Field(default=BLACK, alias="textColor")
    font_size: Finite = Field(default=DEFAULT_FONT_SIZE, alias="fontSize")
    font_name: str = Field(default=DEFAULT_FONT_NAME, alias="fontName")

    position: Point = Field(default_factory=lambda: Point(x=DEFAULT_POSITION[0], y=DEFAULT_POSITION[1]))
    scale: Finite = 1.0
    rotation: Finite = 0.0  # degrees
    z_index: Finite = Field(default_factory=time.time, alias="zIndex")

    @classmethod
    def create(
        cls, image_data: bytes | None = None, text: str | None = None, **fields: Any
    ) -> "PageElement":
        if (image_data is None) == (text is None):
            raise ValueError("An element needs exactly one of image_data or text")
        return cls(image_data=image_data, text=text, **fields)

    @classmethod
    def from_image(cls, image_data: bytes, **fields: Any) -> "PageElement":
        return cls.create(image_data=image_data, **fields)

    @classmethod
    def from_text(cls, text: str, **fields: Any) -> "PageElement":
        return cls.create(text=text, **fields)

    @property
    def kind(self) -> ElementKind:
        if self.image_data is not None:
            return ElementKind.IMAGE
        if self.text is not None:
            return ElementKind.TEXT
        return ElementKind.PLACEHOLDER


class ScrapbookPage(BaseModel):
    """One page of a scrapbook: its elements plus an optional freehand drawing."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Identifier = Field(default_factory=uuid.uuid4)
    elements: list[PageElement] = Field(default_factory=list)
    drawing_data: Blob | None = Field(default=None, alias="drawingData")

    def find_element(self, element_id: uuid.UUID) -> PageElement | None:
        for element in self.elements:
            if element.id == element_id:
                return element
        return None
