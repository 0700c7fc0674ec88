"""
Editing session for one open scrapbook.

The editor owns the decoded page list while a scrapbook is open, enforces
the page invariants (there is always at least one page, and the current
index always points at a page) and notifies subscribers after each change.
It does not touch storage: callers encode the pages and hand the bytes to
the store.
"""

import time
import uuid
from collections.abc import Callable
from enum import Enum

from scrapbook.models.color import normalize_hex
from scrapbook.models.page import PageElement, ScrapbookPage
from scrapbook.services.page_codec import page_codec
from scrapbook.services.transform_engine import Clock, ElementTransformer


class EditorEvent(str, Enum):
    """What changed, as reported to editor subscribers."""

    PAGES = "pages"
    SELECTION = "selection"
    ELEMENTS = "elements"
    DRAWING = "drawing"


Listener = Callable[[EditorEvent], None]


class DocumentEditor:
    """Mutable page list of one open scrapbook plus the current page index."""

    def __init__(
        self,
        pages: list[ScrapbookPage] | None = None,
        clock: Clock = time.time,
        recovered: bool = False,
        decode_error: str | None = None,
    ) -> None:
        self.pages: list[ScrapbookPage] = list(pages) if pages else [ScrapbookPage()]
        self.current_index = 0
        # Set when the body was unreadable and replaced by a blank page
        self.recovered = recovered
        self.decode_error = decode_error
        self._clock = clock
        self._listeners: list[Listener] = []

    @classmethod
    def open(cls, body: bytes | None, clock: Clock = time.time) -> "DocumentEditor":
        """Decode a scrapbook body into a new editing session."""
        result = page_codec.decode_report(body)
        return cls(
            result.pages, clock=clock, recovered=result.recovered, decode_error=result.error
        )

    def encode(self) -> bytes:
        return page_codec.encode(self.pages)

    # Observers

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for change events. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: EditorEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    # Pages

    @property
    def current_page(self) -> ScrapbookPage:
        return self.pages[self.current_index]

    def select_page(self, index: int) -> ScrapbookPage:
        if not 0 <= index < len(self.pages):
            raise IndexError(f"Page {index} does not exist")
        self.current_index = index
        self._notify(EditorEvent.SELECTION)
        return self.current_page

    def add_page(self) -> ScrapbookPage:
        """Append an empty page and make it the current one."""
        page = ScrapbookPage()
        self.pages.append(page)
        self.current_index = len(self.pages) - 1
        self._notify(EditorEvent.PAGES)
        return page

    def delete_page(self, index: int) -> bool:
        """
        Remove the page at ``index``.

        Returns False without changing anything when it is the only page left
        or the index does not exist. The current index moves back to stay on
        a valid page, preferring the page before the deleted one.
        """
        if len(self.pages) <= 1 or not 0 <= index < len(self.pages):
            return False

        del self.pages[index]

        if self.current_index >= len(self.pages):
            self.current_index = len(self.pages) - 1
        elif self.current_index >= index:
            self.current_index = max(0, self.current_index - 1)

        self._notify(EditorEvent.PAGES)
        return True

    # Elements

    def add_image(self, image_data: bytes, **fields) -> PageElement:
        element = PageElement.from_image(image_data, z_index=self._clock(), **fields)
        self.current_page.elements.append(element)
        self._notify(EditorEvent.ELEMENTS)
        return element

    def add_text(self, text: str, **fields) -> PageElement | None:
        """Add a text element to the current page. Empty text adds nothing."""
        if not text:
            return None
        element = PageElement.from_text(text, z_index=self._clock(), **fields)
        self.current_page.elements.append(element)
        self._notify(EditorEvent.ELEMENTS)
        return element

    def find_element(self, element_id: uuid.UUID) -> PageElement:
        element = self.current_page.find_element(element_id)
        if element is None:
            raise KeyError(f"Element {element_id} not found on page {self.current_index}")
        return element

    def update_text(
        self,
        element_id: uuid.UUID,
        text: str | None = None,
        text_color: str | None = None,
        font_size: float | None = None,
        font_name: str | None = None,
    ) -> PageElement:
        """Restyle a text element. An empty replacement text is ignored."""
        element = self.find_element(element_id)
        if text:
            element.text = text
        if text_color is not None:
            element.text_color = normalize_hex(text_color)
        if font_size is not None:
            element.font_size = font_size
        if font_name is not None:
            element.font_name = font_name
        self._notify(EditorEvent.ELEMENTS)
        return element

    def remove_element(self, element_id: uuid.UUID) -> PageElement:
        element = self.find_element(element_id)
        self.current_page.elements.remove(element)
        self._notify(EditorEvent.ELEMENTS)
        return element

    def transformer(self, element_id: uuid.UUID) -> ElementTransformer:
        return ElementTransformer(self.find_element(element_id), clock=self._clock)

    def move_element(self, element_id: uuid.UUID, dx: float, dy: float) -> PageElement:
        """Commit a finished drag of ``(dx, dy)``."""
        transformer = self.transformer(element_id)
        transformer.drag.begin()
        transformer.drag.end((dx, dy))
        self._notify(EditorEvent.ELEMENTS)
        return transformer.element

    def scale_element(self, element_id: uuid.UUID, magnification: float) -> PageElement:
        """Apply a complete pinch of ``magnification`` from the element's current scale."""
        transformer = self.transformer(element_id)
        transformer.pinch.begin()
        transformer.pinch.end(magnification)
        self._notify(EditorEvent.ELEMENTS)
        return transformer.element

    def bring_to_front(self, element_id: uuid.UUID) -> PageElement:
        transformer = self.transformer(element_id)
        transformer.tap()
        self._notify(EditorEvent.ELEMENTS)
        return transformer.element

    # Drawing

    def set_drawing(self, drawing_data: bytes | None) -> None:
        self.current_page.drawing_data = drawing_data or None
        self._notify(EditorEvent.DRAWING)

    def clear_drawing(self) -> None:
        self.set_drawing(None)
