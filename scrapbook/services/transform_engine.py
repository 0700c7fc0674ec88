"""
Gesture-driven transforms for page elements.

Each element has three independent gesture axes:

- Drag: the translation reported while dragging is only a presentation
  offset. The element position changes once, when the drag ends.
- Pinch: the scale at gesture start is captured, and every update sets
  ``scale = clamp(base_scale * magnification)`` so the element follows the
  fingers live without ever leaving [MIN_SCALE, MAX_SCALE].
- Tap: brings the element to the front by stamping ``z_index`` with the
  current time, so the last touched element always renders on top.

Drag only touches ``position`` and pinch only touches ``scale``, so the two
can run at the same time and be applied in either order.
"""

import time
from collections.abc import Callable, Iterable

from scrapbook.models.page import PageElement, Point

MIN_SCALE = 0.5
MAX_SCALE = 3.0

Clock = Callable[[], float]


def clamp_scale(value: float) -> float:
    return min(max(value, MIN_SCALE), MAX_SCALE)


def _as_point(value: Point | tuple[float, float]) -> Point:
    if isinstance(value, Point):
        return value
    return Point(x=value[0], y=value[1])


class DragGesture:
    """Drag axis: Idle -> Dragging -> Idle."""

    def __init__(self, element: PageElement) -> None:
        self.element = element
        self.active = False
        self.offset = Point()

    def begin(self) -> None:
        self.active = True
        self.offset = Point()

    def update(self, translation: Point | tuple[float, float]) -> Point:
        """Track the translation since the drag started. Does not touch the element."""
        if not self.active:
            self.begin()
        self.offset = _as_point(translation)
        return self.offset

    def end(self, translation: Point | tuple[float, float] | None = None) -> Point:
        """Commit the total translation to the element position and return it."""
        total = self.offset if translation is None else _as_point(translation)
        self.element.position = self.element.position + total
        self.active = False
        self.offset = Point()
        return self.element.position


class PinchGesture:
    """Pinch axis: Idle -> Scaling -> Idle."""

    def __init__(self, element: PageElement) -> None:
        self.element = element
        self.base_scale: float | None = None

    @property
    def active(self) -> bool:
        return self.base_scale is not None

    def begin(self) -> None:
        self.base_scale = self.element.scale

    def update(self, magnification: float) -> float:
        """Apply ``magnification`` relative to the scale captured at gesture start."""
        if self.base_scale is None:
            self.begin()
        self.element.scale = clamp_scale(self.base_scale * magnification)
        return self.element.scale

    def end(self, magnification: float | None = None) -> float:
        if magnification is not None:
            self.update(magnification)
        self.base_scale = None
        return self.element.scale


def bring_to_front(element: PageElement, clock: Clock = time.time) -> float:
    element.z_index = clock()
    return element.z_index


def render_order(elements: Iterable[PageElement]) -> list[PageElement]:
    """Elements sorted bottom to top. Ties keep their insertion order."""
    return sorted(elements, key=lambda element: element.z_index)


class ElementTransformer:
    """Bundles the drag, pinch and tap axes for one element."""

    def __init__(self, element: PageElement, clock: Clock = time.time) -> None:
        self.element = element
        self.drag = DragGesture(element)
        self.pinch = PinchGesture(element)
        self._clock = clock

    def tap(self) -> float:
        return bring_to_front(self.element, self._clock)

    def display_position(self) -> Point:
        """Committed position plus any in-flight drag offset, for drawing only."""
        return self.element.position + self.drag.offset
