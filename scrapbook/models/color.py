"""
Text color handling.

Colors are stored as six-digit ``#RRGGBB`` strings. There is no alpha
channel: an eight-digit value loses its trailing alpha byte, and anything
that cannot be parsed falls back to black.
"""

import re

BLACK = "#000000"

_HEX_DIGITS = re.compile(r"^[0-9a-fA-F]+$")


def normalize_hex(value: object) -> str:
    """Return ``value`` as an upper-case ``#RRGGBB`` string."""
    if not isinstance(value, str):
        return BLACK

    digits = value.strip().lstrip("#")
    if len(digits) == 8:
        digits = digits[:6]

    if len(digits) != 6 or not _HEX_DIGITS.match(digits):
        return BLACK

    return f"#{digits.upper()}"


def hex_to_rgb(value: str) -> tuple[int, int, int]:
    """Convert a hex color to an ``(r, g, b)`` tuple in the 0-255 range."""
    digits = normalize_hex(value)[1:]
    return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


def rgb_to_hex(r: int, g: int, b: int) -> str:
    r, g, b = (max(0, min(255, int(c))) for c in (r, g, b))
    return f"#{r:02X}{g:02X}{b:02X}"
