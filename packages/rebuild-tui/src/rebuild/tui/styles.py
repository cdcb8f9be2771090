"""Border glyph sets, ANSI accent colors and the per-element color palette."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import NamedTuple

from rebuild.tui.gradient import RGB
from rebuild.tui.terminal import fg_ansi_sequence, fg_rgb_sequence


# ---------------------------------------------------------------------------
# Borders
# ---------------------------------------------------------------------------


class BorderGlyphs(NamedTuple):
    top_left: str
    top_right: str
    bottom_left: str
    bottom_right: str
    horizontal: str
    vertical: str


class BorderStyle(Enum):
    ROUNDED = "rounded"
    DOUBLE = "double"
    SHARP = "sharp"
    ASCII = "ascii"

    @property
    def glyphs(self) -> BorderGlyphs:
        return _BORDER_GLYPHS[self]


_BORDER_GLYPHS: dict[BorderStyle, BorderGlyphs] = {
    BorderStyle.ROUNDED: BorderGlyphs("╭", "╮", "╰", "╯", "─", "│"),
    BorderStyle.DOUBLE: BorderGlyphs("╔", "╗", "╚", "╝", "═", "║"),
    BorderStyle.SHARP: BorderGlyphs("┌", "┐", "└", "┘", "─", "│"),
    BorderStyle.ASCII: BorderGlyphs("+", "+", "+", "+", "-", "|"),
}


# ---------------------------------------------------------------------------
# Colors
# ---------------------------------------------------------------------------


class AccentColor(IntEnum):
    """Foreground SGR codes for the 16-color palette."""

    RESET = 0
    BLACK = 30
    RED = 31
    GREEN = 32
    YELLOW = 33
    BLUE = 34
    MAGENTA = 35
    CYAN = 36
    WHITE = 37
    BRIGHT_BLACK = 90
    BRIGHT_RED = 91
    BRIGHT_GREEN = 92
    BRIGHT_YELLOW = 93
    BRIGHT_BLUE = 94
    BRIGHT_MAGENTA = 95
    BRIGHT_CYAN = 96
    BRIGHT_WHITE = 97


@dataclass(frozen=True)
class Color:
    """Either a 16-color accent or a 24-bit RGB value."""

    accent: AccentColor | None = None
    rgb: RGB | None = None

    @classmethod
    def of(cls, accent: AccentColor) -> Color:
        return cls(accent=accent)

    @classmethod
    def from_rgb(cls, r: int, g: int, b: int) -> Color:
        return cls(rgb=RGB(r, g, b))

    @classmethod
    def parse(cls, value: object) -> Color:
        """Build a color from an accent name, an ``AccentColor`` or ``[r, g, b]``."""
        if isinstance(value, Color):
            return value
        if isinstance(value, AccentColor):
            return cls(accent=value)
        if isinstance(value, str):
            try:
                return cls(accent=AccentColor[value.upper()])
            except KeyError:
                raise ValueError(f"Unknown color name: {value!r}") from None
        if isinstance(value, (list, tuple)) and len(value) == 3:
            return cls.from_rgb(*(int(v) for v in value))
        raise TypeError(f"Cannot interpret {value!r} as a color")

    def sequence(self) -> str:
        if self.rgb is not None:
            return fg_rgb_sequence(*self.rgb)
        if self.accent is not None:
            return fg_ansi_sequence(int(self.accent))
        return ""


@dataclass
class ColorPalette:
    """Color for each rendered element."""

    border: Color = Color(AccentColor.WHITE)
    header_text: Color = Color(AccentColor.CYAN)
    header_border: Color = Color(AccentColor.WHITE)
    section_name: Color = Color(AccentColor.WHITE)
    item_name: Color = Color(AccentColor.WHITE)
    # None follows the theme accent color.
    selected_item: Color | None = None
    unselected_item: Color = Color(AccentColor.WHITE)
    counter: Color = Color(AccentColor.BRIGHT_BLACK)
    footer: Color = Color(AccentColor.BRIGHT_BLACK)

    @classmethod
    def elements(cls) -> tuple[str, ...]:
        return tuple(cls.__dataclass_fields__)

    def set(self, element: str, color: Color) -> None:
        """Replace one element's color by name. Raises KeyError for unknown names."""
        if element not in self.__dataclass_fields__:
            raise KeyError(f"Unknown palette element: {element!r}")
        setattr(self, element, color)
