"""Decoded key identifiers produced by the input decoder."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Key(Enum):
    """Logical keys recognised by the navigation engine."""

    UNKNOWN = "unknown"
    ARROW_UP = "up"
    ARROW_DOWN = "down"
    ARROW_LEFT = "left"
    ARROW_RIGHT = "right"
    ENTER = "enter"
    SPACE = "space"
    ESCAPE = "escape"
    BACKSPACE = "backspace"
    TAB = "tab"
    HOME = "home"
    END = "end"
    PAGE_UP = "pageUp"
    PAGE_DOWN = "pageDown"
    DELETE = "delete"
    NORMAL = "normal"


@dataclass(frozen=True)
class KeyEvent:
    """A single decoded keypress.

    ``character`` is only meaningful for ``Key.NORMAL`` and is the empty
    string otherwise.
    """

    key: Key = Key.UNKNOWN
    character: str = ""

    def is_char(self, *chars: str) -> bool:
        """Return True if this is a printable key matching any of *chars*."""
        return self.key is Key.NORMAL and self.character in chars

    @property
    def digit(self) -> int | None:
        """Numeric value of a ``1``-``9`` keypress, else None."""
        if self.key is Key.NORMAL and self.character in "123456789" and self.character:
            return int(self.character)
        return None
