"""Text measurement, wrapping and centering for terminal output.

Widths are measured in terminal columns with ANSI SGR/CSI sequences
ignored, so colored strings can be laid out like plain ones.
"""

from __future__ import annotations

import re

import grapheme
import wcwidth as _wcwidth

# CSI sequences: ESC[ <params> <final byte>
_ANSI_RE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")

# ---------------------------------------------------------------------------
# Width cache (capped at 512 entries)
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


def _cluster_width(cluster: str) -> int:
    """Column width of one grapheme cluster (0 for controls and marks)."""
    width = _wcwidth.wcswidth(cluster)
    if width < 0:
        # Clusters with control characters: measure printable parts only.
        width = sum(max(_wcwidth.wcwidth(ch), 0) for ch in cluster)
    return width


# ---------------------------------------------------------------------------
# Measurement
# ---------------------------------------------------------------------------


def strip_ansi(text: str) -> str:
    """Remove CSI escape sequences from *text*."""
    return _ANSI_RE.sub("", text)


def visible_width(text: str) -> int:
    """Calculate the visible terminal width of *text*.

    * Strips ANSI escape sequences.
    * Uses a fast path for printable ASCII.
    * Caches results for non-ASCII strings.
    """
    if not text:
        return 0

    stripped = strip_ansi(text)
    if not stripped:
        return 0

    if stripped.isascii() and stripped.isprintable():
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = 0
    for cluster in grapheme.graphemes(stripped):
        total += _cluster_width(cluster)
    return _cache_width(stripped, total)


def _take_columns(text: str, max_cols: int) -> tuple[str, str]:
    """Split *text* after at most *max_cols* columns, on cluster boundaries."""
    used = 0
    taken: list[str] = []
    clusters = list(grapheme.graphemes(text))
    for i, cluster in enumerate(clusters):
        w = _cluster_width(cluster)
        if used + w > max_cols and taken:
            return "".join(taken), "".join(clusters[i:])
        taken.append(cluster)
        used += w
    return "".join(taken), ""


# ---------------------------------------------------------------------------
# Wrapping and centering
# ---------------------------------------------------------------------------


def wrap_text(text: str, width: int) -> list[str]:
    """Break *text* into lines no wider than *width* columns.

    Each line is broken at the last space that keeps it within *width*; a
    word longer than *width* is hard-cut. Embedded newlines always start a
    new line. Expects plain text (no escape sequences).
    """
    if width <= 0:
        return text.split("\n") if text else []

    lines: list[str] = []
    for paragraph in text.split("\n"):
        remaining = paragraph
        while visible_width(remaining) > width:
            head, tail = _take_columns(remaining, width)
            # A space right after the cut also counts as a break point.
            if tail.startswith(" "):
                lines.append(head.rstrip(" "))
                remaining = tail.lstrip(" ")
                continue
            cut = head.rfind(" ")
            if cut > 0:
                lines.append(head[:cut].rstrip(" "))
                remaining = head[cut + 1 :] + tail
            else:
                lines.append(head)
                remaining = tail
        lines.append(remaining)
    return lines


def center_text(text: str, width: int) -> str:
    """Left-pad *text* so it sits in the middle of *width* columns."""
    padding = (width - visible_width(text)) // 2
    if padding > 0:
        return " " * padding + text
    return text


def wrap_and_center(text: str, width: int, *, center: bool = True) -> list[str]:
    """Wrap *text* to *width*, then center each resulting line on its own."""
    if not text:
        return []
    lines = wrap_text(text, width)
    if not center:
        return lines
    return [center_text(line, width) for line in lines]
