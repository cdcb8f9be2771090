"""LayoutRenderer: geometry, centering, borders and painting.

Rendering is split in two: :func:`compute_geometry` is pure arithmetic
over a :class:`ViewSnapshot` and the terminal size, and
:class:`LayoutRenderer` paints a frame through a ``TerminalDriver``. The
renderer never mutates navigation state.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, NamedTuple

from rebuild.tui.events import NavigationState
from rebuild.tui.gradient import apply_gradient, is_flat
from rebuild.tui.styles import BorderStyle, Color
from rebuild.tui.utils import center_text, visible_width, wrap_and_center

if TYPE_CHECKING:
    from rebuild.tui.config import Config, Theme
    from rebuild.tui.models import Item, Section
    from rebuild.tui.terminal import TerminalDriver

NO_DESCRIPTION = "No description provided"
NO_SECTION = "No section selected"

# Title, underline and the blank row below them, plus two footer rows.
_HEADER_ROWS = 3
_FOOTER_ROWS = 2


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ViewSnapshot:
    """Everything one frame needs, captured from the engine."""

    state: NavigationState
    sections: tuple[Section, ...]
    section_index: int
    selection_index: int
    section_page: int
    item_page: int
    total_pages: int
    page_start: int
    page_end: int
    config: Config

    @property
    def rows_on_page(self) -> int:
        return self.page_end - self.page_start

    @property
    def current_page(self) -> int:
        if self.state is NavigationState.SECTION_LIST:
            return self.section_page
        return self.item_page

    @property
    def current_section(self) -> Section | None:
        if 0 <= self.section_index < len(self.sections):
            return self.sections[self.section_index]
        return None

    @property
    def highlighted_section(self) -> Section | None:
        index = self.page_start + self.selection_index
        if self.state is NavigationState.SECTION_LIST and index < self.page_end:
            return self.sections[index]
        return None

    @property
    def highlighted_item(self) -> Item | None:
        section = self.current_section
        if self.state is not NavigationState.ITEM_LIST or section is None:
            return None
        index = self.page_start + self.selection_index
        if index >= self.page_end:
            return None
        return section.get_item(index)


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


class BorderBox(NamedTuple):
    top: int
    left: int
    width: int
    height: int


@dataclass(frozen=True)
class Geometry:
    term_rows: int
    term_cols: int
    content_width: int
    left: int
    start_row: int
    items_row: int
    border: BorderBox | None


def content_width_for(config: Config, term_cols: int) -> int:
    """Usable width before border insets, clamped to the configured bounds."""
    layout = config.layout
    width = term_cols - 4
    if layout.show_borders:
        width -= 2
    if layout.auto_resize_content:
        return max(layout.min_content_width, min(width, layout.max_content_width))
    return layout.max_content_width


def content_height_for(config: Config, rows_on_page: int) -> int:
    layout = config.layout
    height = _HEADER_ROWS + rows_on_page + _FOOTER_ROWS + 2 * layout.vertical_padding
    if layout.show_borders:
        height += 2
    return height


def compute_geometry(snapshot: ViewSnapshot, term_rows: int, term_cols: int) -> Geometry:
    config = snapshot.config
    layout = config.layout

    width = content_width_for(config, term_cols)
    left = max(1, (term_cols - width) // 2) if layout.center_horizontally else 1
    row = 1
    if layout.center_vertically:
        row = max(1, (term_rows - content_height_for(config, snapshot.rows_on_page)) // 2)

    border = None
    if layout.show_borders:
        width = max(10, width - 2)
        left = max(1, left - 1)
        row = max(1, row - 1)
        inner = _HEADER_ROWS + snapshot.rows_on_page + _FOOTER_ROWS + 2 * layout.vertical_padding
        border = BorderBox(top=row, left=left, width=width + 2, height=inner + 2)
        left += 1
        row += 1

    row += layout.vertical_padding
    return Geometry(
        term_rows=term_rows,
        term_cols=term_cols,
        content_width=width,
        left=left,
        start_row=row,
        items_row=row + 2 + layout.vertical_padding,
        border=border,
    )


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------


def footer_description(snapshot: ViewSnapshot) -> str:
    if snapshot.state is NavigationState.ITEM_LIST:
        item = snapshot.highlighted_item
        if item is not None:
            return item.description or NO_DESCRIPTION
        section = snapshot.current_section
        if section is not None and section.description:
            return section.description
        return NO_DESCRIPTION
    section = snapshot.highlighted_section
    if section is None:
        return NO_SECTION
    return section.description or NO_DESCRIPTION


def help_line(snapshot: ViewSnapshot) -> str:
    config = snapshot.config
    text = config.text
    in_sections = snapshot.state is NavigationState.SECTION_LIST
    line = text.help_text_sections if in_sections else text.help_text_items
    for key, description in config.custom_shortcuts.items():
        line += f" | {key} - {description}"
    if text.show_page_numbers and (not in_sections or config.layout.paginate_sections):
        line += f" | Page {snapshot.current_page + 1} of {snapshot.total_pages}"
    return line


def item_prefix(theme: Theme, item: Item) -> str:
    return theme.selected_prefix if item.selected else theme.unselected_prefix


def item_label(theme: Theme, item: Item) -> str:
    """Row text for *item*; ASCII themes use the bracketed indicator form."""
    if not theme.use_unicode:
        return item.display_string(theme.selected_indicator, theme.unselected_indicator)
    return f"{item_prefix(theme, item)} {item.name}"


def section_label(index: int, section: Section, show_counters: bool) -> tuple[str, str]:
    """Return ``("N. name", " (sel/total)")``; the counter may be empty."""
    counter = ""
    if show_counters and len(section) > 0:
        counter = f" ({section.selected_count()}/{len(section)})"
    return f"{index + 1}. {section.name}", counter


class _Row(NamedTuple):
    highlight: str
    body: str
    counter: str
    highlighted: bool
    body_color: Color | None


# ---------------------------------------------------------------------------
# LayoutRenderer
# ---------------------------------------------------------------------------


class LayoutRenderer:
    """Paints frames through a terminal driver."""

    def __init__(self, terminal: TerminalDriver, rng: random.Random | None = None) -> None:
        self._terminal = terminal
        self._rng = rng or random.Random()

    def render(self, snapshot: ViewSnapshot) -> Geometry:
        rows, cols = self._terminal.terminal_size()
        geometry = compute_geometry(snapshot, rows, cols)
        config = snapshot.config

        self._terminal.clear_screen()
        if geometry.border is not None:
            self._draw_border(geometry.border, config)

        if snapshot.state is NavigationState.SECTION_LIST:
            self._draw_header(geometry, config, config.text.section_selection_title)
            self._draw_rows(geometry, config, self._section_rows(snapshot))
        else:
            section = snapshot.current_section
            name = section.name if section is not None else ""
            self._draw_header(geometry, config, config.text.item_selection_prefix + name)
            if section is None or section.empty:
                self._write_at(
                    geometry.items_row,
                    geometry.left,
                    self._align(config.text.empty_section_message, geometry.content_width, config),
                )
            else:
                self._draw_rows(geometry, config, self._item_rows(snapshot, section))

        self._draw_footer(geometry, snapshot)
        self._terminal.flush()
        return geometry

    # -- pieces -------------------------------------------------------------

    def _draw_border(self, box: BorderBox, config: Config) -> None:
        theme = config.theme
        style = theme.border_style if theme.use_unicode else BorderStyle.ASCII
        g = style.glyphs
        color = theme.palette.border if theme.use_colors else None
        inner = max(0, box.width - 2)
        bottom = box.top + box.height - 1

        self._write_at(box.top, box.left, g.top_left + g.horizontal * inner + g.top_right, color)
        for row in range(box.top + 1, bottom):
            self._write_at(row, box.left, g.vertical, color)
            self._write_at(row, box.left + box.width - 1, g.vertical, color)
        self._write_at(bottom, box.left, g.bottom_left + g.horizontal * inner + g.bottom_right, color)

    def _draw_header(self, geometry: Geometry, config: Config, title: str) -> None:
        palette = config.theme.palette
        use_colors = config.theme.use_colors
        underline = "=" * visible_width(title)
        self._write_at(
            geometry.start_row,
            geometry.left,
            self._align(title, geometry.content_width, config),
            palette.header_text if use_colors else None,
        )
        self._write_at(
            geometry.start_row + 1,
            geometry.left,
            self._align(underline, geometry.content_width, config),
            palette.header_border if use_colors else None,
        )

    def _section_rows(self, snapshot: ViewSnapshot) -> list[_Row]:
        config = snapshot.config
        theme = config.theme
        blank = " " * visible_width(theme.highlighted_prefix)
        rows: list[_Row] = []
        for offset, index in enumerate(range(snapshot.page_start, snapshot.page_end)):
            section = snapshot.sections[index]
            body, counter = section_label(index, section, config.text.show_counters)
            highlighted = offset == snapshot.selection_index
            rows.append(
                _Row(
                    theme.highlighted_prefix if highlighted else blank,
                    body,
                    counter,
                    highlighted,
                    theme.palette.section_name,
                )
            )
        return rows

    def _item_rows(self, snapshot: ViewSnapshot, section: Section) -> list[_Row]:
        theme = snapshot.config.theme
        palette = theme.palette
        blank = " " * visible_width(theme.highlighted_prefix)
        rows: list[_Row] = []
        for offset, index in enumerate(range(snapshot.page_start, snapshot.page_end)):
            item = section.items[index]
            highlighted = offset == snapshot.selection_index
            rows.append(
                _Row(
                    theme.highlighted_prefix if highlighted else blank,
                    item_label(theme, item),
                    "",
                    highlighted,
                    palette.item_name if item.selected else palette.unselected_item,
                )
            )
        return rows

    def _draw_rows(self, geometry: Geometry, config: Config, rows: list[_Row]) -> None:
        if not rows:
            return
        widest = max(visible_width(r.highlight + r.body + r.counter) for r in rows)
        offset = 0
        if config.layout.center_horizontally and geometry.content_width > widest:
            offset = (geometry.content_width - widest) // 2
        col = geometry.left + offset
        for i, row in enumerate(rows):
            self._terminal.move_cursor(geometry.items_row + i, col)
            if row.highlighted:
                self._write_highlighted(row.highlight + row.body + row.counter, config.theme)
            else:
                self._write_plain(row, config.theme)
        self._terminal.reset_formatting()

    def _write_highlighted(self, text: str, theme: Theme) -> None:
        terminal = self._terminal
        if theme.gradient_enabled and not is_flat(theme.gradient_preset) and terminal.supports_rgb:
            terminal.write(
                apply_gradient(
                    text,
                    theme.gradient_preset,
                    randomize=theme.gradient_randomize,
                    rng=self._rng,
                )
            )
        elif theme.use_colors:
            self._set_color(theme.highlight_color())
            terminal.write(text)
            terminal.reset_formatting()
        else:
            terminal.write(text)

    def _write_plain(self, row: _Row, theme: Theme) -> None:
        terminal = self._terminal
        if not theme.use_colors:
            terminal.write(row.highlight + row.body + row.counter)
            return
        terminal.write(row.highlight)
        if row.body_color is not None:
            self._set_color(row.body_color)
        terminal.write(row.body)
        if row.counter:
            self._set_color(theme.palette.counter)
            terminal.write(row.counter)
        terminal.reset_formatting()

    def _draw_footer(self, geometry: Geometry, snapshot: ViewSnapshot) -> None:
        config = snapshot.config
        color = config.theme.palette.footer if config.theme.use_colors else None
        center = config.layout.center_horizontally

        lines = wrap_and_center(footer_description(snapshot), geometry.content_width, center=center)
        start = geometry.term_rows - 4 - (len(lines) - 1)
        for i, line in enumerate(lines):
            self._write_at(start + i, geometry.left, line, color)

        if not config.text.show_help_text:
            return
        lines = wrap_and_center(help_line(snapshot), geometry.content_width, center=center)
        start = geometry.term_rows - 2 - (len(lines) - 1)
        for i, line in enumerate(lines):
            self._write_at(start + i, geometry.left, line, color)

    # -- primitives ---------------------------------------------------------

    def _align(self, text: str, width: int, config: Config) -> str:
        if config.layout.center_horizontally:
            return center_text(text, width)
        return text

    def _set_color(self, color: Color) -> None:
        if color.rgb is not None:
            self._terminal.set_fg_rgb(*color.rgb)
        elif color.accent is not None:
            self._terminal.set_fg_ansi(int(color.accent))

    def _write_at(self, row: int, col: int, text: str, color: Color | None = None) -> None:
        self._terminal.move_cursor(max(1, row), max(1, col))
        if color is not None:
            self._set_color(color)
            self._terminal.write(text)
            self._terminal.reset_formatting()
        else:
            self._terminal.write(text)
