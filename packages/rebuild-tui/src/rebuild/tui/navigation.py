"""NavigationEngine: the two-screen menu state machine and its run loop.

The engine owns every piece of mutable cursor state: which screen is
active, the current section, the selection slot on the current page, and
one page index per screen. Keys decoded by :class:`InputDecoder` are
mapped to transitions; a dirty flag gates repainting through
:class:`LayoutRenderer`, which only ever sees a frozen snapshot.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Iterable

from rebuild.tui.config import Config, Layout, TextConfig, Theme
from rebuild.tui.events import (
    CommandHandler,
    EventDispatcher,
    Exited,
    ItemToggled,
    NavigationState,
    PageChanged,
    SectionSelected,
    StateChanged,
)
from rebuild.tui.input_decoder import InputDecoder
from rebuild.tui.keys import Key, KeyEvent
from rebuild.tui.models import Section
from rebuild.tui.renderer import LayoutRenderer, ViewSnapshot
from rebuild.tui.terminal import TerminalDriver, get_terminal, raw_mode

logger = logging.getLogger(__name__)

IDLE_TIMEOUT = 0.100
UPDATE_TIMEOUT = 0.050


def total_pages(count: int, page_size: int) -> int:
    """Number of pages needed for *count* entries; never less than 1."""
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    return max(1, math.ceil(count / page_size))


def page_bounds(page: int, page_size: int, count: int) -> tuple[int, int]:
    """Half-open ``(start, end)`` index range of *page*."""
    start = page * page_size
    return start, max(start, min(start + page_size, count))


class NavigationEngine:
    """Interactive section/item navigator.

    Parameters
    ----------
    config:
        Theme, layout and text settings. Defaults to :class:`Config`.
    terminal:
        Driver to run on. Defaults to the process-wide driver from
        :func:`get_terminal`, resolved when :meth:`run` starts.
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        terminal: TerminalDriver | None = None,
    ) -> None:
        self._config = (config or Config()).validate()
        self._terminal = terminal
        self._sections: list[Section] = []

        self._state = NavigationState.SECTION_LIST
        self._section_index = 0
        self._selection_index = 0
        self._section_page = 0
        self._item_page = 0

        self._running = False
        self._dirty = True
        self._previous_size: tuple[int, int] = (0, 0)
        self._update_callback: Callable[[], None] | None = None

        self.events = EventDispatcher()

    # -- read-only state ----------------------------------------------------

    @property
    def state(self) -> NavigationState:
        return self._state

    @property
    def current_section_index(self) -> int:
        return self._section_index

    @property
    def current_selection_index(self) -> int:
        return self._selection_index

    @property
    def current_section_page(self) -> int:
        return self._section_page

    @property
    def current_item_page(self) -> int:
        return self._item_page

    @property
    def current_page(self) -> int:
        """Page index of whichever list is active."""
        if self._state is NavigationState.SECTION_LIST:
            return self._section_page
        return self._item_page

    @property
    def sections(self) -> list[Section]:
        return list(self._sections)

    @property
    def config(self) -> Config:
        return self._config

    @property
    def running(self) -> bool:
        return self._running

    @property
    def needs_redraw(self) -> bool:
        return self._dirty

    def mark_dirty(self) -> None:
        self._dirty = True

    # -- listener shortcuts -------------------------------------------------

    def on_section_selected(self, callback: Callable[[int, Section], None]) -> Callable[[], None]:
        return self.events.on(SectionSelected, lambda e: callback(e.index, e.section))

    def on_item_toggled(self, callback: Callable[[int, int, bool], None]) -> Callable[[], None]:
        return self.events.on(
            ItemToggled, lambda e: callback(e.section_index, e.item_index, e.selected)
        )

    def on_page_changed(self, callback: Callable[[int, int], None]) -> Callable[[], None]:
        return self.events.on(PageChanged, lambda e: callback(e.page, e.total_pages))

    def on_state_changed(
        self, callback: Callable[[NavigationState, NavigationState], None]
    ) -> Callable[[], None]:
        return self.events.on(StateChanged, lambda e: callback(e.old, e.new))

    def on_exit(self, callback: Callable[[list[Section]], None]) -> Callable[[], None]:
        return self.events.on(Exited, lambda e: callback(e.sections))

    def on_custom_command(self, handler: CommandHandler) -> Callable[[], None]:
        return self.events.add_command_handler(handler)

    def set_update_callback(self, callback: Callable[[], None] | None) -> None:
        """Call *callback* once per loop tick; shortens the input wait while set."""
        self._update_callback = callback

    # -- section management -------------------------------------------------

    def add_section(self, section: Section) -> None:
        self._sections.append(section)
        self._dirty = True

    def add_sections(self, sections: Iterable[Section]) -> None:
        self._sections.extend(sections)
        self._dirty = True

    def get_section(self, index: int) -> Section | None:
        if 0 <= index < len(self._sections):
            return self._sections[index]
        return None

    def get_section_by_name(self, name: str) -> Section | None:
        return next((s for s in self._sections if s.name == name), None)

    def remove_section(self, index: int) -> bool:
        if not 0 <= index < len(self._sections):
            return False
        del self._sections[index]
        self._after_section_removed(index)
        return True

    def remove_section_by_name(self, name: str) -> bool:
        for i, section in enumerate(self._sections):
            if section.name == name:
                return self.remove_section(i)
        return False

    def clear_sections(self) -> None:
        self._sections.clear()
        if self._state is NavigationState.ITEM_LIST:
            self._change_state(NavigationState.SECTION_LIST)
        self._section_index = 0
        self._section_page = 0
        self._item_page = 0
        self._selection_index = 0
        self._dirty = True

    def _after_section_removed(self, index: int) -> None:
        if self._state is NavigationState.ITEM_LIST and index == self._section_index:
            # The open section is gone; fall back to the list.
            self._change_state(NavigationState.SECTION_LIST)
            self._item_page = 0
        elif index < self._section_index:
            self._section_index -= 1
        self.validate_indices()
        self._dirty = True

    # -- selections ---------------------------------------------------------

    def get_all_selections(self) -> dict[str, list[str]]:
        """Selected item names per section, omitting sections with none."""
        selections: dict[str, list[str]] = {}
        for section in self._sections:
            names = section.selected_names()
            if names:
                selections[section.name] = names
        return selections

    def get_section_selections(self, index: int) -> list[str]:
        section = self.get_section(index)
        return section.selected_names() if section is not None else []

    def clear_all_selections(self) -> None:
        for section in self._sections:
            section.clear_selections()
        self._dirty = True

    def clear_section_selections(self, index: int) -> None:
        section = self.get_section(index)
        if section is not None:
            section.clear_selections()
            self._dirty = True

    # -- configuration ------------------------------------------------------

    def update_config(self, config: Config) -> None:
        self._config = config.validate()
        self.validate_indices()
        self._dirty = True

    def update_theme(self, theme: Theme) -> None:
        self._config.theme = theme
        self._dirty = True

    def update_layout(self, layout: Layout) -> None:
        previous = self._config.layout
        self._config.layout = layout
        try:
            self._config.validate()
        except ValueError:
            self._config.layout = previous
            raise
        self.validate_indices()
        self._dirty = True

    def update_text(self, text: TextConfig) -> None:
        self._config.text = text
        self._dirty = True

    def refresh_items(self) -> None:
        """Re-check cursor state after items were changed from outside."""
        self.validate_indices()
        self._dirty = True

    # -- pagination ---------------------------------------------------------

    def _section_page_size(self) -> int:
        layout = self._config.layout
        if layout.paginate_sections:
            return layout.sections_per_page
        return max(1, len(self._sections))

    def _current_section(self) -> Section | None:
        return self.get_section(self._section_index)

    def total_pages(self) -> int:
        if self._state is NavigationState.SECTION_LIST:
            return total_pages(len(self._sections), self._section_page_size())
        section = self._current_section()
        count = len(section) if section is not None else 0
        return total_pages(count, self._config.layout.items_per_page)

    def page_bounds(self) -> tuple[int, int]:
        """Index range of the active list's current page."""
        if self._state is NavigationState.SECTION_LIST:
            return page_bounds(self._section_page, self._section_page_size(), len(self._sections))
        section = self._current_section()
        count = len(section) if section is not None else 0
        return page_bounds(self._item_page, self._config.layout.items_per_page, count)

    def entries_on_page(self) -> int:
        start, end = self.page_bounds()
        return end - start

    def go_to_page(self, page: int) -> bool:
        """Jump the active list to *page*; selection resets to the first slot."""
        pages = self.total_pages()
        if not 0 <= page < pages or page == self.current_page:
            return False
        if self._state is NavigationState.SECTION_LIST:
            self._section_page = page
        else:
            self._item_page = page
        self._selection_index = 0
        self._dirty = True
        logger.debug("Page changed to %d of %d (%s)", page + 1, pages, self._state.value)
        self.events.emit(PageChanged(page, pages))
        return True

    def next_page(self) -> bool:
        return self.go_to_page(self.current_page + 1)

    def previous_page(self) -> bool:
        return self.go_to_page(self.current_page - 1)

    def validate_indices(self) -> None:
        """Clamp every cursor index into range after a structural change."""
        count = len(self._sections)
        if self._section_index >= count:
            self._section_index = max(0, count - 1)
        self._section_page = min(self._section_page, self._pages_for(NavigationState.SECTION_LIST) - 1)
        self._item_page = min(self._item_page, self._pages_for(NavigationState.ITEM_LIST) - 1)
        self._clamp_selection()

    def _pages_for(self, state: NavigationState) -> int:
        if state is NavigationState.SECTION_LIST:
            return total_pages(len(self._sections), self._section_page_size())
        section = self._current_section()
        return total_pages(len(section) if section is not None else 0, self._config.layout.items_per_page)

    def _clamp_selection(self) -> None:
        on_page = self.entries_on_page()
        if self._selection_index >= on_page:
            self._selection_index = max(0, on_page - 1)
        if self._selection_index < 0:
            self._selection_index = 0

    # -- transitions --------------------------------------------------------

    def _change_state(self, new_state: NavigationState) -> None:
        if new_state is self._state:
            return
        old_state = self._state
        self._state = new_state
        logger.debug("State %s -> %s", old_state.value, new_state.value)
        self.events.emit(StateChanged(old_state, new_state))

    def enter_section(self, index: int) -> bool:
        section = self.get_section(index)
        if section is None:
            return False
        self._section_index = index
        self._selection_index = 0
        self._item_page = 0
        self._change_state(NavigationState.ITEM_LIST)
        section.enter()
        self.events.emit(SectionSelected(index, section))
        self._dirty = True
        return True

    def return_to_sections(self) -> None:
        """Leave the item list, highlighting the section that was open."""
        if self._state is not NavigationState.ITEM_LIST:
            return
        section = self._current_section()
        self._change_state(NavigationState.SECTION_LIST)
        page_size = self._section_page_size()
        self._section_page = self._section_index // page_size
        self._selection_index = self._section_index % page_size
        if section is not None:
            section.exit()
        self._dirty = True

    def move_selection_up(self) -> None:
        if self._selection_index > 0:
            self._selection_index -= 1
        elif self.current_page > 0:
            self.go_to_page(self.current_page - 1)
            self._selection_index = max(0, self.entries_on_page() - 1)
        self._dirty = True

    def move_selection_down(self) -> None:
        if self._selection_index < self.entries_on_page() - 1:
            self._selection_index += 1
        elif self.current_page < self.total_pages() - 1:
            self.go_to_page(self.current_page + 1)
        self._dirty = True

    def move_to_first(self) -> None:
        self._selection_index = 0
        self._dirty = True

    def move_to_last(self) -> None:
        self._selection_index = max(0, self.entries_on_page() - 1)
        self._dirty = True

    def select_current_item(self) -> None:
        """Enter the highlighted section, or toggle the highlighted item."""
        if self._state is NavigationState.SECTION_LIST:
            start, _ = self.page_bounds()
            self.enter_section(start + self._selection_index)
        else:
            self.toggle_current_item()

    def toggle_current_item(self) -> bool | None:
        if self._state is not NavigationState.ITEM_LIST:
            return None
        section = self._current_section()
        if section is None:
            return None
        start, end = self.page_bounds()
        index = start + self._selection_index
        if index >= end:
            return None
        selected = section.toggle_item(index)
        if selected is None:
            return None
        self.events.emit(ItemToggled(self._section_index, index, selected))
        self._dirty = True
        return selected

    def select_all(self) -> None:
        section = self._current_section()
        if self._state is NavigationState.ITEM_LIST and section is not None:
            section.select_all()
            self._dirty = True

    def clear_all(self) -> None:
        section = self._current_section()
        if self._state is NavigationState.ITEM_LIST and section is not None:
            section.clear_selections()
            self._dirty = True

    def stop(self) -> None:
        """Ask the run loop to finish after the current tick."""
        self._running = False

    # -- key dispatch -------------------------------------------------------

    def handle_key(self, event: KeyEvent) -> None:
        """Apply one decoded key to the state machine."""
        logger.debug("Key %s %r in %s", event.key.value, event.character, self._state.value)
        if event.is_char("q", "Q"):
            self.stop()
            return

        if self.events.handle_command(event, self._state):
            return

        key = event.key
        in_items = self._state is NavigationState.ITEM_LIST

        if key is Key.ESCAPE:
            self.return_to_sections()
        elif key is Key.ARROW_UP:
            self.move_selection_up()
        elif key is Key.ARROW_DOWN:
            self.move_selection_down()
        elif key in (Key.ARROW_LEFT, Key.PAGE_UP):
            self.previous_page()
        elif key in (Key.ARROW_RIGHT, Key.PAGE_DOWN):
            self.next_page()
        elif key is Key.HOME:
            self.move_to_first()
        elif key is Key.END:
            self.move_to_last()
        elif key is Key.SPACE:
            if in_items:
                self.toggle_current_item()
        elif key is Key.ENTER:
            if in_items:
                self.return_to_sections()
            else:
                self.select_current_item()
        elif key is Key.BACKSPACE:
            if in_items:
                self.return_to_sections()
        elif key is Key.NORMAL:
            self._handle_character(event)

    def _handle_character(self, event: KeyEvent) -> None:
        ch = event.character
        in_items = self._state is NavigationState.ITEM_LIST

        if self._config.enable_vim_keys:
            if ch == "j":
                self.move_selection_down()
                return
            if ch == "k":
                self.move_selection_up()
                return
            if ch == "h" and in_items:
                self.return_to_sections()
                return
            if ch == "l" and not in_items:
                self.select_current_item()
                return

        if in_items:
            if ch == "b":
                self.return_to_sections()
            elif ch == "a":
                self.select_all()
            elif ch == "n":
                self.clear_all()
            elif event.digit is not None:
                self.go_to_page(event.digit - 1)
        elif event.digit is not None and self._config.enable_quick_select:
            self._quick_select(event.digit)

    def _quick_select(self, number: int) -> None:
        if number <= len(self._sections):
            index = number - 1
            page_size = self._section_page_size()
            self._section_page = index // page_size
            self._selection_index = index % page_size
            self.enter_section(index)
        elif self._config.layout.paginate_sections and number <= self.total_pages():
            self.go_to_page(number - 1)

    # -- rendering ----------------------------------------------------------

    def snapshot(self) -> ViewSnapshot:
        start, end = self.page_bounds()
        return ViewSnapshot(
            state=self._state,
            sections=tuple(self._sections),
            section_index=self._section_index,
            selection_index=self._selection_index,
            section_page=self._section_page,
            item_page=self._item_page,
            total_pages=self.total_pages(),
            page_start=start,
            page_end=end,
            config=self._config,
        )

    def render(self, renderer: LayoutRenderer) -> bool:
        """Paint if dirty. Returns whether anything was drawn."""
        if not self._dirty:
            return False
        renderer.render(self.snapshot())
        self._dirty = False
        return True

    def check_resize(self, terminal: TerminalDriver) -> bool:
        size = terminal.terminal_size()
        if size != self._previous_size:
            logger.debug("Terminal resized %s -> %s", self._previous_size, size)
            self._previous_size = size
            self._dirty = True
            return True
        return False

    # -- run loop -----------------------------------------------------------

    def run(self) -> None:
        """Take over the terminal until the user quits.

        Raises ``ValueError`` without touching the terminal when there are
        no sections. The terminal is restored before the exit event fires.
        """
        if not self._sections:
            raise ValueError("No sections available; add sections before running")

        terminal = self._terminal or get_terminal()
        decoder = InputDecoder(terminal)
        renderer = LayoutRenderer(terminal)

        self.validate_indices()
        logger.info("Starting navigation with %d sections", len(self._sections))
        with raw_mode(terminal) as acquired:
            if not acquired:
                logger.warning("Terminal raw mode unavailable; input may be line buffered")
            self._previous_size = terminal.terminal_size()
            self._dirty = True
            self._running = True
            try:
                while self._running:
                    self._tick(terminal, decoder, renderer)
            finally:
                self._running = False
        logger.info("Navigation finished")
        self.events.emit(Exited(list(self._sections)))

    def _tick(self, terminal: TerminalDriver, decoder: InputDecoder, renderer: LayoutRenderer) -> None:
        self.check_resize(terminal)
        self.render(renderer)

        if self._update_callback is not None:
            self._update_callback()

        timeout = UPDATE_TIMEOUT if self._update_callback is not None else IDLE_TIMEOUT
        event = decoder.poll(timeout)
        while event is not None:
            if decoder.at_eof:
                logger.info("Input closed; stopping")
                self.stop()
                return
            self.handle_key(event)
            if not self._running:
                return
            event = decoder.poll(0)
