"""Fluent builders for sections and fully configured navigation engines.

Example::

    engine = (
        NavigationBuilder()
        .theme_fancy()
        .add_section(
            SectionBuilder("Privacy")
            .description("Data collection settings")
            .add_item("Block Telemetry", "Prevent usage reporting")
            .select_items(["Block Telemetry"])
            .build()
        )
        .on_exit(lambda sections: print(sections))
        .build()
    )
    engine.run()
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Iterable, Sequence

from rebuild.tui.config import Config
from rebuild.tui.events import CommandHandler, NavigationState
from rebuild.tui.gradient import Gradient, GradientPreset
from rebuild.tui.models import Item, Section
from rebuild.tui.navigation import NavigationEngine
from rebuild.tui.styles import AccentColor, BorderStyle, Color, ColorPalette
from rebuild.tui.terminal import TerminalDriver


# ---------------------------------------------------------------------------
# SectionBuilder
# ---------------------------------------------------------------------------


class SectionBuilder:
    """Assembles one :class:`Section`."""

    def __init__(self, name: str) -> None:
        self._name = name
        self.reset()

    def reset(self) -> SectionBuilder:
        """Discard everything except the section name."""
        self._description = ""
        self._items: list[Item] = []
        self._user_data: object = None
        self._on_enter: Callable[[], None] | None = None
        self._on_exit: Callable[[], None] | None = None
        self._on_item_toggled: Callable[[int, bool], None] | None = None
        return self

    def description(self, text: str) -> SectionBuilder:
        self._description = text
        return self

    def add_item(
        self,
        item: Item | str,
        description: str = "",
        *,
        id: int | None = None,
        user_data: object = None,
    ) -> SectionBuilder:
        if isinstance(item, str):
            item = Item(
                name=item,
                description=description,
                id=len(self._items) if id is None else id,
                user_data=user_data,
            )
        self._items.append(item)
        return self

    def add_items(self, items: Iterable[Item | str | tuple[str, str]]) -> SectionBuilder:
        """Add items given as names, ``(name, description)`` pairs, or Items."""
        for entry in items:
            if isinstance(entry, tuple):
                self.add_item(*entry)
            else:
                self.add_item(entry)
        return self

    def add_generated_items(
        self, count: int, generator: Callable[[int], Item | str]
    ) -> SectionBuilder:
        for i in range(count):
            self.add_item(generator(i))
        return self

    def user_data(self, data: object) -> SectionBuilder:
        self._user_data = data
        return self

    def on_enter(self, callback: Callable[[], None]) -> SectionBuilder:
        self._on_enter = callback
        return self

    def on_exit(self, callback: Callable[[], None]) -> SectionBuilder:
        self._on_exit = callback
        return self

    def on_item_toggled(self, callback: Callable[[int, bool], None]) -> SectionBuilder:
        self._on_item_toggled = callback
        return self

    def callbacks(
        self,
        enter: Callable[[], None] | None = None,
        exit: Callable[[], None] | None = None,
        item_toggled: Callable[[int, bool], None] | None = None,
    ) -> SectionBuilder:
        self._on_enter = enter
        self._on_exit = exit
        self._on_item_toggled = item_toggled
        return self

    def select_items(self, targets: Sequence[int] | Sequence[str]) -> SectionBuilder:
        """Pre-select items by index or by name; unknown targets are ignored."""
        for target in targets:
            if isinstance(target, int):
                if 0 <= target < len(self._items):
                    self._items[target].selected = True
            else:
                for item in self._items:
                    if item.name == target:
                        item.selected = True
        return self

    def select_all(self) -> SectionBuilder:
        for item in self._items:
            item.selected = True
        return self

    def select_none(self) -> SectionBuilder:
        for item in self._items:
            item.selected = False
        return self

    def sort_items(self) -> SectionBuilder:
        self._items.sort(key=lambda item: item.name)
        return self

    def reverse_items(self) -> SectionBuilder:
        self._items.reverse()
        return self

    def set_item_callbacks(self, callback: Callable[[bool], None]) -> SectionBuilder:
        for item in self._items:
            item.on_toggle = callback
        return self

    def apply_to_items(self, func: Callable[[Item], None]) -> SectionBuilder:
        for item in self._items:
            func(item)
        return self

    def filter_items(self, predicate: Callable[[Item], bool]) -> SectionBuilder:
        self._items = [item for item in self._items if predicate(item)]
        return self

    def build(self) -> Section:
        return Section(
            name=self._name,
            description=self._description,
            items=[replace(item) for item in self._items],
            user_data=self._user_data,
            on_enter=self._on_enter,
            on_exit=self._on_exit,
            on_item_toggled=self._on_item_toggled,
        )


class MultiSectionBuilder:
    """Collects several sections in order."""

    def __init__(self) -> None:
        self._sections: list[Section] = []

    def add_section(
        self,
        section: Section | SectionBuilder | str,
        configure: Callable[[SectionBuilder], object] | None = None,
    ) -> MultiSectionBuilder:
        if isinstance(section, str):
            builder = SectionBuilder(section)
            if configure is not None:
                configure(builder)
            section = builder
        if isinstance(section, SectionBuilder):
            section = section.build()
        self._sections.append(section)
        return self

    def add_sections(self, names: Iterable[str]) -> MultiSectionBuilder:
        for name in names:
            self._sections.append(Section(name))
        return self

    def apply_to_all(self, configure: Callable[[Section], None]) -> MultiSectionBuilder:
        for section in self._sections:
            configure(section)
        return self

    def sort_sections(self) -> MultiSectionBuilder:
        self._sections.sort(key=lambda section: section.name)
        return self

    def clear(self) -> MultiSectionBuilder:
        self._sections = []
        return self

    def build(self) -> list[Section]:
        sections, self._sections = self._sections, []
        return sections


# ---------------------------------------------------------------------------
# NavigationBuilder
# ---------------------------------------------------------------------------


class NavigationBuilder:
    """Configures and creates a :class:`NavigationEngine`."""

    def __init__(self, config: Config | None = None) -> None:
        self._config = config or Config()
        self._sections: list[Section] = []
        self._listeners: list[Callable[[NavigationEngine], object]] = []

    # -- theme --------------------------------------------------------------

    def theme_indicators(self, selected: str, unselected: str) -> NavigationBuilder:
        self._config.theme.selected_indicator = selected
        self._config.theme.unselected_indicator = unselected
        return self

    def theme_prefixes(
        self, selected: str, unselected: str, highlighted: str | None = None
    ) -> NavigationBuilder:
        theme = self._config.theme
        theme.selected_prefix = selected
        theme.unselected_prefix = unselected
        if highlighted is not None:
            theme.highlighted_prefix = highlighted
        return self

    def theme_unicode(self, enable: bool = True) -> NavigationBuilder:
        self._config.theme.use_unicode = enable
        return self

    def theme_colors(self, enable: bool = True) -> NavigationBuilder:
        self._config.theme.use_colors = enable
        return self

    def theme_gradient_support(self, enable: bool = True) -> NavigationBuilder:
        self._config.theme.gradient_enabled = enable
        return self

    def theme_gradient_preset(self, preset: Gradient) -> NavigationBuilder:
        self._config.theme.gradient_preset = preset
        return self

    def theme_gradient_randomize(self, enable: bool = True) -> NavigationBuilder:
        self._config.theme.gradient_randomize = enable
        return self

    def theme_border_style(self, style: BorderStyle) -> NavigationBuilder:
        self._config.theme.border_style = style
        return self

    def theme_accent_color(self, color: AccentColor) -> NavigationBuilder:
        """Set the accent used for the highlighted row."""
        self._config.theme.accent_color = color
        return self

    def theme_palette(self, palette: ColorPalette) -> NavigationBuilder:
        self._config.theme.palette = palette
        return self

    def theme_color(self, element: str, color: Color | AccentColor | str | tuple) -> NavigationBuilder:
        """Set one palette element by name. Raises KeyError for unknown elements."""
        self._config.theme.palette.set(element, Color.parse(color))
        return self

    # -- layout -------------------------------------------------------------

    def layout_centering(self, horizontal: bool = True, vertical: bool = True) -> NavigationBuilder:
        self._config.layout.center_horizontally = horizontal
        self._config.layout.center_vertically = vertical
        return self

    def layout_content_width(self, min_width: int, max_width: int) -> NavigationBuilder:
        self._config.layout.min_content_width = min_width
        self._config.layout.max_content_width = max_width
        return self

    def layout_padding(self, vertical_padding: int) -> NavigationBuilder:
        self._config.layout.vertical_padding = vertical_padding
        return self

    def layout_auto_resize(self, enable: bool = True) -> NavigationBuilder:
        self._config.layout.auto_resize_content = enable
        return self

    def layout_borders(self, show: bool = True) -> NavigationBuilder:
        self._config.layout.show_borders = show
        return self

    def layout_items_per_page(self, count: int) -> NavigationBuilder:
        self._config.layout.items_per_page = count
        return self

    def layout_sections_per_page(self, count: int) -> NavigationBuilder:
        self._config.layout.sections_per_page = count
        return self

    def paginate_sections(self, paginate: bool = True) -> NavigationBuilder:
        self._config.layout.paginate_sections = paginate
        return self

    # -- text ---------------------------------------------------------------

    def text_titles(self, section_title: str, item_prefix: str) -> NavigationBuilder:
        self._config.text.section_selection_title = section_title
        self._config.text.item_selection_prefix = item_prefix
        return self

    def text_messages(self, empty_message: str) -> NavigationBuilder:
        self._config.text.empty_section_message = empty_message
        return self

    def text_help(self, section_help: str, item_help: str) -> NavigationBuilder:
        self._config.text.help_text_sections = section_help
        self._config.text.help_text_items = item_help
        return self

    def text_show_help(self, show: bool = True) -> NavigationBuilder:
        self._config.text.show_help_text = show
        return self

    def text_show_pages(self, show: bool = True) -> NavigationBuilder:
        self._config.text.show_page_numbers = show
        return self

    def text_show_counters(self, show: bool = True) -> NavigationBuilder:
        self._config.text.show_counters = show
        return self

    # -- keys ---------------------------------------------------------------

    def keys_quick_select(self, enable: bool = True) -> NavigationBuilder:
        self._config.enable_quick_select = enable
        return self

    def keys_vim_style(self, enable: bool = True) -> NavigationBuilder:
        self._config.enable_vim_keys = enable
        return self

    def keys_custom_shortcut(self, key: str, description: str) -> NavigationBuilder:
        """Describe an application shortcut in the help line (display only)."""
        self._config.custom_shortcuts[key] = description
        return self

    # -- presets ------------------------------------------------------------

    def theme_minimal(self) -> NavigationBuilder:
        return (
            self.theme_unicode(False)
            .theme_colors(False)
            .theme_gradient_support(False)
            .theme_border_style(BorderStyle.ASCII)
            .theme_indicators("x", " ")
            .theme_prefixes("[x] ", "[ ] ", "> ")
        )

    def theme_fancy(self) -> NavigationBuilder:
        return (
            self.theme_unicode(True)
            .theme_colors(True)
            .theme_gradient_support(True)
            .theme_gradient_preset(GradientPreset.RAINBOW)
            .theme_border_style(BorderStyle.ROUNDED)
            .theme_accent_color(AccentColor.BRIGHT_MAGENTA)
            .theme_prefixes("✓ ", "  ", "▶ ")
        )

    def theme_retro(self) -> NavigationBuilder:
        return (
            self.theme_unicode(False)
            .theme_colors(True)
            .theme_border_style(BorderStyle.ASCII)
            .theme_accent_color(AccentColor.GREEN)
            .theme_color("header_text", AccentColor.BRIGHT_GREEN)
            .theme_color("footer", AccentColor.GREEN)
            .theme_indicators("*", " ")
            .theme_prefixes("[*] ", "[ ] ", "> ")
        )

    def theme_modern(self) -> NavigationBuilder:
        return (
            self.theme_unicode(True)
            .theme_colors(True)
            .theme_gradient_support(True)
            .theme_gradient_preset(GradientPreset.OCEAN)
            .theme_border_style(BorderStyle.SHARP)
            .theme_accent_color(AccentColor.BRIGHT_CYAN)
            .theme_prefixes("● ", "○ ", "› ")
        )

    def layout_compact(self) -> NavigationBuilder:
        return (
            self.layout_padding(0)
            .layout_borders(False)
            .layout_centering(False, False)
            .layout_items_per_page(30)
        )

    def layout_comfortable(self) -> NavigationBuilder:
        return (
            self.layout_padding(2)
            .layout_borders(True)
            .layout_centering(True, True)
            .layout_content_width(50, 90)
            .layout_items_per_page(15)
        )

    def layout_fullscreen(self) -> NavigationBuilder:
        return (
            self.layout_padding(1)
            .layout_borders(True)
            .layout_centering(True, False)
            .layout_content_width(40, 200)
            .layout_auto_resize(True)
            .layout_items_per_page(40)
        )

    def layout_centered(self) -> NavigationBuilder:
        return (
            self.layout_padding(1)
            .layout_borders(True)
            .layout_centering(True, True)
            .layout_content_width(40, 60)
            .layout_auto_resize(False)
        )

    # -- sections -----------------------------------------------------------

    def add_section(self, section: Section | SectionBuilder) -> NavigationBuilder:
        if isinstance(section, SectionBuilder):
            section = section.build()
        self._sections.append(section)
        return self

    def add_sections(self, sections: Iterable[Section]) -> NavigationBuilder:
        self._sections.extend(sections)
        return self

    # -- events -------------------------------------------------------------

    def on_section_selected(self, callback: Callable[[int, Section], None]) -> NavigationBuilder:
        self._listeners.append(lambda engine: engine.on_section_selected(callback))
        return self

    def on_item_toggled(self, callback: Callable[[int, int, bool], None]) -> NavigationBuilder:
        self._listeners.append(lambda engine: engine.on_item_toggled(callback))
        return self

    def on_page_changed(self, callback: Callable[[int, int], None]) -> NavigationBuilder:
        self._listeners.append(lambda engine: engine.on_page_changed(callback))
        return self

    def on_state_changed(
        self, callback: Callable[[NavigationState, NavigationState], None]
    ) -> NavigationBuilder:
        self._listeners.append(lambda engine: engine.on_state_changed(callback))
        return self

    def on_exit(self, callback: Callable[[list[Section]], None]) -> NavigationBuilder:
        self._listeners.append(lambda engine: engine.on_exit(callback))
        return self

    def on_custom_command(self, handler: CommandHandler) -> NavigationBuilder:
        self._listeners.append(lambda engine: engine.on_custom_command(handler))
        return self

    # -- result -------------------------------------------------------------

    @property
    def config(self) -> Config:
        return self._config

    def build(self, terminal: TerminalDriver | None = None) -> NavigationEngine:
        engine = NavigationEngine(self._config, terminal=terminal)
        engine.add_sections(self._sections)
        for attach in self._listeners:
            attach(engine)
        return engine

    def run(self, terminal: TerminalDriver | None = None) -> NavigationEngine:
        engine = self.build(terminal)
        engine.run()
        return engine
