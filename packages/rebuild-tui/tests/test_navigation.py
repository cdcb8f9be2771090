"""Tests for the NavigationEngine state machine and run loop."""

from __future__ import annotations

import math
import random

import pytest

from rebuild.tui.config import Config, Layout
from rebuild.tui.events import (
    Exited,
    ItemToggled,
    NavigationEvent,
    NavigationState,
    PageChanged,
    SectionSelected,
    StateChanged,
)
from rebuild.tui.keys import Key, KeyEvent
from rebuild.tui.models import Section
from rebuild.tui.navigation import NavigationEngine, page_bounds, total_pages
from rebuild.tui.renderer import LayoutRenderer

from .virtual_terminal import VirtualTerminal

UP = KeyEvent(Key.ARROW_UP)
DOWN = KeyEvent(Key.ARROW_DOWN)
LEFT = KeyEvent(Key.ARROW_LEFT)
RIGHT = KeyEvent(Key.ARROW_RIGHT)
ENTER = KeyEvent(Key.ENTER)
SPACE = KeyEvent(Key.SPACE)
ESCAPE = KeyEvent(Key.ESCAPE)


def char(c: str) -> KeyEvent:
    return KeyEvent(Key.NORMAL, c)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class Collector:
    """Collects emitted navigation events for assertions."""

    def __init__(self) -> None:
        self.events: list[NavigationEvent] = []

    def __call__(self, event: NavigationEvent) -> None:
        self.events.append(event)

    def of(self, event_type: type) -> list:
        return [e for e in self.events if isinstance(e, event_type)]


def make_sections(*counts: int) -> list[Section]:
    sections = []
    for n, count in enumerate(counts):
        section = Section(f"Section {n + 1}", f"Description {n + 1}")
        section.add_items(f"Item {i + 1}" for i in range(count))
        sections.append(section)
    return sections


def make_engine(
    *counts: int,
    terminal: VirtualTerminal | None = None,
    **layout: object,
) -> tuple[NavigationEngine, Collector]:
    config = Config(layout=Layout(**layout))
    engine = NavigationEngine(config, terminal=terminal or VirtualTerminal())
    engine.add_sections(make_sections(*counts))
    collector = Collector()
    engine.events.subscribe(collector)
    return engine, collector


def cursor(engine: NavigationEngine) -> tuple:
    return (
        engine.state,
        engine.current_section_index,
        engine.current_selection_index,
        engine.current_section_page,
        engine.current_item_page,
    )


# ---------------------------------------------------------------------------
# Pagination arithmetic
# ---------------------------------------------------------------------------


class TestPaginationArithmetic:
    def test_total_pages_formula(self) -> None:
        for count in range(0, 60):
            for page_size in range(1, 12):
                assert total_pages(count, page_size) == max(1, math.ceil(count / page_size))

    def test_empty_list_has_one_page(self) -> None:
        assert total_pages(0, 5) == 1

    def test_rejects_zero_page_size(self) -> None:
        with pytest.raises(ValueError):
            total_pages(3, 0)

    def test_page_bounds(self) -> None:
        assert page_bounds(0, 8, 12) == (0, 8)
        assert page_bounds(1, 8, 12) == (8, 12)
        assert page_bounds(0, 8, 0) == (0, 0)

    def test_unpaginated_sections_share_one_page(self) -> None:
        engine, _ = make_engine(*[1] * 20, sections_per_page=3, paginate_sections=False)
        assert engine.total_pages() == 1
        assert engine.entries_on_page() == 20


# ---------------------------------------------------------------------------
# Selection movement
# ---------------------------------------------------------------------------


class TestSelectionMovement:
    def test_down_and_up_within_page(self) -> None:
        engine, _ = make_engine(1, 1, 1)
        engine.handle_key(DOWN)
        engine.handle_key(DOWN)
        assert engine.current_selection_index == 2
        engine.handle_key(UP)
        assert engine.current_selection_index == 1

    def test_clamps_at_first_and_last(self) -> None:
        engine, collector = make_engine(1, 1)
        engine.handle_key(UP)
        assert engine.current_selection_index == 0
        for _ in range(5):
            engine.handle_key(DOWN)
        assert engine.current_selection_index == 1
        assert collector.of(PageChanged) == []

    def test_down_crosses_to_next_page(self) -> None:
        engine, collector = make_engine(12, items_per_page=8)
        engine.enter_section(0)
        for _ in range(7):
            engine.handle_key(DOWN)
        assert engine.current_selection_index == 7
        engine.handle_key(DOWN)
        assert (engine.current_item_page, engine.current_selection_index) == (1, 0)
        assert collector.of(PageChanged) == [PageChanged(1, 2)]

    def test_up_crosses_to_previous_page_last_slot(self) -> None:
        engine, _ = make_engine(12, items_per_page=8)
        engine.enter_section(0)
        engine.next_page()
        engine.handle_key(UP)
        assert (engine.current_item_page, engine.current_selection_index) == (0, 7)

    def test_no_wraparound_on_last_page(self) -> None:
        engine, _ = make_engine(12, items_per_page=8)
        engine.enter_section(0)
        engine.next_page()
        for _ in range(10):
            engine.handle_key(DOWN)
        assert (engine.current_item_page, engine.current_selection_index) == (1, 3)

    @pytest.mark.parametrize("seed", range(5))
    def test_selection_stays_on_page(self, seed: int) -> None:
        rng = random.Random(seed)
        engine, _ = make_engine(5, 0, 12, 30, 1, 7, items_per_page=4, sections_per_page=4)
        moves = [UP, DOWN, LEFT, RIGHT, ENTER, ESCAPE, KeyEvent(Key.HOME), KeyEvent(Key.END)]
        for _ in range(300):
            engine.handle_key(rng.choice(moves))
            on_page = engine.entries_on_page()
            assert 0 <= engine.current_selection_index <= max(0, on_page - 1)
            assert 0 <= engine.current_page < engine.total_pages()

    def test_home_and_end(self) -> None:
        engine, _ = make_engine(10, items_per_page=4)
        engine.enter_section(0)
        engine.handle_key(KeyEvent(Key.END))
        assert engine.current_selection_index == 3
        engine.handle_key(KeyEvent(Key.HOME))
        assert engine.current_selection_index == 0

    def test_vim_keys_when_enabled(self) -> None:
        engine, _ = make_engine(3, 3)
        engine.config.enable_vim_keys = True
        engine.handle_key(char("j"))
        assert engine.current_selection_index == 1
        engine.handle_key(char("l"))
        assert engine.state is NavigationState.ITEM_LIST
        assert engine.current_section_index == 1
        engine.handle_key(char("j"))
        engine.handle_key(char("k"))
        assert engine.current_selection_index == 0
        engine.handle_key(char("h"))
        assert engine.state is NavigationState.SECTION_LIST

    def test_vim_keys_ignored_when_disabled(self) -> None:
        engine, _ = make_engine(3, 3)
        engine.handle_key(char("j"))
        assert engine.current_selection_index == 0


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------


class TestPages:
    def test_scenario_arrow_right_in_long_section(self) -> None:
        engine, collector = make_engine(5, 0, 12, items_per_page=8)
        engine.handle_key(DOWN)
        engine.handle_key(DOWN)
        engine.handle_key(ENTER)
        assert engine.state is NavigationState.ITEM_LIST
        assert engine.current_section_index == 2
        assert engine.total_pages() == 2
        engine.handle_key(DOWN)
        engine.handle_key(RIGHT)
        assert engine.current_item_page == 1
        assert engine.current_selection_index == 0
        assert collector.of(PageChanged) == [PageChanged(1, 2)]

    def test_page_keys(self) -> None:
        engine, _ = make_engine(20, items_per_page=5)
        engine.enter_section(0)
        engine.handle_key(KeyEvent(Key.PAGE_DOWN))
        engine.handle_key(RIGHT)
        assert engine.current_item_page == 2
        engine.handle_key(KeyEvent(Key.PAGE_UP))
        engine.handle_key(LEFT)
        engine.handle_key(LEFT)
        assert engine.current_item_page == 0

    def test_go_to_page_rejects_out_of_range(self) -> None:
        engine, collector = make_engine(3, items_per_page=5)
        engine.enter_section(0)
        assert engine.go_to_page(1) is False
        assert engine.go_to_page(-1) is False
        assert engine.go_to_page(0) is False
        assert collector.of(PageChanged) == []

    def test_digit_jumps_to_item_page(self) -> None:
        engine, _ = make_engine(30, items_per_page=10)
        engine.enter_section(0)
        engine.handle_key(char("3"))
        assert engine.current_item_page == 2
        engine.handle_key(char("9"))
        assert engine.current_item_page == 2

    def test_section_pages(self) -> None:
        engine, collector = make_engine(*[1] * 5, sections_per_page=2)
        engine.handle_key(RIGHT)
        engine.handle_key(RIGHT)
        engine.handle_key(RIGHT)
        assert engine.current_section_page == 2
        assert engine.entries_on_page() == 1
        assert collector.of(PageChanged) == [PageChanged(1, 3), PageChanged(2, 3)]


# ---------------------------------------------------------------------------
# Quick select
# ---------------------------------------------------------------------------


class TestQuickSelect:
    def test_digit_enters_section_on_another_page(self) -> None:
        engine, _ = make_engine(*[2] * 5, sections_per_page=2)
        assert engine.current_section_page == 0
        engine.handle_key(char("3"))
        assert engine.state is NavigationState.ITEM_LIST
        assert engine.current_section_index == 2
        assert engine.current_section_page == 1

    def test_digit_beyond_sections_is_ignored(self) -> None:
        engine, _ = make_engine(1, 1)
        before = cursor(engine)
        engine.handle_key(char("7"))
        assert cursor(engine) == before

    def test_disabled(self) -> None:
        engine, _ = make_engine(1, 1)
        engine.config.enable_quick_select = False
        engine.handle_key(char("2"))
        assert engine.state is NavigationState.SECTION_LIST


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


class TestTransitions:
    def test_enter_section_events_and_hook_order(self) -> None:
        engine, collector = make_engine(2, 2)
        order: list[str] = []
        engine.get_section(1).on_enter = lambda: order.append("hook")
        engine.on_section_selected(lambda index, section: order.append(f"event {index}"))
        engine.handle_key(DOWN)
        engine.handle_key(ENTER)
        assert order == ["hook", "event 1"]
        assert collector.of(StateChanged) == [
            StateChanged(NavigationState.SECTION_LIST, NavigationState.ITEM_LIST)
        ]
        selected = collector.of(SectionSelected)
        assert len(selected) == 1 and selected[0].index == 1

    def test_enter_resets_item_cursor(self) -> None:
        engine, _ = make_engine(20, 20, items_per_page=5)
        engine.enter_section(0)
        engine.next_page()
        engine.handle_key(DOWN)
        engine.return_to_sections()
        engine.enter_section(1)
        assert (engine.current_item_page, engine.current_selection_index) == (0, 0)

    @pytest.mark.parametrize("key", [ESCAPE, ENTER, KeyEvent(Key.BACKSPACE), char("b")])
    def test_back_keys(self, key: KeyEvent) -> None:
        engine, collector = make_engine(2, 2)
        engine.enter_section(1)
        exits: list[str] = []
        engine.get_section(1).on_exit = lambda: exits.append("exit")
        engine.handle_key(key)
        assert engine.state is NavigationState.SECTION_LIST
        assert engine.current_selection_index == 1
        assert exits == ["exit"]
        assert collector.of(StateChanged)[-1] == StateChanged(
            NavigationState.ITEM_LIST, NavigationState.SECTION_LIST
        )

    def test_return_derives_page_from_section_index(self) -> None:
        engine, _ = make_engine(*[1] * 5, sections_per_page=2)
        engine.handle_key(char("4"))
        engine.handle_key(ESCAPE)
        assert engine.current_section_page == 1
        assert engine.current_selection_index == 1

    def test_escape_in_section_list_does_nothing(self) -> None:
        engine, collector = make_engine(1)
        engine.handle_key(ESCAPE)
        assert engine.state is NavigationState.SECTION_LIST
        assert collector.events == []

    def test_enter_empty_section(self) -> None:
        engine, _ = make_engine(0)
        engine.handle_key(ENTER)
        assert engine.state is NavigationState.ITEM_LIST
        engine.handle_key(SPACE)
        engine.handle_key(DOWN)
        assert engine.current_selection_index == 0


# ---------------------------------------------------------------------------
# Toggling
# ---------------------------------------------------------------------------


class TestToggling:
    def test_space_toggles_global_index(self) -> None:
        engine, collector = make_engine(12, items_per_page=8)
        engine.enter_section(0)
        engine.next_page()
        engine.handle_key(DOWN)
        engine.handle_key(SPACE)
        section = engine.get_section(0)
        assert section.items[9].selected is True
        assert collector.of(ItemToggled) == [ItemToggled(0, 9, True)]

    def test_toggle_twice_restores(self) -> None:
        engine, _ = make_engine(3)
        calls: list[tuple[int, int, bool]] = []
        engine.on_item_toggled(lambda s, i, selected: calls.append((s, i, selected)))
        engine.enter_section(0)
        engine.handle_key(SPACE)
        engine.handle_key(SPACE)
        assert engine.get_section(0).items[0].selected is False
        assert calls == [(0, 0, True), (0, 0, False)]

    def test_space_ignored_in_section_list(self) -> None:
        engine, collector = make_engine(3)
        engine.handle_key(SPACE)
        assert collector.of(ItemToggled) == []

    def test_select_all_and_clear_all(self) -> None:
        engine, _ = make_engine(4)
        engine.enter_section(0)
        engine.handle_key(char("a"))
        assert engine.get_section_selections(0) == ["Item 1", "Item 2", "Item 3", "Item 4"]
        engine.handle_key(char("n"))
        assert engine.get_section_selections(0) == []

    def test_get_all_selections(self) -> None:
        engine, _ = make_engine(2, 2, 2)
        engine.get_section(0).toggle_item(1)
        engine.get_section(2).toggle_item(0)
        assert engine.get_all_selections() == {
            "Section 1": ["Item 2"],
            "Section 3": ["Item 1"],
        }
        engine.clear_all_selections()
        assert engine.get_all_selections() == {}


# ---------------------------------------------------------------------------
# Custom commands and quitting
# ---------------------------------------------------------------------------


class TestCommands:
    def test_custom_command_claims_key(self) -> None:
        engine, _ = make_engine(3, 3)
        seen: list[tuple[str, NavigationState]] = []

        def handler(event: KeyEvent, state: NavigationState) -> bool:
            seen.append((event.character, state))
            return event.is_char("x")

        engine.on_custom_command(handler)
        engine.handle_key(char("x"))
        engine.handle_key(char("2"))
        assert seen == [("x", NavigationState.SECTION_LIST), ("2", NavigationState.SECTION_LIST)]
        assert engine.current_section_index == 1

    def test_handler_can_override_builtin(self) -> None:
        engine, _ = make_engine(3, 3)
        engine.on_custom_command(lambda event, state: event.key is Key.ARROW_DOWN)
        engine.handle_key(DOWN)
        assert engine.current_selection_index == 0

    def test_quit_is_not_offered_to_handlers(self) -> None:
        engine, _ = make_engine(1)
        seen: list[KeyEvent] = []
        engine.on_custom_command(lambda event, state: seen.append(event) or True)
        engine.handle_key(char("Q"))
        assert seen == []
        assert engine.running is False

    def test_unknown_keys_dropped(self) -> None:
        engine, collector = make_engine(2)
        before = cursor(engine)
        engine.handle_key(KeyEvent(Key.UNKNOWN))
        engine.handle_key(KeyEvent(Key.TAB))
        engine.handle_key(char("z"))
        assert cursor(engine) == before
        assert collector.events == []


# ---------------------------------------------------------------------------
# Structural changes
# ---------------------------------------------------------------------------


class TestSectionManagement:
    def test_remove_missing_name_leaves_state(self) -> None:
        engine, _ = make_engine(2, 2, 2)
        engine.handle_key(DOWN)
        before = cursor(engine)
        assert engine.remove_section_by_name("Nope") is False
        assert cursor(engine) == before
        assert len(engine.sections) == 3

    def test_remove_section_by_name(self) -> None:
        engine, _ = make_engine(1, 1)
        assert engine.remove_section_by_name("Section 1") is True
        assert [s.name for s in engine.sections] == ["Section 2"]

    def test_remove_open_section_returns_to_list(self) -> None:
        engine, _ = make_engine(3, 3)
        engine.enter_section(1)
        engine.remove_section(1)
        assert engine.state is NavigationState.SECTION_LIST
        assert engine.current_section_index == 0

    def test_remove_earlier_section_keeps_open_section(self) -> None:
        engine, _ = make_engine(3, 3, 3)
        engine.enter_section(2)
        engine.remove_section(0)
        assert engine.state is NavigationState.ITEM_LIST
        assert engine.current_section_index == 1
        assert engine.get_section(1).name == "Section 3"

    def test_selection_clamped_after_removal(self) -> None:
        engine, _ = make_engine(*[1] * 4)
        engine.handle_key(KeyEvent(Key.END))
        assert engine.current_selection_index == 3
        engine.remove_section(3)
        assert engine.current_selection_index == 2

    def test_refresh_items_clamps(self) -> None:
        engine, _ = make_engine(10, items_per_page=4)
        engine.enter_section(0)
        engine.go_to_page(2)
        engine.handle_key(DOWN)
        section = engine.get_section(0)
        for _ in range(6):
            section.remove_item(0)
        engine.refresh_items()
        assert engine.current_item_page == 0
        assert engine.current_selection_index <= 3

    def test_clear_sections(self) -> None:
        engine, _ = make_engine(2, 2)
        engine.enter_section(1)
        engine.clear_sections()
        assert engine.state is NavigationState.SECTION_LIST
        assert engine.sections == []
        assert engine.total_pages() == 1

    def test_lookup(self) -> None:
        engine, _ = make_engine(1, 1)
        assert engine.get_section(5) is None
        assert engine.get_section_by_name("Section 2") is engine.get_section(1)
        assert engine.get_section_selections(9) == []


class TestConfigUpdates:
    def test_update_layout_reclamps(self) -> None:
        engine, _ = make_engine(10, items_per_page=5)
        engine.enter_section(0)
        engine.next_page()
        engine.update_layout(Layout(items_per_page=10))
        assert engine.current_item_page == 0
        assert engine.needs_redraw

    def test_update_layout_rejects_invalid(self) -> None:
        engine, _ = make_engine(1)
        with pytest.raises(ValueError):
            engine.update_layout(Layout(items_per_page=0))
        assert engine.config.layout.items_per_page == 20

    def test_invalid_config_rejected_at_construction(self) -> None:
        with pytest.raises(ValueError):
            NavigationEngine(Config(layout=Layout(sections_per_page=0)))


# ---------------------------------------------------------------------------
# Rendering and the run loop
# ---------------------------------------------------------------------------


class TestRender:
    def test_dirty_flag_gates_rendering(self) -> None:
        term = VirtualTerminal()
        engine, _ = make_engine(2, terminal=term)
        renderer = LayoutRenderer(term)
        assert engine.render(renderer) is True
        term.clear_buffer()
        assert engine.render(renderer) is False
        assert term.output == ""
        engine.handle_key(DOWN)
        assert engine.render(renderer) is True

    def test_check_resize(self) -> None:
        term = VirtualTerminal(24, 80)
        engine, _ = make_engine(1, terminal=term)
        assert engine.check_resize(term) is True
        assert engine.check_resize(term) is False
        term.simulate_resize(columns=100)
        assert engine.check_resize(term) is True


class TestRun:
    def test_refuses_empty_section_list(self) -> None:
        term = VirtualTerminal(input_bytes=b"q")
        engine = NavigationEngine(terminal=term)
        with pytest.raises(ValueError):
            engine.run()
        assert term.raw_enter_count == 0
        assert term.output == ""

    def test_scripted_session(self) -> None:
        term = VirtualTerminal(input_bytes=b"\r \x1b[B \x03q")
        engine, collector = make_engine(3, 3, terminal=term)
        raw_at_exit: list[bool] = []
        engine.on_exit(lambda sections: raw_at_exit.append(term.raw_active))

        engine.run()

        assert engine.get_all_selections() == {"Section 1": ["Item 1", "Item 2"]}
        assert engine.state is NavigationState.SECTION_LIST
        assert raw_at_exit == [False]
        assert term.raw_enter_count == 1
        assert term.cursor_visible is True
        exited = collector.of(Exited)
        assert len(exited) == 1
        assert exited[0].sections[0].selected_names() == ["Item 1", "Item 2"]
        assert "Select Section" in term.output

    def test_stops_at_end_of_input(self) -> None:
        term = VirtualTerminal(input_bytes=b"\x1b[B")
        term.closed = True
        engine, collector = make_engine(1, 1, terminal=term)
        engine.run()
        assert engine.running is False
        assert engine.current_selection_index == 1
        assert len(collector.of(Exited)) == 1

    def test_runs_without_raw_mode(self) -> None:
        term = VirtualTerminal(input_bytes=b"q", raw_available=False)
        engine, collector = make_engine(1, terminal=term)
        engine.run()
        assert term.raw_leave_count == 1
        assert len(collector.of(Exited)) == 1

    def test_update_callback_runs_each_tick(self) -> None:
        term = VirtualTerminal(input_bytes=b"q")
        engine, _ = make_engine(1, terminal=term)
        ticks: list[int] = []
        engine.set_update_callback(lambda: ticks.append(1))
        engine.run()
        assert len(ticks) == 1

    def test_restores_terminal_when_listener_raises(self) -> None:
        term = VirtualTerminal(input_bytes=b"\r")
        engine, _ = make_engine(1, terminal=term)

        def explode(index: int, section: Section) -> None:
            raise RuntimeError("listener failed")

        engine.on_section_selected(explode)
        with pytest.raises(RuntimeError):
            engine.run()
        assert term.raw_active is False
        assert engine.running is False
