"""Events emitted by the navigation engine and the listener registry.

Listeners receive every event and pick out the ones they care about, or
subscribe to a single event type with :meth:`EventDispatcher.on`. Custom
command handlers are consulted for keys before the built-in bindings and
may claim a key by returning True.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, TypeVar, Union

from rebuild.tui.keys import KeyEvent

if TYPE_CHECKING:
    from rebuild.tui.models import Section

logger = logging.getLogger(__name__)


class NavigationState(Enum):
    SECTION_LIST = "sectionList"
    ITEM_LIST = "itemList"


# ---------------------------------------------------------------------------
# Event types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SectionSelected:
    index: int
    section: Section


@dataclass(frozen=True)
class ItemToggled:
    section_index: int
    item_index: int
    selected: bool


@dataclass(frozen=True)
class PageChanged:
    page: int
    total_pages: int


@dataclass(frozen=True)
class StateChanged:
    old: NavigationState
    new: NavigationState


@dataclass(frozen=True)
class Exited:
    sections: list[Section]


NavigationEvent = Union[SectionSelected, ItemToggled, PageChanged, StateChanged, Exited]

Listener = Callable[[NavigationEvent], None]
CommandHandler = Callable[[KeyEvent, NavigationState], bool]

E = TypeVar("E")


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class EventDispatcher:
    """Ordered list of listeners plus custom command handlers."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        self._command_handlers: list[CommandHandler] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener* for all events. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def on(self, event_type: type[E], callback: Callable[[E], None]) -> Callable[[], None]:
        """Register *callback* for events of one type only."""

        def listener(event: NavigationEvent) -> None:
            if isinstance(event, event_type):
                callback(event)

        return self.subscribe(listener)

    def emit(self, event: NavigationEvent) -> None:
        logger.debug("Emitting %s", event)
        for listener in list(self._listeners):
            listener(event)

    def add_command_handler(self, handler: CommandHandler) -> Callable[[], None]:
        self._command_handlers.append(handler)

        def remove() -> None:
            if handler in self._command_handlers:
                self._command_handlers.remove(handler)

        return remove

    def handle_command(self, event: KeyEvent, state: NavigationState) -> bool:
        """Offer *event* to command handlers; True once one claims it."""
        for handler in list(self._command_handlers):
            if handler(event, state):
                logger.debug("Key %s handled by custom command", event)
                return True
        return False

    @property
    def listener_count(self) -> int:
        return len(self._listeners)
