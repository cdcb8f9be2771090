"""Sections and their toggleable items.

Both carry an optional ``user_data`` payload typed by the embedding
application (``Item[MyPayload]``); the engine never inspects it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Generic, Iterable, Iterator, Optional, TypeVar

T = TypeVar("T")


@dataclass
class Item(Generic[T]):
    name: str
    description: str = ""
    selected: bool = False
    id: int = 0
    user_data: Optional[T] = None
    on_toggle: Callable[[bool], None] | None = field(default=None, repr=False, compare=False)

    def toggle(self) -> bool:
        """Flip the selection and return the new state."""
        self.set_selected(not self.selected)
        return self.selected

    def set_selected(self, selected: bool) -> bool:
        """Set the selection. Returns True if the state actually changed."""
        if self.selected == selected:
            return False
        self.selected = selected
        if self.on_toggle is not None:
            self.on_toggle(selected)
        return True

    def display_string(self, selected_indicator: str = "*", unselected_indicator: str = " ") -> str:
        indicator = selected_indicator if self.selected else unselected_indicator
        return f"[{indicator}] {self.name}"

    def full_description(self) -> str:
        if self.description:
            return f"{self.name}: {self.description}"
        return self.name


@dataclass
class Section(Generic[T]):
    name: str
    description: str = ""
    items: list[Item] = field(default_factory=list)
    user_data: Optional[T] = None
    on_enter: Callable[[], None] | None = field(default=None, repr=False, compare=False)
    on_exit: Callable[[], None] | None = field(default=None, repr=False, compare=False)
    on_item_toggled: Callable[[int, bool], None] | None = field(default=None, repr=False, compare=False)

    # -- container protocol -------------------------------------------------

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Item]:
        return iter(self.items)

    @property
    def empty(self) -> bool:
        return not self.items

    # -- adding / removing --------------------------------------------------

    def add_item(
        self,
        item: Item | str,
        description: str = "",
        *,
        id: int | None = None,
        user_data: object = None,
    ) -> Item:
        """Append an item (or build one from a name) and return it."""
        if isinstance(item, str):
            item = Item(
                name=item,
                description=description,
                id=len(self.items) if id is None else id,
                user_data=user_data,
            )
        self.items.append(item)
        return item

    def add_items(self, items: Iterable[Item | str]) -> None:
        for item in items:
            self.add_item(item)

    def remove_item(self, index: int) -> bool:
        if 0 <= index < len(self.items):
            del self.items[index]
            return True
        return False

    def remove_item_by_name(self, name: str) -> bool:
        for i, item in enumerate(self.items):
            if item.name == name:
                del self.items[i]
                return True
        return False

    def clear_items(self) -> None:
        self.items.clear()

    # -- lookup -------------------------------------------------------------

    def get_item(self, index: int) -> Item | None:
        if 0 <= index < len(self.items):
            return self.items[index]
        return None

    def get_item_by_name(self, name: str) -> Item | None:
        return next((item for item in self.items if item.name == name), None)

    def get_item_by_id(self, item_id: int) -> Item | None:
        return next((item for item in self.items if item.id == item_id), None)

    # -- selection ----------------------------------------------------------

    def toggle_item(self, index: int) -> bool | None:
        """Toggle the item at *index*; returns its new state or None if out of range."""
        item = self.get_item(index)
        if item is None:
            return None
        item.toggle()
        self._notify_toggled(index, item.selected)
        return item.selected

    def set_item_selected(self, index: int, selected: bool) -> bool:
        item = self.get_item(index)
        if item is None or not item.set_selected(selected):
            return False
        self._notify_toggled(index, selected)
        return True

    def selected_count(self) -> int:
        return sum(1 for item in self.items if item.selected)

    def selected_names(self) -> list[str]:
        return [item.name for item in self.items if item.selected]

    def selected_items(self) -> list[Item]:
        return [item for item in self.items if item.selected]

    def selected_indices(self) -> list[int]:
        return [i for i, item in enumerate(self.items) if item.selected]

    def clear_selections(self) -> None:
        for i in range(len(self.items)):
            self.set_item_selected(i, False)

    def select_all(self) -> None:
        for i in range(len(self.items)):
            self.set_item_selected(i, True)

    def invert_selections(self) -> None:
        for i in range(len(self.items)):
            self.toggle_item(i)

    # -- ordering -----------------------------------------------------------

    def sort_items_by_name(self, reverse: bool = False) -> None:
        self.items.sort(key=lambda item: item.name, reverse=reverse)

    def sort_items_by_selection(self) -> None:
        """Selected items first; relative order is otherwise kept."""
        self.items.sort(key=lambda item: not item.selected)

    # -- hooks --------------------------------------------------------------

    def enter(self) -> None:
        if self.on_enter is not None:
            self.on_enter()

    def exit(self) -> None:
        if self.on_exit is not None:
            self.on_exit()

    def _notify_toggled(self, index: int, selected: bool) -> None:
        if self.on_item_toggled is not None:
            self.on_item_toggled(index, selected)
