"""Items and the working set that every step operates on.

An Item is one unit of work (e.g. one package). Its ``state`` is a pydantic
model private to the steps; each workflow declares its own state schema so
that checkpoint fragments can be validated when a run is resumed.

The run configuration is NOT part of the working set - it is passed to
every step alongside it.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

StateT = TypeVar("StateT", bound=BaseModel)


@dataclass
class Item(Generic[StateT]):
    """One unit the pipeline operates on.

    Attributes:
        key: Stable identity, unique within a working set
        state: Mutable per-item state; steps may mutate or replace it
    """

    key: str
    state: StateT


class WorkingSet(Generic[StateT]):
    """Ordered collection of items with unique keys.

    Steps receive the working set by reference and may mutate item state.
    """

    def __init__(self, items: Iterable[Item[StateT]] = ()) -> None:
        self._items: dict[str, Item[StateT]] = {}
        for item in items:
            if item.key in self._items:
                raise ValueError(f"Duplicate item key in working set: '{item.key}'")
            self._items[item.key] = item

    @property
    def items(self) -> list[Item[StateT]]:
        return list(self._items.values())

    def keys(self) -> list[str]:
        return list(self._items)

    def get(self, key: str) -> Item[StateT]:
        """Return the item with the given key.

        Raises:
            KeyError: If no item has this key
        """
        return self._items[key]

    def filter(self, predicate: Callable[[Item[StateT]], bool]) -> WorkingSet[StateT]:
        """Return a new working set holding the same item objects that match."""
        return WorkingSet(item for item in self._items.values() if predicate(item))

    def state_by_key(self) -> dict[str, dict[str, Any]]:
        """Python-mode dump of every item's state, keyed by item key.

        Datetimes stay datetimes; the checkpoint encoder tags them.
        """
        return {key: item.state.model_dump() for key, item in self._items.items()}

    def __iter__(self) -> Iterator[Item[StateT]]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __repr__(self) -> str:
        return f"WorkingSet({self.keys()!r})"
