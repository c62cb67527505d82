"""Working-set reconstruction from checkpointed per-item state.

Rebuilds the in-memory items a resumed run operates on. The universe of
known items comes from the workflow (e.g. the packages selected by the
current options); checkpoint fragments are merged over each item's
default state and validated against the workflow's state schema.

Partial resume is valid:
- universe items with no fragment keep their default state (or are left
  out when include_missing=False)
- fragments whose key is not in the universe are dropped
"""

from collections.abc import Callable, Iterable, Mapping
from typing import Any, Generic

import structlog
from pydantic import ValidationError

from waypoint.contracts import CheckpointCorruptionError, Item, WorkingSet
from waypoint.contracts.working_set import StateT

logger = structlog.get_logger(__name__)


class StateReconstructor(Generic[StateT]):
    """Rebuilds a WorkingSet from ``checkpoint.data.state``.

    Args:
        universe: Returns the full, ordered set of known items with default state
        state_model: Pydantic model class of the per-item state
        include_missing: Keep universe items that have no checkpoint fragment
            (with default state). Workflows whose working set is a selection
            made by an earlier step pass False, so only checkpointed items return.
    """

    def __init__(
        self,
        universe: Callable[[], Iterable[Item[StateT]]],
        state_model: type[StateT],
        *,
        include_missing: bool = True,
    ) -> None:
        self._universe = universe
        self._state_model = state_model
        self._include_missing = include_missing

    def reconstruct(self, per_item_state: Mapping[str, Any]) -> WorkingSet[StateT]:
        """Merge checkpointed fragments into the universe's items.

        Raises:
            CheckpointCorruptionError: If a fragment does not fit the state schema
        """
        items: list[Item[StateT]] = []
        known: set[str] = set()

        for item in self._universe():
            known.add(item.key)
            if item.key not in per_item_state:
                if self._include_missing:
                    items.append(item)
                continue
            items.append(Item(key=item.key, state=self._merge(item, per_item_state[item.key])))

        dropped = sorted(key for key in per_item_state if key not in known)
        if dropped:
            logger.warning("Dropping checkpointed items that no longer exist", items=dropped)

        return WorkingSet(items)

    def _merge(self, item: Item[StateT], fragment: Any) -> StateT:
        if not isinstance(fragment, dict):
            raise CheckpointCorruptionError(f"State for item '{item.key}' must be an object, got {type(fragment).__name__}")
        merged = {**item.state.model_dump(mode="json"), **fragment}
        try:
            return self._state_model.model_validate(merged)
        except ValidationError as e:
            raise CheckpointCorruptionError(f"State for item '{item.key}' does not match {self._state_model.__name__}: {e}") from e
