from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional

logger = logging.getLogger(__name__)

SelectionListener = Callable[[List[Hashable]], None]

HEADER_NONE = "none"
HEADER_SOME = "some"
HEADER_ALL = "all"


class SelectionStore:
    """
    Set of checked row ids for one table instance. Transient: never persisted.

    Ids are kept in insertion order so bulk actions dispatch in the order the
    user picked rows. Every membership change notifies `on_selection_changed`.
    """

    def __init__(self, on_selection_changed: Optional[SelectionListener] = None):
        self._selected: Dict[Hashable, None] = {}
        self._listener = on_selection_changed

    # ---------------------------------------------------------------------
    # Queries
    # ---------------------------------------------------------------------
    def is_selected(self, entity_id: Hashable) -> bool:
        return entity_id in self._selected

    def selected_ids(self) -> List[Hashable]:
        return list(self._selected)

    @property
    def count(self) -> int:
        return len(self._selected)

    def __len__(self) -> int:
        return len(self._selected)

    def header_state(self, visible_ids: Iterable[Hashable]) -> str:
        """Tri-state for a "select all" header checkbox over the visible rows."""
        visible = list(visible_ids)
        if not visible:
            return HEADER_NONE
        n_selected = sum(1 for i in visible if i in self._selected)
        if n_selected == 0:
            return HEADER_NONE
        if n_selected == len(visible):
            return HEADER_ALL
        return HEADER_SOME

    # ---------------------------------------------------------------------
    # Mutations
    # ---------------------------------------------------------------------
    def toggle(self, entity_id: Hashable) -> bool:
        """Flip one row; returns the new checked state."""
        if entity_id in self._selected:
            del self._selected[entity_id]
            checked = False
        else:
            self._selected[entity_id] = None
            checked = True
        self._notify()
        return checked

    def set_selected(self, entity_id: Hashable, checked: bool) -> None:
        if checked == (entity_id in self._selected):
            return
        self.toggle(entity_id)

    def select_all(self, visible_ids: Iterable[Hashable]) -> None:
        """
        Add exactly the ids passed in. Callers decide the scope: the visible
        page slice, or the full filtered id list.
        """
        before = len(self._selected)
        for entity_id in visible_ids:
            self._selected.setdefault(entity_id, None)
        if len(self._selected) != before:
            self._notify()

    def clear(self) -> None:
        if not self._selected:
            return
        self._selected.clear()
        self._notify()

    def prune(self, existing_ids: Iterable[Any]) -> List[Hashable]:
        """Drop ids that no longer exist; returns the removed ids."""
        keep = set(existing_ids)
        removed = [i for i in self._selected if i not in keep]
        for entity_id in removed:
            del self._selected[entity_id]
        if removed:
            logger.debug("Pruned %d stale selected ids", len(removed))
            self._notify()
        return removed

    def _notify(self) -> None:
        if self._listener is not None:
            self._listener(self.selected_ids())
