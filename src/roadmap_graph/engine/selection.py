# roadmap_graph/engine/selection.py

import logging
from typing import Iterable, NamedTuple, Optional

logger = logging.getLogger(__name__)

# host input events
NODE_CLICK = "node_click"
NODE_KEY = "node_key"
BACKGROUND_CLICK = "background_click"
KEY = "key"

ACTIVATE_KEYS = ("Enter", " ", "Space", "Spacebar")
CANCEL_KEYS = ("Escape", "Esc")


class Selection(NamedTuple):
    """Unselected when node_id is None, otherwise Selected(node_id)."""

    node_id: Optional[str] = None

    @property
    def is_selected(self) -> bool:
        return self.node_id is not None


UNSELECTED = Selection()


class SelectionController:
    """
    Tracks the single active node.

    The state is one immutable Selection value swapped in a single
    assignment, so a reader sees either the old or the new state.
    """

    def __init__(self):
        self._state = UNSELECTED

    @property
    def state(self) -> Selection:
        return self._state

    @property
    def selected_id(self) -> Optional[str]:
        return self._state.node_id

    def is_selected(self, node_id) -> bool:
        return node_id is not None and self._state.node_id == node_id

    def activate(self, node_id) -> Selection:
        """Select `node_id`; activating the selected node again deselects it."""
        if node_id is None:
            return self.clear()
        if self._state.node_id == node_id:
            self._state = UNSELECTED
        else:
            self._state = Selection(node_id)
        return self._state

    def clear(self) -> Selection:
        self._state = UNSELECTED
        return self._state

    def reconcile(self, node_ids: Iterable[str]) -> Selection:
        """Drop the selection if its node is no longer in the graph."""
        if self._state.is_selected and self._state.node_id not in set(node_ids):
            logger.debug("Selected node %r left the graph; clearing", self._state.node_id)
            self._state = UNSELECTED
        return self._state

    def handle_event(self, kind, node_id=None, key=None) -> Selection:
        """
        Map a host input event onto a transition:
          node click, Enter/Space on a node → activate(node_id)
          background click, Escape          → clear()
        Anything else leaves the state alone.
        """
        if kind == NODE_CLICK and node_id is not None:
            return self.activate(node_id)
        if kind == NODE_KEY and node_id is not None and key in ACTIVATE_KEYS:
            return self.activate(node_id)
        if kind == BACKGROUND_CLICK:
            return self.clear()
        if kind in (KEY, NODE_KEY) and key in CANCEL_KEYS:
            return self.clear()
        return self._state
