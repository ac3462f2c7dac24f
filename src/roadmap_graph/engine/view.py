# roadmap_graph/engine/view.py

"""
Per-view glue between host inputs and the engine.

Recomputation is explicit:
  - the snapshot is rebuilt only when (work items, systems, filter)
    change by value
  - positions are recomputed only when (snapshot, strategy, canvas)
    change
  - the critical path is recomputed only for a new snapshot or toggle

A view owns one snapshot, one strategy, at most one force simulation and
one selection. The simulation is stopped before any snapshot or strategy
change and on close().
"""

import logging
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Tuple

import pandas as pd

from roadmap_graph.engine.builder import assemble_snapshot, process_systems, process_work_items
from roadmap_graph.engine.critical_path import chain_edges, find_longest_chain
from roadmap_graph.engine.layout import apply_layout, positions_by_id
from roadmap_graph.engine.model import (
    EMPTY_SNAPSHOT,
    GraphEdge,
    GraphNode,
    GraphSnapshot,
    LayoutStrategy,
    NodeFilter,
    NodeKind,
    Point,
    clamp_canvas,
)
from roadmap_graph.engine.selection import Selection, SelectionController
from roadmap_graph.engine.simulation import ForceSimulation
from roadmap_graph.settings import DEFAULT_CANVAS, DEFAULT_SETTINGS, LayoutSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderEdge:
    edge: GraphEdge
    source: Point
    target: Point
    critical: bool = False


@dataclass(frozen=True)
class RenderModel:
    nodes: Tuple[GraphNode, ...]
    edges: Tuple[RenderEdge, ...]
    selected_id: Optional[str]
    critical_path: FrozenSet[str]
    strategy: LayoutStrategy
    width: float
    height: float
    description: str

    @property
    def is_empty(self) -> bool:
        return not self.nodes


def describe_graph(snapshot: GraphSnapshot, critical: FrozenSet[str], strategy: LayoutStrategy) -> str:
    """One-line summary of the graph for captions and screen readers."""
    if snapshot.is_empty:
        return "Empty dependency graph"
    initiatives = sum(1 for n in snapshot.nodes if n.kind is NodeKind.INITIATIVE)
    systems = len(snapshot.nodes) - initiatives
    text = (
        f"Dependency graph with {len(snapshot.nodes)} nodes "
        f"({initiatives} initiatives, {systems} systems) and {len(snapshot.edges)} connections."
    )
    if critical:
        text += f" {len(critical)} nodes on critical path."
    return text + f" Layout: {strategy.value}."


class GraphView:
    def __init__(self, strategy=LayoutStrategy.FORCE,
                 width: float = DEFAULT_CANVAS[0], height: float = DEFAULT_CANVAS[1],
                 highlight_critical_path: bool = False,
                 settings: LayoutSettings = DEFAULT_SETTINGS, seed=None):
        self.settings = settings
        self.seed = seed
        self.selection = SelectionController()

        self._strategy = LayoutStrategy(strategy)
        self._size = clamp_canvas(width, height)
        self._highlight = bool(highlight_critical_path)

        self._items: Optional[pd.DataFrame] = None
        self._systems: Optional[pd.DataFrame] = None
        self._filter: Optional[NodeFilter] = None
        self._snapshot = EMPTY_SNAPSHOT
        self._version = 0

        self._layout_key = None
        self._static_positions: List[GraphNode] = []
        self._simulation: Optional[ForceSimulation] = None

        self._critical_key = None
        self._chain: List[str] = []

        self._closed = False

    # -----------------------------------------------------------
    # Inputs
    # -----------------------------------------------------------

    @property
    def snapshot(self) -> GraphSnapshot:
        return self._snapshot

    @property
    def strategy(self) -> LayoutStrategy:
        return self._strategy

    @property
    def size(self) -> Tuple[float, float]:
        return self._size

    def set_data(self, work_items=None, systems=None, node_filter=NodeFilter.INITIATIVES) -> bool:
        """
        Feed new host data. Returns True when a new snapshot was built,
        False when the inputs were equal by value to the previous ones.
        """
        node_filter = NodeFilter(node_filter)
        items = process_work_items(work_items)
        ents = process_systems(systems)

        if (
            self._items is not None
            and node_filter == self._filter
            and items.equals(self._items)
            and ents.equals(self._systems)
        ):
            return False

        snapshot = assemble_snapshot(items, ents, node_filter)

        # the old simulation must never see the new node set
        self._stop_simulation()
        self._items, self._systems, self._filter = items, ents, node_filter
        self._snapshot = snapshot
        self._version += 1
        self._layout_key = None
        self.selection.reconcile(snapshot.node_ids)

        logger.debug("Snapshot rebuilt: %d nodes, %d edges", len(snapshot.nodes), len(snapshot.edges))
        return True

    def set_layout(self, strategy) -> bool:
        strategy = LayoutStrategy(strategy)
        if strategy == self._strategy:
            return False
        self._stop_simulation()
        self._strategy = strategy
        self._layout_key = None
        return True

    def resize(self, width, height) -> bool:
        size = clamp_canvas(width, height)
        if size == self._size:
            return False
        self._size = size
        self._layout_key = None
        return True

    def set_highlight_critical_path(self, enabled: bool) -> None:
        self._highlight = bool(enabled)

    # -----------------------------------------------------------
    # Derived state
    # -----------------------------------------------------------

    @property
    def critical_chain(self) -> List[str]:
        """Ordered ids of the critical path; empty while highlighting is off."""
        key = (self._version, self._highlight)
        if key != self._critical_key:
            self._chain = []
            if self._highlight:
                self._chain = find_longest_chain(self._snapshot.nodes, self._snapshot.edges)
            self._critical_key = key
        return list(self._chain)

    @property
    def critical_path(self) -> FrozenSet[str]:
        return frozenset(self.critical_chain)

    @property
    def simulation(self) -> Optional[ForceSimulation]:
        return self._simulation

    def _ensure_layout(self):
        key = (self._version, self._strategy, self._size)
        if key == self._layout_key:
            return
        self._stop_simulation()
        nodes, edges = self._snapshot.nodes, self._snapshot.edges
        width, height = self._size

        if self._strategy is LayoutStrategy.FORCE:
            self._simulation = ForceSimulation(
                nodes, edges, width, height, settings=self.settings, seed=self.seed
            )
            if not self._closed:
                self._simulation.start()
            self._static_positions = []
        else:
            self._static_positions = apply_layout(
                self._strategy, nodes, edges, width, height, settings=self.settings
            )
        self._layout_key = key

    def positions(self) -> List[GraphNode]:
        self._ensure_layout()
        if self._simulation is not None:
            return self._simulation.positions()
        return list(self._static_positions)

    # -----------------------------------------------------------
    # Frames and interaction
    # -----------------------------------------------------------

    def tick(self) -> bool:
        """Advance the force simulation one frame. False when nothing is running."""
        self._ensure_layout()
        if self._simulation is None:
            return False
        return self._simulation.step()

    def drag(self, node_id, x, y) -> bool:
        """
        Pin a node at (x, y). Only the force layout is draggable.

        A drag is one move: the other nodes get a single reheat and then cool
        down, so the simulation still settles while the pin is held.
        """
        self._ensure_layout()
        if self._simulation is None or self._closed:
            return False
        if not self._simulation.pin(node_id, x, y, reheat=False):
            return False
        self._simulation.reheat()
        return True

    def release(self, node_id) -> bool:
        if self._simulation is None:
            return False
        return self._simulation.unpin(node_id)

    def handle_event(self, kind, node_id=None, key=None) -> Selection:
        return self.selection.handle_event(kind, node_id=node_id, key=key)

    # -----------------------------------------------------------
    # Output
    # -----------------------------------------------------------

    def render(self) -> RenderModel:
        nodes = self.positions()
        coords = positions_by_id(nodes)
        critical = self.critical_path
        on_chain = {e.id for e in chain_edges(self._snapshot.edges, self.critical_chain)}

        edges = []
        for e in self._snapshot.edges:
            src, dst = coords.get(e.source_id), coords.get(e.target_id)
            if src is None or dst is None:
                continue
            edges.append(RenderEdge(e, src, dst, e.id in on_chain))

        return RenderModel(
            nodes=tuple(nodes),
            edges=tuple(edges),
            selected_id=self.selection.selected_id,
            critical_path=critical,
            strategy=self._strategy,
            width=self._size[0],
            height=self._size[1],
            description=describe_graph(self._snapshot, critical, self._strategy),
        )

    # -----------------------------------------------------------
    # Teardown
    # -----------------------------------------------------------

    def _stop_simulation(self):
        if self._simulation is not None:
            self._simulation.stop()
            self._simulation = None

    def close(self) -> None:
        self._stop_simulation()
        self._layout_key = None
        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
