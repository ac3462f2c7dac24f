# roadmap_graph/engine/layout.py

"""
Layout strategies.

Each strategy maps (nodes, edges, width, height) to a new list of nodes
carrying a position, in the same order as the input. Every node gets a
coordinate, isolated ones included. A pinned node is placed at its pin.
"""

import logging
import math
from collections import defaultdict
from typing import Dict, List, Optional

from roadmap_graph.engine.critical_path import build_adjacency, topological_order
from roadmap_graph.engine.model import GraphNode, LayoutStrategy, Point, clamp_canvas
from roadmap_graph.engine.simulation import ForceSimulation
from roadmap_graph.settings import DEFAULT_SETTINGS, LayoutSettings

logger = logging.getLogger(__name__)


def _place(node: GraphNode, x: float, y: float) -> GraphNode:
    if node.pinned_position is not None:
        return node.at(node.pinned_position.x, node.pinned_position.y)
    return node.at(x, y)


# -----------------------------------------------------------
# Circular
# -----------------------------------------------------------

def circular_layout(nodes, edges, width, height,
                    settings: LayoutSettings = DEFAULT_SETTINGS) -> List[GraphNode]:
    """Nodes evenly spaced by angle, in input order, around the canvas centre."""
    width, height = clamp_canvas(width, height)
    n = len(nodes)
    cx, cy = width / 2.0, height / 2.0
    radius = min(width, height) * settings.circle_ratio

    out = []
    for i, node in enumerate(nodes):
        angle = 2.0 * math.pi * i / n
        out.append(_place(node, cx + radius * math.cos(angle), cy + radius * math.sin(angle)))
    return out


# -----------------------------------------------------------
# Hierarchical
# -----------------------------------------------------------

def assign_ranks(nodes, edges) -> Dict[str, int]:
    """
    Rank = length of the longest path from a source (no incoming edge).

    Nodes caught in a cycle are never released by the topological walk;
    they keep 1 + the highest rank among their already-ranked
    predecessors, or 0.
    """
    ids, edges_from = build_adjacency(nodes, edges)
    rank = {n: 0 for n in ids}

    for n in topological_order(ids, edges_from):
        for succ in edges_from.get(n, []):
            rank[succ] = max(rank[succ], rank[n] + 1)

    return rank


def hierarchical_layout(nodes, edges, width, height,
                        settings: LayoutSettings = DEFAULT_SETTINGS) -> List[GraphNode]:
    """
    Left-to-right layered placement.

    Column x is set by rank, rows within a rank follow input order.
    Spacing is fixed (node box + nodesep / ranksep) and the drawing is
    centred on the canvas.
    """
    width, height = clamp_canvas(width, height)
    if not nodes:
        return []

    rank = assign_ranks(nodes, edges)

    layers = defaultdict(list)
    for node in nodes:
        layers[rank[node.id]].append(node.id)

    col_step = settings.node_width + settings.rank_sep
    row_step = settings.node_height + settings.node_sep
    max_rank = max(layers)

    x0 = width / 2.0 - (max_rank * col_step) / 2.0
    coords = {}
    for r, members in layers.items():
        y0 = height / 2.0 - ((len(members) - 1) * row_step) / 2.0
        for idx, node_id in enumerate(members):
            coords[node_id] = (x0 + r * col_step, y0 + idx * row_step)

    return [_place(node, *coords[node.id]) for node in nodes]


# -----------------------------------------------------------
# Force-directed (synchronous run to convergence)
# -----------------------------------------------------------

def force_layout(nodes, edges, width, height,
                 settings: LayoutSettings = DEFAULT_SETTINGS,
                 seed=None, max_ticks: Optional[int] = None) -> List[GraphNode]:
    """
    Run a force simulation until it settles (or `max_ticks`) and return
    the final positions. Not deterministic unless `seed` is given.
    """
    sim = ForceSimulation(nodes, edges, width, height, settings=settings, seed=seed)
    return sim.run(max_ticks=max_ticks)


STRATEGIES = {
    LayoutStrategy.FORCE: force_layout,
    LayoutStrategy.HIERARCHICAL: hierarchical_layout,
    LayoutStrategy.CIRCULAR: circular_layout,
}


def apply_layout(strategy, nodes, edges, width, height,
                 settings: LayoutSettings = DEFAULT_SETTINGS, **kwargs) -> List[GraphNode]:
    """Dispatch by strategy name. Unknown names raise ValueError."""
    try:
        strategy = LayoutStrategy(strategy)
    except ValueError:
        raise ValueError(f"Unknown layout strategy: {strategy!r}") from None

    nodes, edges = list(nodes), list(edges)
    if strategy is LayoutStrategy.FORCE:
        out = force_layout(nodes, edges, width, height, settings=settings, **kwargs)
    else:
        out = STRATEGIES[strategy](nodes, edges, width, height, settings=settings)
    logger.debug("%s layout placed %d node(s)", strategy.value, len(out))
    return out


def positions_by_id(nodes) -> Dict[str, Point]:
    return {n.id: n.position for n in nodes if n.position is not None}


def node_radius(node: GraphNode, settings: LayoutSettings = DEFAULT_SETTINGS) -> float:
    """Visual radius, grown by effort and capped at 1.5x the base radius."""
    base = settings.node_radius
    if node.effort:
        return min(base + node.effort * 0.5, base * 1.5)
    return base
