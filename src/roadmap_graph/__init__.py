from roadmap_graph.engine.builder import (
    build_graph,
    build_snapshot,
    infer_edges,
    process_systems,
    process_work_items,
)
from roadmap_graph.engine.critical_path import (
    chain_edges,
    compute_critical_path,
    find_longest_chain,
)
from roadmap_graph.engine.layout import (
    apply_layout,
    assign_ranks,
    circular_layout,
    force_layout,
    hierarchical_layout,
)
from roadmap_graph.engine.model import (
    GraphEdge,
    GraphNode,
    GraphSnapshot,
    LayoutStrategy,
    NodeFilter,
    NodeKind,
    Point,
)
from roadmap_graph.engine.selection import Selection, SelectionController, UNSELECTED
from roadmap_graph.engine.simulation import ForceSimulation
from roadmap_graph.engine.view import GraphView, RenderModel

__version__ = "0.1.0"
