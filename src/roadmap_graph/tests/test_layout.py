import math

import pytest

from roadmap_graph import (
    GraphEdge,
    GraphNode,
    LayoutStrategy,
    NodeKind,
    Point,
    apply_layout,
    assign_ranks,
    circular_layout,
    hierarchical_layout,
)
from roadmap_graph.engine.layout import node_radius, positions_by_id
from roadmap_graph.settings import DEFAULT_SETTINGS


def make_nodes(*ids):
    return [GraphNode(id=i, name=i, kind=NodeKind.INITIATIVE) for i in ids]


def make_edges(*pairs):
    return [GraphEdge(id=f"{s}-{t}", source_id=s, target_id=t) for s, t in pairs]


NODES = make_nodes("A", "B", "C", "D")
EDGES = make_edges(("A", "B"), ("B", "C"))


# ----------------------------------------------------------------
# 1. COMMON GUARANTEES
# ----------------------------------------------------------------

@pytest.mark.parametrize("strategy", list(LayoutStrategy))
def test_every_node_gets_a_position(strategy):
    placed = apply_layout(strategy, NODES, EDGES, 800, 600, seed=0)

    assert [n.id for n in placed] == ["A", "B", "C", "D"]
    for n in placed:
        assert n.position is not None
        assert math.isfinite(n.position.x) and math.isfinite(n.position.y)


@pytest.mark.parametrize("strategy", ["hierarchical", "circular"])
def test_static_layouts_are_deterministic(strategy):
    first = apply_layout(strategy, NODES, EDGES, 800, 600)
    second = apply_layout(strategy, NODES, EDGES, 800, 600)
    assert positions_by_id(first) == positions_by_id(second)


@pytest.mark.parametrize("strategy", list(LayoutStrategy))
def test_empty_graph_lays_out_nothing(strategy):
    assert apply_layout(strategy, [], [], 800, 600, seed=0) == []


def test_unknown_strategy_raises():
    with pytest.raises(ValueError, match="Unknown layout strategy"):
        apply_layout("spiral", NODES, EDGES, 800, 600)


def test_layout_does_not_mutate_input():
    apply_layout("circular", NODES, EDGES, 800, 600)
    assert all(n.position is None for n in NODES)


def test_zero_sized_canvas_is_tolerated():
    placed = apply_layout("circular", NODES, EDGES, 0, -5)
    for n in placed:
        assert abs(n.position.x - 0.5) <= 0.35 + 1e-9
        assert abs(n.position.y - 0.5) <= 0.35 + 1e-9


# ----------------------------------------------------------------
# 2. CIRCULAR
# ----------------------------------------------------------------

def test_circular_positions_follow_angle_formula():
    placed = circular_layout(NODES, [], 800, 600)
    radius = 0.35 * 600

    expected = [
        (400 + radius, 300),
        (400, 300 + radius),
        (400 - radius, 300),
        (400, 300 - radius),
    ]
    for node, (x, y) in zip(placed, expected):
        assert node.position.x == pytest.approx(x)
        assert node.position.y == pytest.approx(y)


def test_single_node_circle():
    placed = circular_layout(make_nodes("A"), [], 800, 600)
    assert placed[0].position == Point(400 + 0.35 * 600, 300)


# ----------------------------------------------------------------
# 3. HIERARCHICAL
# ----------------------------------------------------------------

def test_ranks_follow_longest_path():
    """
    A -> B -> D
    A -> D
    C isolated
    Expected ranks: A 0, B 1, D 2, C 0
    """
    nodes = make_nodes("A", "B", "C", "D")
    edges = make_edges(("A", "B"), ("B", "D"), ("A", "D"))
    assert assign_ranks(nodes, edges) == {"A": 0, "B": 1, "C": 0, "D": 2}


def test_ranks_with_cycle_do_not_hang():
    nodes = make_nodes("A", "B")
    edges = make_edges(("A", "B"), ("B", "A"))
    assert assign_ranks(nodes, edges) == {"A": 0, "B": 0}


def test_hierarchical_spacing_and_centering():
    placed = {n.id: n.position for n in hierarchical_layout(NODES, EDGES, 800, 600)}
    col = DEFAULT_SETTINGS.node_width + DEFAULT_SETTINGS.rank_sep
    row = DEFAULT_SETTINGS.node_height + DEFAULT_SETTINGS.node_sep

    # columns by rank, left to right
    assert placed["B"].x - placed["A"].x == pytest.approx(col)
    assert placed["C"].x - placed["B"].x == pytest.approx(col)
    assert placed["B"].x == pytest.approx(400)

    # A and D share rank 0, stacked in input order around the centre line
    assert placed["D"].x == placed["A"].x
    assert placed["D"].y - placed["A"].y == pytest.approx(row)
    assert (placed["A"].y + placed["D"].y) / 2 == pytest.approx(300)
    assert placed["B"].y == pytest.approx(300)


# ----------------------------------------------------------------
# 4. PINS & SIZING
# ----------------------------------------------------------------

@pytest.mark.parametrize("strategy", list(LayoutStrategy))
def test_pinned_node_is_placed_at_pin(strategy):
    nodes = list(NODES)
    nodes[2] = nodes[2].pinned_to(12.0, 34.0)

    placed = apply_layout(strategy, nodes, EDGES, 800, 600, seed=0)
    assert placed[2].position == Point(12.0, 34.0)


def test_node_radius_grows_with_effort():
    base = DEFAULT_SETTINGS.node_radius
    node = GraphNode(id="A", name="A", kind=NodeKind.INITIATIVE)

    assert node_radius(node) == base
    assert node_radius(GraphNode("A", "A", NodeKind.INITIATIVE, effort=10)) == base + 5
    assert node_radius(GraphNode("A", "A", NodeKind.INITIATIVE, effort=500)) == base * 1.5
