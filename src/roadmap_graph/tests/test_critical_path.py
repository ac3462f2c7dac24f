import pytest

from roadmap_graph import (
    GraphEdge,
    GraphNode,
    NodeKind,
    build_graph,
    chain_edges,
    compute_critical_path,
    find_longest_chain,
)


def make_nodes(*ids):
    return [GraphNode(id=i, name=i, kind=NodeKind.INITIATIVE) for i in ids]


def make_edges(*pairs):
    return [GraphEdge(id=f"{s}-{t}", source_id=s, target_id=t) for s, t in pairs]


def assert_contiguous(chain, edges):
    """Every consecutive pair on the chain must be joined by an edge."""
    links = {(e.source_id, e.target_id) for e in edges}
    for a, b in zip(chain, chain[1:]):
        assert (a, b) in links


# ----------------------------------------------------------------
# 1. ACYCLIC GRAPHS
# ----------------------------------------------------------------

def test_simple_chain_with_isolated_node():
    """
    A -> B -> C, D isolated.
    Expected: {A, B, C}
    """
    nodes = make_nodes("A", "B", "C", "D")
    edges = make_edges(("A", "B"), ("B", "C"))

    assert find_longest_chain(nodes, edges) == ["A", "B", "C"]
    assert compute_critical_path(nodes, edges) == frozenset({"A", "B", "C"})


def test_branch_picks_longer_arm():
    """
    A -> B
    A -> C -> D
    Expected: A, C, D
    """
    nodes = make_nodes("A", "B", "C", "D")
    edges = make_edges(("A", "B"), ("A", "C"), ("C", "D"))

    chain = find_longest_chain(nodes, edges)
    assert chain == ["A", "C", "D"]
    assert_contiguous(chain, edges)


def test_tie_goes_to_first_chain_found():
    nodes = make_nodes("A", "B", "C")
    edges = make_edges(("A", "B"), ("A", "C"))

    assert find_longest_chain(nodes, edges) == ["A", "B"]


def test_chain_can_start_at_any_node():
    nodes = make_nodes("X", "A", "B", "C")
    edges = make_edges(("A", "B"), ("B", "C"))

    assert find_longest_chain(nodes, edges) == ["A", "B", "C"]


def test_disabled_mode_returns_empty_set():
    nodes = make_nodes("A", "B")
    edges = make_edges(("A", "B"))

    assert compute_critical_path(nodes, edges, enabled=False) == frozenset()


def test_empty_graph():
    assert compute_critical_path([], []) == frozenset()
    assert find_longest_chain([], []) == []


def test_no_edges_gives_single_node():
    nodes = make_nodes("A", "B")
    assert find_longest_chain(nodes, []) == ["A"]


def test_edges_to_unknown_nodes_are_ignored():
    nodes = make_nodes("A", "B")
    edges = make_edges(("A", "B"), ("B", "GHOST"))

    assert find_longest_chain(nodes, edges) == ["A", "B"]


# ----------------------------------------------------------------
# 2. CYCLES
# ----------------------------------------------------------------

def test_cycle_terminates():
    nodes = make_nodes("A", "B", "C")
    edges = make_edges(("A", "B"), ("B", "C"), ("C", "A"))

    chain = find_longest_chain(nodes, edges)
    assert chain == ["A", "B", "C"]
    assert_contiguous(chain, edges)


def test_cycle_with_tail():
    nodes = make_nodes("A", "B", "C", "D")
    edges = make_edges(("A", "B"), ("B", "A"), ("B", "C"), ("C", "D"))

    chain = find_longest_chain(nodes, edges)
    assert chain == ["A", "B", "C", "D"]
    assert len(set(chain)) == len(chain)


def test_search_depth_is_bounded():
    ids = [f"N{i}" for i in range(8)]
    nodes = make_nodes(*ids)
    pairs = list(zip(ids, ids[1:])) + [(ids[-1], ids[0])]
    edges = make_edges(*pairs)

    chain = find_longest_chain(nodes, edges, max_depth=3)
    assert len(chain) == 3
    assert_contiguous(chain, edges)


# ----------------------------------------------------------------
# 3. HELPERS & INTEGRATION
# ----------------------------------------------------------------

def test_chain_edges_returns_links_in_edge_order():
    edges = make_edges(("A", "B"), ("X", "Y"), ("B", "C"))
    assert [e.id for e in chain_edges(edges, ["A", "B", "C"])] == ["A-B", "B-C"]


@pytest.mark.parametrize("months", [
    [1, 2, 3, 4],
    [1, 3, 8, 9, 10],
    [1, 1, 2, 6, 12],
])
def test_critical_path_on_inferred_graph_is_contiguous(months):
    items = [
        {"id": f"I{i}", "name": f"I{i}",
         "start_date": f"2024-{m:02d}-01", "end_date": f"2024-{m:02d}-25"}
        for i, m in enumerate(months)
    ]
    nodes, edges = build_graph(items)
    chain = find_longest_chain(nodes, edges)

    assert 1 <= len(chain) <= len(nodes)
    assert_contiguous(chain, edges)
    assert set(chain) == compute_critical_path(nodes, edges)
