# roadmap_graph/engine/critical_path.py

import logging
from collections import defaultdict, deque
from typing import Dict, FrozenSet, List

from roadmap_graph.engine.model import GraphEdge

logger = logging.getLogger(__name__)

DEFAULT_MAX_SEARCH_DEPTH = 10_000


# ---------------------------------------------------------
# ADJACENCY
# ---------------------------------------------------------

def build_adjacency(nodes, edges):
    """
    ids:        node ids in input order
    edges_from: dict {source: [target, ...]} in edge order

    Edges with an endpoint outside `nodes` are ignored.
    """
    ids = [n.id for n in nodes]
    known = set(ids)

    edges_from = defaultdict(list)
    for e in edges:
        if e.source_id in known and e.target_id in known:
            edges_from[e.source_id].append(e.target_id)

    return ids, edges_from


def topological_order(ids, edges_from) -> List[str]:
    """
    Kahn's algorithm. The result is shorter than `ids` when the
    graph contains a cycle.
    """
    indeg = {n: 0 for n in ids}
    for succs in edges_from.values():
        for s in succs:
            indeg[s] += 1

    q = deque([n for n in ids if indeg[n] == 0])
    topo = []
    while q:
        n = q.popleft()
        topo.append(n)
        for succ in edges_from.get(n, []):
            indeg[succ] -= 1
            if indeg[succ] == 0:
                q.append(succ)

    return topo


# ---------------------------------------------------------
# LONGEST CHAIN
# ---------------------------------------------------------

def _longest_chain_acyclic(ids, edges_from, topo) -> List[str]:
    length: Dict[str, int] = {n: 1 for n in ids}
    nxt: Dict[str, str] = {}

    for n in reversed(topo):
        for succ in edges_from.get(n, []):
            if length[succ] + 1 > length[n]:
                length[n] = length[succ] + 1
                nxt[n] = succ

    best_start = None
    for n in ids:
        if best_start is None or length[n] > length[best_start]:
            best_start = n

    chain = []
    node = best_start
    while node is not None:
        chain.append(node)
        node = nxt.get(node)
    return chain


def _longest_from(start, edges_from, max_depth) -> List[str]:
    # frame: [node, successor iterator, best path found from node]
    on_path = {start}
    stack = [[start, iter(edges_from.get(start, [])), [start]]]

    while True:
        frame = stack[-1]
        descended = False

        if len(stack) < max_depth:
            for succ in frame[1]:
                if succ in on_path:
                    continue
                on_path.add(succ)
                stack.append([succ, iter(edges_from.get(succ, [])), [succ]])
                descended = True
                break

        if descended:
            continue

        stack.pop()
        on_path.discard(frame[0])
        if not stack:
            return frame[2]

        parent = stack[-1]
        if len(frame[2]) + 1 > len(parent[2]):
            parent[2] = [parent[0]] + frame[2]


def _longest_chain_bounded(ids, edges_from, max_depth) -> List[str]:
    longest: List[str] = []
    for n in ids:
        path = _longest_from(n, edges_from, max_depth)
        if len(path) > len(longest):
            longest = path
    return longest


def find_longest_chain(nodes, edges, max_depth: int = DEFAULT_MAX_SEARCH_DEPTH) -> List[str]:
    """
    Ordered node ids of the longest directed chain.

    Acyclic input (the normal case) is solved with one pass over a
    topological order. When a cycle is present the search falls back to a
    depth-first walk that never revisits a node on the current path and
    never goes deeper than `max_depth` nodes.

    Ties go to the first longest chain found: starting nodes are tried in
    node order and successors in edge order.
    """
    ids, edges_from = build_adjacency(nodes, edges)
    if not ids:
        return []

    topo = topological_order(ids, edges_from)
    if len(topo) == len(ids):
        return _longest_chain_acyclic(ids, edges_from, topo)

    logger.warning(
        "Dependency graph has a cycle through %d node(s); using bounded search",
        len(ids) - len(topo),
    )
    return _longest_chain_bounded(ids, edges_from, max(1, int(max_depth)))


def compute_critical_path(nodes, edges, enabled: bool = True,
                          max_depth: int = DEFAULT_MAX_SEARCH_DEPTH) -> FrozenSet[str]:
    """
    Node ids on the critical path (the longest discovered chain).

    Disabled mode returns an empty set without looking at the graph.
    A result of size 0 or 1 means there is no chain beyond isolated nodes.
    """
    if not enabled:
        return frozenset()
    return frozenset(find_longest_chain(nodes, edges, max_depth=max_depth))


def chain_edges(edges, chain) -> List[GraphEdge]:
    """Edges joining consecutive members of an ordered chain."""
    links = set(zip(chain, chain[1:]))
    return [e for e in edges if (e.source_id, e.target_id) in links]

