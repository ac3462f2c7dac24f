# roadmap_graph/engine/model.py

"""
Core value types shared by the builder, the analyzer and the layouts.

A GraphSnapshot is immutable: layouts and the simulation hand back new
GraphNode copies carrying a position, they never touch the snapshot.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, NamedTuple, Optional, Tuple


class NodeKind(str, Enum):
    INITIATIVE = "initiative"
    SYSTEM = "system"


class NodeFilter(str, Enum):
    INITIATIVES = "initiatives"
    SYSTEMS = "systems"
    BOTH = "both"

    @classmethod
    def _missing_(cls, value):
        # the host toolbar calls systems "entities" in a few places
        if isinstance(value, str):
            text = value.strip().lower()
            if text in ("entities", "entity", "systems-only", "entities-only"):
                return cls.SYSTEMS
            if text in ("initiatives-only", "initiative"):
                return cls.INITIATIVES
            for member in cls:
                if member.value == text:
                    return member
        return None

    def includes(self, kind: NodeKind) -> bool:
        if self is NodeFilter.BOTH:
            return True
        if self is NodeFilter.INITIATIVES:
            return kind is NodeKind.INITIATIVE
        return kind is NodeKind.SYSTEM


class LayoutStrategy(str, Enum):
    FORCE = "force"
    HIERARCHICAL = "hierarchical"
    CIRCULAR = "circular"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            text = value.strip().lower()
            for member in cls:
                if member.value == text:
                    return member
        return None


class Point(NamedTuple):
    x: float
    y: float


FINISH_TO_START = "finish-to-start"


@dataclass(frozen=True)
class GraphNode:
    id: str
    name: str
    kind: NodeKind
    status: Optional[str] = None
    initiative_type: Optional[str] = None
    effort: Optional[float] = None
    position: Optional[Point] = None
    pinned_position: Optional[Point] = None

    @property
    def is_pinned(self) -> bool:
        return self.pinned_position is not None

    def at(self, x: float, y: float) -> "GraphNode":
        return replace(self, position=Point(float(x), float(y)))

    def pinned_to(self, x: float, y: float) -> "GraphNode":
        pin = Point(float(x), float(y))
        return replace(self, position=pin, pinned_position=pin)

    def unpinned(self) -> "GraphNode":
        return replace(self, pinned_position=None)


@dataclass(frozen=True)
class GraphEdge:
    id: str
    source_id: str
    target_id: str
    relation_type: str = FINISH_TO_START
    satisfied: bool = True
    lag_days: int = 0


@dataclass(frozen=True)
class GraphSnapshot:
    """One coherent (nodes, edges) pair built from a single input state."""

    nodes: Tuple[GraphNode, ...] = ()
    edges: Tuple[GraphEdge, ...] = ()
    _index: Dict[str, int] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "edges", tuple(self.edges))
        self._index.update({n.id: i for i, n in enumerate(self.nodes)})

    @property
    def node_ids(self) -> Tuple[str, ...]:
        return tuple(n.id for n in self.nodes)

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    def has_node(self, node_id) -> bool:
        return node_id in self._index

    def node(self, node_id) -> Optional[GraphNode]:
        idx = self._index.get(node_id)
        return None if idx is None else self.nodes[idx]


EMPTY_SNAPSHOT = GraphSnapshot()


MIN_CANVAS = 1.0


def clamp_canvas(width, height):
    """Canvas size in px; zero or negative sizes collapse to 1px."""
    return max(float(width), MIN_CANVAS), max(float(height), MIN_CANVAS)
