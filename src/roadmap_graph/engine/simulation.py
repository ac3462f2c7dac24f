# roadmap_graph/engine/simulation.py

"""
Force-directed simulation as an owned, explicitly stopped resource.

The host advances it one `step()` per frame. Whoever starts it must stop
it on every exit path (strategy switch, new snapshot, teardown); the
`running()` context manager does that for scoped use.

Forces follow the d3-force model: link springs, pairwise many-body charge,
a centring shift and collision resolution, with alpha cooling and
velocity decay.
"""

import logging
from contextlib import contextmanager
from typing import List, Optional

import numpy as np

from roadmap_graph.engine.model import GraphNode, Point, clamp_canvas
from roadmap_graph.settings import DEFAULT_SETTINGS, LayoutSettings

logger = logging.getLogger(__name__)

REHEAT_ALPHA_TARGET = 0.3

IDLE = "idle"
RUNNING = "running"
STOPPED = "stopped"


def make_rng(seed=None) -> np.random.Generator:
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)


class ForceSimulation:
    """
    Usage:

        sim = ForceSimulation(nodes, edges, 800, 600, seed=7)
        with sim.running():
            while sim.step():
                draw(sim.positions())
    """

    def __init__(self, nodes, edges, width, height,
                 settings: LayoutSettings = DEFAULT_SETTINGS, seed=None):
        self.settings = settings
        self.width, self.height = clamp_canvas(width, height)
        self._rng = make_rng(seed)

        self._nodes: List[GraphNode] = list(nodes)
        self._index = {n.id: i for i, n in enumerate(self._nodes)}

        n = len(self._nodes)
        src, dst = [], []
        for e in edges:
            s, t = self._index.get(e.source_id), self._index.get(e.target_id)
            if s is None or t is None or s == t:
                continue
            src.append(s)
            dst.append(t)
        self._src = np.array(src, dtype=int)
        self._dst = np.array(dst, dtype=int)

        # d3 forceLink defaults: strength = 1 / min(degree), bias by degree
        degree = np.bincount(np.concatenate([self._src, self._dst]), minlength=n).astype(float)
        if len(src):
            self._link_strength = 1.0 / np.minimum(degree[self._src], degree[self._dst])
            self._link_bias = degree[self._src] / (degree[self._src] + degree[self._dst])
        else:
            self._link_strength = np.zeros(0)
            self._link_bias = np.zeros(0)

        cx, cy = self.width / 2.0, self.height / 2.0
        jitter = settings.initial_jitter
        self.pos = np.column_stack([
            cx + self._rng.uniform(-jitter, jitter, n),
            cy + self._rng.uniform(-jitter, jitter, n),
        ]) if n else np.zeros((0, 2))
        self.vel = np.zeros((n, 2))
        self.fixed = np.zeros(n, dtype=bool)

        for i, node in enumerate(self._nodes):
            if node.pinned_position is not None:
                self._fix(i, node.pinned_position.x, node.pinned_position.y)

        self.alpha = 1.0
        self.alpha_target = 0.0
        self.ticks = 0
        self._state = IDLE

    # -----------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._state == RUNNING

    def start(self) -> "ForceSimulation":
        if self._state != RUNNING:
            if self._state == STOPPED:
                self.alpha = max(self.alpha, REHEAT_ALPHA_TARGET)
            self._state = RUNNING
            logger.debug("Force simulation started (%d nodes)", len(self._nodes))
        return self

    def reheat(self, alpha: float = REHEAT_ALPHA_TARGET) -> "ForceSimulation":
        """Raise alpha to at least `alpha` and run; it cools back towards alpha_target."""
        self.alpha = max(self.alpha, alpha)
        return self.start()

    def stop(self) -> None:
        """Hard stop at the current tick boundary. Safe to call repeatedly."""
        if self._state == RUNNING:
            logger.debug("Force simulation stopped after %d tick(s)", self.ticks)
        self._state = STOPPED

    @contextmanager
    def running(self):
        self.start()
        try:
            yield self
        finally:
            self.stop()

    # -----------------------------------------------------------
    # Pinning (drag)
    # -----------------------------------------------------------

    def _fix(self, i, x, y):
        self.fixed[i] = True
        self.pos[i] = (float(x), float(y))
        self.vel[i] = 0.0

    def pin(self, node_id, x, y, reheat: bool = True) -> bool:
        """
        Hold a node at (x, y). Returns False for an unknown id.

        With `reheat` the simulation stays warm (alpha_target 0.3) until
        `unpin()`, like a pointer drag in progress. Without it the node just
        stays fixed and the layout settles around it.
        """
        i = self._index.get(node_id)
        if i is None:
            return False
        self._fix(i, x, y)
        self._nodes[i] = self._nodes[i].pinned_to(x, y)
        if reheat:
            self.alpha_target = REHEAT_ALPHA_TARGET
        return True

    def unpin(self, node_id) -> bool:
        i = self._index.get(node_id)
        if i is None:
            return False
        self.fixed[i] = False
        self._nodes[i] = self._nodes[i].unpinned()
        self.alpha_target = 0.0
        return True

    # -----------------------------------------------------------
    # Forces
    # -----------------------------------------------------------

    def _jiggle(self, shape):
        return (self._rng.random(shape) - 0.5) * 1e-6

    def _apply_links(self, alpha):
        if not len(self._src):
            return
        s, t = self._src, self._dst
        delta = (self.pos[t] + self.vel[t]) - (self.pos[s] + self.vel[s])
        zero = np.all(delta == 0, axis=1)
        if zero.any():
            delta[zero] = self._jiggle((int(zero.sum()), 2))
        dist = np.linalg.norm(delta, axis=1)
        k = (dist - self.settings.link_distance) / dist * alpha * self._link_strength
        delta *= k[:, None]
        np.add.at(self.vel, t, -delta * self._link_bias[:, None])
        np.add.at(self.vel, s, delta * (1.0 - self._link_bias)[:, None])

    def _apply_charge(self, alpha):
        n = len(self.pos)
        if n < 2:
            return
        diff = self.pos[None, :, :] - self.pos[:, None, :]
        l2 = np.maximum((diff ** 2).sum(axis=2), 1.0)
        w = self.settings.charge_strength * alpha / l2
        np.fill_diagonal(w, 0.0)
        self.vel += (diff * w[:, :, None]).sum(axis=1)

    def _apply_collision(self):
        n = len(self.pos)
        if n < 2:
            return
        r = self.settings.collision_radius
        nxt = self.pos + self.vel
        diff = nxt[:, None, :] - nxt[None, :, :]
        l2 = (diff ** 2).sum(axis=2)
        np.fill_diagonal(l2, np.inf)
        overlap = l2 < (2 * r) ** 2
        if not overlap.any():
            return
        coincident = overlap & (l2 == 0)
        if coincident.any():
            diff[coincident] = self._jiggle((int(coincident.sum()), 2))
            l2 = np.where(coincident, (diff ** 2).sum(axis=2), l2)
        dist = np.sqrt(l2)
        k = np.where(overlap, (2 * r - dist) / np.where(overlap, dist, 1.0), 0.0)
        # equal radii: each node of a pair takes half the push
        self.vel += (diff * (0.5 * k)[:, :, None]).sum(axis=1)

    def _apply_center(self):
        if not len(self.pos):
            return
        shift = self.pos.mean(axis=0) - (self.width / 2.0, self.height / 2.0)
        self.pos -= shift * self.settings.center_strength

    # -----------------------------------------------------------
    # Tick
    # -----------------------------------------------------------

    def kinetic_energy(self) -> float:
        free = ~self.fixed
        if not free.any():
            return 0.0
        return float(0.5 * (self.vel[free] ** 2).sum() / free.sum())

    def tick(self) -> None:
        """One integration step, regardless of the running state."""
        s = self.settings
        self.alpha += (self.alpha_target - self.alpha) * s.alpha_decay

        self._apply_links(self.alpha)
        self._apply_charge(self.alpha)
        self._apply_collision()
        self._apply_center()

        free = ~self.fixed
        self.vel[free] *= (1.0 - s.velocity_decay)
        self.pos[free] += self.vel[free]
        self.vel[self.fixed] = 0.0
        for i in np.flatnonzero(self.fixed):
            pin = self._nodes[i].pinned_position
            self.pos[i] = (pin.x, pin.y)

        self.ticks += 1

    def converged(self) -> bool:
        if not len(self.pos) or not (~self.fixed).any():
            return True
        if self.alpha < self.settings.alpha_min:
            return True
        return self.ticks > 0 and self.alpha_target == 0.0 and \
            self.kinetic_energy() < self.settings.energy_threshold

    def step(self) -> bool:
        """
        Advance one tick if running. Returns whether the simulation is
        still running afterwards; convergence stops it.
        """
        if self._state != RUNNING:
            return False
        self.tick()
        if self.converged():
            logger.debug("Force simulation converged after %d tick(s)", self.ticks)
            self._state = STOPPED
        return self._state == RUNNING

    def run(self, max_ticks: Optional[int] = None) -> List[GraphNode]:
        """Run to convergence (bounded by max_ticks) and return positions."""
        limit = self.settings.max_ticks if max_ticks is None else int(max_ticks)
        with self.running():
            for _ in range(limit):
                if not self.step():
                    break
        return self.positions()

    def positions(self) -> List[GraphNode]:
        return [node.at(x, y) for node, (x, y) in zip(self._nodes, self.pos.tolist())]

    def position_of(self, node_id) -> Optional[Point]:
        i = self._index.get(node_id)
        if i is None:
            return None
        return Point(float(self.pos[i, 0]), float(self.pos[i, 1]))
