import numpy as np
import pytest

from roadmap_graph import ForceSimulation, GraphEdge, GraphNode, NodeKind, Point


def make_graph(n=5):
    nodes = [GraphNode(id=f"N{i}", name=f"N{i}", kind=NodeKind.INITIATIVE) for i in range(n)]
    edges = [
        GraphEdge(id=f"N{i}-N{i + 1}", source_id=f"N{i}", target_id=f"N{i + 1}")
        for i in range(n - 1)
    ]
    return nodes, edges


def test_same_seed_gives_same_layout():
    nodes, edges = make_graph()
    a = ForceSimulation(nodes, edges, 800, 600, seed=42).run()
    b = ForceSimulation(nodes, edges, 800, 600, seed=42).run()

    assert [n.position for n in a] == [n.position for n in b]


def test_run_places_every_node_and_stops():
    nodes, edges = make_graph()
    nodes.append(GraphNode(id="LONELY", name="Lonely", kind=NodeKind.SYSTEM))
    sim = ForceSimulation(nodes, edges, 800, 600, seed=1)

    placed = sim.run(max_ticks=1000)

    assert [n.id for n in placed] == [n.id for n in nodes]
    assert all(n.position is not None for n in placed)
    assert all(np.isfinite(n.position.x) and np.isfinite(n.position.y) for n in placed)
    assert not sim.is_running
    # alpha falls below alpha_min after 300 ticks at the default decay
    assert sim.ticks <= 301


def test_layout_stays_centred_and_spread_out():
    nodes, edges = make_graph(6)
    sim = ForceSimulation(nodes, edges, 800, 600, seed=3)
    sim.run()

    assert sim.pos.mean(axis=0) == pytest.approx([400.0, 300.0], abs=5.0)
    diff = sim.pos[:, None, :] - sim.pos[None, :, :]
    dist = np.sqrt((diff ** 2).sum(axis=2))
    np.fill_diagonal(dist, np.inf)
    assert dist.min() > sim.settings.node_radius


def test_input_nodes_are_not_mutated():
    nodes, edges = make_graph(3)
    ForceSimulation(nodes, edges, 800, 600, seed=0).run()
    assert all(n.position is None for n in nodes)


# ----------------------------------------------------------------
# LIFECYCLE
# ----------------------------------------------------------------

def test_step_is_noop_until_started():
    nodes, edges = make_graph(3)
    sim = ForceSimulation(nodes, edges, 800, 600, seed=0)
    before = sim.pos.copy()

    assert sim.step() is False
    assert sim.ticks == 0
    assert np.array_equal(sim.pos, before)


def test_stop_is_idempotent_and_final():
    nodes, edges = make_graph(3)
    sim = ForceSimulation(nodes, edges, 800, 600, seed=0).start()
    assert sim.is_running
    assert sim.step() is True

    sim.stop()
    sim.stop()
    ticks = sim.ticks

    assert not sim.is_running
    assert sim.step() is False
    assert sim.ticks == ticks


def test_running_context_stops_on_error():
    nodes, edges = make_graph(3)
    sim = ForceSimulation(nodes, edges, 800, 600, seed=0)

    with pytest.raises(RuntimeError):
        with sim.running():
            assert sim.is_running
            raise RuntimeError("host teardown")

    assert not sim.is_running


def test_empty_simulation():
    sim = ForceSimulation([], [], 800, 600)
    assert sim.run() == []
    assert not sim.is_running
    assert sim.position_of("missing") is None


def test_zero_canvas_is_clamped():
    nodes, edges = make_graph(2)
    sim = ForceSimulation(nodes, edges, 0, -10, seed=0)
    assert (sim.width, sim.height) == (1.0, 1.0)
    assert len(sim.run(max_ticks=5)) == 2


# ----------------------------------------------------------------
# PINNING
# ----------------------------------------------------------------

def test_pinned_node_holds_while_others_move():
    nodes, edges = make_graph(4)
    sim = ForceSimulation(nodes, edges, 800, 600, seed=11).start()

    assert sim.pin("N0", 100.0, 100.0)
    others_before = sim.pos[1:].copy()

    for _ in range(10):
        assert sim.step()
        assert sim.position_of("N0") == Point(100.0, 100.0)

    assert not np.allclose(sim.pos[1:], others_before)
    assert sim.positions()[0].pinned_position == Point(100.0, 100.0)
    sim.stop()


def test_unpin_releases_node():
    nodes, edges = make_graph(4)
    sim = ForceSimulation(nodes, edges, 800, 600, seed=11).start()
    sim.pin("N0", 100.0, 100.0)
    sim.step()

    assert sim.unpin("N0")
    sim.step()

    assert sim.position_of("N0") != Point(100.0, 100.0)
    assert sim.positions()[0].pinned_position is None
    sim.stop()


def test_pin_unknown_node():
    nodes, edges = make_graph(2)
    sim = ForceSimulation(nodes, edges, 800, 600, seed=0)
    assert sim.pin("GHOST", 1.0, 1.0) is False
    assert sim.unpin("GHOST") is False


def test_node_pinned_in_input_starts_fixed():
    nodes, edges = make_graph(3)
    nodes[1] = nodes[1].pinned_to(50.0, 60.0)
    placed = ForceSimulation(nodes, edges, 800, 600, seed=5).run()

    assert placed[1].position == Point(50.0, 60.0)


def test_settles_while_a_node_stays_pinned():
    nodes, edges = make_graph(4)
    sim = ForceSimulation(nodes, edges, 800, 600, seed=11)
    sim.run(max_ticks=20)

    assert sim.pin("N0", 100.0, 100.0, reheat=False)
    sim.reheat()
    assert sim.is_running

    for _ in range(1000):
        if not sim.step():
            break

    assert not sim.is_running
    assert sim.position_of("N0") == Point(100.0, 100.0)
    assert sim.positions()[0].pinned_position == Point(100.0, 100.0)


def test_reheat_raises_alpha_and_restarts():
    nodes, edges = make_graph(3)
    sim = ForceSimulation(nodes, edges, 800, 600, seed=0)
    sim.run()
    assert not sim.is_running

    sim.reheat(0.5)
    assert sim.is_running
    assert sim.alpha >= 0.5
    assert sim.alpha_target == 0.0
    sim.stop()
