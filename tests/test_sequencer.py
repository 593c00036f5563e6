import pytest

from cxl_topo.core.exceptions import SequencingError
from cxl_topo.core.types import ComponentKind
from cxl_topo.topology import DependencySequencer, sequence

from conftest import VOLATILE_256, with_extra_connection


def _assert_parent_first(snapshot, order):
    position = {component_id: i for i, component_id in enumerate(order)}
    for _, parent, child in snapshot.edges():
        assert position[parent.id] < position[child.id]


def test_order_is_a_parent_first_permutation(switched_topology):
    graph, ids = switched_topology
    snapshot = graph.snapshot()
    order = sequence(snapshot)
    assert sorted(order) == sorted(c.id for c in snapshot.components)
    _assert_parent_first(snapshot, order)


def test_children_follow_downstream_port_order(switched_topology):
    graph, ids = switched_topology
    order = sequence(graph.snapshot())
    # T2 sits on dsp0 even though it was created and connected after T3
    assert order == [ids["hb"], ids["rp"], ids["sw"], ids["t2"], ids["t3"]]


def test_host_bridges_in_creation_order(graph):
    hb_b = graph.add_component(ComponentKind.HOST_BRIDGE)
    hb_a = graph.add_component(ComponentKind.HOST_BRIDGE)
    rp_a = graph.add_component(ComponentKind.ROOT_PORT)
    rp_b = graph.add_component(ComponentKind.ROOT_PORT)
    graph.connect_components(hb_a, rp_a)
    graph.connect_components(hb_b, rp_b)

    assert sequence(graph.snapshot()) == [hb_b, rp_b, hb_a, rp_a]


def test_disconnected_components_come_last(graph):
    loose_sw = graph.add_component(ComponentKind.SWITCH)
    loose_t3 = graph.add_component(ComponentKind.TYPE3_DEVICE, VOLATILE_256)
    hb = graph.add_component(ComponentKind.HOST_BRIDGE)
    rp = graph.add_component(ComponentKind.ROOT_PORT)
    graph.connect_components(hb, rp)
    graph.connect_components(loose_sw, loose_t3)

    assert DependencySequencer().sequence(graph.snapshot()) == [hb, rp, loose_sw, loose_t3]


def test_unmodified_graph_gives_same_order(switched_topology):
    graph, _ = switched_topology
    assert sequence(graph.snapshot()) == sequence(graph.snapshot())


def test_cycle_has_no_order(graph):
    sw1 = graph.add_component(ComponentKind.SWITCH)
    sw2 = graph.add_component(ComponentKind.SWITCH)
    graph.connect_components(sw1, sw2)
    snapshot = with_extra_connection(
        graph.snapshot(), graph.upstream_port(sw1).id, graph.downstream_ports(sw2)[0].id
    )
    with pytest.raises(SequencingError):
        sequence(snapshot)


def test_empty_graph(graph):
    assert sequence(graph.snapshot()) == []
