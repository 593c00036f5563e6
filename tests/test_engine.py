import pytest

from cxl_topo.config import AppSettings
from cxl_topo.core.exceptions import CyclicConnectionError, PortOccupiedError
from cxl_topo.core.types import ComponentKind
from cxl_topo.engine import TopologyCompiler, compile_graph, compile_topology

from conftest import SIMPLE_COMMAND, VOLATILE_256


def test_compile_complete_topology(simple_topology):
    graph, ids = simple_topology
    result = compile_graph(graph)
    assert result.success
    assert result.command == SIMPLE_COMMAND
    assert result.to_dict() == {"command": SIMPLE_COMMAND}
    assert result.identifiers[ids["mw"]] == "memorywindow0"


def test_compile_reports_unconnected_root_port(graph):
    hb = graph.add_component(ComponentKind.HOST_BRIDGE)
    rp = graph.add_component(ComponentKind.ROOT_PORT)
    mw = graph.add_component(ComponentKind.MEMORY_WINDOW, VOLATILE_256)
    graph.connect_components(rp, mw)

    result = compile_graph(graph)
    assert not result.success
    assert result.command == ""
    assert result.to_dict() == {"violations": [{"kind": "completeness", "componentId": rp}]}
    assert hb not in [v.component_id for v in result.violations]


def test_structural_violation_blocks_compile(graph):
    hb = graph.add_component(ComponentKind.HOST_BRIDGE)
    sw = graph.add_component(ComponentKind.SWITCH)
    connection_id = graph.connect_components(hb, sw)

    result = compile_topology(graph.snapshot())
    assert not result.success
    assert result.to_dict() == {
        "violations": [{"kind": "role", "componentId": sw, "connectionId": connection_id}]
    }


def test_all_violations_reported_together(graph):
    hb = graph.add_component(ComponentKind.HOST_BRIDGE)
    sw = graph.add_component(ComponentKind.SWITCH)
    t3 = graph.add_component(ComponentKind.TYPE3_DEVICE, VOLATILE_256)
    graph.connect_components(hb, sw)

    result = compile_graph(graph)
    kinds = [(v["kind"], v["componentId"]) for v in result.to_dict()["violations"]]
    assert kinds == [("role", sw), ("completeness", t3)]


def test_compile_uses_snapshot_taken_at_call(simple_topology):
    graph, ids = simple_topology
    snapshot = graph.snapshot()
    graph.remove_component(ids["rp"])

    result = TopologyCompiler().compile(snapshot)
    assert result.success
    assert result.command == SIMPLE_COMMAND
    assert not compile_graph(graph).success


def test_compile_with_settings(simple_topology):
    graph, _ = simple_topology
    settings = AppSettings(emit_machine=True, bus_nr_base=100)
    result = TopologyCompiler(settings).compile(graph.snapshot())
    assert result.command.startswith("-M q35,cxl=on,cxl-fmw.0.targets.0=hostbridge0")
    assert "-device pxb-cxl,bus_nr=100,bus=pcie.0,id=hostbridge0" in result.fragments


def test_bus_number_exhaustion_fails_compile(graph):
    for _ in range(26):
        graph.add_component(ComponentKind.HOST_BRIDGE)
    result = compile_graph(graph)
    assert not result.success
    assert result.command == ""
    assert [v["kind"] for v in result.to_dict()["violations"]] == ["bus-number"]


def test_rejections_and_failures_keep_stdout_clean(graph, capsys):
    rp = graph.add_component(ComponentKind.ROOT_PORT)
    sw1 = graph.add_component(ComponentKind.SWITCH)
    sw2 = graph.add_component(ComponentKind.SWITCH)
    graph.connect_components(rp, sw1)
    with pytest.raises(PortOccupiedError):
        graph.connect(graph.upstream_port(sw2).id, graph.downstream_ports(rp)[0].id)
    with pytest.raises(CyclicConnectionError):
        graph.connect_components(sw1, rp)
    assert not compile_graph(graph).success

    assert capsys.readouterr().out == ""
