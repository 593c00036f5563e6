import pytest

from cxl_topo.core.models import Connection, GraphSnapshot
from cxl_topo.core.types import ComponentKind
from cxl_topo.graph import GraphModel


VOLATILE_256 = {"backing": {"memory_type": "volatile", "size": 256}}

SIMPLE_COMMAND = (
    "-device pxb-cxl,bus_nr=12,bus=pcie.0,id=hostbridge0 "
    "-device cxl-rp,port=0,bus=hostbridge0,id=rootport0,chassis=0,slot=0 "
    "-object memory-backend-ram,id=vmem0,share=on,size=256M "
    "-device cxl-type3,bus=rootport0,volatile-memdev=vmem0,id=memorywindow0"
)


@pytest.fixture
def graph():
    return GraphModel()


@pytest.fixture
def simple_topology(graph):
    """HB1 -> RP1 -> MW1 (volatile, 256MiB)"""
    hb = graph.add_component(ComponentKind.HOST_BRIDGE)
    rp = graph.add_component(ComponentKind.ROOT_PORT)
    mw = graph.add_component(ComponentKind.MEMORY_WINDOW, VOLATILE_256)
    graph.connect_components(hb, rp)
    graph.connect_components(rp, mw)
    return graph, {"hb": hb, "rp": rp, "mw": mw}


@pytest.fixture
def switched_topology(graph):
    """HB -> RP -> SW(2 ports) -> {T3 on dsp1, T2 on dsp0}"""
    hb = graph.add_component(ComponentKind.HOST_BRIDGE, {"root_ports": 2})
    rp = graph.add_component(ComponentKind.ROOT_PORT)
    sw = graph.add_component(ComponentKind.SWITCH, {"downstream_ports": 2})
    t3 = graph.add_component(ComponentKind.TYPE3_DEVICE, {"backing": [{"memory_type": "volatile", "size": 512}]})
    t2 = graph.add_component(ComponentKind.TYPE2_DEVICE, {"backing": [{"memory_type": "volatile", "size": 128}]})
    graph.connect_components(hb, rp)
    graph.connect_components(rp, sw)
    graph.connect_components(sw, t3, 1)
    graph.connect_components(sw, t2, 0)
    return graph, {"hb": hb, "rp": rp, "sw": sw, "t3": t3, "t2": t2}


def with_extra_connection(snapshot, upstream_port_id, downstream_port_id, connection_id="extra"):
    """在快照上追加一条图模型不会接受的连接"""
    extra = Connection(
        id=connection_id,
        upstream_port_id=upstream_port_id,
        downstream_port_id=downstream_port_id,
        creation_index=10_000 + len(snapshot.connections),
    )
    return GraphSnapshot(components=snapshot.components, connections=snapshot.connections + (extra,))
