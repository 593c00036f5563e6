import pytest

from cxl_topo.core.exceptions import TopologyFileError
from cxl_topo.engine import compile_graph
from cxl_topo.loader import load_topology, load_topology_file

from conftest import SIMPLE_COMMAND


SIMPLE_YAML = """\
components:
  - name: hb0
    kind: host-bridge
  - name: rp0
    kind: root-port
    parent: hb0
  - name: mw0
    kind: memory-window
    parent: rp0
    properties:
      backing:
        memory_type: volatile
        size: 256
"""


def test_load_and_compile(tmp_path):
    path = tmp_path / "topology.yaml"
    path.write_text(SIMPLE_YAML, encoding="utf-8")

    graph, names = load_topology_file(path)
    assert list(names) == ["hb0", "rp0", "mw0"]
    assert compile_graph(graph).command == SIMPLE_COMMAND


def test_explicit_port(tmp_path):
    graph, names = load_topology({
        "components": [
            {"name": "hb", "kind": "host-bridge", "properties": {"root_ports": 2}},
            {"name": "rp", "kind": "root-port", "parent": "hb", "port": 1},
        ]
    })
    port = graph.downstream_ports(names["hb"])[1]
    assert graph.connection_at(port.id) is not None


def test_empty_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    graph, names = load_topology_file(path)
    assert len(graph) == 0
    assert names == {}


@pytest.mark.parametrize("data", [
    {"components": [{"name": "a", "kind": "host-bridge"}, {"name": "a", "kind": "root-port"}]},
    {"components": [{"name": "rp", "kind": "root-port", "parent": "missing"}]},
    {"components": [{"name": "rp", "kind": "root-port", "port": 0}]},
    {"components": [{"name": "x", "kind": "gpu"}]},
    {"components": [{"name": "sw", "kind": "switch", "properties": {"downstream_ports": 0}}]},
    {"components": [
        {"name": "rp", "kind": "root-port"},
        {"name": "sw1", "kind": "switch", "parent": "rp"},
        {"name": "sw2", "kind": "switch", "parent": "rp"},
    ]},
    {"devices": []},
])
def test_invalid_descriptions(data):
    with pytest.raises(TopologyFileError):
        load_topology(data)


def test_unreadable_or_malformed_file(tmp_path):
    with pytest.raises(TopologyFileError):
        load_topology_file(tmp_path / "missing.yaml")

    bad = tmp_path / "bad.yaml"
    bad.write_text("components: [\n", encoding="utf-8")
    with pytest.raises(TopologyFileError):
        load_topology_file(bad)

    scalar = tmp_path / "scalar.yaml"
    scalar.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(TopologyFileError):
        load_topology_file(scalar)
