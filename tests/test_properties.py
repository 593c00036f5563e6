import pytest

from cxl_topo.core.exceptions import PropertiesError
from cxl_topo.core.models.properties import (
    DynamicCapacityBacking,
    HostBridgeProperties,
    MemoryWindowProperties,
    PersistentBacking,
    RootPortProperties,
    SwitchProperties,
    Type3DeviceProperties,
    VolatileBacking,
    parse_properties,
)
from cxl_topo.core.types import ComponentKind, MemoryType


def test_defaults_per_kind():
    hb = parse_properties(ComponentKind.HOST_BRIDGE)
    assert isinstance(hb, HostBridgeProperties)
    assert hb.downstream_port_count == 4
    assert hb.bus_nr is None

    rp = parse_properties("root-port", {})
    assert isinstance(rp, RootPortProperties)
    assert rp.downstream_port_count == 1

    sw = parse_properties(ComponentKind.SWITCH, {"downstream_ports": 8})
    assert isinstance(sw, SwitchProperties)
    assert sw.downstream_port_count == 8


def test_device_backing_variants_are_tagged():
    props = parse_properties(ComponentKind.TYPE3_DEVICE, {
        "backing": [
            {"memory_type": "volatile", "size": 256},
            {"memory_type": "persistent", "size": 1024, "lsa_size": 1},
            {"memory_type": "dynamic-capacity", "extents": [128, 128]},
        ],
        "serial": 42,
    })
    assert isinstance(props, Type3DeviceProperties)
    volatile, persistent, dynamic = props.memory_backings
    assert isinstance(volatile, VolatileBacking)
    assert isinstance(persistent, PersistentBacking)
    assert isinstance(dynamic, DynamicCapacityBacking)
    assert persistent.lsa_size == 1
    assert dynamic.total_size == 256
    assert dynamic.region_count == 2


def test_memory_type_values_are_fixed_strings():
    assert [m.value for m in MemoryType] == ["volatile", "persistent", "dynamic-capacity"]


def test_memory_window_holds_exactly_one_backing():
    props = parse_properties(ComponentKind.MEMORY_WINDOW, {"backing": {"memory_type": "volatile", "size": 256}})
    assert isinstance(props, MemoryWindowProperties)
    assert len(props.memory_backings) == 1

    with pytest.raises(PropertiesError):
        parse_properties(ComponentKind.MEMORY_WINDOW, {})


def test_dynamic_capacity_pool_exposes_backing():
    props = parse_properties(ComponentKind.DYNAMIC_CAPACITY_POOL, {"extents": [64, 64, 128]})
    (backing,) = props.memory_backings
    assert backing.memory_type == "dynamic-capacity"
    assert backing.total_size == 256


@pytest.mark.parametrize("kind, data", [
    (ComponentKind.HOST_BRIDGE, {"root_ports": 0}),
    (ComponentKind.SWITCH, {"downstream_ports": 64}),
    (ComponentKind.ROOT_PORT, {"speed": 5}),
    (ComponentKind.TYPE3_DEVICE, {"backing": []}),
    (ComponentKind.TYPE3_DEVICE, {"backing": [{"memory_type": "volatile", "size": 0}]}),
    (ComponentKind.TYPE3_DEVICE, {"backing": [{"memory_type": "flash", "size": 16}]}),
    (ComponentKind.TYPE2_DEVICE, {"backing": [
        {"memory_type": "volatile", "size": 16},
        {"memory_type": "volatile", "size": 32},
    ]}),
    (ComponentKind.DYNAMIC_CAPACITY_POOL, {"extents": []}),
    (ComponentKind.DYNAMIC_CAPACITY_POOL, {"extents": [1] * 9}),
])
def test_invalid_properties_rejected_at_construction(kind, data):
    with pytest.raises(PropertiesError):
        parse_properties(kind, data)


def test_unknown_kind_rejected():
    with pytest.raises(PropertiesError):
        parse_properties("network-card", {})


def test_kind_mismatch_rejected():
    with pytest.raises(PropertiesError):
        parse_properties(ComponentKind.SWITCH, {"kind": "host-bridge"})
    with pytest.raises(PropertiesError):
        parse_properties(ComponentKind.SWITCH, HostBridgeProperties())


def test_variant_instance_is_accepted_as_is():
    props = SwitchProperties(downstream_ports=2)
    assert parse_properties("switch", props) is props


def test_properties_are_immutable():
    props = SwitchProperties(downstream_ports=2)
    with pytest.raises(Exception):
        props.downstream_ports = 3
