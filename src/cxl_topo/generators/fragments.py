"""
参数片段生成器
每种组件一个生成器，输出 QEMU 的 -device / -object 片段
"""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol, Tuple

from pydantic import Field

from ..config.defaults import (
    BUS_NR_DEFAULT_BASE,
    BUS_NR_DEFAULT_STRIDE,
    EMIT_MACHINE_DEFAULT,
    PCIE_DEFAULT_CHASSIS,
    PCIE_DEFAULT_FIRST_SLOT,
    PLATFORM_ROOT_BUS,
    PMEM_DEFAULT_DIR,
    QEMU_DEFAULT_MACHINE,
)
from ..core.exceptions import SequencingError
from ..core.models import BaseConfig, Component, GraphSnapshot, Port
from ..core.models.properties import DynamicCapacityBacking, PersistentBacking, VolatileBacking
from ..core.types import ComponentKind, MemoryType, enum_value


class SynthesisOptions(BaseConfig):
    """命令合成选项"""
    emit_machine: bool = Field(default=EMIT_MACHINE_DEFAULT, description="输出 -M 机器选项")
    machine: str = Field(default=QEMU_DEFAULT_MACHINE, description="机器类型")
    bus_nr_base: int = Field(default=BUS_NR_DEFAULT_BASE, ge=0, le=255)
    bus_nr_stride: int = Field(default=BUS_NR_DEFAULT_STRIDE, ge=1, le=128)
    chassis: int = Field(default=PCIE_DEFAULT_CHASSIS, ge=0, le=255)
    first_slot: int = Field(default=PCIE_DEFAULT_FIRST_SLOT, ge=0, le=255)
    pmem_dir: str = Field(default=PMEM_DEFAULT_DIR, min_length=1, pattern=r"^\S+$")

    @classmethod
    def from_settings(cls, settings) -> SynthesisOptions:
        """从 AppSettings 构造"""
        return cls(
            emit_machine=settings.emit_machine,
            machine=settings.machine,
            bus_nr_base=settings.bus_nr_base,
            bus_nr_stride=settings.bus_nr_stride,
            chassis=settings.chassis,
            first_slot=settings.first_slot,
            pmem_dir=settings.pmem_dir,
        )


def _escape(value: str) -> str:
    """QEMU 选项值中的逗号需要写成两个逗号"""
    return value.replace(",", ",,")


class Fragment(BaseConfig):
    """一个参数片段：类型标记 + 逗号分隔的 key=value 列表"""
    marker: str = Field(description="片段类型标记，例如 -device")
    driver: str = Field(description="驱动或后端类型")
    options: Tuple[Tuple[str, str], ...] = Field(default=(), description="key=value 选项")

    def render(self) -> str:
        tokens = [self.driver] + [f"{key}={_escape(value)}" for key, value in self.options]
        return f"{self.marker} {','.join(tokens)}"

    def get(self, key: str) -> Optional[str]:
        return next((value for k, value in self.options if k == key), None)


class SynthesisContext:
    """一次合成过程的状态：序号计数器、已分配的标识符和总线"""

    def __init__(
        self,
        snapshot: GraphSnapshot,
        options: SynthesisOptions,
        bus_numbers: Optional[Dict[str, int]] = None,
    ):
        self.snapshot = snapshot
        self.options = options
        self.bus_numbers: Dict[str, int] = dict(bus_numbers or {})
        self.identifiers: Dict[str, str] = {}
        self.hierarchy_root: Dict[str, str] = {}
        self._kind_ordinals: Dict[str, int] = {}
        self._object_ordinals: Dict[str, int] = {}
        self._port_buses: Dict[str, str] = {}
        self._next_slot = options.first_slot

    def assign_identifier(self, component: Component) -> Tuple[str, int]:
        """按种类分配外部标识符：种类名 + 种类内序号"""
        kind = component.kind_enum
        ordinal = self._kind_ordinals.get(kind.value, 0)
        self._kind_ordinals[kind.value] = ordinal + 1
        identifier = f"{kind.identifier_prefix}{ordinal}"
        self.identifiers[component.id] = identifier
        return identifier, ordinal

    def next_object_id(self, prefix: str) -> str:
        ordinal = self._object_ordinals.get(prefix, 0)
        self._object_ordinals[prefix] = ordinal + 1
        return f"{prefix}{ordinal}"

    def next_slot(self) -> int:
        slot = self._next_slot
        self._next_slot += 1
        return slot

    def register_bus(self, port: Port, bus: str) -> None:
        """登记下行端口对应的总线名，子组件通过它引用父组件"""
        self._port_buses[port.id] = bus

    def parent_bus(self, component: Component) -> Tuple[str, Port]:
        """解析父组件的总线引用；父组件必须已经输出"""
        parent = self.snapshot.parent_of(component.id)
        if parent is None:
            raise SequencingError(f"组件 {component.id} 没有父组件")
        parent_component, downstream = parent
        bus = self._port_buses.get(downstream.id)
        if bus is None:
            raise SequencingError(
                f"组件 {component.id} 在其父组件 {parent_component.id} 之前输出"
            )
        self.hierarchy_root[component.id] = self.hierarchy_root[parent_component.id]
        return bus, downstream


class FragmentEmitter(Protocol):
    """片段生成器协议"""

    def generate(self, component: Component, ctx: SynthesisContext) -> List[Fragment]:
        ...


class HostBridgeEmitter:
    """主机桥：pxb-cxl 总线桥，挂在平台根总线上"""

    @staticmethod
    def generate(component: Component, ctx: SynthesisContext) -> List[Fragment]:
        identifier, _ = ctx.assign_identifier(component)
        ctx.hierarchy_root[component.id] = component.id
        bus_nr = ctx.bus_numbers.get(component.id, component.properties.bus_nr)
        if bus_nr is None:
            raise SequencingError(f"主机桥 {component.id} 没有分配总线号")
        for port in component.downstream_ports:
            ctx.register_bus(port, identifier)
        return [Fragment(
            marker="-device",
            driver="pxb-cxl",
            options=(("bus_nr", str(bus_nr)), ("bus", PLATFORM_ROOT_BUS), ("id", identifier)),
        )]


class RootPortEmitter:
    """根端口：cxl-rp，port 为其在主机桥上的下行端口序号"""

    @staticmethod
    def generate(component: Component, ctx: SynthesisContext) -> List[Fragment]:
        identifier, _ = ctx.assign_identifier(component)
        bus, parent_port = ctx.parent_bus(component)
        for port in component.downstream_ports:
            ctx.register_bus(port, identifier)
        return [Fragment(
            marker="-device",
            driver="cxl-rp",
            options=(
                ("port", str(parent_port.index)),
                ("bus", bus),
                ("id", identifier),
                ("chassis", str(ctx.options.chassis)),
                ("slot", str(ctx.next_slot())),
            ),
        )]


class SwitchEmitter:
    """交换机：cxl-upstream，后跟每个下行端口的 cxl-downstream"""

    @staticmethod
    def generate(component: Component, ctx: SynthesisContext) -> List[Fragment]:
        identifier, _ = ctx.assign_identifier(component)
        bus, _ = ctx.parent_bus(component)
        fragments = [Fragment(
            marker="-device",
            driver="cxl-upstream",
            options=(("bus", bus), ("id", identifier)),
        )]
        for port in component.downstream_ports:
            port_id = f"{identifier}-dsp{port.index}"
            ctx.register_bus(port, port_id)
            fragments.append(Fragment(
                marker="-device",
                driver="cxl-downstream",
                options=(
                    ("port", str(port.index)),
                    ("bus", identifier),
                    ("id", port_id),
                    ("chassis", str(ctx.options.chassis)),
                    ("slot", str(ctx.next_slot())),
                ),
            ))
        return fragments


def emit_backing(backing, ctx: SynthesisContext) -> Tuple[List[Fragment], List[Tuple[str, str]]]:
    """输出后备内存对象片段，返回 (片段, 设备上引用它们的选项)"""
    memory_type = MemoryType(enum_value(backing.memory_type))
    object_id = ctx.next_object_id(memory_type.object_prefix)

    if isinstance(backing, VolatileBacking):
        fragment = Fragment(
            marker="-object",
            driver="memory-backend-ram",
            options=(("id", object_id), ("share", "on"), ("size", f"{backing.size}M")),
        )
        return [fragment], [("volatile-memdev", object_id)]

    if isinstance(backing, PersistentBacking):
        pmem_dir = ctx.options.pmem_dir.rstrip("/") or "/"
        mem_path = backing.mem_path or f"{pmem_dir}/{object_id}.raw"
        fragments = [Fragment(
            marker="-object",
            driver="memory-backend-file",
            options=(
                ("id", object_id),
                ("share", "on"),
                ("mem-path", mem_path),
                ("size", f"{backing.size}M"),
            ),
        )]
        refs = [("persistent-memdev", object_id)]
        if backing.lsa_size is not None:
            lsa_id = ctx.next_object_id("lsa")
            fragments.append(Fragment(
                marker="-object",
                driver="memory-backend-file",
                options=(
                    ("id", lsa_id),
                    ("share", "on"),
                    ("mem-path", f"{pmem_dir}/{lsa_id}.raw"),
                    ("size", f"{backing.lsa_size}M"),
                ),
            ))
            refs.append(("lsa", lsa_id))
        return fragments, refs

    if isinstance(backing, DynamicCapacityBacking):
        fragment = Fragment(
            marker="-object",
            driver="memory-backend-ram",
            options=(("id", object_id), ("share", "on"), ("size", f"{backing.total_size}M")),
        )
        return [fragment], [
            ("volatile-dc-memdev", object_id),
            ("num-dc-regions", str(backing.region_count)),
        ]

    raise TypeError(f"未知的后备内存类型: {type(backing).__name__}")


class MemoryDeviceEmitter:
    """内存设备：先输出后备对象，再输出引用它们的设备片段"""

    driver = "cxl-type3"

    def generate(self, component: Component, ctx: SynthesisContext) -> List[Fragment]:
        identifier, _ = ctx.assign_identifier(component)
        bus, _ = ctx.parent_bus(component)

        fragments: List[Fragment] = []
        references: List[Tuple[str, str]] = []
        for backing in component.properties.memory_backings:
            backing_fragments, refs = emit_backing(backing, ctx)
            fragments.extend(backing_fragments)
            references.extend(refs)

        options = [("bus", bus), *references, ("id", identifier)]
        serial = getattr(component.properties, "serial", None)
        if serial is not None:
            options.append(("sn", str(serial)))
        fragments.append(Fragment(marker="-device", driver=self.driver, options=tuple(options)))
        return fragments


class Type2DeviceEmitter(MemoryDeviceEmitter):
    """Type2 加速器"""

    driver = "cxl-type2"


# 片段生成器工厂
class FragmentEmitterFactory:
    """片段生成器工厂"""

    _emitters: Dict[str, type] = {
        ComponentKind.HOST_BRIDGE.value: HostBridgeEmitter,
        ComponentKind.ROOT_PORT.value: RootPortEmitter,
        ComponentKind.SWITCH.value: SwitchEmitter,
        ComponentKind.TYPE2_DEVICE.value: Type2DeviceEmitter,
        ComponentKind.TYPE3_DEVICE.value: MemoryDeviceEmitter,
        ComponentKind.MEMORY_WINDOW.value: MemoryDeviceEmitter,
        ComponentKind.DYNAMIC_CAPACITY_POOL.value: MemoryDeviceEmitter,
    }

    @classmethod
    def create(cls, kind: object) -> FragmentEmitter:
        """创建片段生成器"""
        key = enum_value(kind)
        if key not in cls._emitters:
            raise ValueError(f"未知的组件种类: {key}")
        return cls._emitters[key]()

    @classmethod
    def get_all_kinds(cls) -> List[str]:
        """获取所有支持的组件种类"""
        return list(cls._emitters.keys())


__all__ = [
    "SynthesisOptions", "Fragment", "SynthesisContext", "FragmentEmitter",
    "HostBridgeEmitter", "RootPortEmitter", "SwitchEmitter",
    "MemoryDeviceEmitter", "Type2DeviceEmitter", "emit_backing",
    "FragmentEmitterFactory",
]
