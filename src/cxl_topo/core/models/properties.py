"""组件属性模块

每种组件一个属性变体，以 kind 区分；后备内存同样以 memory_type 区分。
属性在构造时验证，读取时不再检查。
"""
from __future__ import annotations

from typing import Annotated, Any, Literal, Mapping, Optional, Tuple, Union

from pydantic import Field, TypeAdapter, ValidationError, field_validator

from .base import BaseConfig
from ..exceptions import PropertiesError
from ..types import ComponentKind, SizeMiB, enum_value


# ---------------------------------------------------------------------------
# 后备内存
# ---------------------------------------------------------------------------

class VolatileBacking(BaseConfig):
    """易失性后备内存"""
    memory_type: Literal["volatile"] = "volatile"
    size: SizeMiB = Field(description="容量(MiB)")

    @property
    def total_size(self) -> int:
        return self.size


class PersistentBacking(BaseConfig):
    """持久性后备内存（文件后备）"""
    memory_type: Literal["persistent"] = "persistent"
    size: SizeMiB = Field(description="容量(MiB)")
    mem_path: Optional[str] = Field(default=None, min_length=1, pattern=r"^\S+$", description="后备文件路径（不含空白），缺省按对象ID生成")
    lsa_size: Optional[SizeMiB] = Field(default=None, description="标签存储区容量(MiB)")

    @property
    def total_size(self) -> int:
        return self.size


class DynamicCapacityBacking(BaseConfig):
    """动态容量后备内存，由多个 extent 组成"""
    memory_type: Literal["dynamic-capacity"] = "dynamic-capacity"
    extents: Tuple[SizeMiB, ...] = Field(min_length=1, max_length=8, description="各 extent 容量(MiB)")

    @property
    def total_size(self) -> int:
        return sum(self.extents)

    @property
    def region_count(self) -> int:
        return len(self.extents)


Backing = Annotated[
    Union[VolatileBacking, PersistentBacking, DynamicCapacityBacking],
    Field(discriminator="memory_type"),
]


def _check_unique_memory_types(backing: Tuple[Any, ...]) -> Tuple[Any, ...]:
    """每种内存类型最多一个后备对象"""
    seen = set()
    for item in backing:
        memory_type = enum_value(item.memory_type)
        if memory_type in seen:
            raise ValueError(f"重复的后备内存类型: {memory_type}")
        seen.add(memory_type)
    return backing


# ---------------------------------------------------------------------------
# 组件属性变体
# ---------------------------------------------------------------------------

class HostBridgeProperties(BaseConfig):
    """主机桥属性"""
    kind: Literal["host-bridge"] = "host-bridge"
    root_ports: int = Field(default=4, ge=1, le=32, description="下行（根端口）槽位数")
    bus_nr: Optional[int] = Field(default=None, ge=0, le=255, description="PCI 总线号，缺省自动分配")

    @property
    def downstream_port_count(self) -> int:
        return self.root_ports

    @property
    def memory_backings(self) -> Tuple[Any, ...]:
        return ()


class RootPortProperties(BaseConfig):
    """根端口属性（无可配置项）"""
    kind: Literal["root-port"] = "root-port"

    @property
    def downstream_port_count(self) -> int:
        return 1

    @property
    def memory_backings(self) -> Tuple[Any, ...]:
        return ()


class SwitchProperties(BaseConfig):
    """交换机属性"""
    kind: Literal["switch"] = "switch"
    downstream_ports: int = Field(default=4, ge=1, le=32, description="下行端口数")

    @property
    def downstream_port_count(self) -> int:
        return self.downstream_ports

    @property
    def memory_backings(self) -> Tuple[Any, ...]:
        return ()


class Type2DeviceProperties(BaseConfig):
    """Type2 加速器属性"""
    kind: Literal["type2-device"] = "type2-device"
    backing: Tuple[Backing, ...] = Field(min_length=1, max_length=3, description="后备内存列表")

    @field_validator("backing")
    @classmethod
    def validate_backing_types(cls, v):
        """验证后备内存类型不重复"""
        return _check_unique_memory_types(v)

    @property
    def downstream_port_count(self) -> int:
        return 0

    @property
    def memory_backings(self) -> Tuple[Any, ...]:
        return self.backing


class Type3DeviceProperties(BaseConfig):
    """Type3 内存扩展器属性"""
    kind: Literal["type3-device"] = "type3-device"
    backing: Tuple[Backing, ...] = Field(min_length=1, max_length=3, description="后备内存列表")
    serial: Optional[int] = Field(default=None, ge=0, description="设备序列号")

    @field_validator("backing")
    @classmethod
    def validate_backing_types(cls, v):
        """验证后备内存类型不重复"""
        return _check_unique_memory_types(v)

    @property
    def downstream_port_count(self) -> int:
        return 0

    @property
    def memory_backings(self) -> Tuple[Any, ...]:
        return self.backing


class MemoryWindowProperties(BaseConfig):
    """内存窗口属性，恰好一个后备内存"""
    kind: Literal["memory-window"] = "memory-window"
    backing: Backing = Field(description="后备内存")

    @property
    def downstream_port_count(self) -> int:
        return 0

    @property
    def memory_backings(self) -> Tuple[Any, ...]:
        return (self.backing,)


class DynamicCapacityPoolProperties(BaseConfig):
    """动态容量池属性"""
    kind: Literal["dynamic-capacity-pool"] = "dynamic-capacity-pool"
    extents: Tuple[SizeMiB, ...] = Field(min_length=1, max_length=8, description="各 extent 容量(MiB)")

    @property
    def downstream_port_count(self) -> int:
        return 0

    @property
    def memory_backings(self) -> Tuple[Any, ...]:
        return (DynamicCapacityBacking(extents=self.extents),)


ComponentProperties = Annotated[
    Union[
        HostBridgeProperties,
        RootPortProperties,
        SwitchProperties,
        Type2DeviceProperties,
        Type3DeviceProperties,
        MemoryWindowProperties,
        DynamicCapacityPoolProperties,
    ],
    Field(discriminator="kind"),
]

PROPERTIES_BY_KIND = {
    ComponentKind.HOST_BRIDGE: HostBridgeProperties,
    ComponentKind.ROOT_PORT: RootPortProperties,
    ComponentKind.SWITCH: SwitchProperties,
    ComponentKind.TYPE2_DEVICE: Type2DeviceProperties,
    ComponentKind.TYPE3_DEVICE: Type3DeviceProperties,
    ComponentKind.MEMORY_WINDOW: MemoryWindowProperties,
    ComponentKind.DYNAMIC_CAPACITY_POOL: DynamicCapacityPoolProperties,
}

_properties_adapter: TypeAdapter = TypeAdapter(ComponentProperties)


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts)


def parse_properties(kind: Any, properties: Any = None) -> Any:
    """根据组件种类构造属性变体

    Args:
        kind: 组件种类（枚举或字符串）
        properties: 属性变体实例、映射或 None

    Returns:
        对应种类的属性变体

    Raises:
        PropertiesError: 种类未知、变体与种类不符或字段无效
    """
    try:
        kind = ComponentKind(enum_value(kind))
    except ValueError as exc:
        raise PropertiesError(f"未知的组件种类: {kind}") from exc

    if isinstance(properties, BaseConfig):
        expected = PROPERTIES_BY_KIND[kind]
        if not isinstance(properties, expected):
            raise PropertiesError(
                f"属性类型 {type(properties).__name__} 与组件种类 {kind.value} 不符"
            )
        return properties

    if properties is None:
        data: dict = {}
    elif isinstance(properties, Mapping):
        data = dict(properties)
    else:
        raise PropertiesError(f"属性必须是映射，实际为 {type(properties).__name__}")

    declared = data.pop("kind", kind.value)
    if enum_value(declared) != kind.value:
        raise PropertiesError(f"属性中的 kind={declared} 与组件种类 {kind.value} 不符")

    try:
        return _properties_adapter.validate_python({"kind": kind.value, **data})
    except ValidationError as exc:
        raise PropertiesError(f"{kind.value} 属性无效: {_format_validation_error(exc)}") from exc


__all__ = [
    "VolatileBacking", "PersistentBacking", "DynamicCapacityBacking", "Backing",
    "HostBridgeProperties", "RootPortProperties", "SwitchProperties",
    "Type2DeviceProperties", "Type3DeviceProperties", "MemoryWindowProperties",
    "DynamicCapacityPoolProperties", "ComponentProperties",
    "PROPERTIES_BY_KIND", "parse_properties",
]
