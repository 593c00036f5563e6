"""
拓扑类型定义模块
组件种类、端口角色、内存类型以及违规类型的枚举
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any

from pydantic import Field

# 基础类型定义 - 使用 Pydantic 约束类型
ComponentId = Annotated[str, Field(min_length=1, max_length=64, description="组件ID")]
PortId = Annotated[str, Field(min_length=1, max_length=80, description="端口ID")]
ConnectionId = Annotated[str, Field(min_length=1, max_length=64, description="连接ID")]
SizeMiB = Annotated[int, Field(gt=0, le=1 << 24, description="容量(MiB)")]


def enum_value(value: Any) -> str:
    """Return the plain string value of an enum member or string.

    Models use ``use_enum_values`` so fields may hold either form.
    """
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


# 组件种类
class ComponentKind(str, Enum):
    """组件种类枚举"""
    HOST_BRIDGE = "host-bridge"
    ROOT_PORT = "root-port"
    SWITCH = "switch"
    TYPE2_DEVICE = "type2-device"
    TYPE3_DEVICE = "type3-device"
    MEMORY_WINDOW = "memory-window"
    DYNAMIC_CAPACITY_POOL = "dynamic-capacity-pool"

    @property
    def description(self) -> str:
        """获取组件种类描述"""
        descriptions = {
            ComponentKind.HOST_BRIDGE: "主机桥 - 层级的根，挂接到仿真平台",
            ComponentKind.ROOT_PORT: "根端口 - 主机桥下的分支",
            ComponentKind.SWITCH: "交换机 - 一个上行端口，多个下行端口",
            ComponentKind.TYPE2_DEVICE: "Type2 设备 - 带内存的加速器",
            ComponentKind.TYPE3_DEVICE: "Type3 设备 - 内存扩展器",
            ComponentKind.MEMORY_WINDOW: "内存窗口 - 地址范围与后备内存",
            ComponentKind.DYNAMIC_CAPACITY_POOL: "动态容量池 - 多个 extent 组成的后备内存",
        }
        return descriptions[self]

    @property
    def identifier_prefix(self) -> str:
        """外部标识符前缀，例如 host-bridge -> hostbridge"""
        return self.value.replace("-", "")


ENDPOINT_KINDS = frozenset({
    ComponentKind.TYPE2_DEVICE,
    ComponentKind.TYPE3_DEVICE,
    ComponentKind.MEMORY_WINDOW,
    ComponentKind.DYNAMIC_CAPACITY_POOL,
})


# 端口角色
class PortRole(str, Enum):
    """端口角色枚举"""
    UPSTREAM = "upstream"  # 朝向层级根
    DOWNSTREAM = "downstream"  # 朝向叶子


# 后备内存类型，取值是外部工具解析的固定字符串
class MemoryType(str, Enum):
    """后备内存类型枚举"""
    VOLATILE = "volatile"
    PERSISTENT = "persistent"
    DYNAMIC_CAPACITY = "dynamic-capacity"

    @property
    def object_prefix(self) -> str:
        """后备对象标识符前缀"""
        prefixes = {
            MemoryType.VOLATILE: "vmem",
            MemoryType.PERSISTENT: "pmem",
            MemoryType.DYNAMIC_CAPACITY: "dcmem",
        }
        return prefixes[self]


# 违规类型
class ViolationCategory(str, Enum):
    """违规分类"""
    STRUCTURAL = "structural"  # 编辑期，非致命
    COMPLETENESS = "completeness"  # 仅阻止生成命令
    RESOURCE = "resource"  # 合成期分配失败，阻止生成命令


class ViolationKind(str, Enum):
    """违规类型枚举，每条规则一种"""
    ROOT = "root"
    ROLE = "role"
    FAN_IN = "fan-in"
    ACYCLICITY = "acyclicity"
    COMPLETENESS = "completeness"
    BUS_NUMBER = "bus-number"

    @property
    def category(self) -> ViolationCategory:
        if self is ViolationKind.COMPLETENESS:
            return ViolationCategory.COMPLETENESS
        if self is ViolationKind.BUS_NUMBER:
            return ViolationCategory.RESOURCE
        return ViolationCategory.STRUCTURAL


class ValidationMode(str, Enum):
    """验证模式"""
    EDITING = "editing"
    SYNTHESIS = "synthesis"


__all__ = [
    "ComponentId", "PortId", "ConnectionId", "SizeMiB",
    "enum_value",
    "ComponentKind", "ENDPOINT_KINDS", "PortRole", "MemoryType",
    "ViolationCategory", "ViolationKind", "ValidationMode",
]
