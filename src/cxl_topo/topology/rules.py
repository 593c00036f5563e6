"""
连接语法规则
组件种类之间允许的父子关系，以及各种类的端口数量
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Tuple

from ..core.types import ComponentKind, ENDPOINT_KINDS, enum_value

# 根端口和交换机下可以挂接的种类
_FANOUT_CHILDREN: FrozenSet[ComponentKind] = frozenset({ComponentKind.SWITCH}) | ENDPOINT_KINDS

# 父种类 -> 允许的子种类；叶子设备没有下行端口
ADJACENCY: Dict[ComponentKind, FrozenSet[ComponentKind]] = {
    ComponentKind.HOST_BRIDGE: frozenset({ComponentKind.ROOT_PORT}),
    ComponentKind.ROOT_PORT: _FANOUT_CHILDREN,
    ComponentKind.SWITCH: _FANOUT_CHILDREN,
    ComponentKind.TYPE2_DEVICE: frozenset(),
    ComponentKind.TYPE3_DEVICE: frozenset(),
    ComponentKind.MEMORY_WINDOW: frozenset(),
    ComponentKind.DYNAMIC_CAPACITY_POOL: frozenset(),
}


def is_allowed_child(parent_kind: object, child_kind: object) -> bool:
    """检查父子种类是否符合邻接表"""
    parent = ComponentKind(enum_value(parent_kind))
    child = ComponentKind(enum_value(child_kind))
    return child in ADJACENCY[parent]


def upstream_port_count(kind: object) -> int:
    """上行端口数：主机桥为 0，其余为 1"""
    return 0 if ComponentKind(enum_value(kind)) is ComponentKind.HOST_BRIDGE else 1


def port_layout(properties) -> Tuple[int, int]:
    """(上行端口数, 下行端口数)"""
    return upstream_port_count(properties.kind), properties.downstream_port_count


__all__ = ["ADJACENCY", "is_allowed_child", "upstream_port_count", "port_layout"]
