"""图快照模块

组件、端口、连接的不可变记录，以及一次编译过程所见的一致图快照。
"""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from pydantic import Field, PrivateAttr, model_validator

from .base import BaseConfig
from .properties import ComponentProperties
from ..types import ComponentId, ComponentKind, ConnectionId, PortId, PortRole, enum_value


class Port(BaseConfig):
    """端口，属于且仅属于一个组件"""

    id: PortId = Field(description="端口ID")
    component_id: ComponentId = Field(description="所属组件ID")
    role: PortRole = Field(description="端口角色")
    index: int = Field(ge=0, description="同角色端口中的序号")
    creation_index: int = Field(ge=0, description="全图创建序号")

    @property
    def is_upstream(self) -> bool:
        return enum_value(self.role) == PortRole.UPSTREAM.value


class Component(BaseConfig):
    """组件"""

    id: ComponentId = Field(description="组件ID")
    kind: ComponentKind = Field(description="组件种类")
    properties: ComponentProperties = Field(description="种类对应的属性变体")
    creation_index: int = Field(ge=0, description="全图创建序号")
    ports: Tuple[Port, ...] = Field(default=(), description="端口列表")

    @model_validator(mode="after")
    def validate_properties_kind(self) -> Component:
        """验证属性变体与组件种类一致"""
        if enum_value(self.properties.kind) != enum_value(self.kind):
            raise ValueError(f"属性种类 {self.properties.kind} 与组件种类 {self.kind} 不符")
        return self

    @property
    def kind_enum(self) -> ComponentKind:
        return ComponentKind(enum_value(self.kind))

    @property
    def upstream_port(self) -> Optional[Port]:
        """上行端口（主机桥没有）"""
        return next((p for p in self.ports if p.is_upstream), None)

    @property
    def downstream_ports(self) -> Tuple[Port, ...]:
        """下行端口，按序号排列"""
        return tuple(sorted(
            (p for p in self.ports if not p.is_upstream),
            key=lambda p: p.index,
        ))


class Connection(BaseConfig):
    """连接：一个上行端口与一个下行端口配对

    下行端口所在组件是父组件，上行端口所在组件是子组件。
    """

    id: ConnectionId = Field(description="连接ID")
    upstream_port_id: PortId = Field(description="子组件的上行端口")
    downstream_port_id: PortId = Field(description="父组件的下行端口")
    creation_index: int = Field(ge=0, description="全图创建序号")


class GraphSnapshot(BaseConfig):
    """图快照

    组件与连接均按创建顺序保存。快照是不可变的，编辑器随后的修改
    对已经开始的编译过程不可见。
    """

    components: Tuple[Component, ...] = Field(default=(), description="组件（按创建顺序）")
    connections: Tuple[Connection, ...] = Field(default=(), description="连接（按创建顺序）")

    _components_by_id: Dict[str, Component] = PrivateAttr(default_factory=dict)
    _ports_by_id: Dict[str, Port] = PrivateAttr(default_factory=dict)
    _connections_by_port: Dict[str, List[Connection]] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context) -> None:
        ordered = sorted(self.components, key=lambda c: c.creation_index)
        for component in ordered:
            if component.id in self._components_by_id:
                raise ValueError(f"重复的组件ID: {component.id}")
            self._components_by_id[component.id] = component
            for port in component.ports:
                if port.component_id != component.id:
                    raise ValueError(f"端口 {port.id} 不属于组件 {component.id}")
                if port.id in self._ports_by_id:
                    raise ValueError(f"重复的端口ID: {port.id}")
                self._ports_by_id[port.id] = port
        for connection in sorted(self.connections, key=lambda c: c.creation_index):
            for port_id in (connection.upstream_port_id, connection.downstream_port_id):
                if port_id not in self._ports_by_id:
                    raise ValueError(f"连接 {connection.id} 引用了不存在的端口 {port_id}")
                self._connections_by_port.setdefault(port_id, []).append(connection)

    # ----- 查询 -----

    @property
    def ordered_components(self) -> List[Component]:
        """按创建顺序排列的组件"""
        return list(self._components_by_id.values())

    @property
    def ordered_connections(self) -> List[Connection]:
        return sorted(self.connections, key=lambda c: c.creation_index)

    def __len__(self) -> int:
        return len(self.components)

    def __contains__(self, component_id: object) -> bool:
        return component_id in self._components_by_id

    def component(self, component_id: str) -> Component:
        return self._components_by_id[component_id]

    def port(self, port_id: str) -> Port:
        return self._ports_by_id[port_id]

    def owner_of(self, port_id: str) -> Component:
        return self._components_by_id[self._ports_by_id[port_id].component_id]

    def connections_for_port(self, port_id: str) -> List[Connection]:
        """端口上的全部连接（正常情况下至多一个）"""
        return list(self._connections_by_port.get(port_id, ()))

    def connection_for_port(self, port_id: str) -> Optional[Connection]:
        connections = self._connections_by_port.get(port_id)
        return connections[0] if connections else None

    def host_bridges(self) -> List[Component]:
        return [c for c in self.ordered_components if c.kind_enum is ComponentKind.HOST_BRIDGE]

    def parent_of(self, component_id: str) -> Optional[Tuple[Component, Port]]:
        """父组件及其下行端口；上行端口未连接时返回 None"""
        upstream = self.component(component_id).upstream_port
        if upstream is None:
            return None
        connection = next(
            (c for c in self.connections_for_port(upstream.id) if c.upstream_port_id == upstream.id),
            None,
        )
        if connection is None:
            return None
        downstream = self._ports_by_id[connection.downstream_port_id]
        return self.owner_of(downstream.id), downstream

    def children_of(self, component_id: str) -> List[Tuple[Port, Component]]:
        """子组件，按父组件下行端口的创建序号升序排列"""
        children = []
        for port in sorted(self.component(component_id).downstream_ports, key=lambda p: p.creation_index):
            for connection in self.connections_for_port(port.id):
                if connection.downstream_port_id != port.id:
                    continue
                children.append((port, self.owner_of(connection.upstream_port_id)))
        return children

    def edges(self) -> List[Tuple[Connection, Component, Component]]:
        """父->子 边列表 (连接, 父组件, 子组件)，按连接创建顺序"""
        return [
            (c, self.owner_of(c.downstream_port_id), self.owner_of(c.upstream_port_id))
            for c in self.ordered_connections
        ]


__all__ = ["Port", "Component", "Connection", "GraphSnapshot"]
