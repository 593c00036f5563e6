"""
图模型
编辑期的组件/端口/连接状态，以及为编译过程提供不可变快照
"""

from __future__ import annotations

import itertools
import uuid
from typing import Any, Dict, List, Optional

from .core.exceptions import (
    ComponentNotFoundError, ConnectionNotFoundError, CyclicConnectionError,
    InvalidPortsError, PortNotFoundError, PortOccupiedError
)
from .core.models import Component, Connection, GraphSnapshot, Port, parse_properties
from .core.types import ComponentKind, PortRole, enum_value
from .topology.rules import port_layout
from .utils.logging import get_logger

logger = get_logger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


class GraphModel:
    """图模型

    由调用方显式持有的编辑状态：初始为空，整个会话中被修改，会话结束时丢弃。
    组件和端口的标识不可变，只有属性与连接关系会变化。
    """

    def __init__(self):
        self._components: Dict[str, Component] = {}
        self._connections: Dict[str, Connection] = {}
        self._port_owner: Dict[str, str] = {}
        self._port_connection: Dict[str, str] = {}
        self._sequence = itertools.count()

    # ----- 组件 -----

    def add_component(self, kind: Any, properties: Any = None) -> str:
        """添加组件，返回组件ID

        Raises:
            PropertiesError: 属性对该种类无效
        """
        props = parse_properties(kind, properties)
        component_id = _new_id()
        creation_index = next(self._sequence)
        ports = self._build_ports(component_id, props, existing=())
        component = Component(
            id=component_id,
            kind=props.kind,
            properties=props,
            creation_index=creation_index,
            ports=ports,
        )
        self._components[component_id] = component
        for port in ports:
            self._port_owner[port.id] = component_id
        logger.debug("component_added", component_id=component_id, kind=props.kind, ports=len(ports))
        return component_id

    def remove_component(self, component_id: str) -> None:
        """删除组件，并级联删除其端口上的连接"""
        component = self.component(component_id)
        for port in component.ports:
            connection_id = self._port_connection.get(port.id)
            if connection_id is not None:
                self._drop_connection(connection_id)
            self._port_owner.pop(port.id, None)
        del self._components[component_id]
        logger.debug("component_removed", component_id=component_id)

    def update_properties(self, component_id: str, properties: Any) -> None:
        """替换组件属性；已连接的下行端口不能被删除"""
        component = self.component(component_id)
        props = parse_properties(component.kind, properties)
        _, downstream_count = port_layout(props)
        for port in component.downstream_ports:
            if port.index >= downstream_count and port.id in self._port_connection:
                raise PortOccupiedError(
                    f"组件 {component_id} 的下行端口 {port.index} 仍有连接，不能减少端口数",
                    port_id=port.id,
                )

        ports = self._build_ports(component_id, props, existing=component.ports)
        for port in component.ports:
            self._port_owner.pop(port.id, None)
        for port in ports:
            self._port_owner[port.id] = component_id
        self._components[component_id] = component.evolve(properties=props, ports=ports)
        logger.debug("component_updated", component_id=component_id)

    def _build_ports(self, component_id: str, props, existing) -> tuple:
        """按属性生成端口；已存在的同角色同序号端口保持原标识"""
        kept = {(enum_value(p.role), p.index): p for p in existing}
        upstream_count, downstream_count = port_layout(props)
        ports: List[Port] = []
        for role, count, tag in (
            (PortRole.UPSTREAM, upstream_count, "u"),
            (PortRole.DOWNSTREAM, downstream_count, "d"),
        ):
            for index in range(count):
                port = kept.get((role.value, index))
                if port is None:
                    port = Port(
                        id=f"{component_id}.{tag}{index}",
                        component_id=component_id,
                        role=role,
                        index=index,
                        creation_index=next(self._sequence),
                    )
                ports.append(port)
        return tuple(ports)

    # ----- 连接 -----

    def connect(self, port_a: str, port_b: str) -> str:
        """连接一个上行端口和一个下行端口，返回连接ID

        Raises:
            PortNotFoundError: 端口不存在
            InvalidPortsError: 不是恰好一个上行端口和一个下行端口，或位于同一组件
            CyclicConnectionError: 新连接会形成环
            PortOccupiedError: 任一端口已有连接
        """
        first, second = self.port(port_a), self.port(port_b)
        if first.is_upstream == second.is_upstream:
            raise InvalidPortsError(
                f"端口 {port_a} 和 {port_b} 角色相同 ({enum_value(first.role)})，"
                "必须恰好一个上行端口和一个下行端口"
            )
        upstream, downstream = (first, second) if first.is_upstream else (second, first)
        if upstream.component_id == downstream.component_id:
            raise InvalidPortsError(f"不能连接同一组件 {upstream.component_id} 的两个端口")

        parent_id, child_id = downstream.component_id, upstream.component_id
        if self._is_ancestor(child_id, parent_id):
            logger.debug("connection_rejected", reason="cycle", parent=parent_id, child=child_id)
            raise CyclicConnectionError(
                f"连接 {parent_id} -> {child_id} 会形成环", component_id=child_id
            )

        for port in (upstream, downstream):
            if port.id in self._port_connection:
                logger.debug("connection_rejected", reason="occupied", port=port.id)
                raise PortOccupiedError(
                    f"端口 {port.id} 已被连接 {self._port_connection[port.id]} 占用",
                    port_id=port.id,
                )

        connection = Connection(
            id=_new_id(),
            upstream_port_id=upstream.id,
            downstream_port_id=downstream.id,
            creation_index=next(self._sequence),
        )
        self._connections[connection.id] = connection
        self._port_connection[upstream.id] = connection.id
        self._port_connection[downstream.id] = connection.id
        logger.debug("connection_added", connection_id=connection.id, parent=parent_id, child=child_id)
        return connection.id

    def connect_components(
        self, parent_id: str, child_id: str, downstream_index: Optional[int] = None
    ) -> str:
        """按组件连接：子组件的上行端口接到父组件指定（或第一个空闲）的下行端口"""
        upstream = self.upstream_port(child_id)
        if upstream is None:
            raise InvalidPortsError(f"组件 {child_id} 没有上行端口")
        candidates = self.downstream_ports(parent_id)
        if not candidates:
            raise InvalidPortsError(f"组件 {parent_id} 没有下行端口")
        if downstream_index is not None:
            matching = [p for p in candidates if p.index == downstream_index]
            if not matching:
                raise PortNotFoundError(f"{parent_id}.d{downstream_index}")
            return self.connect(upstream.id, matching[0].id)
        free = [p for p in candidates if p.id not in self._port_connection]
        if not free:
            raise PortOccupiedError(f"组件 {parent_id} 没有空闲的下行端口")
        return self.connect(upstream.id, free[0].id)

    def disconnect(self, connection_id: str) -> None:
        if connection_id not in self._connections:
            raise ConnectionNotFoundError(connection_id)
        self._drop_connection(connection_id)
        logger.debug("connection_removed", connection_id=connection_id)

    def _drop_connection(self, connection_id: str) -> None:
        connection = self._connections.pop(connection_id)
        self._port_connection.pop(connection.upstream_port_id, None)
        self._port_connection.pop(connection.downstream_port_id, None)

    def _parent_id(self, component_id: str) -> Optional[str]:
        upstream = self._components[component_id].upstream_port
        if upstream is None:
            return None
        connection_id = self._port_connection.get(upstream.id)
        if connection_id is None:
            return None
        return self._port_owner[self._connections[connection_id].downstream_port_id]

    def _is_ancestor(self, candidate_id: str, component_id: str) -> bool:
        """candidate 是否为 component 自身或其祖先"""
        current: Optional[str] = component_id
        seen = set()
        while current is not None and current not in seen:
            if current == candidate_id:
                return True
            seen.add(current)
            current = self._parent_id(current)
        return False

    # ----- 查询 -----

    def component(self, component_id: str) -> Component:
        try:
            return self._components[component_id]
        except KeyError:
            raise ComponentNotFoundError(component_id) from None

    def components(self) -> List[Component]:
        """按创建顺序排列的组件"""
        return list(self._components.values())

    def connections(self) -> List[Connection]:
        return list(self._connections.values())

    def port(self, port_id: str) -> Port:
        owner = self._port_owner.get(port_id)
        if owner is None:
            raise PortNotFoundError(port_id)
        return next(p for p in self._components[owner].ports if p.id == port_id)

    def upstream_port(self, component_id: str) -> Optional[Port]:
        return self.component(component_id).upstream_port

    def downstream_ports(self, component_id: str) -> List[Port]:
        return list(self.component(component_id).downstream_ports)

    def connection_at(self, port_id: str) -> Optional[str]:
        """端口上的连接ID"""
        self.port(port_id)
        return self._port_connection.get(port_id)

    def components_of_kind(self, kind: Any) -> List[str]:
        wanted = ComponentKind(enum_value(kind)).value
        return [c.id for c in self._components.values() if enum_value(c.kind) == wanted]

    def __len__(self) -> int:
        return len(self._components)

    def __contains__(self, component_id: object) -> bool:
        return component_id in self._components

    # ----- 快照 -----

    def snapshot(self) -> GraphSnapshot:
        """不可变快照；之后的修改对快照不可见"""
        return GraphSnapshot(
            components=tuple(self._components.values()),
            connections=tuple(self._connections.values()),
        )

    def __repr__(self) -> str:
        return f"<GraphModel components={len(self._components)} connections={len(self._connections)}>"


__all__ = ["GraphModel"]
