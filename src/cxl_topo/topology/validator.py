"""
连接验证器
按固定的连接语法检查图快照，返回违规列表；验证从不修改图
"""

from __future__ import annotations

from typing import Dict, List, Set

from ..core.models import GraphSnapshot, ValidationReport, Violation
from ..core.types import ComponentKind, ValidationMode, ViolationKind, enum_value
from ..utils.logging import get_logger
from .rules import is_allowed_child

logger = get_logger(__name__)


def _is_host_bridge(component) -> bool:
    return component.kind_enum is ComponentKind.HOST_BRIDGE


def check_roles(snapshot: GraphSnapshot) -> List[Violation]:
    """Role 规则：端口角色正确，且父子种类符合邻接表"""
    violations = []
    for connection in snapshot.ordered_connections:
        upstream = snapshot.port(connection.upstream_port_id)
        downstream = snapshot.port(connection.downstream_port_id)
        parent = snapshot.owner_of(downstream.id)
        child = snapshot.owner_of(upstream.id)
        if not upstream.is_upstream or downstream.is_upstream:
            violations.append(Violation(
                kind=ViolationKind.ROLE,
                component_id=child.id,
                connection_id=connection.id,
                message=f"连接 {connection.id} 的端口角色不匹配",
            ))
        elif parent.id == child.id:
            violations.append(Violation(
                kind=ViolationKind.ROLE,
                component_id=child.id,
                connection_id=connection.id,
                message=f"组件 {child.id} 连接到了自身",
            ))
        elif not is_allowed_child(parent.kind, child.kind):
            violations.append(Violation(
                kind=ViolationKind.ROLE,
                component_id=child.id,
                connection_id=connection.id,
                message=f"{enum_value(parent.kind)} 下不能挂接 {enum_value(child.kind)}",
            ))
    return violations


def check_fan_in(snapshot: GraphSnapshot) -> List[Violation]:
    """Fan-in 规则：每个端口至多一个连接"""
    violations = []
    reported: Set[str] = set()
    for connection in snapshot.ordered_connections:
        for port_id in (connection.upstream_port_id, connection.downstream_port_id):
            if port_id in reported:
                continue
            holders = snapshot.connections_for_port(port_id)
            if len(holders) > 1:
                reported.add(port_id)
                # 第一个连接合法，其余每个报告一次
                for extra in holders[1:]:
                    violations.append(Violation(
                        kind=ViolationKind.FAN_IN,
                        component_id=snapshot.owner_of(port_id).id,
                        connection_id=extra.id,
                        message=f"端口 {port_id} 被 {len(holders)} 个连接占用",
                    ))
    return violations


def check_acyclicity(snapshot: GraphSnapshot) -> List[Violation]:
    """Acyclicity 规则：沿父->子边深度优先遍历，经非树边再次到达的组件即为环"""
    children: Dict[str, List] = {c.id: [] for c in snapshot.ordered_components}
    for connection, parent, child in snapshot.edges():
        children[parent.id].append((connection, child))

    violations = []
    visited: Set[str] = set()
    starts = snapshot.host_bridges() + [
        c for c in snapshot.ordered_components if not _is_host_bridge(c)
    ]
    for start in starts:
        if start.id in visited:
            continue
        visited.add(start.id)
        on_path: Set[str] = {start.id}
        stack = [(start.id, iter(children[start.id]))]
        while stack:
            node_id, edges = stack[-1]
            step = next(edges, None)
            if step is None:
                stack.pop()
                on_path.discard(node_id)
                continue
            connection, child = step
            if child.id in visited:
                # 回边构成环；指向其他已访问组件的多入边由 fan-in 规则报告
                if child.id in on_path:
                    violations.append(Violation(
                        kind=ViolationKind.ACYCLICITY,
                        component_id=child.id,
                        connection_id=connection.id,
                        message=f"组件 {child.id} 经连接 {connection.id} 被再次到达",
                    ))
                continue
            visited.add(child.id)
            on_path.add(child.id)
            stack.append((child.id, iter(children[child.id])))
    return violations


def check_roots(snapshot: GraphSnapshot, mode: ValidationMode) -> List[Violation]:
    """Root 规则：没有入边的组件必须是主机桥

    编辑期，孤立的单个组件是正常状态，只有挂着子组件的非主机桥根才报告；
    合成期，所有没有父组件的非主机桥组件都由完整性规则报告。
    """
    if enum_value(mode) == ValidationMode.SYNTHESIS.value:
        return []
    violations = []
    for component in snapshot.ordered_components:
        if _is_host_bridge(component) or snapshot.parent_of(component.id) is not None:
            continue
        if snapshot.children_of(component.id):
            violations.append(Violation(
                kind=ViolationKind.ROOT,
                component_id=component.id,
                message=f"{enum_value(component.kind)} {component.id} 是子树的根，但不是主机桥",
            ))
    return violations


def check_completeness(snapshot: GraphSnapshot) -> List[Violation]:
    """Completeness 规则：所有非主机桥组件的上行端口必须已连接"""
    violations = []
    for component in snapshot.ordered_components:
        if _is_host_bridge(component):
            continue
        if snapshot.parent_of(component.id) is None:
            violations.append(Violation(
                kind=ViolationKind.COMPLETENESS,
                component_id=component.id,
                message=f"{enum_value(component.kind)} {component.id} 的上行端口未连接",
            ))
    return violations


def validate(snapshot: GraphSnapshot, mode: ValidationMode = ValidationMode.EDITING) -> ValidationReport:
    """验证图快照

    Args:
        snapshot: 图快照
        mode: editing 只检查结构规则；synthesis 额外检查完整性

    Returns:
        验证报告，违规按规则、再按创建顺序排列
    """
    violations: List[Violation] = []
    violations.extend(check_roots(snapshot, mode))
    violations.extend(check_roles(snapshot))
    violations.extend(check_fan_in(snapshot))
    violations.extend(check_acyclicity(snapshot))
    if enum_value(mode) == ValidationMode.SYNTHESIS.value:
        violations.extend(check_completeness(snapshot))

    report = ValidationReport(violations=tuple(violations))
    logger.debug(
        "validation_finished",
        mode=enum_value(mode),
        components=len(snapshot),
        violations=report.violation_count,
    )
    return report


class TopologyValidator:
    """拓扑验证器"""

    def __init__(self, mode: ValidationMode = ValidationMode.EDITING):
        self.mode = mode

    def validate(self, snapshot: GraphSnapshot) -> ValidationReport:
        return validate(snapshot, self.mode)


__all__ = [
    "validate", "TopologyValidator",
    "check_roots", "check_roles", "check_fan_in", "check_acyclicity", "check_completeness",
]
