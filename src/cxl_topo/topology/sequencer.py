"""
依赖排序器
稳定的拓扑排序：保证每个组件在其子组件之前，且未修改的图得到相同顺序
"""

from __future__ import annotations

from typing import List, Set

from ..core.exceptions import SequencingError
from ..core.models import GraphSnapshot
from ..core.types import ComponentKind
from ..utils.logging import get_logger

logger = get_logger(__name__)


def _walk_subtree(snapshot: GraphSnapshot, root_id: str, visited: Set[str], order: List[str]) -> None:
    """深度优先先序遍历；子组件按父组件下行端口的创建序号排列"""
    stack = [root_id]
    while stack:
        component_id = stack.pop()
        if component_id in visited:
            raise SequencingError(f"组件 {component_id} 被多次到达，图中存在环或多父连接")
        visited.add(component_id)
        order.append(component_id)
        children = [child.id for _, child in snapshot.children_of(component_id)]
        # 逆序入栈，先访问序号小的端口
        stack.extend(reversed(children))


def sequence(snapshot: GraphSnapshot) -> List[str]:
    """对图快照排序，返回组件ID列表

    顺序：主机桥按创建顺序，各自的子树深度优先；之后是上行端口未连接的组件，
    按创建顺序，各自跟随其子树。

    Raises:
        SequencingError: 图中存在环，顺序无定义
    """
    visited: Set[str] = set()
    order: List[str] = []
    components = snapshot.ordered_components

    for component in components:
        if component.kind_enum is ComponentKind.HOST_BRIDGE:
            _walk_subtree(snapshot, component.id, visited, order)

    for component in components:
        if component.id in visited:
            continue
        if snapshot.parent_of(component.id) is None:
            _walk_subtree(snapshot, component.id, visited, order)

    if len(order) != len(components):
        missing = [c.id for c in components if c.id not in visited]
        raise SequencingError(f"组件 {', '.join(missing)} 位于环中，无法排序")

    logger.debug("sequence_finished", components=len(order))
    return order


class DependencySequencer:
    """依赖排序器"""

    def sequence(self, snapshot: GraphSnapshot) -> List[str]:
        return sequence(snapshot)


__all__ = ["sequence", "DependencySequencer"]
