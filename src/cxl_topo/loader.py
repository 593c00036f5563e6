"""
拓扑描述加载
从 YAML/映射描述构建图模型（只读，不回写）
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import yaml
from pydantic import Field, ValidationError, model_validator

from .core.exceptions import InvalidOperationError, PropertiesError, TopologyFileError
from .core.models import BaseConfig
from .core.types import ComponentKind
from .graph import GraphModel
from .utils.logging import get_logger

logger = get_logger(__name__)


class ComponentEntry(BaseConfig):
    """描述文件中的一个组件"""
    name: str = Field(min_length=1, max_length=64, pattern=r'^[A-Za-z0-9_.-]+$', description="文件内的局部名称")
    kind: ComponentKind = Field(description="组件种类")
    properties: Dict[str, Any] = Field(default_factory=dict, description="属性")
    parent: Optional[str] = Field(default=None, description="父组件名称")
    port: Optional[int] = Field(default=None, ge=0, description="父组件下行端口序号")

    @model_validator(mode="after")
    def validate_port_requires_parent(self) -> ComponentEntry:
        if self.port is not None and self.parent is None:
            raise ValueError(f"组件 {self.name} 指定了 port 但没有 parent")
        return self


class TopologyFile(BaseConfig):
    """拓扑描述文件"""
    components: List[ComponentEntry] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_names(self) -> TopologyFile:
        names = [c.name for c in self.components]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"重复的组件名称: {', '.join(duplicates)}")
        known = set(names)
        for entry in self.components:
            if entry.parent is not None and entry.parent not in known:
                raise ValueError(f"组件 {entry.name} 的父组件 {entry.parent} 不存在")
        return self


def load_topology(data: Mapping[str, Any]) -> Tuple[GraphModel, Dict[str, str]]:
    """根据描述构建图模型

    Returns:
        (图模型, 名称 -> 组件ID)

    Raises:
        TopologyFileError: 描述格式无效，或属性/连接被图模型拒绝
    """
    try:
        description = TopologyFile.model_validate(data or {})
    except ValidationError as exc:
        raise TopologyFileError(f"拓扑描述无效: {exc}") from exc

    graph = GraphModel()
    names: Dict[str, str] = {}
    for entry in description.components:
        try:
            names[entry.name] = graph.add_component(entry.kind, entry.properties)
        except PropertiesError as exc:
            raise TopologyFileError(f"组件 {entry.name}: {exc}") from exc

    for entry in description.components:
        if entry.parent is None:
            continue
        try:
            graph.connect_components(names[entry.parent], names[entry.name], entry.port)
        except InvalidOperationError as exc:
            raise TopologyFileError(f"组件 {entry.name} 无法连接到 {entry.parent}: {exc}") from exc

    logger.debug("topology_loaded", components=len(names))
    return graph, names


def load_topology_file(path: Union[str, Path]) -> Tuple[GraphModel, Dict[str, str]]:
    """从 YAML 文件加载拓扑描述"""
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise TopologyFileError(f"读取拓扑文件失败: {exc}") from exc
    except yaml.YAMLError as exc:
        raise TopologyFileError(f"拓扑文件不是有效的 YAML: {exc}") from exc
    if data is not None and not isinstance(data, Mapping):
        raise TopologyFileError("拓扑文件顶层必须是映射")
    return load_topology(data or {})


__all__ = ["ComponentEntry", "TopologyFile", "load_topology", "load_topology_file"]
