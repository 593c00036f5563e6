"""拓扑异常定义

结构违规与完整性违规作为值返回（见 Violation），不会以异常抛出。
这里只包含调用方违反接口约定时立即抛出的错误。
"""
from __future__ import annotations

from typing import Optional

from .types import ViolationKind


class TopologyError(Exception):
    """Base exception for cxl-topo errors."""


class InvalidOperationError(TopologyError):
    """Raised immediately when a caller breaks the graph API contract."""


class ComponentNotFoundError(InvalidOperationError):
    """组件不存在"""

    def __init__(self, component_id: str):
        super().__init__(f"组件不存在: {component_id}")
        self.component_id = component_id


class ConnectionNotFoundError(InvalidOperationError):
    """连接不存在"""

    def __init__(self, connection_id: str):
        super().__init__(f"连接不存在: {connection_id}")
        self.connection_id = connection_id


class PortNotFoundError(InvalidOperationError):
    """端口不存在"""

    def __init__(self, port_id: str):
        super().__init__(f"端口不存在: {port_id}")
        self.port_id = port_id


class InvalidPortsError(InvalidOperationError):
    """端口配对无效：必须恰好一个上行端口和一个下行端口，且位于不同组件"""


class PortOccupiedError(InvalidOperationError):
    """端口已被占用"""

    def __init__(self, message: str, port_id: Optional[str] = None):
        super().__init__(message)
        self.port_id = port_id


class CyclicConnectionError(InvalidOperationError):
    """新连接会形成环"""

    kind = ViolationKind.ACYCLICITY

    def __init__(self, message: str, component_id: str):
        super().__init__(message)
        self.component_id = component_id


class PropertiesError(TopologyError):
    """组件属性无效"""


class SequencingError(TopologyError):
    """图中存在环，无法确定顺序"""


class TopologyFileError(TopologyError):
    """拓扑描述文件无效"""


__all__ = [
    "TopologyError", "InvalidOperationError",
    "ComponentNotFoundError", "ConnectionNotFoundError", "PortNotFoundError",
    "InvalidPortsError", "PortOccupiedError", "CyclicConnectionError",
    "PropertiesError", "SequencingError", "TopologyFileError",
]
