"""
Models 包 - 拓扑数据模型

此包包含组件属性、图快照和结果模型。
"""

# 基础
from .base import BaseConfig

# 属性变体
from .properties import (
    VolatileBacking, PersistentBacking, DynamicCapacityBacking, Backing,
    HostBridgeProperties, RootPortProperties, SwitchProperties,
    Type2DeviceProperties, Type3DeviceProperties, MemoryWindowProperties,
    DynamicCapacityPoolProperties, ComponentProperties,
    PROPERTIES_BY_KIND, parse_properties,
)

# 图快照
from .graph import Port, Component, Connection, GraphSnapshot

# 结果
from .results import Violation, ValidationReport, SynthesisResult, CompileResult

__all__ = [
    # 基础
    "BaseConfig",
    # 属性变体
    "VolatileBacking",
    "PersistentBacking",
    "DynamicCapacityBacking",
    "Backing",
    "HostBridgeProperties",
    "RootPortProperties",
    "SwitchProperties",
    "Type2DeviceProperties",
    "Type3DeviceProperties",
    "MemoryWindowProperties",
    "DynamicCapacityPoolProperties",
    "ComponentProperties",
    "PROPERTIES_BY_KIND",
    "parse_properties",
    # 图快照
    "Port",
    "Component",
    "Connection",
    "GraphSnapshot",
    # 结果
    "Violation",
    "ValidationReport",
    "SynthesisResult",
    "CompileResult",
]
