"""
核心模块初始化
导出主要的类型、异常和模型
"""

from .types import (
    ComponentKind, PortRole, MemoryType, ViolationKind, ViolationCategory,
    ValidationMode, enum_value
)

from .exceptions import (
    TopologyError, InvalidOperationError, ComponentNotFoundError,
    ConnectionNotFoundError, PortNotFoundError, InvalidPortsError,
    PortOccupiedError, CyclicConnectionError, PropertiesError,
    SequencingError, TopologyFileError
)

from .models import (
    Port, Component, Connection, GraphSnapshot,
    Violation, ValidationReport, SynthesisResult, CompileResult,
    parse_properties
)

__all__ = [
    # 类型
    'ComponentKind', 'PortRole', 'MemoryType', 'ViolationKind', 'ViolationCategory',
    'ValidationMode', 'enum_value',

    # 异常
    'TopologyError', 'InvalidOperationError', 'ComponentNotFoundError',
    'ConnectionNotFoundError', 'PortNotFoundError', 'InvalidPortsError',
    'PortOccupiedError', 'CyclicConnectionError', 'PropertiesError',
    'SequencingError', 'TopologyFileError',

    # 模型
    'Port', 'Component', 'Connection', 'GraphSnapshot',
    'Violation', 'ValidationReport', 'SynthesisResult', 'CompileResult',
    'parse_properties'
]
