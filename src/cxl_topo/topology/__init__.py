"""
拓扑模块初始化
导出连接规则、验证器和排序器
"""

from .rules import ADJACENCY, is_allowed_child, upstream_port_count, port_layout

from .validator import (
    TopologyValidator, validate, check_roots, check_roles, check_fan_in,
    check_acyclicity, check_completeness
)

from .sequencer import DependencySequencer, sequence

__all__ = [
    # 规则
    'ADJACENCY', 'is_allowed_child', 'upstream_port_count', 'port_layout',

    # 验证器
    'TopologyValidator', 'validate', 'check_roots', 'check_roles', 'check_fan_in',
    'check_acyclicity', 'check_completeness',

    # 排序器
    'DependencySequencer', 'sequence'
]
