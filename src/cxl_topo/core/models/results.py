"""违规与结果模块"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pydantic import Field, computed_field

from .base import BaseConfig
from ..types import ComponentId, ConnectionId, ViolationCategory, ViolationKind, enum_value


class Violation(BaseConfig):
    """违规：违规类型 + 涉及的组件/连接"""

    kind: ViolationKind = Field(description="违规类型")
    component_id: ComponentId = Field(description="涉及的组件ID")
    connection_id: Optional[ConnectionId] = Field(default=None, description="涉及的连接ID")
    message: str = Field(default="", description="说明")

    @property
    def category(self) -> ViolationCategory:
        return ViolationKind(enum_value(self.kind)).category

    def to_dict(self) -> Dict[str, Any]:
        """外部接口形状 {kind, componentId, connectionId?}"""
        data: Dict[str, Any] = {"kind": enum_value(self.kind), "componentId": self.component_id}
        if self.connection_id is not None:
            data["connectionId"] = self.connection_id
        return data


class ValidationReport(BaseConfig):
    """验证报告"""

    violations: Tuple[Violation, ...] = Field(default=(), description="违规列表")

    @computed_field
    @property
    def valid(self) -> bool:
        return not self.violations

    @computed_field
    @property
    def violation_count(self) -> int:
        return len(self.violations)

    @property
    def structural(self) -> List[Violation]:
        return [v for v in self.violations if v.category is ViolationCategory.STRUCTURAL]

    @property
    def completeness(self) -> List[Violation]:
        return [v for v in self.violations if v.category is ViolationCategory.COMPLETENESS]

    def of_kind(self, kind: ViolationKind) -> List[Violation]:
        return [v for v in self.violations if enum_value(v.kind) == enum_value(kind)]


class SynthesisResult(BaseConfig):
    """命令合成结果：完整命令，或空文本加完整违规列表"""

    success: bool = Field(description="是否成功")
    fragments: Tuple[str, ...] = Field(default=(), description="参数片段（按输出顺序）")
    identifiers: Dict[str, str] = Field(default_factory=dict, description="组件ID到外部标识符的映射")
    violations: Tuple[Violation, ...] = Field(default=(), description="违规列表")

    @computed_field
    @property
    def command(self) -> str:
        return " ".join(self.fragments)


class CompileResult(BaseConfig):
    """编译结果"""

    success: bool = Field(description="是否成功")
    command: str = Field(default="", description="命令文本，失败时为空")
    fragments: Tuple[str, ...] = Field(default=(), description="参数片段（按输出顺序）")
    violations: Tuple[Violation, ...] = Field(default=(), description="违规列表")
    identifiers: Dict[str, str] = Field(default_factory=dict, description="组件ID到外部标识符的映射")

    def to_dict(self) -> Dict[str, Any]:
        """{command} 或 {violations}"""
        if self.success:
            return {"command": self.command}
        return {"violations": [v.to_dict() for v in self.violations]}


__all__ = ["Violation", "ValidationReport", "SynthesisResult", "CompileResult"]
