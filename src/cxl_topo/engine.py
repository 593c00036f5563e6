"""
拓扑编译引擎
一次编译：快照 -> 验证 -> 排序 -> 合成，同步执行直到完成
"""

from __future__ import annotations

from typing import Optional, Union

from .config.settings import AppSettings
from .core.models import CompileResult, GraphSnapshot
from .core.types import ValidationMode
from .generators import CommandSynthesizer, SynthesisOptions
from .graph import GraphModel
from .topology import sequence, validate
from .utils.logging import get_logger

logger = get_logger(__name__)


class TopologyCompiler:
    """拓扑编译引擎

    每次编译只使用调用时的快照，中间结构都是本次新建的，不跨编译保留状态。
    """

    def __init__(self, options: Optional[Union[SynthesisOptions, AppSettings]] = None):
        if isinstance(options, AppSettings):
            options = SynthesisOptions.from_settings(options)
        self.synthesizer = CommandSynthesizer(options)

    def compile(self, snapshot: GraphSnapshot) -> CompileResult:
        """编译图快照，返回完整命令或完整违规列表"""
        # 1. 结构规则 + 完整性
        report = validate(snapshot, ValidationMode.SYNTHESIS)
        if not report.valid:
            logger.debug(
                "compile_failed",
                structural=len(report.structural),
                completeness=len(report.completeness),
            )
            return CompileResult(success=False, violations=report.violations)

        # 2. 排序
        order = sequence(snapshot)

        # 3. 合成
        result = self.synthesizer.synthesize(order, snapshot)
        if not result.success:
            return CompileResult(success=False, violations=result.violations)

        logger.debug("compile_succeeded", components=len(order), fragments=len(result.fragments))
        return CompileResult(
            success=True,
            command=result.command,
            fragments=result.fragments,
            identifiers=result.identifiers,
        )


# 便利函数
def compile_topology(
    snapshot: GraphSnapshot,
    options: Optional[Union[SynthesisOptions, AppSettings]] = None,
) -> CompileResult:
    """编译图快照的便利函数"""
    return TopologyCompiler(options).compile(snapshot)


def compile_graph(
    graph: GraphModel,
    options: Optional[Union[SynthesisOptions, AppSettings]] = None,
) -> CompileResult:
    """对图模型的当前状态取快照并编译"""
    return compile_topology(graph.snapshot(), options)


__all__ = ["TopologyCompiler", "compile_topology", "compile_graph"]
