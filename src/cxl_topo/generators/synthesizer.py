"""
命令合成器
按排序结果逐个组件输出参数片段，并解析对父组件的引用
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from ..config.defaults import FMW_SIZE_ALIGN_MIB, PCI_BUS_NR_MAX
from ..core.exceptions import SequencingError
from ..core.models import GraphSnapshot, SynthesisResult, Violation
from ..core.types import ComponentKind, ViolationKind
from ..topology.validator import check_completeness
from ..utils.logging import get_logger
from .fragments import Fragment, FragmentEmitterFactory, SynthesisContext, SynthesisOptions

logger = get_logger(__name__)


def _align_window(size_mib: int) -> int:
    """固定内存窗口按 256MiB 向上对齐，至少 256MiB"""
    blocks = max(1, -(-size_mib // FMW_SIZE_ALIGN_MIB))
    return blocks * FMW_SIZE_ALIGN_MIB


def plan_bus_numbers(
    ordered_ids: Sequence[str],
    snapshot: GraphSnapshot,
    options: SynthesisOptions,
) -> Tuple[Dict[str, int], List[Violation]]:
    """在输出任何片段之前为全部主机桥分配总线号

    属性中显式给出的总线号先被占用；其余主机桥按 base + 序号 * stride
    取值，遇到已占用的号码时再前进一个 stride。
    """
    host_bridges = [
        snapshot.component(component_id) for component_id in ordered_ids
        if snapshot.component(component_id).kind_enum is ComponentKind.HOST_BRIDGE
    ]

    numbers: Dict[str, int] = {}
    violations: List[Violation] = []
    claimed: Dict[int, str] = {}
    for component in host_bridges:
        bus_nr = component.properties.bus_nr
        if bus_nr is None:
            continue
        if bus_nr in claimed:
            violations.append(Violation(
                kind=ViolationKind.BUS_NUMBER,
                component_id=component.id,
                message=f"总线号 {bus_nr} 已被主机桥 {claimed[bus_nr]} 使用",
            ))
            continue
        claimed[bus_nr] = component.id
        numbers[component.id] = bus_nr

    for ordinal, component in enumerate(host_bridges):
        if component.properties.bus_nr is not None:
            continue
        bus_nr = options.bus_nr_base + ordinal * options.bus_nr_stride
        while bus_nr in claimed:
            bus_nr += options.bus_nr_stride
        if bus_nr > PCI_BUS_NR_MAX:
            violations.append(Violation(
                kind=ViolationKind.BUS_NUMBER,
                component_id=component.id,
                message=f"主机桥 {component.id} 的总线号 {bus_nr} 超出 0..{PCI_BUS_NR_MAX}",
            ))
            continue
        claimed[bus_nr] = component.id
        numbers[component.id] = bus_nr

    return numbers, violations


def build_machine_fragment(ctx: SynthesisContext, host_bridge_ids: Sequence[str]) -> Fragment:
    """-M 机器选项：启用 CXL，并为每个主机桥配置一个固定内存窗口"""
    memory: Dict[str, int] = {hb: 0 for hb in host_bridge_ids}
    for component_id, root_id in ctx.hierarchy_root.items():
        component = ctx.snapshot.component(component_id)
        memory[root_id] += sum(b.total_size for b in component.properties.memory_backings)

    options = [("cxl", "on")]
    for index, hb_id in enumerate(host_bridge_ids):
        options.append((f"cxl-fmw.{index}.targets.0", ctx.identifiers[hb_id]))
        options.append((f"cxl-fmw.{index}.size", f"{_align_window(memory[hb_id])}M"))
    return Fragment(marker="-M", driver=ctx.options.machine, options=tuple(options))


class CommandSynthesizer:
    """命令合成器

    合成是纯函数：相同的图（包括影响序号的创建顺序）总是得到逐字节相同的文本。
    """

    def __init__(self, options: Optional[SynthesisOptions] = None):
        self.options = options or SynthesisOptions()

    def synthesize(self, ordered_ids: Sequence[str], snapshot: GraphSnapshot) -> SynthesisResult:
        """合成命令

        完整性不满足时不输出任何片段，只返回完整的违规列表。

        Raises:
            SequencingError: ordered_ids 不是快照组件的排列，或子组件排在父组件之前
        """
        violations = check_completeness(snapshot)
        if violations:
            logger.debug("synthesis_blocked", violations=len(violations))
            return SynthesisResult(success=False, violations=tuple(violations))

        ordered_ids = list(ordered_ids)
        if sorted(ordered_ids) != sorted(c.id for c in snapshot.ordered_components):
            raise SequencingError("排序结果与快照中的组件不一致")

        bus_numbers, violations = plan_bus_numbers(ordered_ids, snapshot, self.options)
        if violations:
            logger.debug("synthesis_blocked", violations=len(violations))
            return SynthesisResult(success=False, violations=tuple(violations))

        ctx = SynthesisContext(snapshot, self.options, bus_numbers)
        fragments: List[Fragment] = []
        host_bridges: List[str] = []
        for component_id in ordered_ids:
            component = snapshot.component(component_id)
            emitter = FragmentEmitterFactory.create(component.kind)
            fragments.extend(emitter.generate(component, ctx))
            if component.id == ctx.hierarchy_root.get(component.id):
                host_bridges.append(component.id)

        if self.options.emit_machine:
            fragments.insert(0, build_machine_fragment(ctx, host_bridges))

        result = SynthesisResult(
            success=True,
            fragments=tuple(f.render() for f in fragments),
            identifiers=dict(ctx.identifiers),
        )
        logger.debug("synthesis_finished", components=len(ordered_ids), fragments=len(fragments))
        return result


def synthesize(
    ordered_ids: Sequence[str],
    snapshot: GraphSnapshot,
    options: Optional[SynthesisOptions] = None,
) -> SynthesisResult:
    """合成命令的便利函数"""
    return CommandSynthesizer(options).synthesize(ordered_ids, snapshot)


__all__ = ["CommandSynthesizer", "synthesize", "build_machine_fragment", "plan_bus_numbers"]
