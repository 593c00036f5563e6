"""
CLI 入口
使用 typer 和 rich 编译 / 验证拓扑描述文件
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .config.settings import AppSettings
from .core.exceptions import TopologyFileError
from .core.models import Violation
from .core.types import ComponentKind, ValidationMode, enum_value
from .engine import TopologyCompiler
from .generators import render_launch_script
from .loader import load_topology_file
from .topology import ADJACENCY, upstream_port_count, validate
from .core.models.properties import PROPERTIES_BY_KIND
from .utils.logging import configure_logging, get_logger

# 创建应用和控制台
app = typer.Typer(
    name="cxl-topo",
    help="CXL 拓扑验证与 QEMU 命令生成",
    add_completion=False,
    rich_markup_mode="rich"
)
console = Console()

logger = get_logger(__name__)


# 全局配置（简单数据容器）
class GlobalConfig:
    verbose: bool = False


global_config = GlobalConfig()


# 回调函数
def version_callback(value: bool):
    """版本回调"""
    if value:
        console.print(f"cxl-topo v{__version__}")
        raise typer.Exit()


# 全局选项
@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None, "--version", "-v",
        callback=version_callback,
        is_eager=True,
        help="显示版本信息"
    ),
    verbose: bool = typer.Option(
        False, "--verbose",
        help="详细输出"
    ),
):
    """CXL 拓扑验证与 QEMU 命令生成"""
    settings = AppSettings()
    global_config.verbose = verbose or settings.verbose
    configure_logging(global_config.verbose)
    logger.debug("cli_started", verbose=global_config.verbose)


def _load(path: Path):
    try:
        return load_topology_file(path)
    except TopologyFileError as e:
        console.print(f"[red]加载拓扑失败: {e}[/red]")
        raise typer.Exit(2)


# 显示函数
def display_violations(violations: Sequence[Violation], names: dict) -> None:
    """显示违规列表"""
    reverse = {component_id: name for name, component_id in names.items()}
    table = Table(title="拓扑违规")
    table.add_column("类型", style="red")
    table.add_column("组件", style="cyan")
    table.add_column("连接", style="magenta")
    table.add_column("说明", style="white")
    for violation in violations:
        table.add_row(
            enum_value(violation.kind),
            reverse.get(violation.component_id, violation.component_id),
            violation.connection_id or "-",
            violation.message,
        )
    console.print(table)


@app.command("compile")
def compile_command(
    topology_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="拓扑描述文件 (YAML)"),
    machine: bool = typer.Option(False, "--machine", "-m", help="输出 -M 机器选项和固定内存窗口"),
    script: bool = typer.Option(False, "--script", "-s", help="输出 shell 启动脚本"),
):
    """编译拓扑，输出 QEMU 命令行参数"""
    settings = AppSettings()
    if machine:
        settings = settings.model_copy(update={"emit_machine": True})

    graph, names = _load(topology_file)
    result = TopologyCompiler(settings).compile(graph.snapshot())
    if not result.success:
        display_violations(result.violations, names)
        logger.error("compile_failed", file=str(topology_file), violations=len(result.violations))
        raise typer.Exit(1)

    if script:
        typer.echo(render_launch_script(result.fragments, settings, description=topology_file.name), nl=False)
    else:
        typer.echo(result.command)


@app.command("validate")
def validate_command(
    topology_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="拓扑描述文件 (YAML)"),
    synthesis: bool = typer.Option(False, "--synthesis", help="同时检查完整性（生成命令的前提）"),
):
    """验证拓扑连接"""
    graph, names = _load(topology_file)
    mode = ValidationMode.SYNTHESIS if synthesis else ValidationMode.EDITING
    report = validate(graph.snapshot(), mode)
    if not report.valid:
        display_violations(report.violations, names)
        raise typer.Exit(1)
    console.print(f"[green]验证通过 ✓[/green] ({len(names)} 个组件)")


@app.command("kinds")
def kinds_command():
    """列出组件种类、端口数量和允许的子组件"""
    table = Table(title="组件种类")
    table.add_column("种类", style="cyan")
    table.add_column("上行", justify="right")
    table.add_column("下行", justify="right")
    table.add_column("允许的子组件", style="green")
    table.add_column("说明")
    for kind in ComponentKind:
        defaults = PROPERTIES_BY_KIND[kind].model_fields
        if "root_ports" in defaults:
            downstream = f"{defaults['root_ports'].default} (root_ports)"
        elif "downstream_ports" in defaults:
            downstream = f"{defaults['downstream_ports'].default} (downstream_ports)"
        else:
            downstream = "1" if kind is ComponentKind.ROOT_PORT else "0"
        children = ", ".join(sorted(k.value for k in ADJACENCY[kind])) or "-"
        table.add_row(kind.value, str(upstream_port_count(kind)), downstream, children, kind.description)
    console.print(table)


if __name__ == "__main__":
    app()
