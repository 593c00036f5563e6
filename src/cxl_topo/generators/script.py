"""启动脚本生成"""
from __future__ import annotations

from typing import Optional, Sequence

from ..config.settings import AppSettings
from .renderer import render_template


def render_launch_script(
    fragments: Sequence[str],
    settings: Optional[AppSettings] = None,
    description: str = "generated by cxl-topo",
) -> str:
    """把参数片段渲染成可执行的 shell 启动脚本"""
    settings = settings or AppSettings()
    return render_template(
        "launch.sh.j2",
        {
            "description": description,
            "qemu_binary": settings.qemu_binary,
            "machine": settings.machine,
            "memory": settings.machine_memory,
            "has_machine_fragment": any(f.startswith("-M ") for f in fragments),
            "fragments": list(fragments),
        },
    )
