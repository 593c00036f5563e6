from __future__ import annotations

import shlex
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

from jinja2 import Environment, FileSystemLoader, StrictUndefined

TEMPLATES_DIR = Path(__file__).parent / "templates"


def shell_fragment(fragment: str) -> str:
    """参数片段 "<标记> <参数>" 的两部分分别加 shell 引号"""
    return " ".join(shlex.quote(token) for token in fragment.split(" ", 1))


def one_line(text: str) -> str:
    return " ".join(str(text).split())


@lru_cache(maxsize=None)
def create_jinja_env() -> Environment:
    """shell 脚本模板环境：不做 HTML 转义，缺失变量直接报错"""
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["shell_quote"] = shlex.quote
    env.filters["shell_fragment"] = shell_fragment
    env.filters["one_line"] = one_line
    return env


def render_template(template_name: str, context: Dict[str, Any]) -> str:
    return create_jinja_env().get_template(template_name).render(**context)
