"""基础模型类"""
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict

RecordT = TypeVar("RecordT", bound="BaseConfig")


class BaseConfig(BaseModel):
    """拓扑记录基类：构造后不可变，未知字段直接拒绝"""

    model_config = ConfigDict(
        frozen=True,
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,  # 枚举字段保存为字符串值
        str_strip_whitespace=True,
    )

    def evolve(self: RecordT, **changes: Any) -> RecordT:
        """返回替换了部分字段的新记录，并重新执行全部验证

        与 model_copy(update=...) 不同，模型验证器会再次运行。
        """
        return type(self).model_validate({**dict(self), **changes})
