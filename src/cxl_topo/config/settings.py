from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .defaults import (
    BUS_NR_DEFAULT_BASE,
    BUS_NR_DEFAULT_STRIDE,
    EMIT_MACHINE_DEFAULT,
    PCIE_DEFAULT_CHASSIS,
    PCIE_DEFAULT_FIRST_SLOT,
    PMEM_DEFAULT_DIR,
    QEMU_DEFAULT_BINARY,
    QEMU_DEFAULT_MACHINE,
    QEMU_DEFAULT_MEMORY,
)


class AppSettings(BaseSettings):
    """全局应用设置（可由环境变量覆盖）"""

    model_config = SettingsConfigDict(
        env_prefix="CXL_TOPO_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # 全局
    verbose: bool = Field(default=False, description="详细日志输出")

    # 命令合成
    emit_machine: bool = Field(default=EMIT_MACHINE_DEFAULT, description="在命令前输出 -M 机器选项")
    bus_nr_base: int = Field(default=BUS_NR_DEFAULT_BASE, ge=0, le=255, description="主机桥起始总线号")
    bus_nr_stride: int = Field(default=BUS_NR_DEFAULT_STRIDE, ge=1, le=128, description="主机桥总线号间隔")
    chassis: int = Field(default=PCIE_DEFAULT_CHASSIS, ge=0, le=255)
    first_slot: int = Field(default=PCIE_DEFAULT_FIRST_SLOT, ge=0, le=255)
    pmem_dir: str = Field(default=PMEM_DEFAULT_DIR, min_length=1, pattern=r"^\S+$", description="持久内存后备文件目录")

    # 启动脚本
    qemu_binary: str = Field(default=QEMU_DEFAULT_BINARY, description="QEMU 可执行文件")
    machine: str = Field(default=QEMU_DEFAULT_MACHINE, description="机器类型")
    machine_memory: str = Field(default=QEMU_DEFAULT_MEMORY, description="客户机内存")


__all__ = ["AppSettings"]
