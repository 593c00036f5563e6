"""默认配置常量"""

# 主机桥总线号分配：bus_nr = BASE + 序号 * STRIDE
BUS_NR_DEFAULT_BASE = 12
BUS_NR_DEFAULT_STRIDE = 10
PCI_BUS_NR_MAX = 255

# 根端口 / 下行端口的 chassis 与起始 slot
PCIE_DEFAULT_CHASSIS = 0
PCIE_DEFAULT_FIRST_SLOT = 0

# 持久内存后备文件目录
PMEM_DEFAULT_DIR = "/tmp"

# 固定内存窗口 (cxl-fmw) 粒度，QEMU 要求 256MiB 的整数倍
FMW_SIZE_ALIGN_MIB = 256

# 机器选项
EMIT_MACHINE_DEFAULT = False
QEMU_DEFAULT_BINARY = "qemu-system-x86_64"
QEMU_DEFAULT_MACHINE = "q35"
QEMU_DEFAULT_MEMORY = "4G"

# 主机桥挂接的平台根总线
PLATFORM_ROOT_BUS = "pcie.0"
