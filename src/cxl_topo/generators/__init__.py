"""
生成器模块初始化
导出片段生成器、命令合成器和启动脚本渲染
"""

from .fragments import (
    SynthesisOptions, Fragment, SynthesisContext, FragmentEmitter,
    HostBridgeEmitter, RootPortEmitter, SwitchEmitter,
    MemoryDeviceEmitter, Type2DeviceEmitter, emit_backing,
    FragmentEmitterFactory
)

from .synthesizer import CommandSynthesizer, synthesize, build_machine_fragment, plan_bus_numbers

from .script import render_launch_script

__all__ = [
    # 片段生成器
    'SynthesisOptions', 'Fragment', 'SynthesisContext', 'FragmentEmitter',
    'HostBridgeEmitter', 'RootPortEmitter', 'SwitchEmitter',
    'MemoryDeviceEmitter', 'Type2DeviceEmitter', 'emit_backing',
    'FragmentEmitterFactory',

    # 命令合成器
    'CommandSynthesizer', 'synthesize', 'build_machine_fragment', 'plan_bus_numbers',

    # 启动脚本
    'render_launch_script'
]
