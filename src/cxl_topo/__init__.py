"""
CXL Topology Compiler Package

Builds hierarchical CXL topologies (host bridges, root ports, switches,
type2/type3 devices, memory windows, dynamic-capacity pools), validates
them against the connectivity grammar and compiles them into QEMU
command-line arguments.
"""

__version__ = "0.1.0"
__author__ = "CXL Topology Builder"

# Import main components for easy access
from .core.types import ComponentKind, MemoryType, PortRole, ViolationKind, ValidationMode
from .core.models import GraphSnapshot, Violation, ValidationReport, CompileResult
from .graph import GraphModel
from .topology import validate, sequence
from .generators import synthesize
from .engine import TopologyCompiler, compile_topology, compile_graph

__all__ = [
    "ComponentKind",
    "MemoryType",
    "PortRole",
    "ViolationKind",
    "ValidationMode",
    "GraphSnapshot",
    "Violation",
    "ValidationReport",
    "CompileResult",
    "GraphModel",
    "validate",
    "sequence",
    "synthesize",
    "TopologyCompiler",
    "compile_topology",
    "compile_graph",
]
