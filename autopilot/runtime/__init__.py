"""Autopilot runtime: expression evaluation, variables and the VM.

Available components:
    ExpressionEvaluator: Evaluates captured expressions against telemetry
    VariableStore: Script variables owned by one VM
    VirtualMachine: Tick-driven cooperative interpreter
"""

from autopilot.runtime.expression import ExpressionEvaluator, parse_expression
from autopilot.runtime.variables import VariableStore
from autopilot.runtime.vm import VirtualMachine, VMConfig

__all__ = [
    "ExpressionEvaluator",
    "VariableStore",
    "VirtualMachine",
    "VMConfig",
    "parse_expression",
]
