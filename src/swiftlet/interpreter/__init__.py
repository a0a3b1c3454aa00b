"""
Swiftlet IR Interpreter
=======================

IRExecutor runs an IRProgram to completion or one instruction at a time;
IRDebugger adds buffered output, state snapshots and breakpoints.
"""

from swiftlet.interpreter.executor import IRExecutor, StackFrame
from swiftlet.interpreter.debugger import (
    Breakpoint,
    BreakEvent,
    BreakReason,
    DebuggerState,
    IRDebugger,
)

__all__ = [
    "IRExecutor",
    "StackFrame",
    "IRDebugger",
    "DebuggerState",
    "Breakpoint",
    "BreakEvent",
    "BreakReason",
]
