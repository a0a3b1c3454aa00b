"""
Swiftlet IR Debugger
====================

IRDebugger is an IRExecutor that keeps program output in memory and
exposes a snapshot of the interpreter after every step, for display by
a front end (the swrun --step command prints them).

The snapshot is the only view of interpreter state a front end should
use; it is a copy, so holding on to it does not pin or expose the live
frames.

Breakpoints
-----------
A breakpoint names a function, a block and an instruction index. run()
stops *before* executing the instruction at a breakpoint, so the
snapshot taken at that point shows it as the pending instruction.

Example usage:

    >>> debugger = IRDebugger(program)
    >>> debugger.add_breakpoint("fib", BlockName(1), 0)
    >>> event = debugger.run()
    >>> if event.reason == BreakReason.BREAKPOINT:
    ...     print(debugger.state.current_function_name)
"""

from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import Optional

from swiftlet.ir.model import BlockName, IRProgram
from swiftlet.interpreter.executor import IRExecutor, StackFrame


class BreakReason(Enum):
    """Why run() or step() returned."""
    STEP = auto()           # Single instruction executed
    BREAKPOINT = auto()     # Reached a breakpoint
    FINISHED = auto()       # Call stack is empty
    MAX_STEPS = auto()      # Step budget exhausted


@dataclass(frozen=True)
class Breakpoint:
    function_name: str
    block: BlockName
    instruction_index: int = 0

    def __str__(self) -> str:
        return f"{self.function_name}:{self.block}:{self.instruction_index}"


@dataclass
class BreakEvent:
    """
    Information about why execution stopped.

    Attributes:
        reason: Why execution stopped
        breakpoint: The breakpoint hit (BREAKPOINT only)
        steps: Instructions executed so far
        message: Human-readable description
    """
    reason: BreakReason
    breakpoint: Optional[Breakpoint] = None
    steps: int = 0
    message: str = ""

    def __str__(self) -> str:
        """Return human-readable description."""
        if self.message:
            return self.message
        match self.reason:
            case BreakReason.STEP:
                return f"Stepped (step {self.steps})"
            case BreakReason.BREAKPOINT:
                return f"Breakpoint at {self.breakpoint}"
            case BreakReason.FINISHED:
                return f"Program finished after {self.steps} steps"
            case BreakReason.MAX_STEPS:
                return f"Stopped after {self.steps} steps (step limit)"
            case _:
                return f"Stopped: {self.reason.name}"


@dataclass(frozen=True)
class DebuggerState:
    """
    Point-in-time view of the interpreter.

    Attributes:
        call_stack: Copies of the frames, innermost first. Every frame but
            the first reports the index of its pending call instruction.
        current_function_name: Function of the top frame
        current_block: Block of the top frame
        current_instruction_index: Index of the next instruction to execute
        output: Everything printed so far, one line per print
    """
    call_stack: tuple[StackFrame, ...]
    current_function_name: str
    current_block: BlockName
    current_instruction_index: int
    output: str

    def __str__(self) -> str:
        lines = [f"{self.current_function_name} {self.current_block}:{self.current_instruction_index}"]
        for depth, frame in enumerate(self.call_stack):
            registers = ", ".join(
                f"{register}={value}" for register, value in sorted(frame.registers.items())
            )
            lines.append(f"  #{depth} {frame.function_name} "
                         f"{frame.block}:{frame.instruction_index} [{registers}]")
        return "\n".join(lines)


class IRDebugger(IRExecutor):
    """
    Executor with buffered output, snapshots and breakpoints.

    Attributes:
        output_log: Accumulated program output, each line newline-terminated
        breakpoints: Active breakpoints
    """

    def __init__(self, program: IRProgram):
        super().__init__(program)
        self.output_log = ""
        self.breakpoints: set[Breakpoint] = set()
        self._stopped_at_step: Optional[int] = None

    def output(self, text: str) -> None:
        self.output_log += text + "\n"

    @property
    def state(self) -> Optional[DebuggerState]:
        """Snapshot of the interpreter, or None once execution has finished."""
        if not self.call_stack:
            return None

        frames = tuple(
            replace(
                frame,
                registers=dict(frame.registers),
                instruction_index=frame.instruction_index if depth == 0 else frame.instruction_index - 1,
            )
            for depth, frame in enumerate(self.call_stack)
        )
        top = self.call_stack[0]
        return DebuggerState(
            call_stack=frames,
            current_function_name=top.function_name,
            current_block=top.block,
            current_instruction_index=top.instruction_index,
            output=self.output_log,
        )

    # =========================================================================
    # Breakpoints
    # =========================================================================

    def add_breakpoint(self, function_name: str, block: BlockName, instruction_index: int = 0) -> Breakpoint:
        breakpoint = Breakpoint(function_name, block, instruction_index)
        self.breakpoints.add(breakpoint)
        return breakpoint

    def remove_breakpoint(self, function_name: str, block: BlockName, instruction_index: int = 0) -> bool:
        """
        Remove a breakpoint.

        Returns:
            True if the breakpoint existed
        """
        breakpoint = Breakpoint(function_name, block, instruction_index)
        if breakpoint in self.breakpoints:
            self.breakpoints.remove(breakpoint)
            return True
        return False

    def _pending_breakpoint(self) -> Optional[Breakpoint]:
        if not self.call_stack:
            return None
        top = self.call_stack[0]
        candidate = Breakpoint(top.function_name, top.block, top.instruction_index)
        return candidate if candidate in self.breakpoints else None

    # =========================================================================
    # Execution Control
    # =========================================================================

    def step(self) -> BreakEvent:
        """Execute one instruction."""
        if not self.call_stack:
            return BreakEvent(BreakReason.FINISHED, steps=self.steps)
        self.execute_next_step()
        if not self.call_stack:
            return BreakEvent(BreakReason.FINISHED, steps=self.steps)
        return BreakEvent(BreakReason.STEP, steps=self.steps)

    def run(self, max_steps: Optional[int] = None) -> BreakEvent:
        """
        Execute until a breakpoint, the end of the program or max_steps.

        A breakpoint on the pending instruction stops run() before anything
        executes, including on the first call. The breakpoint that ended the
        previous run() is passed over once, so repeated run() calls make
        progress.

        Args:
            max_steps: Maximum instructions to execute (None for no limit)

        Returns:
            BreakEvent describing why execution stopped
        """
        executed = 0
        while self.call_stack:
            hit = self._pending_breakpoint()
            if hit is not None and self._stopped_at_step != self.steps:
                self._stopped_at_step = self.steps
                return BreakEvent(BreakReason.BREAKPOINT, breakpoint=hit, steps=self.steps)
            if max_steps is not None and executed >= max_steps:
                return BreakEvent(BreakReason.MAX_STEPS, steps=self.steps)
            self.execute_next_step()
            executed += 1
        return BreakEvent(BreakReason.FINISHED, steps=self.steps)
