"""
Swiftlet IR Executor
====================

A call-stack interpreter for IRProgram. It executes exactly one IR
instruction per execute_next_step() call, and all of its state lives in
plain data (the call stack of StackFrames), so execution can be paused
after any instruction and resumed later.

Execution Model
---------------
- call_stack[0] is the frame currently executing. Construction pushes a
  single frame for 'main' at its start block.
- Arithmetic, comparisons and loads write frame 0's registers and move to
  the next instruction.
- branch/jump switch frame 0 to another block at index 0. Registers are
  kept: they belong to the function activation, not to the block.
- call print(x) writes x as a line of output, stores true in the
  destination register and never pushes a frame.
- call f(args) binds f's argument registers to the integer values of the
  arguments in a new frame, remembers the destination register on the
  calling frame, advances the caller past the call and pushes the new
  frame.
- return v hands the integer value of v to the caller's remembered
  destination register (if there is a caller) and pops the frame. Running
  off the end of a block is treated as 'return true'.

Value Resolution
----------------
| Value          | As integer          | As string            |
|----------------|---------------------|----------------------|
| register       | its contents, or 0  | its contents, or ""  |
| integer        | itself              | decimal digits       |
| boolean        | 1 / 0               | "true" / "false"     |
| string         | ExecutionError      | itself               |

Reading a register that was never written yields 0 or "" instead of an
error.

Example Usage
-------------
>>> from swiftlet import compile_to_ir
>>> from swiftlet.interpreter import IRExecutor
>>> executor = IRExecutor(compile_to_ir('print("hello")'))
>>> executor.execute()
hello
"""

import logging
import sys
from dataclasses import dataclass, field
from typing import Optional, TextIO

from swiftlet.errors import ExecutionError
from swiftlet.ir.model import (
    BinaryInstruction,
    BlockName,
    BooleanValue,
    Branch,
    Call,
    Instruction,
    IntegerValue,
    IRProgram,
    IRValue,
    Jump,
    Load,
    Register,
    RegisterValue,
    Return,
    StringValue,
)

logger = logging.getLogger(__name__)

PRINT_FUNCTION = "print"


# =============================================================================
# Stack Frame
# =============================================================================

@dataclass
class StackFrame:
    """
    One function activation.

    Attributes:
        function_name: Function this frame executes
        block: Block currently executing
        instruction_index: Index of the next instruction in block
        registers: Register contents, filled in as instructions execute
        function_call_destination_register: While this frame waits for a
            callee, the register that receives the callee's return value
    """
    function_name: str
    block: BlockName
    instruction_index: int = 0
    registers: dict[Register, IRValue] = field(default_factory=dict)
    function_call_destination_register: Optional[Register] = None


# =============================================================================
# Executor
# =============================================================================

class IRExecutor:
    """
    Single-step IR interpreter.

    Attributes:
        program: The program being executed
        call_stack: Active frames, innermost first
        return_value: Value returned by the outermost frame, once finished
        steps: Number of instructions executed so far
    """

    def __init__(self, program: IRProgram, output_stream: Optional[TextIO] = None):
        """
        Initialize the executor at the start of 'main'.

        Args:
            program: The IR program to execute
            output_stream: Where print output goes (default: sys.stdout)

        Raises:
            ExecutionError: If the program has no 'main' function
        """
        main = program.get(IRProgram.MAIN)
        if main is None:
            raise ExecutionError("program has no 'main' function")

        self.program = program
        self.output_stream = output_stream
        self.call_stack: list[StackFrame] = [StackFrame(IRProgram.MAIN, main.start_block)]
        self.return_value: Optional[IRValue] = None
        self.steps = 0

    @property
    def is_finished(self) -> bool:
        return not self.call_stack

    def output(self, text: str) -> None:
        """Emit one line of program output."""
        stream = self.output_stream if self.output_stream is not None else sys.stdout
        stream.write(text + "\n")

    def execute(self) -> None:
        """
        Run until the call stack is empty.

        Raises:
            ExecutionError: On a runtime error
        """
        while self.call_stack:
            self.execute_next_step()
        logger.debug(f"Execution finished after {self.steps} steps")

    def execute_next_step(self) -> None:
        """
        Execute the single instruction at the top frame's position.

        Does nothing once the call stack is empty.

        Raises:
            ExecutionError: On a runtime error
        """
        if not self.call_stack:
            return

        frame = self.call_stack[0]
        instruction = self._current_instruction(frame)
        self.steps += 1

        match instruction:
            case None:
                self._return(frame, BooleanValue(True))
            case BinaryInstruction():
                frame.registers[instruction.destination] = instruction.evaluate(
                    self._evaluate_integer(instruction.lhs, frame),
                    self._evaluate_integer(instruction.rhs, frame),
                )
                frame.instruction_index += 1
            case Load(value=value, destination=destination):
                loaded = self._dereference(value, frame)
                if loaded is None:
                    frame.registers.pop(destination, None)
                else:
                    frame.registers[destination] = loaded
                frame.instruction_index += 1
            case Branch():
                taken = self._evaluate_integer(instruction.check, frame) != 0
                self._switch_block(frame, instruction.true_block if taken else instruction.false_block)
            case Jump(to_block=to_block):
                self._switch_block(frame, to_block)
            case Call():
                self._call(frame, instruction)
            case Return(value=value):
                self._return(frame, value)

    # =========================================================================
    # Control Flow
    # =========================================================================

    def _current_instruction(self, frame: StackFrame) -> Optional[Instruction]:
        """The instruction frame points at, or None past the end of its block."""
        function = self.program.get(frame.function_name)
        if function is None:
            raise ExecutionError(f"unknown function '{frame.function_name}'")
        block = function.blocks.get(frame.block)
        if block is None:
            raise ExecutionError(f"unknown block {frame.block}", frame.function_name)
        if frame.instruction_index >= len(block):
            return None
        return block[frame.instruction_index]

    def _switch_block(self, frame: StackFrame, block: BlockName) -> None:
        function = self.program[frame.function_name]
        if block not in function.blocks:
            raise ExecutionError(f"jump to unknown block {block}", frame.function_name)
        frame.block = block
        frame.instruction_index = 0

    def _call(self, frame: StackFrame, instruction: Call) -> None:
        if instruction.function_name == PRINT_FUNCTION:
            if len(instruction.arguments) != 1:
                raise ExecutionError(
                    f"'{PRINT_FUNCTION}' expects 1 argument, got {len(instruction.arguments)}",
                    frame.function_name,
                )
            self.output(self._evaluate_string(instruction.arguments[0], frame))
            frame.registers[instruction.destination] = BooleanValue(True)
            frame.instruction_index += 1
            return

        callee = self.program.get(instruction.function_name)
        if callee is None:
            raise ExecutionError(f"call to unknown function '{instruction.function_name}'",
                                 frame.function_name)
        if len(instruction.arguments) != len(callee.argument_registers):
            raise ExecutionError(
                f"'{instruction.function_name}' expects {len(callee.argument_registers)} "
                f"arguments, got {len(instruction.arguments)}",
                frame.function_name,
            )

        registers: dict[Register, IRValue] = {
            register: IntegerValue(self._evaluate_integer(argument, frame))
            for register, argument in zip(callee.argument_registers, instruction.arguments)
        }
        frame.function_call_destination_register = instruction.destination
        frame.instruction_index += 1
        self.call_stack.insert(0, StackFrame(instruction.function_name, callee.start_block,
                                             registers=registers))
        logger.debug(f"Call {instruction.function_name}: depth {len(self.call_stack)}")

    def _return(self, frame: StackFrame, value: IRValue) -> None:
        if len(self.call_stack) > 1:
            caller = self.call_stack[1]
            result = IntegerValue(self._evaluate_integer(value, frame))
            destination = caller.function_call_destination_register
            if destination is None:
                raise ExecutionError("caller has no pending call", caller.function_name)
            caller.registers[destination] = result
            caller.function_call_destination_register = None
        else:
            self.return_value = self._dereference(value, frame)
        self.call_stack.pop(0)
        logger.debug(f"Return from {frame.function_name}: depth {len(self.call_stack)}")

    # =========================================================================
    # Value Resolution
    # =========================================================================

    def _dereference(self, value: IRValue, frame: StackFrame) -> Optional[IRValue]:
        """Follow registers to a concrete value; None if one was never written."""
        while isinstance(value, RegisterValue):
            if value.register not in frame.registers:
                return None
            value = frame.registers[value.register]
        return value

    def _evaluate_integer(self, value: IRValue, frame: StackFrame) -> int:
        match value:
            case RegisterValue(register=register):
                if register not in frame.registers:
                    return 0
                return self._evaluate_integer(frame.registers[register], frame)
            case IntegerValue(value=number):
                return number
            case BooleanValue(value=flag):
                return 1 if flag else 0
            case StringValue():
                raise ExecutionError(f"cannot use string {value} as an integer",
                                     frame.function_name)

    def _evaluate_string(self, value: IRValue, frame: StackFrame) -> str:
        match value:
            case RegisterValue(register=register):
                if register not in frame.registers:
                    return ""
                return self._evaluate_string(frame.registers[register], frame)
            case IntegerValue(value=number):
                return str(number)
            case BooleanValue(value=flag):
                return "true" if flag else "false"
            case StringValue(value=text):
                return text
