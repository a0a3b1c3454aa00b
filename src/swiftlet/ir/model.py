"""
Swiftlet Intermediate Representation
====================================

The IR is a register machine organised into basic blocks. Every function
(including the implicit 'main' holding the top-level statements) is an
IRFunction: a start block, a mapping from block names to instruction
sequences, and the registers its arguments arrive in.

Values
------
| IRValue        | Renders as | Notes                                  |
|----------------|------------|----------------------------------------|
| RegisterValue  | %3         | contents of a register                 |
| IntegerValue   | 42         | immediate                              |
| BooleanValue   | true       | immediate                              |
| StringValue    | "text"     | only ever appears as a load operand    |

Instructions
------------
| Instruction               | Rendering                          |
|---------------------------|------------------------------------|
| Add/Sub/Equal/LessOrEqual | add %1, 2 -> %3                    |
| Branch                    | branch %3, true: b1, false: b2     |
| Jump                      | jump b3                            |
| Call                      | call f(%1, 2) -> %4                |
| Load                      | load "hi" -> %5                    |
| Return                    | return %4                          |

Branch, Jump and Return are terminators; a well-formed block ends in
exactly one of them once dead code has been removed.

Design Notes
------------
- Everything here is a frozen dataclass. Blocks hold tuples, so IR built
  by the generator is never changed afterwards; the optimiser builds new
  functions with dataclasses.replace.
- Register and block ids are unique within their function and handed out
  in increasing order; ids are never reused.
"""

from dataclasses import dataclass, field
from typing import ClassVar, Iterator, Union


# =============================================================================
# Registers and Block Names
# =============================================================================

@dataclass(frozen=True, order=True)
class Register:
    id: int

    def __str__(self) -> str:
        return f"%{self.id}"


@dataclass(frozen=True, order=True)
class BlockName:
    id: int

    def __str__(self) -> str:
        return f"b{self.id}"


# =============================================================================
# Values
# =============================================================================

@dataclass(frozen=True)
class RegisterValue:
    register: Register

    def __str__(self) -> str:
        return str(self.register)


@dataclass(frozen=True)
class IntegerValue:
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class BooleanValue:
    value: bool

    def __str__(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class StringValue:
    value: str

    def __str__(self) -> str:
        return f'"{self.value}"'


IRValue = Union[RegisterValue, IntegerValue, BooleanValue, StringValue]

# Values the optimiser may substitute for a register operand
Immediate = Union[IntegerValue, BooleanValue]


# =============================================================================
# Instructions
# =============================================================================

@dataclass(frozen=True)
class BinaryInstruction:
    """
    Common shape of the arithmetic and comparison instructions.

    Attributes:
        lhs: Left operand
        rhs: Right operand
        destination: Register receiving the result
    """
    lhs: IRValue
    rhs: IRValue
    destination: Register

    mnemonic: ClassVar[str] = ""

    def evaluate(self, lhs: int, rhs: int) -> IRValue:
        """Compute the result for two integer operands."""
        raise NotImplementedError

    def __str__(self) -> str:
        return f"{self.mnemonic} {self.lhs}, {self.rhs} -> {self.destination}"


@dataclass(frozen=True)
class Add(BinaryInstruction):
    mnemonic: ClassVar[str] = "add"

    def evaluate(self, lhs: int, rhs: int) -> IRValue:
        return IntegerValue(lhs + rhs)


@dataclass(frozen=True)
class Sub(BinaryInstruction):
    mnemonic: ClassVar[str] = "sub"

    def evaluate(self, lhs: int, rhs: int) -> IRValue:
        return IntegerValue(lhs - rhs)


@dataclass(frozen=True)
class Equal(BinaryInstruction):
    mnemonic: ClassVar[str] = "equal"

    def evaluate(self, lhs: int, rhs: int) -> IRValue:
        return BooleanValue(lhs == rhs)


@dataclass(frozen=True)
class LessOrEqual(BinaryInstruction):
    mnemonic: ClassVar[str] = "lessOrEqual"

    def evaluate(self, lhs: int, rhs: int) -> IRValue:
        return BooleanValue(lhs <= rhs)


@dataclass(frozen=True)
class Branch:
    check: IRValue
    true_block: BlockName
    false_block: BlockName

    def __str__(self) -> str:
        return f"branch {self.check}, true: {self.true_block}, false: {self.false_block}"


@dataclass(frozen=True)
class Jump:
    to_block: BlockName

    def __str__(self) -> str:
        return f"jump {self.to_block}"


@dataclass(frozen=True)
class Call:
    function_name: str
    arguments: tuple[IRValue, ...]
    destination: Register

    def __str__(self) -> str:
        args = ", ".join(str(arg) for arg in self.arguments)
        return f"call {self.function_name}({args}) -> {self.destination}"


@dataclass(frozen=True)
class Load:
    value: IRValue
    destination: Register

    def __str__(self) -> str:
        return f"load {self.value} -> {self.destination}"


@dataclass(frozen=True)
class Return:
    value: IRValue

    def __str__(self) -> str:
        return f"return {self.value}"


Instruction = Union[Add, Sub, Equal, LessOrEqual, Branch, Jump, Call, Load, Return]

TERMINATORS = (Branch, Jump, Return)


# =============================================================================
# Instruction Queries
# =============================================================================

def is_terminator(instruction: Instruction) -> bool:
    """True for instructions that end a basic block."""
    return isinstance(instruction, TERMINATORS)


def operands(instruction: Instruction) -> tuple[IRValue, ...]:
    """Every value an instruction reads, in operand order."""
    match instruction:
        case BinaryInstruction(lhs=lhs, rhs=rhs):
            return (lhs, rhs)
        case Branch(check=check):
            return (check,)
        case Call(arguments=arguments):
            return arguments
        case Load(value=value):
            return (value,)
        case Return(value=value):
            return (value,)
        case Jump():
            return ()


def read_registers(instruction: Instruction) -> Iterator[Register]:
    """Registers an instruction reads (a load of a register counts too)."""
    for value in operands(instruction):
        if isinstance(value, RegisterValue):
            yield value.register


def jump_targets(instruction: Instruction) -> tuple[BlockName, ...]:
    """Blocks control may move to after this instruction."""
    match instruction:
        case Branch(true_block=true_block, false_block=false_block):
            return (true_block, false_block)
        case Jump(to_block=to_block):
            return (to_block,)
        case _:
            return ()


# =============================================================================
# Functions and Programs
# =============================================================================

@dataclass(frozen=True)
class IRFunction:
    """
    One function's control-flow graph.

    Attributes:
        start_block: Block execution starts in
        blocks: Instruction sequence of every block
        argument_registers: Registers receiving the arguments, in order
    """
    start_block: BlockName
    blocks: dict[BlockName, tuple[Instruction, ...]]
    argument_registers: tuple[Register, ...] = ()

    def instruction_count(self) -> int:
        return sum(len(instructions) for instructions in self.blocks.values())

    def __str__(self) -> str:
        lines = [f"Start block: {self.start_block}", ""]
        for name in sorted(self.blocks):
            lines.append(f"{name}:")
            lines.extend(f"  {instruction}" for instruction in self.blocks[name])
        return "\n".join(lines) + "\n"


@dataclass(frozen=True)
class IRProgram:
    """
    All functions of a program, keyed by name.

    'main' comes first, followed by the declared functions in source order.
    """
    functions: dict[str, IRFunction] = field(default_factory=dict)

    MAIN: ClassVar[str] = "main"

    def __getitem__(self, name: str) -> IRFunction:
        return self.functions[name]

    def __contains__(self, name: str) -> bool:
        return name in self.functions

    def get(self, name: str) -> IRFunction | None:
        return self.functions.get(name)

    @property
    def main(self) -> IRFunction:
        return self.functions[self.MAIN]

    def __str__(self) -> str:
        parts = []
        for name, function in self.functions.items():
            args = ", ".join(str(register) for register in function.argument_registers)
            body = "".join(f"  {line}\n" if line else "\n"
                           for line in str(function).splitlines())
            parts.append(f"{name}({args}): \n{body}")
        return "\n".join(parts)
