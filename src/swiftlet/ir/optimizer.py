"""
Swiftlet IR Optimiser
=====================

This module rewrites IR functions into smaller, semantically equivalent
ones. Each pass can be switched on or off on its own through
OptimisationOptions; the optimiser never modifies its input and always
returns new IRFunction/IRProgram values.

Pass Pipeline
-------------
Passes run once per function, in this fixed order:

1. **Peephole** (always runs, gated by the first two options)
   - Constant-expression evaluation: 'add 1, 2 -> %3' becomes
     'load 3 -> %3'; a branch on a constant such as 'branch true, ...'
     becomes a jump.
   - Constant propagation: when the instruction immediately before
     loads an immediate into %N, uses of %N in this instruction are
     replaced by that immediate. Only one instruction back is examined;
     each instruction is rewritten repeatedly until nothing applies.
2. **Dead-code elimination**: drop everything after a block's first
   branch, jump or return.
3. **Dead-store elimination**: drop arithmetic, comparisons and loads
   whose destination no instruction reads; repeat to a fixed point.
4. **Empty-block elimination**: a block that is only 'jump bX' is
   bypassed by pointing every branch, jump and the start block at bX.
5. **Jump-target inlining**: every 'jump bX' is replaced by the full
   instruction sequence of bX, recursively. The function's control flow
   must be acyclic; a cycle recurses until Python's recursion limit.
6. **Dead-block elimination**: blocks unreachable from the start block
   are removed.

String immediates are never propagated: string values always live in
registers.

Usage
-----
>>> from swiftlet.ir.optimizer import Optimiser, OptimisationOptions
>>> optimiser = Optimiser(OptimisationOptions.ALL)
>>> optimised = optimiser.optimise(program)
>>> print(optimiser.stats)
"""

import logging
from dataclasses import dataclass, replace
from enum import Flag
from typing import Optional

from swiftlet.ir.model import (
    BinaryInstruction,
    BlockName,
    BooleanValue,
    Branch,
    Call,
    Instruction,
    IntegerValue,
    IRFunction,
    IRProgram,
    IRValue,
    Jump,
    Load,
    Register,
    RegisterValue,
    Return,
    is_terminator,
    jump_targets,
    read_registers,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Options
# =============================================================================

class OptimisationOptions(Flag):
    """Set of optimisation passes to enable."""
    NONE = 0
    CONSTANT_EXPRESSION_EVALUATION = 1 << 0
    CONSTANT_PROPAGATION = 1 << 1
    DEAD_STORE_ELIMINATION = 1 << 2
    DEAD_CODE_ELIMINATION = 1 << 3
    EMPTY_BLOCK_ELIMINATION = 1 << 4
    INLINE_JUMP_TARGETS = 1 << 5
    DEAD_BLOCK_ELIMINATION = 1 << 6
    ALL = (
        CONSTANT_EXPRESSION_EVALUATION
        | CONSTANT_PROPAGATION
        | DEAD_STORE_ELIMINATION
        | DEAD_CODE_ELIMINATION
        | EMPTY_BLOCK_ELIMINATION
        | INLINE_JUMP_TARGETS
        | DEAD_BLOCK_ELIMINATION
    )

    @classmethod
    def parse(cls, names: str) -> "OptimisationOptions":
        """
        Parse a comma-separated list of option names.

        Names are case-insensitive and may use dashes or underscores,
        e.g. "constant-propagation,dead_store_elimination". The names
        "all" and "none" are accepted too.

        Raises:
            ValueError: If a name is not a known option
        """
        options = cls.NONE
        for raw in names.split(","):
            name = raw.strip().upper().replace("-", "_")
            if not name:
                continue
            if name not in cls.__members__:
                raise ValueError(f"unknown optimisation '{raw.strip()}'")
            options |= cls[name]
        return options


# =============================================================================
# Optimisation Statistics
# =============================================================================

@dataclass
class OptimisationStats:
    """
    Counts of the rewrites performed, summed over all functions.

    Attributes:
        constant_folds: Instructions folded to a load or jump
        constant_propagations: Register operands replaced by immediates
        dead_code: Instructions removed after a terminator
        dead_stores: Unread stores removed
        empty_blocks: Jump-only blocks bypassed
        inlined_jumps: Jumps replaced by their target's instructions
        dead_blocks: Unreachable blocks removed
        functions: Functions processed
    """
    constant_folds: int = 0
    constant_propagations: int = 0
    dead_code: int = 0
    dead_stores: int = 0
    empty_blocks: int = 0
    inlined_jumps: int = 0
    dead_blocks: int = 0
    functions: int = 0

    @property
    def total_optimisations(self) -> int:
        """Total number of individual rewrites applied."""
        return (
            self.constant_folds +
            self.constant_propagations +
            self.dead_code +
            self.dead_stores +
            self.empty_blocks +
            self.inlined_jumps +
            self.dead_blocks
        )

    def __str__(self) -> str:
        lines = ["Optimisation Statistics:"]
        if self.constant_folds:
            lines.append(f"  Constant expressions folded: {self.constant_folds}")
        if self.constant_propagations:
            lines.append(f"  Constants propagated: {self.constant_propagations}")
        if self.dead_code:
            lines.append(f"  Dead code removed: {self.dead_code}")
        if self.dead_stores:
            lines.append(f"  Dead stores removed: {self.dead_stores}")
        if self.empty_blocks:
            lines.append(f"  Empty blocks bypassed: {self.empty_blocks}")
        if self.inlined_jumps:
            lines.append(f"  Jumps inlined: {self.inlined_jumps}")
        if self.dead_blocks:
            lines.append(f"  Dead blocks removed: {self.dead_blocks}")
        lines.append(f"  Total optimisations: {self.total_optimisations}")
        lines.append(f"  Functions: {self.functions}")
        return "\n".join(lines)


# =============================================================================
# Optimiser
# =============================================================================

Blocks = dict[BlockName, tuple[Instruction, ...]]


class Optimiser:
    """
    Configurable IR optimiser.

    Attributes:
        options: The enabled passes
        verbose: If True, print statistics after optimising a program
        stats: Statistics about the rewrites performed by the last run
    """

    def __init__(self, options: OptimisationOptions = OptimisationOptions.ALL, verbose: bool = False):
        self.options = options
        self.verbose = verbose
        self.stats = OptimisationStats()

    def optimise(self, program: IRProgram) -> IRProgram:
        """
        Optimise every function of a program.

        Args:
            program: The program to optimise (left unchanged)

        Returns:
            A new, equivalent program
        """
        self.stats = OptimisationStats()
        functions = {
            name: self._optimise_function(name, function)
            for name, function in program.functions.items()
        }
        logger.info(f"Optimised {len(functions)} functions: "
                    f"{self.stats.total_optimisations} rewrites")
        if self.verbose:
            print(self.stats)
        return IRProgram(functions)

    def optimise_function(self, function: IRFunction) -> IRFunction:
        """Optimise a single function, resetting the statistics first."""
        self.stats = OptimisationStats()
        return self._optimise_function("<function>", function)

    def _optimise_function(self, name: str, function: IRFunction) -> IRFunction:
        self.stats.functions += 1
        options = self.options

        function = self._peephole_pass(function)
        if OptimisationOptions.DEAD_CODE_ELIMINATION in options:
            function = self._dead_code_pass(function)
        if OptimisationOptions.DEAD_STORE_ELIMINATION in options:
            function = self._dead_store_pass(function)
        if OptimisationOptions.EMPTY_BLOCK_ELIMINATION in options:
            function = self._empty_block_pass(function)
        if OptimisationOptions.INLINE_JUMP_TARGETS in options:
            function = self._inline_jump_pass(function)
        if OptimisationOptions.DEAD_BLOCK_ELIMINATION in options:
            function = self._dead_block_pass(function)

        logger.debug(f"Function '{name}' optimised to {len(function.blocks)} blocks, "
                     f"{function.instruction_count()} instructions")
        return function

    # =========================================================================
    # Peephole Pass
    # =========================================================================

    def _peephole_pass(self, function: IRFunction) -> IRFunction:
        """Constant folding and one-step constant propagation, per block."""
        blocks: Blocks = {}
        for name, instructions in function.blocks.items():
            result: list[Instruction] = []
            for instruction in instructions:
                previous = result[-1] if result else None
                while (rewritten := self._rewrite(instruction, previous)) is not None:
                    logger.debug(f"{name}: '{instruction}' -> '{rewritten}'")
                    instruction = rewritten
                result.append(instruction)
            blocks[name] = tuple(result)
        return replace(function, blocks=blocks)

    def _rewrite(self, instruction: Instruction, previous: Optional[Instruction]) -> Optional[Instruction]:
        """Apply one local rewrite to instruction, or return None if none applies."""
        if OptimisationOptions.CONSTANT_EXPRESSION_EVALUATION in self.options:
            folded = self._fold(instruction)
            if folded is not None:
                self.stats.constant_folds += 1
                return folded

        if OptimisationOptions.CONSTANT_PROPAGATION in self.options:
            if isinstance(previous, Load) and isinstance(previous.value, (IntegerValue, BooleanValue)):
                propagated = self._propagate(instruction, previous.destination, previous.value)
                if propagated is not None:
                    self.stats.constant_propagations += 1
                    return propagated

        return None

    def _fold(self, instruction: Instruction) -> Optional[Instruction]:
        match instruction:
            case BinaryInstruction(lhs=IntegerValue(value=lhs), rhs=IntegerValue(value=rhs)):
                return Load(instruction.evaluate(lhs, rhs), instruction.destination)
            case Branch(check=BooleanValue(value=check) | IntegerValue(value=check)):
                return Jump(instruction.true_block if check else instruction.false_block)
            case _:
                return None

    def _propagate(self, instruction: Instruction, register: Register, value: IRValue) -> Optional[Instruction]:
        """Replace reads of register in instruction by value."""
        target = RegisterValue(register)

        def substitute(operand: IRValue) -> IRValue:
            return value if operand == target else operand

        match instruction:
            case BinaryInstruction(lhs=lhs, rhs=rhs) if target in (lhs, rhs):
                return replace(instruction, lhs=substitute(lhs), rhs=substitute(rhs))
            case Branch(check=check) if check == target:
                return replace(instruction, check=value)
            case Call(arguments=arguments) if target in arguments:
                return replace(instruction, arguments=tuple(substitute(a) for a in arguments))
            case Load(value=loaded) if loaded == target:
                return replace(instruction, value=value)
            case Return(value=returned) if returned == target:
                return replace(instruction, value=value)
            case _:
                return None

    # =========================================================================
    # Dead Code and Dead Stores
    # =========================================================================

    def _dead_code_pass(self, function: IRFunction) -> IRFunction:
        """Truncate every block after its first terminator."""
        blocks: Blocks = {}
        for name, instructions in function.blocks.items():
            kept = instructions
            for index, instruction in enumerate(instructions):
                if is_terminator(instruction):
                    kept = instructions[:index + 1]
                    break
            removed = len(instructions) - len(kept)
            if removed:
                logger.debug(f"{name}: removed {removed} unreachable instructions")
                self.stats.dead_code += removed
            blocks[name] = kept
        return replace(function, blocks=blocks)

    def _dead_store_pass(self, function: IRFunction) -> IRFunction:
        """Remove side-effect-free stores to registers that are never read."""
        blocks = dict(function.blocks)
        while True:
            used = {
                register
                for instructions in blocks.values()
                for instruction in instructions
                for register in read_registers(instruction)
            }
            removed = 0
            for name, instructions in blocks.items():
                kept = tuple(
                    instruction for instruction in instructions
                    if not (isinstance(instruction, (BinaryInstruction, Load))
                            and instruction.destination not in used)
                )
                removed += len(instructions) - len(kept)
                blocks[name] = kept
            if not removed:
                break
            logger.debug(f"Removed {removed} dead stores")
            self.stats.dead_stores += removed
        return replace(function, blocks=blocks)

    # =========================================================================
    # Control-Flow Passes
    # =========================================================================

    def _empty_block_pass(self, function: IRFunction) -> IRFunction:
        """Bypass blocks that consist of a single jump."""
        blocks = dict(function.blocks)
        start_block = function.start_block

        while True:
            referenced = {start_block} | {
                target
                for instructions in blocks.values()
                for instruction in instructions
                for target in jump_targets(instruction)
            }
            candidate = next(
                (name for name, instructions in blocks.items()
                 if name in referenced
                 and len(instructions) == 1
                 and isinstance(instructions[0], Jump)
                 and instructions[0].to_block != name),
                None,
            )
            if candidate is None:
                break

            destination = blocks[candidate][0].to_block
            logger.debug(f"Redirecting {candidate} -> {destination}")
            self.stats.empty_blocks += 1
            blocks = {
                name: tuple(_redirect(instruction, candidate, destination) for instruction in instructions)
                for name, instructions in blocks.items()
            }
            if start_block == candidate:
                start_block = destination

        return replace(function, blocks=blocks, start_block=start_block)

    def _inline_jump_pass(self, function: IRFunction) -> IRFunction:
        """Replace every jump by the (recursively inlined) target block."""
        expanded: Blocks = {}

        def expand(name: BlockName) -> tuple[Instruction, ...]:
            if name in expanded:
                return expanded[name]
            result: list[Instruction] = []
            for instruction in function.blocks[name]:
                if isinstance(instruction, Jump) and instruction.to_block in function.blocks:
                    self.stats.inlined_jumps += 1
                    result.extend(expand(instruction.to_block))
                else:
                    result.append(instruction)
            expanded[name] = tuple(result)
            return expanded[name]

        blocks = {name: expand(name) for name in function.blocks}
        return replace(function, blocks=blocks)

    def _dead_block_pass(self, function: IRFunction) -> IRFunction:
        """Drop blocks that cannot be reached from the start block."""
        blocks = dict(function.blocks)
        while True:
            reachable = {function.start_block}
            worklist = [function.start_block]
            while worklist:
                name = worklist.pop()
                for instruction in blocks.get(name, ()):
                    for target in jump_targets(instruction):
                        if target not in reachable:
                            reachable.add(target)
                            worklist.append(target)

            dead = [name for name in blocks if name not in reachable]
            if not dead:
                break
            logger.debug(f"Removing unreachable blocks: {', '.join(map(str, dead))}")
            self.stats.dead_blocks += len(dead)
            for name in dead:
                del blocks[name]
        return replace(function, blocks=blocks)


def _redirect(instruction: Instruction, old: BlockName, new: BlockName) -> Instruction:
    """Point every reference to block old in instruction at block new."""
    match instruction:
        case Jump(to_block=target) if target == old:
            return Jump(new)
        case Branch(true_block=true_block, false_block=false_block) if old in (true_block, false_block):
            return replace(
                instruction,
                true_block=new if true_block == old else true_block,
                false_block=new if false_block == old else false_block,
            )
        case _:
            return instruction


# =============================================================================
# Convenience Functions
# =============================================================================

def optimise(program: IRProgram, options: OptimisationOptions = OptimisationOptions.ALL) -> IRProgram:
    """Optimise a program with the given passes enabled."""
    return Optimiser(options).optimise(program)


def optimise_function(function: IRFunction, options: OptimisationOptions = OptimisationOptions.ALL) -> IRFunction:
    """Optimise a single function with the given passes enabled."""
    return Optimiser(options).optimise_function(function)
