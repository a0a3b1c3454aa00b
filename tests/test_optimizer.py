# =============================================================================
# test_optimizer.py - IR Optimiser Tests
# =============================================================================
# Tests for the IR optimisation passes.
#
# Test coverage includes:
#   - Constant-expression evaluation and constant propagation
#   - Dead code and dead store elimination
#   - Empty-block elimination, jump inlining, dead-block elimination
#   - Option parsing and statistics
#   - Semantic preservation on whole programs
# =============================================================================

import pytest

from swiftlet import compile_to_ir
from swiftlet.interpreter import IRDebugger
from swiftlet.ir.model import (
    Add,
    BlockName,
    BooleanValue,
    Branch,
    Call,
    Equal,
    IntegerValue,
    IRFunction,
    IRProgram,
    Jump,
    LessOrEqual,
    Load,
    Register,
    RegisterValue,
    Return,
    StringValue,
    Sub,
)
from swiftlet.ir.optimizer import (
    OptimisationOptions as O,
    OptimisationStats,
    Optimiser,
    optimise,
    optimise_function,
)


# =============================================================================
# Helper Functions
# =============================================================================

def r(n: int) -> Register:
    return Register(n)


def rv(n: int) -> RegisterValue:
    return RegisterValue(Register(n))


def b(n: int) -> BlockName:
    return BlockName(n)


def function(blocks: dict, start: int = 0, arguments: tuple = ()) -> IRFunction:
    """Build an IRFunction from {block id: [instructions]}."""
    return IRFunction(
        start_block=b(start),
        blocks={b(k): tuple(v) for k, v in blocks.items()},
        argument_registers=tuple(r(a) for a in arguments),
    )


def run_output(program: IRProgram) -> str:
    """Execute a program and return everything it printed."""
    debugger = IRDebugger(program)
    debugger.execute()
    return debugger.output_log


# =============================================================================
# Peephole Pass Tests
# =============================================================================

class TestConstantExpressionEvaluation:
    """Test folding of constant instructions."""

    @pytest.mark.parametrize("instruction,expected", [
        (Add(IntegerValue(1), IntegerValue(2), r(1)), Load(IntegerValue(3), r(1))),
        (Sub(IntegerValue(1), IntegerValue(2), r(1)), Load(IntegerValue(-1), r(1))),
        (Equal(IntegerValue(4), IntegerValue(4), r(1)), Load(BooleanValue(True), r(1))),
        (LessOrEqual(IntegerValue(5), IntegerValue(4), r(1)), Load(BooleanValue(False), r(1))),
    ])
    def test_fold_binary(self, instruction, expected):
        """Binary instructions with immediate operands become loads."""
        result = optimise_function(function({0: [instruction, Return(rv(1))]}),
                                   O.CONSTANT_EXPRESSION_EVALUATION)
        assert result.blocks[b(0)][0] == expected

    def test_fold_branch(self):
        """A branch on an immediate becomes a jump."""
        fn = function({
            0: [Branch(BooleanValue(False), b(1), b(2))],
            1: [Return(IntegerValue(1))],
            2: [Return(IntegerValue(2))],
        })
        result = optimise_function(fn, O.CONSTANT_EXPRESSION_EVALUATION)
        assert result.blocks[b(0)] == (Jump(b(2)),)

    def test_register_operands_not_folded(self):
        """Instructions reading registers are left alone."""
        fn = function({0: [Add(rv(1), IntegerValue(2), r(2)), Return(rv(2))]}, arguments=(1,))
        result = optimise_function(fn, O.CONSTANT_EXPRESSION_EVALUATION)
        assert result == fn

    def test_disabled(self):
        """Without the option nothing is folded."""
        fn = function({0: [Add(IntegerValue(1), IntegerValue(2), r(1)), Return(rv(1))]})
        assert optimise_function(fn, O.NONE) == fn


class TestConstantPropagation:
    """Test one-step propagation of loaded immediates."""

    def test_propagate_into_operand(self):
        """An operand loaded by the previous instruction is replaced."""
        fn = function({0: [Load(IntegerValue(5), r(1)), Add(rv(1), IntegerValue(2), r(2)), Return(rv(2))]})
        result = optimise_function(fn, O.CONSTANT_PROPAGATION)
        assert result.blocks[b(0)][1] == Add(IntegerValue(5), IntegerValue(2), r(2))

    def test_propagation_and_folding_chain(self):
        """Propagation and folding repeat until nothing applies."""
        fn = function({0: [Load(IntegerValue(5), r(1)), Add(rv(1), IntegerValue(2), r(2)), Return(rv(2))]})
        result = optimise_function(fn, O.CONSTANT_PROPAGATION | O.CONSTANT_EXPRESSION_EVALUATION)
        assert result.blocks[b(0)] == (
            Load(IntegerValue(5), r(1)),
            Load(IntegerValue(7), r(2)),
            Return(IntegerValue(7)),
        )

    def test_only_one_instruction_back(self):
        """Propagation does not look past the previous instruction."""
        fn = function({0: [
            Load(IntegerValue(1), r(1)),
            Load(IntegerValue(2), r(2)),
            Add(rv(1), rv(2), r(3)),
            Return(rv(3)),
        ]})
        result = optimise_function(fn, O.CONSTANT_PROPAGATION)
        assert result.blocks[b(0)][2] == Add(rv(1), IntegerValue(2), r(3))

    def test_propagate_into_branch(self):
        """Branch checks receive propagated immediates."""
        fn = function({
            0: [Load(BooleanValue(True), r(1)), Branch(rv(1), b(1), b(2))],
            1: [Return(IntegerValue(1))],
            2: [Return(IntegerValue(2))],
        })
        result = optimise_function(fn, O.CONSTANT_PROPAGATION | O.CONSTANT_EXPRESSION_EVALUATION)
        assert result.blocks[b(0)][1] == Jump(b(1))

    def test_propagate_into_call(self):
        """Call arguments receive propagated immediates."""
        fn = function({0: [Load(IntegerValue(3), r(1)), Call("print", (rv(1),), r(2)), Return(BooleanValue(True))]})
        result = optimise_function(fn, O.CONSTANT_PROPAGATION)
        assert result.blocks[b(0)][1] == Call("print", (IntegerValue(3),), r(2))

    def test_strings_not_propagated(self):
        """String values stay in registers."""
        fn = function({0: [Load(StringValue("s"), r(1)), Call("print", (rv(1),), r(2)), Return(BooleanValue(True))]})
        assert optimise_function(fn, O.CONSTANT_PROPAGATION) == fn

    def test_peephole_is_per_block(self):
        """The first instruction of a block has no previous instruction."""
        fn = function({
            0: [Load(IntegerValue(1), r(1)), Jump(b(1))],
            1: [Return(rv(1))],
        })
        result = optimise_function(fn, O.CONSTANT_PROPAGATION)
        assert result.blocks[b(1)] == (Return(rv(1)),)


# =============================================================================
# Dead Code and Dead Store Tests
# =============================================================================

class TestDeadCodeElimination:
    """Test truncation after terminators."""

    def test_truncate_after_return(self):
        """Everything after the first terminator is removed."""
        fn = function({0: [Return(IntegerValue(1)), Call("print", (IntegerValue(2),), r(1)), Jump(b(0))]})
        optimiser = Optimiser(O.DEAD_CODE_ELIMINATION)
        result = optimiser.optimise_function(fn)
        assert result.blocks[b(0)] == (Return(IntegerValue(1)),)
        assert optimiser.stats.dead_code == 2

    def test_block_without_terminator(self):
        """Blocks without a terminator are unchanged."""
        fn = function({0: [Call("print", (IntegerValue(2),), r(1))]})
        assert optimise_function(fn, O.DEAD_CODE_ELIMINATION) == fn


class TestDeadStoreElimination:
    """Test removal of unread stores."""

    def test_unread_store_removed(self):
        """Stores to registers nobody reads are removed."""
        fn = function({0: [Add(IntegerValue(1), IntegerValue(2), r(1)), Return(IntegerValue(0))]})
        result = optimise_function(fn, O.DEAD_STORE_ELIMINATION)
        assert result.blocks[b(0)] == (Return(IntegerValue(0)),)

    def test_fixed_point(self):
        """Removing a store can make its producers dead too."""
        fn = function({0: [
            Load(IntegerValue(1), r(1)),
            Sub(rv(1), IntegerValue(1), r(2)),
            LessOrEqual(rv(2), IntegerValue(0), r(3)),
            Return(IntegerValue(0)),
        ]})
        optimiser = Optimiser(O.DEAD_STORE_ELIMINATION)
        result = optimiser.optimise_function(fn)
        assert result.blocks[b(0)] == (Return(IntegerValue(0)),)
        assert optimiser.stats.dead_stores == 3

    def test_calls_are_kept(self):
        """Calls have side effects and are never removed."""
        fn = function({0: [Call("print", (IntegerValue(1),), r(1)), Return(BooleanValue(True))]})
        assert optimise_function(fn, O.DEAD_STORE_ELIMINATION) == fn

    def test_reads_in_other_blocks_count(self):
        """A register read in another block keeps its store alive."""
        fn = function({
            0: [Load(IntegerValue(1), r(1)), Jump(b(1))],
            1: [Return(rv(1))],
        })
        assert optimise_function(fn, O.DEAD_STORE_ELIMINATION) == fn


# =============================================================================
# Control-Flow Pass Tests
# =============================================================================

class TestEmptyBlockElimination:
    """Test bypassing of jump-only blocks."""

    def test_branch_targets_redirected(self):
        """Branches to jump-only blocks go straight to the destination."""
        fn = function({
            0: [Branch(rv(1), b(1), b(2))],
            1: [Jump(b(3))],
            2: [Jump(b(3))],
            3: [Return(IntegerValue(1))],
        }, arguments=(1,))
        optimiser = Optimiser(O.EMPTY_BLOCK_ELIMINATION)
        result = optimiser.optimise_function(fn)
        assert result.blocks[b(0)] == (Branch(rv(1), b(3), b(3)),)
        assert optimiser.stats.empty_blocks == 2

    def test_start_block_redirected(self):
        """A jump-only start block moves the start block."""
        fn = function({
            0: [Jump(b(1))],
            1: [Jump(b(2))],
            2: [Return(IntegerValue(1))],
        })
        result = optimise_function(fn, O.EMPTY_BLOCK_ELIMINATION)
        assert result.start_block == b(2)

    def test_self_loop_kept(self):
        """A block jumping to itself is not bypassed."""
        fn = function({0: [Jump(b(0))]})
        assert optimise_function(fn, O.EMPTY_BLOCK_ELIMINATION) == fn


class TestJumpInlining:
    """Test replacement of jumps by their targets."""

    def test_inline_chain(self):
        """Jumps are replaced recursively by their targets' instructions."""
        fn = function({
            0: [Call("print", (IntegerValue(1),), r(1)), Jump(b(1))],
            1: [Call("print", (IntegerValue(2),), r(2)), Jump(b(2))],
            2: [Return(BooleanValue(True))],
        })
        optimiser = Optimiser(O.INLINE_JUMP_TARGETS)
        result = optimiser.optimise_function(fn)
        assert result.blocks[b(0)] == (
            Call("print", (IntegerValue(1),), r(1)),
            Call("print", (IntegerValue(2),), r(2)),
            Return(BooleanValue(True)),
        )
        assert result.blocks[b(1)] == (
            Call("print", (IntegerValue(2),), r(2)),
            Return(BooleanValue(True)),
        )
        assert optimiser.stats.inlined_jumps == 2

    def test_branches_not_inlined(self):
        """Branches keep their targets."""
        fn = function({
            0: [Branch(rv(1), b(1), b(1))],
            1: [Return(IntegerValue(1))],
        }, arguments=(1,))
        assert optimise_function(fn, O.INLINE_JUMP_TARGETS) == fn


class TestDeadBlockElimination:
    """Test removal of unreachable blocks."""

    def test_unreachable_removed(self):
        """Blocks no path reaches from the start block are removed."""
        fn = function({
            0: [Branch(rv(1), b(1), b(2))],
            1: [Return(IntegerValue(1))],
            2: [Return(IntegerValue(2))],
            3: [Jump(b(4))],
            4: [Return(IntegerValue(4))],
        }, arguments=(1,))
        result = optimise_function(fn, O.DEAD_BLOCK_ELIMINATION)
        assert set(result.blocks) == {b(0), b(1), b(2)}

    def test_start_block_always_kept(self):
        """The start block is reachable by definition."""
        fn = function({0: [Return(IntegerValue(0))], 1: [Return(IntegerValue(1))]}, start=1)
        result = optimise_function(fn, O.DEAD_BLOCK_ELIMINATION)
        assert set(result.blocks) == {b(1)}


# =============================================================================
# Whole-Program Tests
# =============================================================================

class TestWholePrograms:
    """Test the passes together on compiled programs."""

    CONSTANT_IF = "func f() -> Int { if true { return 1 } else { return 2 } }\nprint(f())"

    def test_constant_if_collapses(self):
        """A constant if collapses to a single block returning 1."""
        options = (O.CONSTANT_EXPRESSION_EVALUATION | O.INLINE_JUMP_TARGETS
                   | O.DEAD_BLOCK_ELIMINATION)
        result = optimise(compile_to_ir(self.CONSTANT_IF), options)["f"]
        assert len(result.blocks) == 1
        assert result.blocks[result.start_block] == (Return(IntegerValue(1)),)

    def test_constant_if_collapses_with_all_passes(self):
        """Every pass enabled gives the same single block."""
        result = optimise(compile_to_ir(self.CONSTANT_IF))["f"]
        assert len(result.blocks) == 1
        assert result.blocks[result.start_block] == (Return(IntegerValue(1)),)

    def test_input_not_modified(self):
        """The optimiser returns a new program and leaves its input alone."""
        program = compile_to_ir(self.CONSTANT_IF)
        before = str(program)
        optimised = optimise(program)
        assert str(program) == before
        assert optimised is not program

    @pytest.mark.parametrize("source", [
        "print(1 + 2)\nprint(5 - 7 == 0 - 2)",
        'print("hello")\nprint(true)',
        "func f(n: Int) -> Int {\n"
        "  if n <= 1 { return n }\n"
        "  return f(n - 1) + f(n - 2)\n"
        "}\n"
        "print(f(10))",
        "func pick(n: Int) -> Int {\n"
        "  if n == 0 { return 10 } else { if n == 1 { return 20 } }\n"
        "  return 30\n"
        "}\n"
        "print(pick(0))\nprint(pick(1))\nprint(pick(2))",
    ])
    def test_output_preserved(self, source):
        """Optimised programs print exactly what the unoptimised programs print."""
        program = compile_to_ir(source)
        assert run_output(optimise(program)) == run_output(program)

    def test_every_option_alone_preserves_output(self):
        """Each pass on its own preserves behaviour."""
        program = compile_to_ir(
            "func f(n: Int) -> Int { if n <= 0 { return 0 } return n + f(n - 1) }\n"
            "print(f(4))\nprint(2 + 2 == 4)"
        )
        expected = run_output(program)
        for option in O:
            if option not in (O.NONE, O.ALL):
                assert run_output(optimise(program, option)) == expected

    @pytest.mark.parametrize("option", [
        O.DEAD_STORE_ELIMINATION,
        O.DEAD_CODE_ELIMINATION,
        O.DEAD_BLOCK_ELIMINATION,
    ])
    @pytest.mark.parametrize("source", [
        "print(1 + 2)\nprint(5 - 7 == 0 - 2)",
        CONSTANT_IF,
        "func f(n: Int) -> Int {\n"
        "  if n <= 1 { return n }\n"
        "  return f(n - 1) + f(n - 2)\n"
        "}\n"
        "print(f(10))",
        "func pick(n: Int) -> Int {\n"
        "  if n == 0 { return 10 } else { if n == 1 { return 20 } }\n"
        "  return 30\n"
        "}\n"
        "print(pick(0))\nprint(pick(1))\nprint(pick(2))",
    ])
    def test_elimination_passes_are_idempotent(self, option, source):
        """Running an elimination pass a second time changes nothing."""
        once = optimise(compile_to_ir(source), option)
        twice = optimise(once, option)
        assert twice == once
        assert str(twice) == str(once)

    def test_stats(self):
        """Statistics count the rewrites of the last run."""
        optimiser = Optimiser(O.ALL)
        optimiser.optimise(compile_to_ir("print(1 + 2)"))
        stats = optimiser.stats
        assert stats.functions == 1
        assert stats.constant_folds >= 1
        assert stats.total_optimisations > 0
        assert str(stats).startswith("Optimisation Statistics:")


# =============================================================================
# Option Tests
# =============================================================================

class TestOptions:
    """Test option parsing."""

    def test_parse_single(self):
        """Names use dashes or underscores, in any case."""
        assert O.parse("constant-propagation") == O.CONSTANT_PROPAGATION
        assert O.parse("DEAD_CODE_ELIMINATION") == O.DEAD_CODE_ELIMINATION

    def test_parse_list(self):
        """Comma-separated names are combined."""
        assert O.parse("inline-jump-targets, dead-block-elimination") == (
            O.INLINE_JUMP_TARGETS | O.DEAD_BLOCK_ELIMINATION
        )

    def test_parse_all_and_none(self):
        """'all' and 'none' are accepted."""
        assert O.parse("all") == O.ALL
        assert O.parse("none") == O.NONE

    def test_parse_unknown(self):
        """Unknown names raise ValueError."""
        with pytest.raises(ValueError, match="unknown optimisation 'fast'"):
            O.parse("fast")

    def test_all_contains_every_pass(self):
        """ALL enables every individual pass."""
        for option in O:
            assert option in O.ALL

    def test_empty_stats(self):
        """Fresh statistics count nothing."""
        assert OptimisationStats().total_optimisations == 0
