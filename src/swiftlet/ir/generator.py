"""
Swiftlet IR Generator
=====================

Lowers a type-checked AST into an IRProgram. The top-level statements
become the implicit 'main' function, which always ends in 'return true';
every FunctionDeclaration becomes an IR function of its own and is never
inlined at its call sites.

Lowering Rules
--------------
| Construct              | Emitted IR                                        |
|------------------------|---------------------------------------------------|
| integer/boolean literal| nothing; the immediate is used as the operand     |
| string literal         | load "text" -> %N                                 |
| a + b (and -, ==, <=)  | operands, then add A, B -> %N                     |
| identifier             | nothing; the register bound to its declaration    |
| f(args)                | arguments, then call f(args) -> %N                |
| parameter              | nothing; binds a fresh argument register          |
| return e               | e, then return E                                  |
| { ... }                | each statement, in the current block              |
| if c { } else { }      | see below                                         |

If statements allocate a true block and a false block, plus a separate
rest block when there is an else clause (without one the false block is
where execution continues). The current block ends with
'branch C, true: bT, false: bF'; the body goes into the true block, the
else body into the false block, each followed by a jump to the rest
block, and lowering resumes in the rest block.

Return does not end the block: anything lowered after it in the same
block stays there for the optimiser's dead-code pass to trim.

Each function is lowered with its own LoweringContext, so register and
block numbering restarts for every function: the start block is b0, and
further blocks and registers count up from 1.
"""

import logging
from typing import Optional

from swiftlet.errors import IRGenerationError
from swiftlet.frontend.ast import (
    ASTRoot,
    ASTWalker,
    BinaryOperator,
    BinaryOperatorExpression,
    BooleanLiteralExpression,
    BraceStatement,
    FunctionCallExpression,
    FunctionDeclaration,
    IdentifierReferenceExpression,
    IfStatement,
    IntegerLiteralExpression,
    ReturnStatement,
    StringLiteralExpression,
    VariableDeclaration,
)
from swiftlet.ir.model import (
    Add,
    BinaryInstruction,
    BlockName,
    BooleanValue,
    Branch,
    Call,
    Equal,
    Instruction,
    IntegerValue,
    IRFunction,
    IRProgram,
    IRValue,
    Jump,
    LessOrEqual,
    Load,
    Register,
    RegisterValue,
    Return,
    StringValue,
    Sub,
)

logger = logging.getLogger(__name__)

INSTRUCTION_FOR_OPERATOR: dict[BinaryOperator, type[BinaryInstruction]] = {
    BinaryOperator.ADD: Add,
    BinaryOperator.SUB: Sub,
    BinaryOperator.EQUAL: Equal,
    BinaryOperator.LESS_OR_EQUAL: LessOrEqual,
}


# =============================================================================
# Lowering Context
# =============================================================================

class LoweringContext:
    """
    Mutable state for lowering exactly one function.

    Attributes:
        start_block: Name of the entry block (always b0)
        current_block: Block that instructions are currently appended to
        argument_registers: Registers bound to the parameters, in order
    """

    def __init__(self):
        self._next_register = 1
        self._next_block = 1
        self.start_block = BlockName(0)
        self.current_block = self.start_block
        self._instructions: list[Instruction] = []
        self._finished: dict[BlockName, tuple[Instruction, ...]] = {}
        self._bindings: dict[int, Register] = {}
        self.argument_registers: list[Register] = []

    def new_register(self) -> Register:
        register = Register(self._next_register)
        self._next_register += 1
        return register

    def new_block(self) -> BlockName:
        block = BlockName(self._next_block)
        self._next_block += 1
        return block

    def emit(self, instruction: Instruction) -> None:
        self._instructions.append(instruction)

    def finish_block(self) -> None:
        """Store the instructions emitted so far under the current block's name."""
        self._finished[self.current_block] = tuple(self._instructions)
        self._instructions = []

    def start_block_named(self, block: BlockName) -> None:
        """Make block the target of subsequent emits."""
        self.current_block = block
        self._instructions = []

    def bind(self, declaration: VariableDeclaration, register: Register) -> None:
        self._bindings[id(declaration)] = register

    def lookup(self, declaration: VariableDeclaration) -> Optional[Register]:
        return self._bindings.get(id(declaration))

    def build(self) -> IRFunction:
        """Finish the current block and return the completed function."""
        self.finish_block()
        return IRFunction(
            start_block=self.start_block,
            blocks=dict(sorted(self._finished.items())),
            argument_registers=tuple(self.argument_registers),
        )


# =============================================================================
# Function Lowering
# =============================================================================

class FunctionLowering(ASTWalker[Optional[IRValue]]):
    """
    Lowers the statements of one function into a LoweringContext.

    Statements lower to None; expressions lower to the IRValue holding
    their result.
    """

    def __init__(self, context: LoweringContext):
        self.context = context

    def visit_root(self, node: ASTRoot) -> None:
        for statement in node.statements:
            if not isinstance(statement, FunctionDeclaration):
                self.walk(statement)
        self.context.emit(Return(BooleanValue(True)))

    def visit_function_declaration(self, node: FunctionDeclaration) -> None:
        for parameter in node.parameters:
            self.walk(parameter)
        self.walk(node.body)

    def visit_variable_declaration(self, node: VariableDeclaration) -> None:
        register = self.context.new_register()
        self.context.bind(node, register)
        self.context.argument_registers.append(register)

    def visit_if_statement(self, node: IfStatement) -> None:
        context = self.context
        true_block = context.new_block()
        false_block = context.new_block()
        rest_block = context.new_block() if node.else_body is not None else false_block

        condition = self.walk(node.condition)
        context.emit(Branch(condition, true_block, false_block))
        context.finish_block()

        context.start_block_named(true_block)
        self.walk(node.body)
        context.emit(Jump(rest_block))
        context.finish_block()

        if node.else_body is not None:
            context.start_block_named(false_block)
            self.walk(node.else_body)
            context.emit(Jump(rest_block))
            context.finish_block()

        context.start_block_named(rest_block)

    def visit_brace_statement(self, node: BraceStatement) -> None:
        for statement in node.body:
            self.walk(statement)

    def visit_return_statement(self, node: ReturnStatement) -> None:
        value = self.walk(node.expression)
        self.context.emit(Return(value))

    def visit_binary_operator_expression(self, node: BinaryOperatorExpression) -> IRValue:
        lhs = self.walk(node.lhs)
        rhs = self.walk(node.rhs)
        destination = self.context.new_register()
        instruction_class = INSTRUCTION_FOR_OPERATOR[node.operator]
        self.context.emit(instruction_class(lhs, rhs, destination))
        return RegisterValue(destination)

    def visit_integer_literal_expression(self, node: IntegerLiteralExpression) -> IRValue:
        return IntegerValue(node.value)

    def visit_boolean_literal_expression(self, node: BooleanLiteralExpression) -> IRValue:
        return BooleanValue(node.value)

    def visit_string_literal_expression(self, node: StringLiteralExpression) -> IRValue:
        destination = self.context.new_register()
        self.context.emit(Load(StringValue(node.value), destination))
        return RegisterValue(destination)

    def visit_identifier_reference_expression(self, node: IdentifierReferenceExpression) -> IRValue:
        declaration = node.referenced_declaration
        if not isinstance(declaration, VariableDeclaration):
            raise IRGenerationError(
                f"identifier '{node.name}' at {node.source_range.start} was not "
                f"resolved to a variable; was the AST type-checked?"
            )
        register = self.context.lookup(declaration)
        if register is None:
            raise IRGenerationError(
                f"no register bound for '{node.name}' at {node.source_range.start}"
            )
        return RegisterValue(register)

    def visit_function_call_expression(self, node: FunctionCallExpression) -> IRValue:
        arguments = tuple(self.walk(argument) for argument in node.arguments)
        destination = self.context.new_register()
        self.context.emit(Call(node.function_name, arguments, destination))
        return RegisterValue(destination)


# =============================================================================
# IR Generator
# =============================================================================

class IRGenerator:
    """
    Lowers a whole program.

    Usage:
        root = parse(source)
        typecheck(root)
        program = IRGenerator().generate(root)
        print(program)
    """

    def generate(self, root: ASTRoot) -> IRProgram:
        """
        Lower a type-checked AST.

        Args:
            root: The AST root, already type-checked

        Returns:
            The IR program, with 'main' first

        Raises:
            IRGenerationError: If the AST was not (successfully) type-checked
        """
        functions = {IRProgram.MAIN: self._lower(root)}
        for statement in root.statements:
            if isinstance(statement, FunctionDeclaration):
                functions[statement.name] = self._lower(statement)

        for name, function in functions.items():
            logger.debug(
                f"Lowered '{name}': {len(function.blocks)} blocks, "
                f"{function.instruction_count()} instructions"
            )
        return IRProgram(functions)

    def _lower(self, node: ASTRoot | FunctionDeclaration) -> IRFunction:
        context = LoweringContext()
        FunctionLowering(context).walk(node)
        return context.build()


def generate_ir(root: ASTRoot) -> IRProgram:
    """Lower a type-checked AST into an IR program."""
    return IRGenerator().generate(root)
