"""
Swiftlet Abstract Syntax Tree (AST) Definitions
===============================================

This module defines the AST produced by the parser and consumed by the
typechecker, the IR generator and the AST printer.

Node Kinds
----------
ASTRoot - the whole program
Statements
    IfStatement - if/else with brace bodies
    BraceStatement - { ... }
    ReturnStatement - return <expression>
    VariableDeclaration - a typed function parameter
    FunctionDeclaration - func name(params) -> Type { ... }
Expressions (also usable as statements)
    BinaryOperatorExpression - +, -, ==, <=
    IntegerLiteralExpression - 42
    BooleanLiteralExpression - true, false
    StringLiteralExpression - "text"
    IdentifierReferenceExpression - a name, resolved by the typechecker
    FunctionCallExpression - name(arguments)

Design Notes
------------
- Nodes are plain dataclasses that share only their source range through
  ASTNode; the statement/expression grouping is a pair of Union aliases,
  not a class hierarchy.
- Each node owns its children; the tree has no sharing and no cycles.
  The one back-reference is IdentifierReferenceExpression's
  referenced_declaration, written once by the typechecker.
- Walkers dispatch with a single match over the closed set of node
  classes, calling pre_visit/post_visit around every node.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Optional, TypeVar, Union, assert_never

from swiftlet.errors import SourceRange
from swiftlet.frontend.types import Type


# =============================================================================
# Binary Operators
# =============================================================================

class BinaryOperator(Enum):
    """Binary operators with their source spelling."""
    ADD = "+"
    SUB = "-"
    EQUAL = "=="
    LESS_OR_EQUAL = "<="

    @property
    def precedence(self) -> int:
        """Binding strength for precedence climbing (higher binds tighter)."""
        return PRECEDENCE[self]

    @property
    def display_name(self) -> str:
        """Name used by the AST printer and IR listings."""
        return DISPLAY_NAMES[self]


PRECEDENCE: dict[BinaryOperator, int] = {
    BinaryOperator.ADD: 2,
    BinaryOperator.SUB: 2,
    BinaryOperator.EQUAL: 1,
    BinaryOperator.LESS_OR_EQUAL: 1,
}

DISPLAY_NAMES: dict[BinaryOperator, str] = {
    BinaryOperator.ADD: "add",
    BinaryOperator.SUB: "sub",
    BinaryOperator.EQUAL: "equal",
    BinaryOperator.LESS_OR_EQUAL: "lessOrEqual",
}


# =============================================================================
# AST Node Base Class
# =============================================================================

@dataclass
class ASTNode:
    """
    Fields shared by every node.

    Attributes:
        source_range: Span from the node's first token to its last
    """
    source_range: SourceRange


# =============================================================================
# Expressions
# =============================================================================

@dataclass
class BinaryOperatorExpression(ASTNode):
    lhs: "Expression"
    rhs: "Expression"
    operator: BinaryOperator


@dataclass
class IntegerLiteralExpression(ASTNode):
    value: int


@dataclass
class BooleanLiteralExpression(ASTNode):
    value: bool


@dataclass
class StringLiteralExpression(ASTNode):
    value: str


@dataclass
class IdentifierReferenceExpression(ASTNode):
    """
    A use of a name.

    Attributes:
        name: The referenced name
        referenced_declaration: The declaration the name resolved to; set
            by the typechecker and read by the IR generator
    """
    name: str
    referenced_declaration: Optional["Declaration"] = field(
        default=None, compare=False, repr=False
    )


@dataclass
class FunctionCallExpression(ASTNode):
    """
    A call such as f(1, 2).

    Attributes:
        function_name: Name of the callee
        arguments: Argument expressions in source order
        function_name_range: Source range of just the callee name
    """
    function_name: str
    arguments: list["Expression"]
    function_name_range: SourceRange


# =============================================================================
# Statements and Declarations
# =============================================================================

@dataclass
class BraceStatement(ASTNode):
    body: list["Statement"]


@dataclass
class IfStatement(ASTNode):
    """
    If statement with optional else clause.

    Attributes:
        condition: The condition expression
        body: Statements executed when the condition holds
        if_range: Range of the 'if' keyword
        else_body: Statements executed otherwise (None without 'else')
        else_range: Range of the 'else' keyword (None without 'else')
    """
    condition: "Expression"
    body: BraceStatement
    if_range: SourceRange
    else_body: Optional[BraceStatement] = None
    else_range: Optional[SourceRange] = None


@dataclass
class ReturnStatement(ASTNode):
    expression: "Expression"


@dataclass
class VariableDeclaration(ASTNode):
    """A typed name; in Swiftlet only function parameters declare variables."""
    name: str
    type: Type


@dataclass
class FunctionDeclaration(ASTNode):
    name: str
    parameters: list[VariableDeclaration]
    return_type: Type
    body: BraceStatement

    @property
    def type(self) -> Type:
        return Type.FUNCTION


@dataclass
class ASTRoot(ASTNode):
    statements: list["Statement"]


Expression = Union[
    BinaryOperatorExpression,
    IntegerLiteralExpression,
    BooleanLiteralExpression,
    StringLiteralExpression,
    IdentifierReferenceExpression,
    FunctionCallExpression,
]

Declaration = Union[VariableDeclaration, FunctionDeclaration]

Statement = Union[
    IfStatement,
    BraceStatement,
    ReturnStatement,
    VariableDeclaration,
    FunctionDeclaration,
    Expression,
]

Node = Union[ASTRoot, Statement]


# =============================================================================
# AST Walkers
# =============================================================================

R = TypeVar("R")


class _WalkerBase(ABC, Generic[R]):
    """
    Dispatch shared by both walker flavors.

    Subclasses implement one visit_* method per node kind; leaving one out
    makes the walker class abstract, so a walker that forgets a kind
    cannot be instantiated.
    """

    def pre_visit(self, node: Node) -> None:
        """Called before every node is visited."""

    def post_visit(self, node: Node) -> None:
        """Called after every node is visited."""

    def _dispatch(self, node: Node) -> R:
        match node:
            case ASTRoot():
                return self.visit_root(node)
            case IfStatement():
                return self.visit_if_statement(node)
            case BraceStatement():
                return self.visit_brace_statement(node)
            case ReturnStatement():
                return self.visit_return_statement(node)
            case VariableDeclaration():
                return self.visit_variable_declaration(node)
            case FunctionDeclaration():
                return self.visit_function_declaration(node)
            case BinaryOperatorExpression():
                return self.visit_binary_operator_expression(node)
            case IntegerLiteralExpression():
                return self.visit_integer_literal_expression(node)
            case BooleanLiteralExpression():
                return self.visit_boolean_literal_expression(node)
            case StringLiteralExpression():
                return self.visit_string_literal_expression(node)
            case IdentifierReferenceExpression():
                return self.visit_identifier_reference_expression(node)
            case FunctionCallExpression():
                return self.visit_function_call_expression(node)
            case _:
                assert_never(node)

    @abstractmethod
    def visit_root(self, node: ASTRoot) -> R: ...

    @abstractmethod
    def visit_if_statement(self, node: IfStatement) -> R: ...

    @abstractmethod
    def visit_brace_statement(self, node: BraceStatement) -> R: ...

    @abstractmethod
    def visit_return_statement(self, node: ReturnStatement) -> R: ...

    @abstractmethod
    def visit_variable_declaration(self, node: VariableDeclaration) -> R: ...

    @abstractmethod
    def visit_function_declaration(self, node: FunctionDeclaration) -> R: ...

    @abstractmethod
    def visit_binary_operator_expression(self, node: BinaryOperatorExpression) -> R: ...

    @abstractmethod
    def visit_integer_literal_expression(self, node: IntegerLiteralExpression) -> R: ...

    @abstractmethod
    def visit_boolean_literal_expression(self, node: BooleanLiteralExpression) -> R: ...

    @abstractmethod
    def visit_string_literal_expression(self, node: StringLiteralExpression) -> R: ...

    @abstractmethod
    def visit_identifier_reference_expression(self, node: IdentifierReferenceExpression) -> R: ...

    @abstractmethod
    def visit_function_call_expression(self, node: FunctionCallExpression) -> R: ...


class ASTWalker(_WalkerBase[R]):
    """
    Walker whose visits never fail.

    Used for side-effect passes such as printing and IR lowering.

    Usage:
        class NameCollector(ASTWalker[None]):
            def visit_identifier_reference_expression(self, node):
                self.names.append(node.name)
            ...

        NameCollector().walk(root)
    """

    def walk(self, node: Node) -> R:
        """Visit node, surrounded by the pre_visit/post_visit hooks."""
        self.pre_visit(node)
        result = self._dispatch(node)
        self.post_visit(node)
        return result


class ThrowingASTWalker(_WalkerBase[R]):
    """
    Walker whose visits may raise CompilationError.

    post_visit still runs for every node whose pre_visit ran, even when
    the visit raises, so paired state (scope stacks, indentation) is
    unwound on the way out.
    """

    def walk(self, node: Node) -> R:
        """
        Visit node, surrounded by the pre_visit/post_visit hooks.

        Raises:
            CompilationError: Whatever the visit raises
        """
        self.pre_visit(node)
        try:
            return self._dispatch(node)
        finally:
            self.post_visit(node)


# =============================================================================
# AST Pretty Printer
# =============================================================================

class ASTPrinter(ASTWalker[None]):
    """
    S-expression dump of an AST for debugging.

    Every node prints as '(KindName attributes', its children follow on
    indented lines and the closing parenthesis trails the last child:

        (ASTRoot
          (FunctionCallExpression name=print
            (IntegerLiteralExpression value=1)))

    Usage:
        printer = ASTPrinter()
        print(printer.print(root))
    """

    def __init__(self):
        self.output: list[str] = []
        self.indent_level = 0

    def print(self, node: Node) -> str:
        """Print the AST and return as string."""
        self.output = []
        self.indent_level = 0
        self.walk(node)
        return "\n".join(self.output)

    def pre_visit(self, node: Node) -> None:
        indent = "  " * self.indent_level
        self.output.append(f"{indent}({type(node).__name__}{self._attributes(node)}")
        self.indent_level += 1

    def post_visit(self, node: Node) -> None:
        self.indent_level -= 1
        self.output[-1] += ")"

    def _attributes(self, node: Node) -> str:
        match node:
            case BinaryOperatorExpression():
                return f" operator={node.operator.display_name}"
            case IntegerLiteralExpression():
                return f" value={node.value}"
            case BooleanLiteralExpression():
                return f" value={'true' if node.value else 'false'}"
            case StringLiteralExpression():
                return f' value="{node.value}"'
            case IdentifierReferenceExpression():
                return f" name={node.name}"
            case FunctionCallExpression():
                return f" name={node.function_name}"
            case VariableDeclaration():
                return f" name={node.name} type={node.type}"
            case FunctionDeclaration():
                return f" name={node.name} returnType={node.return_type}"
            case _:
                return ""

    def _walk_all(self, nodes: list) -> None:
        for child in nodes:
            self.walk(child)

    def visit_root(self, node: ASTRoot) -> None:
        self._walk_all(node.statements)

    def visit_if_statement(self, node: IfStatement) -> None:
        self.walk(node.condition)
        self.walk(node.body)
        if node.else_body is not None:
            self.walk(node.else_body)

    def visit_brace_statement(self, node: BraceStatement) -> None:
        self._walk_all(node.body)

    def visit_return_statement(self, node: ReturnStatement) -> None:
        self.walk(node.expression)

    def visit_variable_declaration(self, node: VariableDeclaration) -> None:
        pass

    def visit_function_declaration(self, node: FunctionDeclaration) -> None:
        self._walk_all(node.parameters)
        self.walk(node.body)

    def visit_binary_operator_expression(self, node: BinaryOperatorExpression) -> None:
        self.walk(node.lhs)
        self.walk(node.rhs)

    def visit_integer_literal_expression(self, node: IntegerLiteralExpression) -> None:
        pass

    def visit_boolean_literal_expression(self, node: BooleanLiteralExpression) -> None:
        pass

    def visit_string_literal_expression(self, node: StringLiteralExpression) -> None:
        pass

    def visit_identifier_reference_expression(self, node: IdentifierReferenceExpression) -> None:
        pass

    def visit_function_call_expression(self, node: FunctionCallExpression) -> None:
        self._walk_all(node.arguments)
