"""
Swiftlet Typechecker
====================

This module assigns a Type to every expression, resolves every name to
its declaration and rejects programs whose operand types do not match.
The first violation raises a TypeCheckError; nothing is accumulated.

Scoping
-------
The top level has one implicit root scope. Declaring a function adds its
name to the enclosing scope *before* the body is checked, so a function
may call itself; its parameters and body then get a fresh child scope,
popped again when the function has been checked. Lookups walk from the
innermost scope outwards.

Typing Rules
------------
| Construct          | Operands            | Result               |
|--------------------|---------------------|----------------------|
| a + b, a - b       | integer, integer    | integer              |
| a == b, a <= b     | integer, integer    | boolean              |
| print(x)           | exactly one, any    | none                 |
| f(args)            | not validated       | f's return type      |
| literal            |                     | its own type         |
| statement          |                     | none                 |

Call arguments are type-checked individually, but by default not against
the callee's parameter list. Passing strict_calls=True also validates the
argument count and the argument types.
"""

import difflib
import logging
from typing import Optional

from swiftlet.frontend.ast import (
    ASTRoot,
    BinaryOperator,
    BinaryOperatorExpression,
    BooleanLiteralExpression,
    BraceStatement,
    Declaration,
    FunctionCallExpression,
    FunctionDeclaration,
    IdentifierReferenceExpression,
    IfStatement,
    IntegerLiteralExpression,
    ReturnStatement,
    StringLiteralExpression,
    ThrowingASTWalker,
    VariableDeclaration,
)
from swiftlet.frontend.errors import TypeCheckError
from swiftlet.frontend.types import Type

logger = logging.getLogger(__name__)

PRINT_FUNCTION = "print"
MAIN_FUNCTION = "main"


# =============================================================================
# Lookup Scope
# =============================================================================

class LookupScope:
    """
    One level of the scope chain.

    Attributes:
        previous_scope: The enclosing scope, or None for the root scope
        lookup_table: Names declared directly in this scope
    """

    def __init__(self, previous_scope: Optional["LookupScope"] = None):
        self.previous_scope = previous_scope
        self.lookup_table: dict[str, Declaration] = {}

    def declare(self, declaration: Declaration) -> None:
        self.lookup_table[declaration.name] = declaration

    def lookup(self, name: str) -> Optional[Declaration]:
        """Find name in this scope or, failing that, in an enclosing one."""
        scope: Optional[LookupScope] = self
        while scope is not None:
            if name in scope.lookup_table:
                return scope.lookup_table[name]
            scope = scope.previous_scope
        return None

    def visible_names(self) -> list[str]:
        """All names visible from this scope (used for suggestions)."""
        names = []
        scope: Optional[LookupScope] = self
        while scope is not None:
            names.extend(scope.lookup_table)
            scope = scope.previous_scope
        return names


# =============================================================================
# Typechecker
# =============================================================================

class Typechecker(ThrowingASTWalker[Type]):
    """
    Scope-resolving, type-assigning walk over the AST.

    Usage:
        root = parse(source)
        Typechecker().typecheck(root)   # raises TypeCheckError on failure
    """

    def __init__(self, strict_calls: bool = False):
        """
        Args:
            strict_calls: Also validate call argument counts and types
        """
        self.strict_calls = strict_calls
        self.scope = LookupScope()

    def typecheck(self, root: ASTRoot) -> None:
        """
        Type-check a whole program, annotating identifier references.

        Raises:
            TypeCheckError: On the first type or name error
        """
        self.scope = LookupScope()
        self.walk(root)
        logger.debug(f"Type-checked {len(root.statements)} top-level statements")

    # =========================================================================
    # Scope Handling
    # =========================================================================

    def _push_scope(self) -> None:
        self.scope = LookupScope(self.scope)

    def _pop_scope(self) -> None:
        assert self.scope.previous_scope is not None, "cannot pop the root scope"
        self.scope = self.scope.previous_scope

    def _suggest(self, name: str) -> Optional[str]:
        matches = difflib.get_close_matches(name, self.scope.visible_names(), n=3)
        if not matches:
            return None
        return "did you mean " + ", ".join(f"'{m}'" for m in matches) + "?"

    # =========================================================================
    # Statements
    # =========================================================================

    def visit_root(self, node: ASTRoot) -> Type:
        for statement in node.statements:
            self.walk(statement)
        return Type.NONE

    def visit_if_statement(self, node: IfStatement) -> Type:
        self.walk(node.condition)
        self.walk(node.body)
        if node.else_body is not None:
            self.walk(node.else_body)
        return Type.NONE

    def visit_brace_statement(self, node: BraceStatement) -> Type:
        for statement in node.body:
            self.walk(statement)
        return Type.NONE

    def visit_return_statement(self, node: ReturnStatement) -> Type:
        self.walk(node.expression)
        return Type.NONE

    def visit_variable_declaration(self, node: VariableDeclaration) -> Type:
        self.scope.declare(node)
        return Type.NONE

    def visit_function_declaration(self, node: FunctionDeclaration) -> Type:
        if node.name == MAIN_FUNCTION:
            raise TypeCheckError(
                f"'{MAIN_FUNCTION}' is reserved for the top-level statements",
                node.source_range.start,
            )
        self.scope.declare(node)
        self._push_scope()
        try:
            for parameter in node.parameters:
                self.walk(parameter)
            self.walk(node.body)
        finally:
            self._pop_scope()
        return Type.NONE

    # =========================================================================
    # Expressions
    # =========================================================================

    def visit_binary_operator_expression(self, node: BinaryOperatorExpression) -> Type:
        lhs_type = self.walk(node.lhs)
        rhs_type = self.walk(node.rhs)

        if lhs_type != Type.INTEGER or rhs_type != Type.INTEGER:
            raise TypeCheckError(
                f"The left-hand-side and right-hand-side of "
                f"'{node.operator.value}' need to be integers",
                node.source_range.start,
            )

        if node.operator in (BinaryOperator.ADD, BinaryOperator.SUB):
            return Type.INTEGER
        return Type.BOOLEAN

    def visit_integer_literal_expression(self, node: IntegerLiteralExpression) -> Type:
        return Type.INTEGER

    def visit_boolean_literal_expression(self, node: BooleanLiteralExpression) -> Type:
        return Type.BOOLEAN

    def visit_string_literal_expression(self, node: StringLiteralExpression) -> Type:
        return Type.STRING

    def visit_identifier_reference_expression(self, node: IdentifierReferenceExpression) -> Type:
        declaration = self.scope.lookup(node.name)
        if declaration is None:
            raise TypeCheckError(
                f"Referenced undefined variable {node.name}",
                node.source_range.start,
                hint=self._suggest(node.name),
            )
        if isinstance(declaration, FunctionDeclaration):
            raise TypeCheckError(
                f"'{node.name}' is a function and cannot be used as a value",
                node.source_range.start,
                hint=f"call it as {node.name}(...)",
            )
        node.referenced_declaration = declaration
        return declaration.type

    def visit_function_call_expression(self, node: FunctionCallExpression) -> Type:
        argument_types = [self.walk(argument) for argument in node.arguments]

        if node.function_name == PRINT_FUNCTION:
            if len(node.arguments) != 1:
                raise TypeCheckError(
                    f"'{PRINT_FUNCTION}' expects exactly one argument",
                    node.source_range.start,
                )
            return Type.NONE

        declaration = self.scope.lookup(node.function_name)
        if declaration is None:
            raise TypeCheckError(
                f"Referenced undefined function {node.function_name}",
                node.function_name_range.start,
                hint=self._suggest(node.function_name),
            )
        if not isinstance(declaration, FunctionDeclaration):
            raise TypeCheckError("Only functions can be called", node.source_range.start)

        if self.strict_calls:
            self._check_arguments(node, declaration, argument_types)
        return declaration.return_type

    def _check_arguments(
        self,
        node: FunctionCallExpression,
        declaration: FunctionDeclaration,
        argument_types: list[Type],
    ) -> None:
        """Validate argument count and types against the callee's parameters."""
        expected = len(declaration.parameters)
        if len(argument_types) != expected:
            plural = "argument" if expected == 1 else "arguments"
            raise TypeCheckError(
                f"'{declaration.name}' expects {expected} {plural} "
                f"but got {len(argument_types)}",
                node.source_range.start,
            )
        for argument, parameter, actual in zip(node.arguments, declaration.parameters, argument_types):
            if actual != parameter.type:
                raise TypeCheckError(
                    f"Argument '{parameter.name}' of '{declaration.name}' expects "
                    f"{parameter.type} but got {actual}",
                    argument.source_range.start,
                )


# =============================================================================
# Convenience Function
# =============================================================================

def typecheck(root: ASTRoot, strict_calls: bool = False) -> None:
    """
    Type-check an AST in place.

    Raises:
        TypeCheckError: On the first type or name error
    """
    Typechecker(strict_calls=strict_calls).typecheck(root)
