# =============================================================================
# test_typechecker.py - Typechecker Unit Tests
# =============================================================================
# Tests for name resolution and type checking.
#
# Test coverage includes:
#   - Expression typing rules
#   - Scoping of functions and parameters
#   - Undefined names and misuse of functions
#   - Lenient and strict call checking
#   - Error locations and hints
# =============================================================================

import pytest

from swiftlet.errors import SourceLoc
from swiftlet.frontend.ast import FunctionDeclaration, VariableDeclaration
from swiftlet.frontend.errors import CompilationError, TypeCheckError
from swiftlet.frontend.parser import parse
from swiftlet.frontend.typechecker import LookupScope, Typechecker, typecheck
from swiftlet.frontend.types import Type


def check(source: str, strict_calls: bool = False):
    """Parse and type-check source, returning the AST."""
    root = parse(source)
    typecheck(root, strict_calls=strict_calls)
    return root


def expression_type(source: str, prelude: str = "") -> Type:
    """Type of the single expression statement following prelude."""
    root = parse(prelude + "\n" + source)
    checker = Typechecker()
    checker.typecheck(root)
    return checker.walk(root.statements[-1])


# =============================================================================
# Typing Rules
# =============================================================================

class TestTypingRules:
    """Test the type assigned to each kind of expression."""

    def test_literal_types(self):
        """Literals have their own types."""
        assert expression_type("1") == Type.INTEGER
        assert expression_type("true") == Type.BOOLEAN
        assert expression_type('"s"') == Type.STRING

    def test_arithmetic_is_integer(self):
        """+ and - produce integers."""
        assert expression_type("1 + 2") == Type.INTEGER
        assert expression_type("1 - 2") == Type.INTEGER

    def test_comparison_is_boolean(self):
        """== and <= produce booleans."""
        assert expression_type("1 == 2") == Type.BOOLEAN
        assert expression_type("1 <= 2") == Type.BOOLEAN

    def test_print_is_none(self):
        """print accepts any single argument and returns none."""
        assert expression_type('print("x")') == Type.NONE
        assert expression_type("print(1 == 1)") == Type.NONE

    def test_call_has_return_type(self):
        """A call has the callee's declared return type."""
        prelude = "func isSmall(n: Int) -> Bool { return n <= 10 }"
        assert expression_type("isSmall(3)", prelude) == Type.BOOLEAN

    def test_parameter_reference(self):
        """References to parameters have the parameter's type."""
        root = check("func f(s: String) -> Void { print(s) }")
        reference = root.statements[0].body.body[0].arguments[0]
        assert isinstance(reference.referenced_declaration, VariableDeclaration)
        assert reference.referenced_declaration.type == Type.STRING

    def test_statements_are_none(self):
        """Statements have type none."""
        root = parse("func f() -> Int { return 1 }")
        assert Typechecker().walk(root) == Type.NONE


# =============================================================================
# Operand Errors
# =============================================================================

class TestOperandErrors:
    """Test operand type mismatches."""

    def test_string_addition(self):
        """Strings cannot be added."""
        with pytest.raises(TypeCheckError) as exc_info:
            check('print(1 + "a")')
        assert exc_info.value.message == (
            "The left-hand-side and right-hand-side of '+' need to be integers"
        )
        assert exc_info.value.location == SourceLoc(1, 7, 6)

    def test_parenthesized_operand_location(self):
        """The error points at the opening parenthesis of a grouped left operand."""
        with pytest.raises(TypeCheckError) as exc_info:
            check('print(("a") + 1)')
        assert exc_info.value.location == SourceLoc(1, 7, 6)

    def test_boolean_comparison(self):
        """Comparisons need integer operands too."""
        with pytest.raises(TypeCheckError) as exc_info:
            check("print(true == false)")
        assert "'=='" in exc_info.value.message

    def test_chained_comparison(self):
        """A comparison result is not an integer operand."""
        with pytest.raises(TypeCheckError) as exc_info:
            check("print(1 <= 2 <= 3)")
        assert "'<='" in exc_info.value.message

    def test_void_call_operand(self):
        """A call returning Void cannot be added."""
        with pytest.raises(TypeCheckError):
            check("func f() -> Void { print(1) }\nprint(f() + 1)")


# =============================================================================
# Name Resolution
# =============================================================================

class TestNameResolution:
    """Test scoping and undefined names."""

    def test_undefined_variable(self):
        """Undefined variables fail at the reference's start."""
        with pytest.raises(TypeCheckError) as exc_info:
            check("func f() -> Int {\n  return x\n}")
        assert exc_info.value.message == "Referenced undefined variable x"
        assert exc_info.value.location == SourceLoc(2, 10, 27)

    def test_parameter_not_visible_outside(self):
        """A function's parameters are not visible after it."""
        with pytest.raises(TypeCheckError) as exc_info:
            check("func f(n: Int) -> Int { return n }\nprint(n)")
        assert "undefined variable n" in exc_info.value.message

    def test_recursion(self):
        """A function can call itself."""
        check("func f(n: Int) -> Int { return f(n - 1) }")

    def test_function_used_before_declaration(self):
        """Functions must be declared before they are called."""
        with pytest.raises(TypeCheckError) as exc_info:
            check("print(later())\nfunc later() -> Int { return 1 }")
        assert exc_info.value.message == "Referenced undefined function later"
        assert exc_info.value.location == SourceLoc(1, 7, 6)

    def test_earlier_function_visible(self):
        """A function can call functions declared before it."""
        check("func one() -> Int { return 1 }\n"
              "func two() -> Int { return one() + one() }\n"
              "print(two())")

    def test_function_as_value(self):
        """A function name is not a value."""
        with pytest.raises(TypeCheckError) as exc_info:
            check("func f() -> Int { return 1 }\nprint(f)")
        assert "is a function" in exc_info.value.message

    def test_calling_a_variable(self):
        """Only functions can be called."""
        with pytest.raises(TypeCheckError) as exc_info:
            check("func f(n: Int) -> Int { return n() }")
        assert exc_info.value.message == "Only functions can be called"

    def test_suggestion_hint(self):
        """Misspelled names get a suggestion."""
        with pytest.raises(TypeCheckError) as exc_info:
            check("func fibonacci(n: Int) -> Int { return n }\nprint(fibonaci(1))")
        assert "fibonacci" in exc_info.value.hint

    def test_main_is_reserved(self):
        """'main' cannot be declared by the program."""
        with pytest.raises(TypeCheckError):
            check("func main() -> Int { return 1 }")

    def test_scope_restored_after_error(self):
        """The root scope is current again after a failing function."""
        checker = Typechecker()
        with pytest.raises(TypeCheckError):
            checker.typecheck(parse("func f(n: Int) -> Int { return m }"))
        assert checker.scope.previous_scope is None
        assert "f" in checker.scope.lookup_table


# =============================================================================
# Call Checking
# =============================================================================

class TestCallChecking:
    """Test lenient and strict argument checking."""

    SOURCE = "func add(a: Int, b: Int) -> Int { return a + b }\n"

    def test_lenient_argument_count(self):
        """By default argument counts are not validated."""
        check(self.SOURCE + "print(add(1))")

    def test_lenient_argument_types(self):
        """By default argument types are not validated."""
        check(self.SOURCE + 'print(add("a", true))')

    def test_strict_argument_count(self):
        """strict_calls validates the argument count."""
        with pytest.raises(TypeCheckError) as exc_info:
            check(self.SOURCE + "print(add(1))", strict_calls=True)
        assert exc_info.value.message == "'add' expects 2 arguments but got 1"

    def test_strict_argument_types(self):
        """strict_calls validates argument types."""
        with pytest.raises(TypeCheckError) as exc_info:
            check(self.SOURCE + 'print(add(1, "b"))', strict_calls=True)
        assert exc_info.value.message == "Argument 'b' of 'add' expects integer but got string"

    def test_strict_valid_call(self):
        """Correct calls pass strict checking."""
        check(self.SOURCE + "print(add(1, 2))", strict_calls=True)

    def test_print_argument_count(self):
        """print takes exactly one argument."""
        with pytest.raises(TypeCheckError) as exc_info:
            check("print(1, 2)")
        assert exc_info.value.message == "'print' expects exactly one argument"

    def test_arguments_are_checked(self):
        """Each argument expression is type-checked."""
        with pytest.raises(TypeCheckError):
            check(self.SOURCE + 'print(add(1 + "x", 2))')


# =============================================================================
# Scope Tests
# =============================================================================

class TestLookupScope:
    """Test the scope chain."""

    def test_lookup_walks_outwards(self):
        """Names are found in enclosing scopes."""
        root = parse("func f() -> Int { return 1 }")
        declaration = root.statements[0]
        outer = LookupScope()
        outer.declare(declaration)
        inner = LookupScope(outer)
        assert inner.lookup("f") is declaration
        assert inner.lookup("g") is None

    def test_inner_shadows_outer(self):
        """Inner declarations shadow outer ones."""
        root = parse("func f(f: Int) -> Int { return f }")
        function = root.statements[0]
        outer = LookupScope()
        outer.declare(function)
        inner = LookupScope(outer)
        inner.declare(function.parameters[0])
        assert isinstance(inner.lookup("f"), VariableDeclaration)
        assert isinstance(outer.lookup("f"), FunctionDeclaration)

    def test_type_check_error_is_compilation_error(self):
        """TypeCheckError is a CompilationError."""
        assert issubclass(TypeCheckError, CompilationError)
