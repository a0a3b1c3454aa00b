"""
Swiftlet Error Hierarchy and Source Positions
=============================================

This module defines the base exception for the whole toolchain together
with the source position types that every phase uses to report where
something happened.

Exception Hierarchy
-------------------
SwiftletError (base)
├── CompilationError - lexical, syntax and type errors (frontend.errors)
│   ├── LexicalError
│   ├── ParseError
│   └── TypeCheckError
├── IRGenerationError - internal invariant broken while lowering
└── ExecutionError - runtime failure inside the IR interpreter

Source Positions
----------------
A SourceLoc is a single point in the source text: 1-based line and column
plus the 0-based character offset. A SourceRange is the half-open span
[start, end) between two such points. Every token and AST node carries a
SourceRange; errors report the start of the offending range.
"""

from dataclasses import dataclass
from typing import ClassVar


# =============================================================================
# Base Exception Class
# =============================================================================

class SwiftletError(Exception):
    """
    Base exception for all Swiftlet errors.

    Callers that do not care which phase failed can catch everything with
    a single except clause:

        try:
            run_source(source)
        except SwiftletError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLoc:
    """
    A point in the source text.

    Attributes:
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        offset: Character offset from the start of the text (0-indexed)
    """
    line: int
    column: int
    offset: int

    EMPTY: ClassVar["SourceLoc"]

    def __str__(self) -> str:
        """Format as 'line:column' for error messages."""
        return f"{self.line}:{self.column}"


SourceLoc.EMPTY = SourceLoc(0, 0, 0)


@dataclass(frozen=True)
class SourceRange:
    """
    A half-open span of source text, from start up to (not including) end.

    Attributes:
        start: First character of the span
        end: Position just past the last character of the span
    """
    start: SourceLoc
    end: SourceLoc

    EMPTY: ClassVar["SourceRange"]

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"

    def text(self, source: str) -> str:
        """Return the slice of source covered by this range."""
        return source[self.start.offset:self.end.offset]


SourceRange.EMPTY = SourceRange(SourceLoc.EMPTY, SourceLoc.EMPTY)


# =============================================================================
# Non-Frontend Exceptions
# =============================================================================

class IRGenerationError(SwiftletError):
    """
    Raised when lowering meets an AST that the typechecker should have
    rejected, e.g. an identifier without a bound register.

    This always indicates a bug in an earlier phase (or an AST that was
    lowered without being type-checked), never a problem in user code.
    """
    pass


class ExecutionError(SwiftletError):
    """
    Runtime failure inside the IR interpreter.

    Raised for conditions the interpreter cannot continue from: a program
    without 'main', a call to an unknown function, a jump to a missing
    block, a call with the wrong number of arguments, or a string used
    where an integer is required.

    Attributes:
        message: The error description
        function_name: Function executing when the error occurred (if any)
    """

    def __init__(self, message: str, function_name: str | None = None):
        self.message = message
        self.function_name = function_name
        if function_name:
            super().__init__(f"runtime error in '{function_name}': {message}")
        else:
            super().__init__(f"runtime error: {message}")
