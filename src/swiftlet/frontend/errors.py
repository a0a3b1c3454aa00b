"""
Swiftlet Compilation Errors
===========================

Every failure of lexing, parsing or type checking is reported as a
CompilationError carrying the SourceLoc it happened at and a message.
Compilation stops at the first error; there is no recovery and no
diagnostic accumulation.

The subclasses only tell the phases apart for callers that care; code
that simply wants to report the problem catches CompilationError.

Error Message Format
--------------------
    filename:line:column: error: description
        source_line_text
            ^
    hint: suggestion for fixing

The filename and source line are optional. The phases raise errors with
a location only, and the compiler driver attaches the filename and the
offending source line before the error reaches the user.
"""

from typing import Optional

from swiftlet.errors import SwiftletError, SourceLoc


# =============================================================================
# Base Compilation Error
# =============================================================================

class CompilationError(SwiftletError):
    """
    A lexical, syntax or type error at a specific source location.

    Attributes:
        message: The error description
        location: Where in the source the error occurred
        filename: Source filename (attached by the driver, optional)
        source_line: The source text of the offending line (optional)
        hint: A suggestion for fixing the error (optional)
    """

    def __init__(
        self,
        message: str,
        location: SourceLoc = SourceLoc.EMPTY,
        filename: Optional[str] = None,
        source_line: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.filename = filename
        self.source_line = source_line
        self.hint = hint
        super().__init__(self._format_message())

    def attach_source(self, filename: str, source_lines: list[str]) -> None:
        """
        Record the filename and offending line for the formatted message.

        Args:
            filename: Name to report the error against
            source_lines: The complete source, split into lines
        """
        self.filename = filename
        line_index = self.location.line - 1
        if 0 <= line_index < len(source_lines):
            self.source_line = source_lines[line_index]
        self.args = (self._format_message(),)

    def _format_message(self) -> str:
        parts = []

        if self.location == SourceLoc.EMPTY:
            prefix = f"{self.filename}: " if self.filename else ""
        elif self.filename:
            prefix = f"{self.filename}:{self.location}: "
        else:
            prefix = f"{self.location}: "
        parts.append(f"{prefix}error: {self.message}")

        # Source context with caret pointer
        if self.source_line is not None and self.location.column > 0:
            parts.append(f"    {self.source_line}")
            padding = " " * (4 + self.location.column - 1)
            parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


# =============================================================================
# Phase-Specific Errors
# =============================================================================

class LexicalError(CompilationError):
    """
    Raised by the lexer for characters that start no token, and for
    string literals that run into a newline or the end of the input.
    """
    pass


class ParseError(CompilationError):
    """
    Raised by the parser at the first token that does not fit the grammar.

    Messages follow the pattern "Expected 'X' but saw Y".
    """
    pass


class TypeCheckError(CompilationError):
    """
    Raised by the typechecker for operand type mismatches, references to
    undefined names and calls to things that are not functions.
    """
    pass
