"""
Character Scanner
=================

The scanner is a forward-only cursor over the source text. It hands out
one character at a time and keeps the line, column and offset of the
cursor up to date so the lexer can stamp every token with its range.

Position rules:
    - A newline moves to column 1 of the next line
    - Any other character moves one column to the right
    - The offset always advances by exactly one
"""

from typing import Optional

from swiftlet.errors import SourceLoc


class Scanner:
    """
    Forward-only character cursor with position tracking.

    Example:
        >>> scanner = Scanner("a\\nb")
        >>> scanner.current_char
        'a'
        >>> scanner.consume_char()
        >>> scanner.consume_char()
        >>> scanner.source_loc
        SourceLoc(line=2, column=1, offset=2)
    """

    def __init__(self, source: str):
        self._source = source
        self._position = 0
        self._line = 1
        self._column = 1

    @property
    def current_char(self) -> Optional[str]:
        """The character under the cursor, or None at the end of input."""
        if self._position >= len(self._source):
            return None
        return self._source[self._position]

    @property
    def source_loc(self) -> SourceLoc:
        """Position of the character under the cursor."""
        return SourceLoc(self._line, self._column, self._position)

    def peek_char(self, offset: int = 1) -> Optional[str]:
        """Look ahead without consuming (used for two-character operators)."""
        pos = self._position + offset
        if pos >= len(self._source):
            return None
        return self._source[pos]

    def consume_char(self) -> None:
        """Advance the cursor by one character. Does nothing at end of input."""
        char = self.current_char
        if char is None:
            return
        if char == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1
        self._position += 1
