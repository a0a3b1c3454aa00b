"""
Swiftlet Lexer (Tokenizer)
==========================

This module turns the character stream supplied by the Scanner into
classified tokens, each stamped with the SourceRange it was read from.

Token Categories
----------------
- Keywords: if, else, func, return, true, false
- Identifiers: a letter followed by letters or digits
- Integers: a run of decimal digits
- Strings: "double quoted", with \\n, \\t, \\\\ and \\" escapes
- Operators: +, -, ==, <=, ->
- Delimiters: { } ( ) , :

Whitespace and // line comments separate tokens and are otherwise
invisible; the only trace they leave is in the token ranges.

Example Usage
-------------
>>> from swiftlet.frontend.lexer import Lexer
>>> for token in Lexer("func f() -> Int { return 42 }").tokenize():
...     print(token)
Token(FUNC, 1:1)
Token(IDENTIFIER, 'f', 1:6)
Token(LEFT_PAREN, 1:7)
...
Token(END_OF_FILE, 1:30)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator
import string

from swiftlet.errors import SourceLoc, SourceRange
from swiftlet.frontend.errors import LexicalError
from swiftlet.frontend.scanner import Scanner


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenKind(Enum):
    """Every kind of token the lexer can produce."""
    # Keywords
    IF = auto()
    ELSE = auto()
    FUNC = auto()
    RETURN = auto()
    TRUE = auto()
    FALSE = auto()

    # Literals and names (the value lives in Token.value)
    INTEGER = auto()            # 42
    STRING_LITERAL = auto()     # "text"
    IDENTIFIER = auto()         # foo

    # Operators
    PLUS = auto()               # +
    MINUS = auto()              # -
    EQUAL_EQUAL = auto()        # ==
    LESS_OR_EQUAL = auto()      # <=
    ARROW = auto()              # ->

    # Delimiters
    LEFT_BRACE = auto()         # {
    RIGHT_BRACE = auto()        # }
    LEFT_PAREN = auto()         # (
    RIGHT_PAREN = auto()        # )
    COMMA = auto()              # ,
    COLON = auto()              # :

    END_OF_FILE = auto()


KEYWORDS: dict[str, TokenKind] = {
    "if": TokenKind.IF,
    "else": TokenKind.ELSE,
    "func": TokenKind.FUNC,
    "return": TokenKind.RETURN,
    "true": TokenKind.TRUE,
    "false": TokenKind.FALSE,
}

# Source spelling of the fixed-text tokens, used in error messages
SPELLINGS: dict[TokenKind, str] = {
    **{kind: text for text, kind in KEYWORDS.items()},
    TokenKind.PLUS: "+",
    TokenKind.MINUS: "-",
    TokenKind.EQUAL_EQUAL: "==",
    TokenKind.LESS_OR_EQUAL: "<=",
    TokenKind.ARROW: "->",
    TokenKind.LEFT_BRACE: "{",
    TokenKind.RIGHT_BRACE: "}",
    TokenKind.LEFT_PAREN: "(",
    TokenKind.RIGHT_PAREN: ")",
    TokenKind.COMMA: ",",
    TokenKind.COLON: ":",
}

SINGLE_CHAR_TOKENS: dict[str, TokenKind] = {
    "+": TokenKind.PLUS,
    "{": TokenKind.LEFT_BRACE,
    "}": TokenKind.RIGHT_BRACE,
    "(": TokenKind.LEFT_PAREN,
    ")": TokenKind.RIGHT_PAREN,
    ",": TokenKind.COMMA,
    ":": TokenKind.COLON,
}

ESCAPE_SEQUENCES: dict[str, str] = {
    "n": "\n",
    "t": "\t",
    "\\": "\\",
    '"': '"',
}

IDENT_START = set(string.ascii_letters)
IDENT_CHARS = IDENT_START | set(string.digits)


# =============================================================================
# Token Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single lexical token.

    Attributes:
        kind: What sort of token this is
        range: The source span the token was read from
        value: Payload for INTEGER (int), STRING_LITERAL and IDENTIFIER (str)
    """
    kind: TokenKind
    range: SourceRange
    value: str | int | None = None

    def __repr__(self) -> str:
        if self.value is not None:
            return f"Token({self.kind.name}, {self.value!r}, {self.range.start})"
        return f"Token({self.kind.name}, {self.range.start})"

    def describe(self) -> str:
        """Human-readable description used in parser error messages."""
        match self.kind:
            case TokenKind.INTEGER:
                return f"integer {self.value}"
            case TokenKind.STRING_LITERAL:
                return f'string "{self.value}"'
            case TokenKind.IDENTIFIER:
                return f"identifier '{self.value}'"
            case TokenKind.END_OF_FILE:
                return "end of file"
            case _:
                return f"'{SPELLINGS[self.kind]}'"


# =============================================================================
# Lexer Class
# =============================================================================

class Lexer:
    """
    Pull-based tokenizer over a Scanner.

    The parser calls next_token() whenever it needs one more token of
    lookahead. Once the input is exhausted every further call returns an
    END_OF_FILE token, so over-reading is harmless.

    Attributes:
        filename: Name used when errors are reported
    """

    def __init__(self, source: str, filename: str = "<input>"):
        """
        Initialize the lexer.

        Args:
            source: The source code to tokenize
            filename: Filename for error messages
        """
        self.filename = filename
        self._scanner = Scanner(source)

    def tokenize(self) -> Iterator[Token]:
        """
        Generate every token of the input, ending with one END_OF_FILE.

        Raises:
            LexicalError: If an invalid character or string is encountered
        """
        while True:
            token = self.next_token()
            yield token
            if token.kind == TokenKind.END_OF_FILE:
                return

    def next_token(self) -> Token:
        """
        Read and return the next token.

        Raises:
            LexicalError: If the next character starts no valid token
        """
        self._skip_whitespace_and_comments()

        start = self._scanner.source_loc
        char = self._scanner.current_char

        if char is None:
            return Token(TokenKind.END_OF_FILE, SourceRange(start, start))
        if char in IDENT_START:
            return self._scan_identifier(start)
        if char in string.digits:
            return self._scan_integer(start)
        if char == '"':
            return self._scan_string(start)
        return self._scan_operator(start)

    # =========================================================================
    # Character Helpers
    # =========================================================================

    def _match(self, expected: str) -> bool:
        """Consume the current character if it equals expected."""
        if self._scanner.current_char == expected:
            self._scanner.consume_char()
            return True
        return False

    def _make_token(
        self,
        kind: TokenKind,
        start: SourceLoc,
        value: str | int | None = None,
    ) -> Token:
        """Create a token spanning from start up to the cursor."""
        return Token(kind, SourceRange(start, self._scanner.source_loc), value)

    def _skip_whitespace_and_comments(self) -> None:
        scanner = self._scanner
        while scanner.current_char is not None:
            char = scanner.current_char
            if char in " \t\r\n":
                scanner.consume_char()
            elif char == "/" and scanner.peek_char() == "/":
                while scanner.current_char not in (None, "\n"):
                    scanner.consume_char()
            else:
                return

    # =========================================================================
    # Token Scanners
    # =========================================================================

    def _scan_identifier(self, start: SourceLoc) -> Token:
        """Scan an identifier or keyword."""
        chars = []
        while self._scanner.current_char is not None and self._scanner.current_char in IDENT_CHARS:
            chars.append(self._scanner.current_char)
            self._scanner.consume_char()

        text = "".join(chars)
        if text in KEYWORDS:
            return self._make_token(KEYWORDS[text], start)
        return self._make_token(TokenKind.IDENTIFIER, start, text)

    def _scan_integer(self, start: SourceLoc) -> Token:
        """Scan a decimal integer literal."""
        digits = []
        while self._scanner.current_char is not None and self._scanner.current_char in string.digits:
            digits.append(self._scanner.current_char)
            self._scanner.consume_char()
        return self._make_token(TokenKind.INTEGER, start, int("".join(digits)))

    def _scan_string(self, start: SourceLoc) -> Token:
        """
        Scan a double-quoted string literal.

        Raises:
            LexicalError: If the string is not closed on the same line
        """
        self._scanner.consume_char()  # opening quote
        chars = []

        while True:
            char = self._scanner.current_char
            if char is None or char == "\n":
                raise LexicalError("Unterminated string literal", start)
            if char == '"':
                self._scanner.consume_char()
                break
            if char == "\\":
                escape_loc = self._scanner.source_loc
                self._scanner.consume_char()
                escaped = self._scanner.current_char
                if escaped not in ESCAPE_SEQUENCES:
                    raise LexicalError(
                        f"Invalid escape sequence '\\{escaped or ''}'",
                        escape_loc,
                        hint="supported escapes are \\n, \\t, \\\\ and \\\"",
                    )
                chars.append(ESCAPE_SEQUENCES[escaped])
            else:
                chars.append(char)
            self._scanner.consume_char()

        return self._make_token(TokenKind.STRING_LITERAL, start, "".join(chars))

    def _scan_operator(self, start: SourceLoc) -> Token:
        """
        Scan an operator or delimiter.

        Raises:
            LexicalError: If the character starts no known token
        """
        char = self._scanner.current_char
        self._scanner.consume_char()

        if char == "-":
            if self._match(">"):
                return self._make_token(TokenKind.ARROW, start)
            return self._make_token(TokenKind.MINUS, start)

        if char == "=":
            if self._match("="):
                return self._make_token(TokenKind.EQUAL_EQUAL, start)
            raise LexicalError(
                "Unexpected character '='", start,
                hint="use '==' to compare values",
            )

        if char == "<":
            if self._match("="):
                return self._make_token(TokenKind.LESS_OR_EQUAL, start)
            raise LexicalError("Unexpected character '<'", start,
                               hint="only '<=' is supported")

        if char in SINGLE_CHAR_TOKENS:
            return self._make_token(SINGLE_CHAR_TOKENS[char], start)

        raise LexicalError(f"Unexpected character '{char}'", start)


# =============================================================================
# Convenience Function
# =============================================================================

def tokenize(source: str, filename: str = "<input>") -> list[Token]:
    """Tokenize source completely, including the final END_OF_FILE token."""
    return list(Lexer(source, filename).tokenize())
