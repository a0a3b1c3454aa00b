"""
Swiftlet Recursive Descent Parser
=================================

This module builds an AST from the token stream of the lexer. It pulls
tokens on demand and never looks further ahead than one token
(next_token); the first token that does not fit the grammar aborts the
parse with a ParseError.

Grammar (Simplified EBNF)
-------------------------
program     ::= (function | statement)* EOF
function    ::= 'func' IDENTIFIER '(' (param (',' param)*)? ')' '->' IDENTIFIER brace
param       ::= IDENTIFIER ':' IDENTIFIER
statement   ::= if_stmt | return_stmt | expression
if_stmt     ::= 'if' expression brace ('else' brace)?
return_stmt ::= 'return' expression
brace       ::= '{' statement* '}'

expression  ::= primary (binary_op primary)*
primary     ::= INTEGER | STRING | 'true' | 'false'
              | IDENTIFIER ('(' (expression (',' expression)*)? ')')?
              | '(' expression ')'

Function declarations are only allowed at the top level.

Expression Precedence (lowest to highest)
-----------------------------------------
1. comparison   == <=
2. additive     + -

All binary operators are left associative. Binary expressions are parsed
by precedence climbing over BinaryOperator.precedence.

Example Usage
-------------
>>> from swiftlet.frontend.parser import parse
>>> root = parse("func double(x: Int) -> Int { return x + x }")
>>> root.statements[0].name
'double'
"""

from typing import Optional

from swiftlet.errors import SourceLoc, SourceRange
from swiftlet.frontend.ast import (
    ASTRoot,
    BinaryOperator,
    BinaryOperatorExpression,
    BooleanLiteralExpression,
    BraceStatement,
    Expression,
    FunctionCallExpression,
    FunctionDeclaration,
    IdentifierReferenceExpression,
    IfStatement,
    IntegerLiteralExpression,
    ReturnStatement,
    Statement,
    StringLiteralExpression,
    VariableDeclaration,
)
from swiftlet.frontend.errors import ParseError
from swiftlet.frontend.lexer import SPELLINGS, Lexer, Token, TokenKind
from swiftlet.frontend.types import Type


BINARY_OPERATORS: dict[TokenKind, BinaryOperator] = {
    TokenKind.PLUS: BinaryOperator.ADD,
    TokenKind.MINUS: BinaryOperator.SUB,
    TokenKind.EQUAL_EQUAL: BinaryOperator.EQUAL,
    TokenKind.LESS_OR_EQUAL: BinaryOperator.LESS_OR_EQUAL,
}


class Parser:
    """
    Recursive descent parser for Swiftlet.

    Attributes:
        filename: Source filename for error messages
        next_token: The single token of lookahead
        tokens: Every token read so far, ending with END_OF_FILE once parsed
    """

    def __init__(self, source: str, filename: str = "<input>"):
        """
        Initialize the parser and read the first token.

        Args:
            source: Swiftlet source code
            filename: Source filename for error messages

        Raises:
            LexicalError: If the first token cannot be read
        """
        self.filename = filename
        self._lexer = Lexer(source, filename)
        self.tokens: list[Token] = []
        self.next_token: Token = self._read_token()
        self._last_token_end = self.next_token.range.start

    def parse(self) -> ASTRoot:
        """
        Parse the whole input.

        Returns:
            The root of the AST

        Raises:
            ParseError: At the first token that does not fit the grammar
            LexicalError: If the lexer hits an invalid character
        """
        start = self.next_token.range.start
        statements: list[Statement] = []
        while self.next_token.kind != TokenKind.END_OF_FILE:
            if self.next_token.kind == TokenKind.FUNC:
                statements.append(self._parse_function_declaration())
            else:
                statements.append(self._parse_statement())
        return ASTRoot(self._range_starting_at(start), statements)

    # =========================================================================
    # Token Helpers
    # =========================================================================

    def consume_token(self) -> Token:
        """Consume next_token, read the one after it and return the consumed one."""
        token = self.next_token
        self._last_token_end = token.range.end
        self.next_token = self._read_token()
        return token

    def _read_token(self) -> Token:
        token = self._lexer.next_token()
        # The lexer repeats END_OF_FILE; the stream keeps only the first.
        if not self.tokens or self.tokens[-1].kind != TokenKind.END_OF_FILE:
            self.tokens.append(token)
        return token

    def _check(self, *kinds: TokenKind) -> bool:
        return self.next_token.kind in kinds

    def _expect(self, kind: TokenKind, what: Optional[str] = None) -> Token:
        """
        Consume a token of the given kind.

        Args:
            kind: The required token kind
            what: Description for the error message (defaults to the spelling)

        Raises:
            ParseError: If next_token is of a different kind
        """
        if self.next_token.kind == kind:
            return self.consume_token()
        if what is None:
            what = f"'{SPELLINGS[kind]}'" if kind in SPELLINGS else kind.name.lower()
        raise self._error(f"Expected {what} but saw {self.next_token.describe()}")

    def _error(self, message: str, location: Optional[SourceLoc] = None) -> ParseError:
        if location is None:
            location = self.next_token.range.start
        return ParseError(message, location)

    def _range_starting_at(self, start: SourceLoc) -> SourceRange:
        """Range from start up to the end of the last consumed token."""
        return SourceRange(start, self._last_token_end)

    # =========================================================================
    # Declarations
    # =========================================================================

    def _parse_function_declaration(self) -> FunctionDeclaration:
        """Parse: func name(a: Int, b: Int) -> Int { ... }"""
        start = self._expect(TokenKind.FUNC).range.start
        name = self._expect(TokenKind.IDENTIFIER, "function name").value

        self._expect(TokenKind.LEFT_PAREN)
        parameters = []
        if not self._check(TokenKind.RIGHT_PAREN):
            parameters.append(self._parse_parameter())
            while self._check(TokenKind.COMMA):
                self.consume_token()
                parameters.append(self._parse_parameter())
        self._expect(TokenKind.RIGHT_PAREN)

        self._expect(TokenKind.ARROW)
        return_type = self._parse_type()
        body = self._parse_brace_statement()

        return FunctionDeclaration(
            self._range_starting_at(start), name, parameters, return_type, body
        )

    def _parse_parameter(self) -> VariableDeclaration:
        """Parse a typed parameter such as 'count: Int'."""
        name_token = self._expect(TokenKind.IDENTIFIER, "parameter name")
        self._expect(TokenKind.COLON)
        param_type = self._parse_type()
        return VariableDeclaration(
            self._range_starting_at(name_token.range.start), name_token.value, param_type
        )

    def _parse_type(self) -> Type:
        token = self._expect(TokenKind.IDENTIFIER, "type name")
        parsed = Type.from_string(token.value)
        if parsed is None:
            raise ParseError(f"Unknown type '{token.value}'", token.range.start,
                             hint="valid types are Int, Bool, String and Void")
        return parsed

    # =========================================================================
    # Statements
    # =========================================================================

    def _parse_statement(self) -> Statement:
        """Parse a single statement inside a function body or at top level."""
        match self.next_token.kind:
            case TokenKind.IF:
                return self._parse_if_statement()
            case TokenKind.RETURN:
                return self._parse_return_statement()
            case TokenKind.FUNC:
                raise self._error("Function declarations are only allowed at the top level")
            case _:
                return self._parse_expression()

    def _parse_if_statement(self) -> IfStatement:
        """Parse: if condition { ... } [else { ... }]"""
        if not self._check(TokenKind.IF):
            raise self._error(f"Expected 'if' but saw {self.next_token.describe()}")
        if_token = self.consume_token()
        condition = self._parse_expression()
        body = self._parse_brace_statement()

        else_body = None
        else_range = None
        if self._check(TokenKind.ELSE):
            else_range = self.consume_token().range
            else_body = self._parse_brace_statement()

        return IfStatement(
            self._range_starting_at(if_token.range.start),
            condition,
            body,
            if_token.range,
            else_body,
            else_range,
        )

    def _parse_return_statement(self) -> ReturnStatement:
        start = self._expect(TokenKind.RETURN).range.start
        expression = self._parse_expression()
        return ReturnStatement(self._range_starting_at(start), expression)

    def _parse_brace_statement(self) -> BraceStatement:
        """Parse a brace-delimited statement list."""
        start = self._expect(TokenKind.LEFT_BRACE).range.start
        body = []
        while not self._check(TokenKind.RIGHT_BRACE):
            if self._check(TokenKind.END_OF_FILE):
                raise self._error("Expected '}' but saw end of file")
            body.append(self._parse_statement())
        self.consume_token()
        return BraceStatement(self._range_starting_at(start), body)

    # =========================================================================
    # Expressions
    # =========================================================================

    def _parse_expression(self) -> Expression:
        lhs = self._parse_primary()
        return self._parse_binary_operator_rhs(lhs, 0)

    def _binary_operator(self) -> Optional[BinaryOperator]:
        """The binary operator in next_token, if it is one."""
        return BINARY_OPERATORS.get(self.next_token.kind)

    def _parse_binary_operator_rhs(self, lhs: Expression, min_precedence: int) -> Expression:
        """
        Precedence climbing.

        Folds operators of at least min_precedence into lhs, left to right,
        recursing whenever a tighter-binding operator follows the right
        operand.
        """
        while True:
            operator = self._binary_operator()
            if operator is None or operator.precedence < min_precedence:
                return lhs
            self.consume_token()

            rhs = self._parse_primary()
            next_operator = self._binary_operator()
            while next_operator is not None and next_operator.precedence > operator.precedence:
                rhs = self._parse_binary_operator_rhs(rhs, operator.precedence + 1)
                next_operator = self._binary_operator()

            lhs = BinaryOperatorExpression(
                SourceRange(lhs.source_range.start, rhs.source_range.end),
                lhs,
                rhs,
                operator,
            )

    def _parse_primary(self) -> Expression:
        token = self.next_token

        match token.kind:
            case TokenKind.INTEGER:
                self.consume_token()
                return IntegerLiteralExpression(token.range, token.value)
            case TokenKind.STRING_LITERAL:
                self.consume_token()
                return StringLiteralExpression(token.range, token.value)
            case TokenKind.TRUE | TokenKind.FALSE:
                self.consume_token()
                return BooleanLiteralExpression(token.range, token.kind == TokenKind.TRUE)
            case TokenKind.IDENTIFIER:
                self.consume_token()
                if self._check(TokenKind.LEFT_PAREN):
                    return self._parse_call(token)
                return IdentifierReferenceExpression(token.range, token.value)
            case TokenKind.LEFT_PAREN:
                self.consume_token()
                inner = self._parse_expression()
                self._expect(TokenKind.RIGHT_PAREN)
                # The inner node stands in for the group, parentheses included.
                inner.source_range = self._range_starting_at(token.range.start)
                return inner
            case _:
                raise self._error(f"Expected expression but saw {token.describe()}")

    def _parse_call(self, name_token: Token) -> FunctionCallExpression:
        """Parse the argument list of a call whose name was just consumed."""
        self._expect(TokenKind.LEFT_PAREN)
        arguments = []
        if not self._check(TokenKind.RIGHT_PAREN):
            arguments.append(self._parse_expression())
            while self._check(TokenKind.COMMA):
                self.consume_token()
                arguments.append(self._parse_expression())
        self._expect(TokenKind.RIGHT_PAREN)

        return FunctionCallExpression(
            self._range_starting_at(name_token.range.start),
            name_token.value,
            arguments,
            name_token.range,
        )


# =============================================================================
# Convenience Function
# =============================================================================

def parse(source: str, filename: str = "<input>") -> ASTRoot:
    """
    Parse Swiftlet source code into an AST.

    Args:
        source: The source code
        filename: Source filename for error messages

    Returns:
        The root of the AST

    Raises:
        CompilationError: If lexing or parsing fails
    """
    return Parser(source, filename).parse()
