"""
Swiftlet Frontend
=================

Scanner, lexer, parser, AST and typechecker: everything between source
text and a type-checked AST, plus the compiler driver that chains them
with IR generation.
"""

from swiftlet.frontend.errors import (
    CompilationError,
    LexicalError,
    ParseError,
    TypeCheckError,
)
from swiftlet.frontend.scanner import Scanner
from swiftlet.frontend.lexer import Lexer, Token, TokenKind, tokenize
from swiftlet.frontend.types import Type
from swiftlet.frontend.ast import ASTPrinter, ASTRoot, ASTWalker, ThrowingASTWalker
from swiftlet.frontend.parser import Parser, parse
from swiftlet.frontend.typechecker import LookupScope, Typechecker, typecheck
from swiftlet.frontend.compiler import (
    CompilerOptions,
    CompilerResult,
    SwiftletCompiler,
    compile_to_ir,
)

__all__ = [
    # Errors
    "CompilationError",
    "LexicalError",
    "ParseError",
    "TypeCheckError",
    # Lexing
    "Scanner",
    "Lexer",
    "Token",
    "TokenKind",
    "tokenize",
    # Parsing
    "Type",
    "ASTRoot",
    "ASTWalker",
    "ThrowingASTWalker",
    "ASTPrinter",
    "Parser",
    "parse",
    # Type checking
    "LookupScope",
    "Typechecker",
    "typecheck",
    # Driver
    "CompilerOptions",
    "CompilerResult",
    "SwiftletCompiler",
    "compile_to_ir",
]
