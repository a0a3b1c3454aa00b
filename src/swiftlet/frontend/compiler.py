"""
Swiftlet Compiler Driver
========================

This module runs the phases in order and is the main entry point for
compiling Swiftlet source:

    source → Lexer → Parser → Typechecker → IRGenerator → Optimiser (optional)

Every phase stops at its first error. Errors from the lexer, parser and
typechecker are CompilationErrors; before re-raising, the driver attaches
the filename and the offending source line so the message shows where
the problem is.

Example Usage
-------------
>>> from swiftlet import compile_to_ir
>>> program = compile_to_ir("func one() -> Int { return 1 }\\nprint(one())")
>>> print(program)

>>> from swiftlet import SwiftletCompiler, CompilerOptions, OptimisationOptions
>>> options = CompilerOptions(optimisations=OptimisationOptions.ALL)
>>> result = SwiftletCompiler(options).compile_source(source, "demo.swl")
>>> print(result.optimised_ir)
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from swiftlet.frontend.ast import ASTRoot
from swiftlet.frontend.errors import CompilationError
from swiftlet.frontend.lexer import Token
from swiftlet.frontend.parser import Parser
from swiftlet.frontend.typechecker import Typechecker
from swiftlet.ir.generator import IRGenerator
from swiftlet.ir.model import IRProgram
from swiftlet.ir.optimizer import OptimisationOptions, OptimisationStats, Optimiser

logger = logging.getLogger(__name__)

TRUE_VALUES = ("1", "true", "yes", "on")


# =============================================================================
# Compiler Options
# =============================================================================

@dataclass
class CompilerOptions:
    """
    Configuration for a compilation.

    Attributes:
        filename: Name reported in error messages
        optimisations: Optimiser passes to run (NONE skips the optimiser)
        strict_calls: Validate call arguments against parameter lists
        verbose: Print optimiser statistics
    """
    filename: str = "<input>"
    optimisations: OptimisationOptions = OptimisationOptions.NONE
    strict_calls: bool = False
    verbose: bool = False

    @classmethod
    def from_env(cls) -> "CompilerOptions":
        """
        Create options from environment variables.

        Environment variables (all optional):
            SWIFTLET_OPTIMISATIONS: Comma-separated passes, or "all"/"none"
            SWIFTLET_STRICT_CALLS: "1", "true", "yes" or "on" to enable

        Returns:
            CompilerOptions with values from environment variables
        """
        options = cls()

        if names := os.environ.get("SWIFTLET_OPTIMISATIONS"):
            for name in names.split(","):
                try:
                    options.optimisations |= OptimisationOptions.parse(name)
                except ValueError as e:
                    logger.warning(f"Ignoring SWIFTLET_OPTIMISATIONS entry: {e}")

        if strict := os.environ.get("SWIFTLET_STRICT_CALLS"):
            options.strict_calls = strict.strip().lower() in TRUE_VALUES

        return options


# =============================================================================
# Compiler Result
# =============================================================================

@dataclass
class CompilerResult:
    """
    Everything produced by a successful compilation.

    Attributes:
        filename: Source filename
        tokens: The token stream, ending with END_OF_FILE
        ast: The type-checked AST
        ir: The IR as generated
        optimised_ir: The IR after optimisation (same as ir without passes)
        stats: Optimiser statistics (None without passes)
    """
    filename: str
    tokens: list[Token] = field(default_factory=list)
    ast: Optional[ASTRoot] = None
    ir: Optional[IRProgram] = None
    optimised_ir: Optional[IRProgram] = None
    stats: Optional[OptimisationStats] = None

    @property
    def token_count(self) -> int:
        return len(self.tokens)


# =============================================================================
# Compiler
# =============================================================================

class SwiftletCompiler:
    """
    Runs the compilation phases.

    Usage:
        compiler = SwiftletCompiler(CompilerOptions(strict_calls=True))
        result = compiler.compile_source(source, "main.swl")
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        self.options = options or CompilerOptions()

    def compile_source(self, source: str, filename: Optional[str] = None) -> CompilerResult:
        """
        Compile source code.

        Args:
            source: Swiftlet source code
            filename: Name for error messages (defaults to options.filename)

        Returns:
            CompilerResult with tokens, AST and IR

        Raises:
            CompilationError: On the first lexical, syntax or type error
        """
        filename = filename or self.options.filename
        result = CompilerResult(filename=filename)

        try:
            parser = Parser(source, filename)
            result.ast = parser.parse()
            result.tokens = parser.tokens
            logger.debug(f"{filename}: parsed {len(result.ast.statements)} top-level statements "
                         f"from {result.token_count} tokens")

            Typechecker(strict_calls=self.options.strict_calls).typecheck(result.ast)
        except CompilationError as e:
            e.attach_source(filename, source.splitlines())
            raise

        result.ir = IRGenerator().generate(result.ast)
        result.optimised_ir = result.ir

        if self.options.optimisations != OptimisationOptions.NONE:
            optimiser = Optimiser(self.options.optimisations, verbose=self.options.verbose)
            result.optimised_ir = optimiser.optimise(result.ir)
            result.stats = optimiser.stats

        logger.info(f"Compiled {filename}: {len(result.ir.functions)} functions")
        return result

    def compile_file(self, filepath: str | Path) -> CompilerResult:
        """
        Compile a source file.

        Raises:
            FileNotFoundError: If the file does not exist
            CompilationError: If compilation fails
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Source file not found: {filepath}")
        return self.compile_source(path.read_text(encoding="utf-8"), str(path))


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_to_ir(source: str, filename: str = "<input>") -> IRProgram:
    """
    Compile source code to unoptimised IR.

    This is the primary high-level interface for compiling Swiftlet.

    Args:
        source: Swiftlet source code
        filename: Source filename for error messages

    Returns:
        The IR program

    Raises:
        CompilationError: If lexing, parsing or type checking fails
    """
    return SwiftletCompiler(CompilerOptions(filename=filename)).compile_source(source).ir
