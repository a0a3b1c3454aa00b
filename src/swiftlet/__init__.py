"""
Swiftlet - A Teaching Compiler and IR Interpreter
=================================================

This package compiles Swiftlet, a minimal Swift-flavoured language, into a
register-based intermediate representation organised in basic blocks,
optimises it, and runs it on a single-step interpreter.

    func fib(n: Int) -> Int {
        if n <= 1 { return n }
        return fib(n - 1) + fib(n - 2)
    }
    print(fib(10))

Main Components
---------------
- **frontend**: scanner, lexer, parser, AST and typechecker
    Turns source text into a type-checked AST
- **ir**: IR model, IR generator and optimiser
    Lowers the AST into basic blocks and rewrites them
- **interpreter**: executor and debugger
    Runs IR one instruction at a time
- **cli**: the swc and swrun command-line tools

Quick Start
-----------
Compile and run a program:
    >>> from swiftlet import compile_to_ir, IRExecutor
    >>> IRExecutor(compile_to_ir('print("Hello")')).execute()
    Hello

Optimise and inspect the IR:
    >>> from swiftlet import optimise, OptimisationOptions
    >>> print(optimise(compile_to_ir("print(1 + 2)"), OptimisationOptions.ALL))

Or use the command-line tools:
    $ swc hello.swl --ast
    $ swc hello.swl -O all
    $ swrun hello.swl
"""

__version__ = "1.0.0"

from swiftlet.errors import (
    SwiftletError,
    SourceLoc,
    SourceRange,
    IRGenerationError,
    ExecutionError,
)
from swiftlet.frontend import (
    CompilationError,
    CompilerOptions,
    CompilerResult,
    SwiftletCompiler,
    compile_to_ir,
)
from swiftlet.ir import IRProgram, OptimisationOptions, Optimiser, optimise
from swiftlet.interpreter import IRExecutor, IRDebugger

__all__ = [
    "__version__",
    # Errors
    "SwiftletError",
    "CompilationError",
    "IRGenerationError",
    "ExecutionError",
    "SourceLoc",
    "SourceRange",
    # Compiler
    "SwiftletCompiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_to_ir",
    # IR
    "IRProgram",
    "OptimisationOptions",
    "Optimiser",
    "optimise",
    # Interpreter
    "IRExecutor",
    "IRDebugger",
]
