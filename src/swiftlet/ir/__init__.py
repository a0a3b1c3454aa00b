"""
Swiftlet Intermediate Representation
====================================

The IR data model, the generator that lowers a type-checked AST into it,
and the optimiser that rewrites it.
"""

from swiftlet.ir.model import (
    BlockName,
    IRFunction,
    IRProgram,
    Register,
)
from swiftlet.ir.generator import IRGenerator, generate_ir
from swiftlet.ir.optimizer import (
    OptimisationOptions,
    OptimisationStats,
    Optimiser,
    optimise,
    optimise_function,
)

__all__ = [
    "BlockName",
    "Register",
    "IRFunction",
    "IRProgram",
    "IRGenerator",
    "generate_ir",
    "OptimisationOptions",
    "OptimisationStats",
    "Optimiser",
    "optimise",
    "optimise_function",
]
