"""
Swiftlet Command-Line Interface
===============================

This package provides the command-line tools:

- **swc**: compiler (tokens, AST dump, IR listing, optimisation)
- **swrun**: runner and step debugger

Each tool is implemented as a Click-based CLI application with
help text and consistent exit codes (see cli.errors).
"""

__all__ = ["swc", "swrun"]
