"""
swc - Swiftlet Compiler Command-Line Interface
==============================================

This module implements the command-line interface for the Swiftlet
compiler. It prints the token stream, the AST or the (optionally
optimised) IR listing of a source file.

Usage Examples
--------------
IR listing:
    $ swc hello.swl

All optimisations, written to a file:
    $ swc hello.swl -O all -o hello.ir

Selected optimisations:
    $ swc hello.swl -O constant-expression-evaluation -O dead-code-elimination

Debugging the front end:
    $ swc hello.swl --tokens
    $ swc hello.swl --ast
"""

from pathlib import Path
from typing import Optional

import click

from swiftlet import __version__
from swiftlet.cli.errors import configure_logging, handle_cli_exception
from swiftlet.frontend import CompilerOptions, SwiftletCompiler
from swiftlet.frontend.ast import ASTPrinter
from swiftlet.ir.optimizer import OptimisationOptions


def parse_optimisations(ctx, param, values: tuple[str, ...]) -> Optional[OptimisationOptions]:
    """Click callback combining repeated -O values into one option set."""
    if not values:
        return None
    options = OptimisationOptions.NONE
    for value in values:
        try:
            options |= OptimisationOptions.parse(value)
        except ValueError as e:
            names = ", ".join(m.lower().replace("_", "-") for m in OptimisationOptions.__members__)
            raise click.BadParameter(f"{e} (choose from {names})", ctx=ctx, param=param)
    return options


def build_options(
    input_file: Path,
    optimisations: Optional[OptimisationOptions],
    strict_calls: bool,
) -> CompilerOptions:
    """Environment defaults overridden by command-line options."""
    options = CompilerOptions.from_env()
    options.filename = str(input_file)
    if optimisations is not None:
        options.optimisations = optimisations
    if strict_calls:
        options.strict_calls = True
    return options


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the listing to a file instead of stdout",
)
@click.option(
    "-O", "--optimise", "optimisations",
    multiple=True,
    callback=parse_optimisations,
    help="Enable optimisation passes: a name, a comma-separated list or "
         "'all' (can be repeated)",
)
@click.option(
    "--tokens",
    is_flag=True,
    help="Print the token stream and exit",
)
@click.option(
    "--ast",
    is_flag=True,
    help="Print the AST and exit",
)
@click.option(
    "--strict-calls",
    is_flag=True,
    help="Check call arguments against the callee's parameters",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="swc")
def main(
    input_file: Path,
    output: Optional[Path],
    optimisations: Optional[OptimisationOptions],
    tokens: bool,
    ast: bool,
    strict_calls: bool,
    verbose: bool,
) -> None:
    """
    Compile a Swiftlet program and print its IR.

    INPUT_FILE is the Swiftlet source file to compile.

    \b
    Examples:
        swc hello.swl                 # Print the IR
        swc hello.swl -O all          # Print the optimised IR
        swc hello.swl -o hello.ir     # Write the IR to a file
        swc hello.swl --ast           # Print the AST

    \b
    Optimisation passes:
        constant-expression-evaluation, constant-propagation,
        dead-store-elimination, dead-code-elimination,
        empty-block-elimination, inline-jump-targets,
        dead-block-elimination
    """
    configure_logging(verbose)
    options = build_options(input_file, optimisations, strict_calls)

    try:
        source = input_file.read_text(encoding="utf-8")
        result = SwiftletCompiler(options).compile_source(source, str(input_file))

        if tokens:
            listing = "\n".join(repr(token) for token in result.tokens)
        elif ast:
            listing = ASTPrinter().print(result.ast)
        else:
            listing = str(result.optimised_ir)

        if output is not None:
            output.write_text(listing + "\n", encoding="utf-8")
            click.echo(f"Compiled {input_file} -> {output}")
        else:
            click.echo(listing)

        if verbose:
            click.echo(f"Tokenized: {result.token_count} tokens", err=True)
            click.echo(f"Functions: {', '.join(result.ir.functions)}", err=True)
            if result.stats is not None:
                click.echo(str(result.stats), err=True)

    except Exception as e:
        handle_cli_exception(e, verbose, "Compilation")


if __name__ == "__main__":
    main()
