"""
swrun - Swiftlet Runner Command-Line Interface
==============================================

Compiles a Swiftlet source file and executes its IR, printing the
program's output.

Usage Examples
--------------
Run a program:
    $ swrun fib.swl

Run the optimised IR:
    $ swrun fib.swl -O all

Trace every instruction:
    $ swrun fib.swl --step

Report each time a breakpoint is reached:
    $ swrun fib.swl --break fib:b1:0

Stop runaway programs:
    $ swrun loop.swl --max-steps 100000
"""

import re
import sys
from pathlib import Path
from typing import Optional

import click

from swiftlet import __version__
from swiftlet.cli.errors import ExitCode, configure_logging, handle_cli_exception
from swiftlet.cli.swc import build_options, parse_optimisations
from swiftlet.frontend import SwiftletCompiler
from swiftlet.interpreter import Breakpoint, BreakReason, IRDebugger, IRExecutor
from swiftlet.ir.model import BlockName, IRProgram
from swiftlet.ir.optimizer import OptimisationOptions

BREAKPOINT_PATTERN = re.compile(r"^(?P<function>[^:]+):b?(?P<block>\d+)(?::(?P<index>\d+))?$")


def parse_breakpoints(ctx, param, values: tuple[str, ...]) -> list[Breakpoint]:
    """Click callback turning FUNC:BLOCK[:INDEX] strings into breakpoints."""
    breakpoints = []
    for value in values:
        match = BREAKPOINT_PATTERN.match(value.strip())
        if match is None:
            raise click.BadParameter(
                f"'{value}' is not FUNC:BLOCK:INDEX (for example main:b0:2)",
                ctx=ctx, param=param,
            )
        breakpoints.append(Breakpoint(
            match.group("function"),
            BlockName(int(match.group("block"))),
            int(match.group("index") or 0),
        ))
    return breakpoints


# =============================================================================
# Execution Modes
# =============================================================================

def run_program(program: IRProgram) -> None:
    """Run to completion, printing output as it happens."""
    IRExecutor(program).execute()


def run_stepping(program: IRProgram, max_steps: Optional[int]) -> bool:
    """
    Execute one instruction at a time, printing a snapshot before each.

    Returns:
        False if the step limit stopped the program
    """
    debugger = IRDebugger(program)
    printed = 0
    while not debugger.is_finished:
        if max_steps is not None and debugger.steps >= max_steps:
            return False
        click.echo(str(debugger.state))
        debugger.step()
        if len(debugger.output_log) > printed:
            click.echo(debugger.output_log[printed:], nl=False)
            printed = len(debugger.output_log)
    return True


def run_debugging(program: IRProgram, breakpoints: list[Breakpoint], max_steps: Optional[int]) -> bool:
    """
    Run under the debugger, reporting every breakpoint that is reached.

    Returns:
        False if the step limit stopped the program
    """
    debugger = IRDebugger(program)
    for breakpoint in breakpoints:
        debugger.add_breakpoint(breakpoint.function_name, breakpoint.block, breakpoint.instruction_index)

    printed = 0
    while True:
        budget = None if max_steps is None else max_steps - debugger.steps
        event = debugger.run(max_steps=budget)

        if len(debugger.output_log) > printed:
            click.echo(debugger.output_log[printed:], nl=False)
            printed = len(debugger.output_log)

        match event.reason:
            case BreakReason.BREAKPOINT:
                click.echo(str(event), err=True)
                click.echo(str(debugger.state), err=True)
            case BreakReason.MAX_STEPS:
                return False
            case _:
                return True


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-O", "--optimise", "optimisations",
    multiple=True,
    callback=parse_optimisations,
    help="Optimise the IR before running it: a name, a comma-separated "
         "list or 'all' (can be repeated)",
)
@click.option(
    "--strict-calls",
    is_flag=True,
    help="Check call arguments against the callee's parameters",
)
@click.option(
    "--step",
    is_flag=True,
    help="Print the interpreter state before every instruction",
)
@click.option(
    "--break", "breakpoints",
    multiple=True,
    callback=parse_breakpoints,
    metavar="FUNC:BLOCK:INDEX",
    help="Report the interpreter state when this instruction is reached "
         "(can be repeated)",
)
@click.option(
    "--max-steps",
    type=click.IntRange(min=1),
    default=None,
    help="Stop after this many instructions",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="swrun")
def main(
    input_file: Path,
    optimisations: Optional[OptimisationOptions],
    strict_calls: bool,
    step: bool,
    breakpoints: list[Breakpoint],
    max_steps: Optional[int],
    verbose: bool,
) -> None:
    """
    Compile and run a Swiftlet program.

    INPUT_FILE is the Swiftlet source file to run.

    \b
    Examples:
        swrun fib.swl                    # Run the program
        swrun fib.swl -O all             # Run the optimised IR
        swrun fib.swl --step             # Trace every instruction
        swrun fib.swl --break fib:b1:0   # Report each visit to fib b1
    """
    configure_logging(verbose)
    options = build_options(input_file, optimisations, strict_calls)

    try:
        source = input_file.read_text(encoding="utf-8")
        result = SwiftletCompiler(options).compile_source(source, str(input_file))
    except Exception as e:
        handle_cli_exception(e, verbose, "Compilation")

    program = result.optimised_ir

    try:
        if step:
            completed = run_stepping(program, max_steps)
        elif breakpoints or max_steps is not None:
            completed = run_debugging(program, breakpoints, max_steps)
        else:
            run_program(program)
            completed = True
    except Exception as e:
        handle_cli_exception(e, verbose)

    if not completed:
        click.echo(f"Error: stopped after {max_steps} steps (step limit)", err=True)
        sys.exit(ExitCode.BUILD_ERROR)


if __name__ == "__main__":
    main()
