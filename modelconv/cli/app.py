"""Command-line interface for modelconv."""

from typing import List, Optional

import typer
from rich.console import Console
from typer.core import TyperCommand

from modelconv.core import (
    USAGE,
    Config,
    InputNotFoundError,
    InvalidOutputError,
    ModelConvError,
    UsageError,
    load_config,
)
from modelconv.core.converter import Converter
from modelconv.utils import get_logger, setup_logging

app = typer.Typer(
    name="modelconv",
    help="Convert 3D model files between formats",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)
logger = get_logger(__name__)

RAW_ARGS = "modelconv.raw_args"


class RawArgsCommand(TyperCommand):
    """Command that keeps the argument list as typed.

    click drops a bare ``--`` while parsing; the converter needs every token.
    """

    def parse_args(self, ctx: typer.Context, args: List[str]) -> List[str]:
        ctx.meta[RAW_ARGS] = list(args)
        return super().parse_args(ctx, args)


@app.command(
    cls=RawArgsCommand,
    context_settings={
        "allow_extra_args": True,
        "ignore_unknown_options": True,
        "help_option_names": [],
    }
)
def convert(ctx: typer.Context) -> None:
    """Convert <file> to another format.

    modelconv [-v] <file> [-of <format>] [-o <output>] [--<name> <value>]
    """
    run(ctx.meta.get(RAW_ARGS, list(ctx.args)))


def run(tokens: List[str], config: Optional[Config] = None) -> None:
    """Run one conversion and exit with its status.

    Raises:
        typer.Exit: With code 1 on any failure
    """
    try:
        config = config or load_config()
    except (ModelConvError, FileNotFoundError) as e:
        err_console.print(f"ERROR: {e}", markup=False, highlight=False, soft_wrap=True)
        raise typer.Exit(1)

    setup_logging(config.logging)

    try:
        converter = Converter(config=config, console=console)
        report = converter.run(tokens)
    except (UsageError, InputNotFoundError, InvalidOutputError) as e:
        if tokens:
            err_console.print(f"ERROR: {e}", markup=False, highlight=False, soft_wrap=True)
        console.print(USAGE, markup=False, highlight=False, soft_wrap=True)
        raise typer.Exit(1)
    except ModelConvError as e:
        logger.error("conversion_aborted", error=str(e), error_type=type(e).__name__)
        err_console.print(f"ERROR: {e}", markup=False, highlight=False, soft_wrap=True)
        raise typer.Exit(1)

    if not report.success:
        raise typer.Exit(1)


def main() -> None:
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
