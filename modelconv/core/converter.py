"""Conversion pipeline: read, dispatch, write."""

import os
import platform
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union

from rich.console import Console
from rich.table import Table

from modelconv import __version__
from modelconv.core.arguments import ArgumentParser, ConversionRequest
from modelconv.core.config import Config
from modelconv.core.dispatcher import ConversionDispatcher, ConversionMetadata, HandlerRegistry
from modelconv.core.exceptions import InputReadError, ModelConvError, OutputWriteError
from modelconv.core.formats import display_name
from modelconv.core.resolver import OutputResolver, ResolvedOutput
from modelconv.handlers import create_handler_registry
from modelconv.utils.logging import (
    StructuredLogger,
    get_logger,
    log_conversion_result,
)

logger = get_logger(__name__)


class ConversionReport:
    """Outcome of one conversion."""

    def __init__(
        self,
        success: bool,
        input_path: Path,
        output_path: Optional[Path] = None,
        output_format: Optional[str] = None,
        error: Optional[str] = None,
        metrics: Optional[Dict[str, Any]] = None,
    ):
        """Initialize conversion report.

        Args:
            success: Whether conversion succeeded
            input_path: Input file path
            output_path: Output file path
            output_format: Format token the output was encoded in
            error: Error message (if failed)
            metrics: Sizes and timings
        """
        self.success = success
        self.input_path = input_path
        self.output_path = output_path
        self.output_format = output_format
        self.error = error
        self.metrics = metrics or {}
        self.timestamp = time.time()


class Converter:
    """Runs one command line through parse, resolve, dispatch and write."""

    def __init__(
        self,
        config: Optional[Config] = None,
        handlers: Optional[HandlerRegistry] = None,
        console: Optional[Console] = None,
    ):
        """Initialize converter.

        Args:
            config: Configuration object
            handlers: Decoder/encoder registry (built from config if not provided)
            console: Rich console for user-facing output
        """
        self.config = config or Config()
        self.handlers = handlers or create_handler_registry(self.config)
        self.console = console or Console()
        self.dispatcher = ConversionDispatcher(self.handlers)
        self.resolver = OutputResolver()

    def parse(self, tokens: Sequence[str]) -> ConversionRequest:
        """Parse command-line tokens; -v prints the environment report.

        Raises:
            UsageError: On malformed arguments
            InputNotFoundError: If the input file does not exist
        """
        parser = ArgumentParser(
            default_output_format=self.config.conversion.default_output_format,
            on_version=self.show_environment,
        )
        return parser.parse(tokens)

    def run(self, tokens: Sequence[str]) -> ConversionReport:
        """Convert the file named on a command line.

        Argument and output-resolution errors are raised; failures during
        reading, conversion and writing are returned in the report.

        Raises:
            UsageError: On malformed arguments
            InputNotFoundError: If the input file does not exist
            InvalidOutputError: If the output format cannot be resolved
        """
        request = self.parse(tokens)
        resolved = self.resolver.resolve(
            request.input_path, request.output_format, request.output_path
        )
        return self.convert(request, resolved)

    def convert(
        self,
        request: ConversionRequest,
        resolved: ResolvedOutput,
        metadata: Optional[ConversionMetadata] = None,
    ) -> ConversionReport:
        """Convert a parsed request to its resolved output.

        Args:
            request: Parsed request
            resolved: Output path and format
            metadata: Producer/date to embed (created now if not provided)

        Returns:
            ConversionReport
        """
        metadata = metadata or ConversionMetadata.create(self.config.conversion.producer)
        metrics: Dict[str, Any] = {}

        self.console.print(
            f"converting {request.input_path} -> {resolved.output_path} "
            f"({display_name(resolved.output_format)})",
            highlight=False,
            markup=False,
            soft_wrap=True,
        )

        try:
            with StructuredLogger(
                logger,
                "conversion",
                input_format=request.input_format,
                output_format=resolved.output_format,
            ) as ctx:
                data = self.read_input(request.input_path)
                metrics["input_bytes"] = len(data)

                result = self.dispatcher.convert(
                    data,
                    request.input_format,
                    resolved.output_format,
                    request.parameters,
                    metadata,
                    input_path=request.input_path,
                    output_path=resolved.output_path,
                )
                metrics["output_bytes"] = len(result)

                self.write_output(resolved.output_path, result.payload)
                metrics["total_time"] = round(ctx.duration, 4)

            report = ConversionReport(
                success=True,
                input_path=request.input_path,
                output_path=resolved.output_path,
                output_format=resolved.output_format,
                metrics=metrics,
            )
            self.console.print("success", style="green")

        except ModelConvError as e:
            report = ConversionReport(
                success=False,
                input_path=request.input_path,
                output_path=resolved.output_path,
                output_format=resolved.output_format,
                error=str(e),
                metrics=metrics,
            )
            self.console.print(
                f"failed: {e}", style="red", highlight=False, markup=False, soft_wrap=True
            )

        log_conversion_result(logger, report)
        return report

    @staticmethod
    def read_input(path: Path) -> bytes:
        """Read the whole input file.

        Raises:
            InputReadError: If the file cannot be read
        """
        try:
            return Path(path).read_bytes()
        except OSError as e:
            raise InputReadError(path, e.strerror or str(e)) from e

    @staticmethod
    def write_output(path: Union[str, Path], payload: bytes) -> None:
        """Write the payload atomically; no partial file is left on failure.

        Raises:
            OutputWriteError: If the file cannot be written
        """
        path = Path(path)
        tmp_name: Optional[str] = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise OutputWriteError(path, e.strerror or str(e)) from e

    def get_environment_info(self) -> Dict[str, str]:
        """Versions and handler capabilities for the -v report."""
        import numpy
        import trimesh

        return {
            "modelconv": __version__,
            "Python": platform.python_version(),
            "Platform": platform.platform(),
            "trimesh": trimesh.__version__,
            "numpy": numpy.__version__,
            "Decoders": ", ".join(self.handlers.decodable()),
            "Encoders": ", ".join(self.handlers.encodable()),
        }

    def show_environment(self) -> None:
        """Print the environment report."""
        table = Table(title="Environment", show_header=False)
        table.add_column("Property", style="cyan")
        table.add_column("Value", style="white")

        for key, value in self.get_environment_info().items():
            table.add_row(key, value)

        self.console.print(table)
