"""structlog setup and the event helpers the conversion pipeline uses."""

import logging
import sys
import time
from typing import TYPE_CHECKING, Any, Optional

import structlog
from structlog.processors import CallsiteParameter

if TYPE_CHECKING:
    from modelconv.core.config import LoggingConfig

QUIET_LIBRARIES = ("trimesh", "numpy")


def _renderer(config: "LoggingConfig") -> Any:
    if config.format == "json":
        return structlog.processors.JSONRenderer()
    if config.format == "console":
        return structlog.dev.ConsoleRenderer(
            colors=config.colorize and sys.stderr.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )
    return structlog.processors.KeyValueRenderer(
        key_order=["timestamp", "level", "logger", "event"],
        drop_missing=True,
    )


def _formatter(pre_chain: list, renderer: Any) -> logging.Formatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )


def setup_logging(config: Optional["LoggingConfig"] = None) -> structlog.stdlib.BoundLogger:
    """Route structlog and stdlib records to stderr.

    stdout is reserved for the progress lines, so every handler writes to
    stderr or to ``config.log_file``, which always gets JSON lines.
    """
    if config is None:
        from modelconv.core.config import LoggingConfig

        config = LoggingConfig()

    pre_chain = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt=config.timestamp_format),
        structlog.processors.format_exc_info,
    ]
    if config.add_caller_info:
        pre_chain.append(
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    CallsiteParameter.FILENAME,
                    CallsiteParameter.LINENO,
                    CallsiteParameter.FUNC_NAME,
                ],
            )
        )

    structlog.configure(
        processors=pre_chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(_formatter(pre_chain, _renderer(config)))

    root = logging.getLogger()
    root.handlers[:] = [stream]
    root.setLevel(config.level)

    if config.log_file:
        file_handler = logging.FileHandler(config.log_file)
        file_handler.setFormatter(_formatter(pre_chain, structlog.processors.JSONRenderer()))
        root.addHandler(file_handler)

    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    return structlog.get_logger("modelconv")


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def log_conversion_result(logger: structlog.stdlib.BoundLogger, report: Any) -> None:
    """Emit ``conversion_success`` or ``conversion_failed`` for a ConversionReport."""
    fields = dict(report.metrics, input_file=str(report.input_path))
    if report.success:
        logger.info(
            "conversion_success",
            output_file=str(report.output_path),
            output_format=report.output_format,
            **fields,
        )
    else:
        logger.error("conversion_failed", error=report.error, **fields)


class StructuredLogger:
    """Logs ``<operation>_started`` on entry and ``_completed`` or ``_failed`` on exit."""

    def __init__(self, logger: structlog.stdlib.BoundLogger, operation: str, **context: Any):
        self.logger = logger
        self.operation = operation
        self.context = context
        self._start: Optional[float] = None

    @property
    def duration(self) -> float:
        """Seconds since entry."""
        return time.perf_counter() - self._start if self._start is not None else 0.0

    def __enter__(self) -> "StructuredLogger":
        self._start = time.perf_counter()
        self.logger.info(f"{self.operation}_started", **self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        duration_ms = round(self.duration * 1000, 2)
        if exc_type is None:
            self.logger.info(
                f"{self.operation}_completed", duration_ms=duration_ms, **self.context
            )
        else:
            self.logger.error(
                f"{self.operation}_failed",
                duration_ms=duration_ms,
                error=str(exc_val),
                error_type=exc_type.__name__,
                **self.context,
            )
