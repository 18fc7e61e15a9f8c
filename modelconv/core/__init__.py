"""Core functionality for modelconv."""

from modelconv.core.arguments import USAGE, ArgumentParser, ConversionRequest, parse_args
from modelconv.core.config import (
    Config,
    ConversionConfig,
    LoggingConfig,
    SandboxConfig,
    get_default_config,
    load_config,
)
from modelconv.core.dispatcher import (
    ConversionDispatcher,
    ConversionMetadata,
    ConversionResult,
    HandlerRegistry,
)
from modelconv.core.exceptions import (
    ConfigurationError,
    DecodeError,
    EncodeError,
    InputNotFoundError,
    InputReadError,
    InvalidOutputError,
    ModelConvError,
    OutputWriteError,
    ScriptExecutionError,
    ScriptValidationError,
    TimeoutError,
    UnsupportedFormatError,
    UsageError,
)
from modelconv.core.formats import (
    FORMATS,
    INPUT_EXTENSIONS,
    OUTPUT_EXTENSIONS,
    OUTPUT_FORMATS,
    FormatDescriptor,
    extension_to_token,
    lookup,
)
from modelconv.core.resolver import OutputResolver, ResolvedOutput, resolve_output

__all__ = [
    # Config classes
    "Config",
    "ConversionConfig",
    "SandboxConfig",
    "LoggingConfig",
    # Config functions
    "get_default_config",
    "load_config",
    # Formats
    "FORMATS",
    "INPUT_EXTENSIONS",
    "OUTPUT_EXTENSIONS",
    "OUTPUT_FORMATS",
    "FormatDescriptor",
    "extension_to_token",
    "lookup",
    # Arguments and resolution
    "USAGE",
    "ArgumentParser",
    "ConversionRequest",
    "parse_args",
    "OutputResolver",
    "ResolvedOutput",
    "resolve_output",
    # Dispatch
    "ConversionDispatcher",
    "ConversionMetadata",
    "ConversionResult",
    "HandlerRegistry",
    # Exceptions
    "ModelConvError",
    "ConfigurationError",
    "UsageError",
    "InputNotFoundError",
    "InvalidOutputError",
    "UnsupportedFormatError",
    "InputReadError",
    "OutputWriteError",
    "DecodeError",
    "EncodeError",
    "ScriptValidationError",
    "ScriptExecutionError",
    "TimeoutError",
]
