"""Command-line token parsing into a conversion request."""

import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Sequence, Tuple

from modelconv.core.exceptions import InputNotFoundError, UsageError
from modelconv.core.formats import INPUT_EXTENSIONS

USAGE = """USAGE:

modelconv [-v] <file> [-of <format>] [-o <output>] [--<name> <value>]
\t<file>  :\tinput file (Supported types: .jscad, .js, .scad, .stl, .amf, .obj, .gcode, .svg, .json)
\t<output>:\toutput file (Supported types: .jscad, .js, .stl, .amf, .dxf, .svg)
\t<format>:\t'jscad', 'js', 'stla' (STL ASCII, default), 'stlb' (STL Binary), 'amf', 'dxf', 'svg'
\t<name>  :\tparameter passed to the model's main(params)"""

# Evaluated in order, first match wins
_RULES: Tuple[Tuple[str, "re.Pattern[str]"], ...] = (
    ("output_format", re.compile(r"^-of$")),
    ("output_joined", re.compile(r"^-o(\S.*)$")),
    ("output", re.compile(r"^-o$")),
    ("param_assign", re.compile(r"^--(\w+)=(.*)$", re.DOTALL)),
    ("param", re.compile(r"^--(\w+)$")),
    (
        "input",
        re.compile(
            r"^.+\.(%s)$" % "|".join(sorted(INPUT_EXTENSIONS, key=len, reverse=True)),
            re.IGNORECASE | re.DOTALL,
        ),
    ),
    ("version", re.compile(r"^-v$")),
)


@dataclass(frozen=True)
class ConversionRequest:
    """Structured form of one command line."""

    input_path: Path
    input_format: str
    output_path: Optional[Path] = None
    output_format: Optional[str] = None
    parameters: Mapping[str, str] = field(default_factory=dict)
    show_version: bool = False


def classify_token(token: str) -> Tuple[Optional[str], Tuple[str, ...]]:
    """Match a token against the grammar rules.

    Returns:
        Tuple of (rule name, captured groups), or (None, ()) if nothing matched
    """
    for name, pattern in _RULES:
        match = pattern.match(token)
        if match is not None:
            return name, match.groups()
    return None, ()


class ArgumentParser:
    """Parses the flat token grammar of the modelconv command line."""

    def __init__(
        self,
        default_output_format: str = "stla",
        on_version: Optional[Callable[[], None]] = None,
        is_file: Callable[[Path], bool] = Path.is_file,
    ):
        """Initialize the parser.

        Args:
            default_output_format: Format used when neither -of nor -o is given
            on_version: Called each time -v is seen
            is_file: Predicate used to check the input path
        """
        self.default_output_format = default_output_format
        self.on_version = on_version
        self.is_file = is_file

    def parse(self, tokens: Sequence[str]) -> ConversionRequest:
        """Parse command-line tokens.

        Args:
            tokens: Arguments without the program name

        Returns:
            ConversionRequest for the invocation

        Raises:
            UsageError: On empty, malformed or incomplete arguments
            InputNotFoundError: If the input file does not exist
        """
        if not tokens:
            raise UsageError("no arguments given")

        input_path: Optional[Path] = None
        input_format: Optional[str] = None
        output_path: Optional[Path] = None
        output_format: Optional[str] = None
        parameters: dict[str, str] = {}
        show_version = False

        i = 0
        while i < len(tokens):
            token = tokens[i]
            rule, groups = classify_token(token)

            if rule == "output_format":
                output_format = self._value_after(tokens, i)
                i += 1
            elif rule == "output_joined":
                output_path = Path(groups[0])
            elif rule == "output":
                output_path = Path(self._value_after(tokens, i))
                i += 1
            elif rule == "param_assign":
                parameters[groups[0]] = groups[1]
            elif rule == "param":
                # consumes the next token even if it looks like a flag
                parameters[groups[0]] = self._value_after(tokens, i)
                i += 1
            elif rule == "input":
                input_path = Path(token)
                input_format = groups[0].lower()
                if not self.is_file(input_path):
                    raise InputNotFoundError(input_path)
            elif rule == "version":
                show_version = True
                if self.on_version is not None:
                    self.on_version()
            else:
                raise UsageError(f"invalid file name or argument <{token}>", token=token)
            i += 1

        if input_path is None or input_format is None:
            raise UsageError("no input file given")

        if output_format is None and output_path is None:
            output_format = self.default_output_format

        return ConversionRequest(
            input_path=input_path,
            input_format=input_format,
            output_path=output_path,
            output_format=output_format,
            parameters=MappingProxyType(parameters),
            show_version=show_version,
        )

    @staticmethod
    def _value_after(tokens: Sequence[str], index: int) -> str:
        """Return the token following a flag that takes a value."""
        if index + 1 >= len(tokens):
            raise UsageError(f"missing value after <{tokens[index]}>", token=tokens[index])
        return tokens[index + 1]


def parse_args(
    tokens: Sequence[str],
    default_output_format: str = "stla",
    on_version: Optional[Callable[[], None]] = None,
) -> ConversionRequest:
    """Parse tokens with a default ArgumentParser."""
    return ArgumentParser(default_output_format, on_version=on_version).parse(tokens)
