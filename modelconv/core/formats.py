"""Static registry of the file formats modelconv recognizes."""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from modelconv.core.exceptions import UnsupportedFormatError


@dataclass(frozen=True)
class FormatDescriptor:
    """Description of a single format token."""

    token: str
    display_name: str
    supports_decode: bool
    supports_encode: bool
    is_binary: bool
    extension: str


_DESCRIPTORS = (
    FormatDescriptor("jscad", "JSCAD Model Script", True, True, False, "jscad"),
    FormatDescriptor("js", "JavaScript Source", True, True, False, "js"),
    FormatDescriptor("scad", "OpenSCAD Source", True, False, False, "scad"),
    FormatDescriptor("stl", "STereoLithography, ASCII", True, True, False, "stl"),
    FormatDescriptor("stla", "STereoLithography, ASCII", False, True, False, "stl"),
    FormatDescriptor("stlb", "STereoLithography, Binary", False, True, True, "stl"),
    FormatDescriptor("amf", "Additive Manufacturing File Format", True, True, False, "amf"),
    FormatDescriptor("x3d", "X3D File Format", False, False, False, "x3d"),
    FormatDescriptor("gcode", "G Programming Language File Format", True, False, False, "gcode"),
    FormatDescriptor("dxf", "AutoCAD Drawing Exchange Format", False, True, False, "dxf"),
    FormatDescriptor("svg", "Scalable Vector Graphics Format", True, True, False, "svg"),
    FormatDescriptor("json", "JavaScript Object Notation Format", True, False, False, "json"),
    FormatDescriptor("obj", "Wavefront OBJ", True, False, False, "obj"),
)

FORMATS: Mapping[str, FormatDescriptor] = MappingProxyType(
    {descriptor.token: descriptor for descriptor in _DESCRIPTORS}
)

# Tokens accepted as input file extensions
INPUT_EXTENSIONS = frozenset(d.token for d in _DESCRIPTORS if d.supports_decode)

# Tokens accepted by -of
OUTPUT_FORMATS = frozenset(d.token for d in _DESCRIPTORS if d.supports_encode)

# Extensions accepted on -o when no format is given; stla/stlb are not extensions
OUTPUT_EXTENSIONS = frozenset(
    d.token for d in _DESCRIPTORS if d.supports_encode and d.token == d.extension
)


def lookup(token: str) -> FormatDescriptor:
    """Look up a format descriptor by token.

    Args:
        token: Format token, case-insensitive

    Returns:
        The matching FormatDescriptor

    Raises:
        UnsupportedFormatError: If the token is not registered
    """
    descriptor = FORMATS.get(token.lower())
    if descriptor is None:
        raise UnsupportedFormatError(token)
    return descriptor


def extension_to_token(extension: str) -> str:
    """Map a file extension (with or without the dot) to its format token.

    Raises:
        UnsupportedFormatError: If no format uses the extension
    """
    ext = extension.lower().lstrip(".")
    if ext in FORMATS and FORMATS[ext].extension == ext:
        return ext
    raise UnsupportedFormatError(extension, role="extension")


def display_name(token: str) -> str:
    """Human-readable name for a token."""
    return lookup(token).display_name


def canonical_extension(token: str) -> str:
    """File extension written for a format; collapses stla/stlb to stl."""
    return lookup(token).extension
