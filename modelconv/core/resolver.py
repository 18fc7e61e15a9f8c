"""Resolution of the output path and output format."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from modelconv.core.exceptions import InvalidOutputError
from modelconv.core.formats import OUTPUT_EXTENSIONS, OUTPUT_FORMATS, canonical_extension


@dataclass(frozen=True)
class ResolvedOutput:
    """Final output file and the format it is encoded in."""

    output_path: Path
    output_format: str


class OutputResolver:
    """Applies the output inference rules to a parsed request."""

    def resolve(
        self,
        input_path: Union[str, Path],
        output_format: Optional[str] = None,
        output_path: Optional[Union[str, Path]] = None,
    ) -> ResolvedOutput:
        """Determine output path and format.

        An explicit format always wins; the output path's extension is only
        consulted when no format was given.

        Args:
            input_path: Input file path, used to compose a missing output path
            output_format: Explicit output format token
            output_path: Explicit output file path

        Returns:
            ResolvedOutput

        Raises:
            InvalidOutputError: If the format or extension is not an output type
        """
        if not output_format:
            if output_path is None or not str(output_path):
                raise InvalidOutputError("no output format or output file given")

            output_path = Path(output_path)
            extension = output_path.suffix.lstrip(".").lower()
            if extension not in OUTPUT_EXTENSIONS:
                raise InvalidOutputError(f"invalid output file <{output_path}>")
            return ResolvedOutput(output_path=output_path, output_format=extension)

        token = output_format.lower()
        if token not in OUTPUT_FORMATS:
            raise InvalidOutputError(f"invalid output format <{output_format}>")

        if output_path is None or not str(output_path):
            output_path = self.compose_output_path(input_path, token)
        return ResolvedOutput(output_path=Path(output_path), output_format=token)

    @staticmethod
    def compose_output_path(input_path: Union[str, Path], output_format: str) -> Path:
        """Replace the input's extension with the format's file extension."""
        return Path(input_path).with_suffix("." + canonical_extension(output_format))


def resolve_output(
    input_path: Union[str, Path],
    output_format: Optional[str] = None,
    output_path: Optional[Union[str, Path]] = None,
) -> ResolvedOutput:
    """Resolve output with a default OutputResolver."""
    return OutputResolver().resolve(input_path, output_format, output_path)
