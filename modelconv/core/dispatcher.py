"""Decoder/encoder selection and invocation."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from modelconv.core.exceptions import (
    DecodeError,
    EncodeError,
    ModelConvError,
    UnsupportedFormatError,
)
from modelconv.core.formats import lookup
from modelconv.utils.logging import get_logger

logger = get_logger(__name__)

# (raw_bytes, input_path, output_path) -> intermediate model
Decoder = Callable[[bytes, Optional[Path], Optional[Path]], Any]

# (intermediate model, metadata, parameters) -> payload
Encoder = Callable[[Any, "ConversionMetadata", Mapping[str, str]], bytes]


@dataclass(frozen=True)
class ConversionMetadata:
    """Producer and timestamp stamped into outputs that carry metadata."""

    producer: str
    date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def create(cls, producer: str, date: Optional[datetime] = None) -> "ConversionMetadata":
        return cls(producer=producer, date=date or datetime.now(timezone.utc))


@dataclass(frozen=True)
class ConversionResult:
    """Encoded payload and the format it was encoded in."""

    payload: bytes
    format: str

    def __len__(self) -> int:
        return len(self.payload)


class HandlerRegistry:
    """Maps format tokens to decoder and encoder callables."""

    def __init__(self) -> None:
        self._decoders: Dict[str, Decoder] = {}
        self._encoders: Dict[str, Encoder] = {}

    def register_decoder(self, token: str, decoder: Decoder) -> None:
        """Register a decoder for a known format token.

        Raises:
            UnsupportedFormatError: If the token is not in the format registry
        """
        self._decoders[lookup(token).token] = decoder

    def register_encoder(self, token: str, encoder: Encoder) -> None:
        """Register an encoder for a known format token.

        Raises:
            UnsupportedFormatError: If the token is not in the format registry
        """
        self._encoders[lookup(token).token] = encoder

    def decoder_for(self, token: str) -> Decoder:
        try:
            return self._decoders[token.lower()]
        except KeyError:
            raise UnsupportedFormatError(token, role="input format")

    def encoder_for(self, token: str) -> Encoder:
        try:
            return self._encoders[token.lower()]
        except KeyError:
            raise UnsupportedFormatError(token, role="output format")

    def decodable(self) -> list[str]:
        return sorted(self._decoders)

    def encodable(self) -> list[str]:
        return sorted(self._encoders)


class ConversionDispatcher:
    """Runs decode then encode for one conversion.

    Holds no state between calls; a dispatcher may be shared between
    conversions as long as its handlers are side-effect free.
    """

    def __init__(self, handlers: HandlerRegistry):
        """Initialize dispatcher.

        Args:
            handlers: Registry of decoders and encoders
        """
        self.handlers = handlers

    def convert(
        self,
        input_bytes: bytes,
        input_format: str,
        output_format: str,
        parameters: Mapping[str, str],
        metadata: ConversionMetadata,
        input_path: Optional[Path] = None,
        output_path: Optional[Path] = None,
    ) -> ConversionResult:
        """Convert a payload from one format to another.

        Args:
            input_bytes: Raw input file contents
            input_format: Input format token
            output_format: Output format token
            parameters: Named parameters for parametric models
            metadata: Producer/date to embed in the output
            input_path: Input file path, passed through to the decoder
            output_path: Output file path, passed through to the decoder

        Returns:
            ConversionResult

        Raises:
            UnsupportedFormatError: If no decoder or encoder is registered
            DecodeError: If the decoder fails
            EncodeError: If the encoder fails
        """
        input_format = input_format.lower()
        output_format = output_format.lower()

        # Resolve both handlers before doing any work
        decoder = self.handlers.decoder_for(input_format)
        encoder = self.handlers.encoder_for(output_format)

        try:
            model = decoder(input_bytes, input_path, output_path)
        except ModelConvError:
            raise
        except Exception as e:
            raise DecodeError(input_format, str(e)) from e

        logger.debug("decoded", input_format=input_format, model=type(model).__name__)

        try:
            payload = encoder(model, metadata, parameters)
        except ModelConvError:
            raise
        except Exception as e:
            raise EncodeError(output_format, str(e)) from e

        if isinstance(payload, str):
            payload = payload.encode("utf-8")

        logger.debug("encoded", output_format=output_format, size=len(payload))
        return ConversionResult(payload=bytes(payload), format=output_format)
