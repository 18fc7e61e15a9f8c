"""Unit tests for the conversion dispatcher."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from modelconv.core.dispatcher import ConversionDispatcher, ConversionResult, HandlerRegistry
from modelconv.core.exceptions import DecodeError, EncodeError, UnsupportedFormatError


@pytest.fixture
def registry() -> HandlerRegistry:
    """Registry with recording fake handlers."""
    registry = HandlerRegistry()
    registry.register_decoder("jscad", lambda raw, input_path, output_path: ("model", raw))
    registry.register_encoder("stla", lambda model, metadata, params: b"ascii:" + model[1])
    registry.register_encoder("stlb", lambda model, metadata, params: b"binary:" + model[1])
    return registry


class TestHandlerRegistry:
    """Test handler registration and lookup."""

    def test_register_unknown_token(self):
        registry = HandlerRegistry()

        with pytest.raises(UnsupportedFormatError):
            registry.register_decoder("step", lambda *args: None)

    def test_lookup_is_case_insensitive(self, registry):
        assert registry.decoder_for("JSCAD") is registry.decoder_for("jscad")

    def test_missing_decoder(self, registry):
        with pytest.raises(UnsupportedFormatError) as exc_info:
            registry.decoder_for("scad")

        assert exc_info.value.role == "input format"

    def test_missing_encoder(self, registry):
        with pytest.raises(UnsupportedFormatError) as exc_info:
            registry.encoder_for("dxf")

        assert exc_info.value.role == "output format"

    def test_listing(self, registry):
        assert registry.decodable() == ["jscad"]
        assert registry.encodable() == ["stla", "stlb"]


class TestConversionDispatcher:
    """Test decode/encode dispatch."""

    def test_convert(self, registry, metadata):
        dispatcher = ConversionDispatcher(registry)

        result = dispatcher.convert(b"src", "jscad", "stla", {}, metadata)

        assert result == ConversionResult(payload=b"ascii:src", format="stla")
        assert len(result) == len(b"ascii:src")

    def test_binary_variant_uses_binary_encoder(self, registry, metadata):
        dispatcher = ConversionDispatcher(registry)

        result = dispatcher.convert(b"src", "jscad", "stlb", {}, metadata)

        assert result.payload == b"binary:src"
        assert result.format == "stlb"

    def test_handlers_receive_arguments(self, metadata):
        decoder = MagicMock(return_value="model")
        encoder = MagicMock(return_value=b"out")
        registry = HandlerRegistry()
        registry.register_decoder("stl", decoder)
        registry.register_encoder("amf", encoder)
        params = {"width": "5"}

        ConversionDispatcher(registry).convert(
            b"raw", "stl", "amf", params, metadata,
            input_path=Path("in.stl"), output_path=Path("out.amf"),
        )

        decoder.assert_called_once_with(b"raw", Path("in.stl"), Path("out.amf"))
        encoder.assert_called_once_with("model", metadata, params)

    def test_string_payload_is_encoded(self, metadata):
        registry = HandlerRegistry()
        registry.register_decoder("jscad", lambda *args: "model")
        registry.register_encoder("jscad", lambda *args: "text")

        result = ConversionDispatcher(registry).convert(b"", "jscad", "jscad", {}, metadata)

        assert result.payload == b"text"

    def test_unsupported_input(self, registry, metadata):
        with pytest.raises(UnsupportedFormatError):
            ConversionDispatcher(registry).convert(b"", "gcode", "stla", {}, metadata)

    def test_unsupported_output_is_checked_before_decoding(self, metadata):
        decoder = MagicMock()
        registry = HandlerRegistry()
        registry.register_decoder("stl", decoder)

        with pytest.raises(UnsupportedFormatError):
            ConversionDispatcher(registry).convert(b"", "stl", "svg", {}, metadata)

        decoder.assert_not_called()

    def test_decoder_failure_is_wrapped(self, metadata):
        def broken(raw, input_path, output_path):
            raise ValueError("bad bytes")

        registry = HandlerRegistry()
        registry.register_decoder("stl", broken)
        registry.register_encoder("amf", lambda *args: b"")

        with pytest.raises(DecodeError) as exc_info:
            ConversionDispatcher(registry).convert(b"", "stl", "amf", {}, metadata)

        assert "bad bytes" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_encoder_failure_is_wrapped(self, registry, metadata):
        def broken(model, metadata, params):
            raise RuntimeError("no output")

        registry.register_encoder("amf", broken)

        with pytest.raises(EncodeError) as exc_info:
            ConversionDispatcher(registry).convert(b"", "jscad", "amf", {}, metadata)

        assert exc_info.value.format_token == "amf"

    def test_conversions_are_independent(self, registry, metadata):
        dispatcher = ConversionDispatcher(registry)

        first = dispatcher.convert(b"one", "jscad", "stla", {}, metadata)
        second = dispatcher.convert(b"two", "jscad", "stlb", {}, metadata)

        assert first.payload == b"ascii:one"
        assert second.payload == b"binary:two"
