"""Default handler set."""

from typing import Optional

from modelconv.core.config import Config
from modelconv.core.dispatcher import HandlerRegistry
from modelconv.execution.sandbox import ScriptSandbox
from modelconv.handlers.decoders import (
    decode_amf,
    decode_json,
    decode_obj,
    decode_stl,
    make_script_decoder,
)
from modelconv.handlers.encoders import (
    encode_amf,
    encode_script,
    encode_stl_ascii,
    encode_stl_binary,
)


def create_handler_registry(
    config: Optional[Config] = None,
    sandbox: Optional[ScriptSandbox] = None,
) -> HandlerRegistry:
    """Create a registry with every built-in decoder and encoder.

    scad, gcode and svg input and dxf and svg output are recognized formats
    without a built-in handler; register one to enable them.

    Args:
        config: Configuration used to build the sandbox
        sandbox: Sandbox for model scripts (created from config if not provided)

    Returns:
        HandlerRegistry
    """
    config = config or Config()
    sandbox = sandbox or ScriptSandbox.from_config(config.sandbox)

    registry = HandlerRegistry()

    decode_script = make_script_decoder(sandbox)
    registry.register_decoder("jscad", decode_script)
    registry.register_decoder("js", decode_script)
    registry.register_decoder("stl", decode_stl)
    registry.register_decoder("obj", decode_obj)
    registry.register_decoder("amf", decode_amf)
    registry.register_decoder("json", decode_json)

    registry.register_encoder("jscad", encode_script)
    registry.register_encoder("js", encode_script)
    registry.register_encoder("stl", encode_stl_ascii)
    registry.register_encoder("stla", encode_stl_ascii)
    registry.register_encoder("stlb", encode_stl_binary)
    registry.register_encoder("amf", encode_amf)

    return registry
