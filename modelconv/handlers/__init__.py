"""Built-in format handlers for modelconv."""

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
from modelconv.handlers.model import MeshModel, ModelSource, ScriptModel
from modelconv.handlers.registry import create_handler_registry

__all__ = [
    "ModelSource",
    "MeshModel",
    "ScriptModel",
    "create_handler_registry",
    "decode_amf",
    "decode_json",
    "decode_obj",
    "decode_stl",
    "make_script_decoder",
    "encode_amf",
    "encode_script",
    "encode_stl_ascii",
    "encode_stl_binary",
]
