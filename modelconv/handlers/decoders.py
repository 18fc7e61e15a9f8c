"""Decoders: raw file bytes to an intermediate model."""

import io
import json
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Callable, Optional

import numpy as np
import trimesh

from modelconv.core.exceptions import DecodeError
from modelconv.execution.sandbox import ScriptSandbox
from modelconv.handlers.model import MeshModel, ModelSource, ScriptModel


def _name(input_path: Optional[Path]) -> str:
    return input_path.stem if input_path is not None else ""


def _load_mesh(raw: bytes, file_type: str) -> trimesh.Trimesh:
    if not raw:
        raise DecodeError(file_type, "file is empty")

    mesh = trimesh.load_mesh(io.BytesIO(raw), file_type=file_type)
    if not isinstance(mesh, trimesh.Trimesh) or len(mesh.faces) == 0:
        raise DecodeError(file_type, "no geometry found in file")
    return mesh


def decode_stl(
    raw: bytes, input_path: Optional[Path] = None, output_path: Optional[Path] = None
) -> ModelSource:
    """Decode ASCII or binary STL; trimesh detects the variant."""
    return MeshModel(mesh=_load_mesh(raw, "stl"), name=_name(input_path))


def decode_obj(
    raw: bytes, input_path: Optional[Path] = None, output_path: Optional[Path] = None
) -> ModelSource:
    return MeshModel(mesh=_load_mesh(raw, "obj"), name=_name(input_path))


def decode_json(
    raw: bytes, input_path: Optional[Path] = None, output_path: Optional[Path] = None
) -> ModelSource:
    """Decode a JSON object with ``vertices`` and ``faces`` arrays."""
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodeError("json", str(e))

    if not isinstance(data, dict) or "vertices" not in data or "faces" not in data:
        raise DecodeError("json", "expected an object with 'vertices' and 'faces'")

    mesh = trimesh.Trimesh(
        vertices=np.asarray(data["vertices"], dtype=np.float64).reshape((-1, 3)),
        faces=np.asarray(data["faces"], dtype=np.int64).reshape((-1, 3)),
    )
    return MeshModel(mesh=mesh, name=_name(input_path))


def decode_amf(
    raw: bytes, input_path: Optional[Path] = None, output_path: Optional[Path] = None
) -> ModelSource:
    """Decode AMF; every object's volumes are merged into one mesh."""
    try:
        root = ET.fromstring(raw)
    except ET.ParseError as e:
        raise DecodeError("amf", str(e))

    if root.tag != "amf":
        raise DecodeError("amf", f"unexpected root element <{root.tag}>")

    scale = {"millimeter": 1.0, "inch": 25.4, "feet": 304.8, "meter": 1000.0, "micron": 0.001}
    factor = scale.get(root.get("unit", "millimeter"), 1.0)

    meshes = []
    for obj in root.iter("object"):
        for mesh_node in obj.iter("mesh"):
            vertices = [
                [float(coords.findtext(axis, "0")) for axis in ("x", "y", "z")]
                for coords in mesh_node.iter("coordinates")
            ]
            faces = [
                [int(triangle.findtext(key)) for key in ("v1", "v2", "v3")]
                for triangle in mesh_node.iter("triangle")
            ]
            if vertices and faces:
                meshes.append(
                    trimesh.Trimesh(
                        vertices=np.asarray(vertices, dtype=np.float64) * factor,
                        faces=np.asarray(faces, dtype=np.int64),
                    )
                )

    if not meshes:
        raise DecodeError("amf", "no geometry found in file")
    mesh = meshes[0] if len(meshes) == 1 else trimesh.util.concatenate(meshes)
    return MeshModel(mesh=mesh, name=_name(input_path))


def make_script_decoder(
    sandbox: ScriptSandbox,
) -> Callable[[bytes, Optional[Path], Optional[Path]], ModelSource]:
    """Create a decoder for model scripts bound to a sandbox.

    The script is validated immediately and evaluated later by the encoder,
    once named parameters are known. Includes resolve against the script's
    own directory.
    """

    def decode_script(
        raw: bytes, input_path: Optional[Path] = None, output_path: Optional[Path] = None
    ) -> ModelSource:
        try:
            source = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError("script", str(e))

        sandbox.validate_code(source)
        include_paths = (input_path.parent,) if input_path is not None else ()
        return ScriptModel(
            source=source,
            sandbox=sandbox,
            path=input_path,
            include_paths=include_paths,
        )

    return decode_script
