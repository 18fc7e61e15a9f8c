"""Encoders: intermediate model to output payload."""

import xml.etree.ElementTree as ET
from typing import Mapping

import trimesh
from trimesh.exchange.stl import export_stl, export_stl_ascii

from modelconv.core.dispatcher import ConversionMetadata
from modelconv.handlers.model import ModelSource, ScriptModel

STL_HEADER_SIZE = 80


def _mesh(model: ModelSource, parameters: Mapping[str, str]) -> trimesh.Trimesh:
    # Copy so stamping metadata never touches the decoder's mesh
    return model.to_mesh(parameters).copy()


def encode_stl_ascii(
    model: ModelSource, metadata: ConversionMetadata, parameters: Mapping[str, str]
) -> bytes:
    """ASCII STL; the solid name carries the producer."""
    mesh = _mesh(model, parameters)
    mesh.metadata["name"] = metadata.producer
    return export_stl_ascii(mesh).encode("ascii", "replace")


def encode_stl_binary(
    model: ModelSource, metadata: ConversionMetadata, parameters: Mapping[str, str]
) -> bytes:
    """Binary STL; the 80-byte header carries the producer."""
    data = export_stl(_mesh(model, parameters))
    header = metadata.producer.encode("ascii", "replace")[:STL_HEADER_SIZE]
    return header.ljust(STL_HEADER_SIZE, b" ") + data[STL_HEADER_SIZE:]


def encode_amf(
    model: ModelSource, metadata: ConversionMetadata, parameters: Mapping[str, str]
) -> bytes:
    """AMF 1.1 with producer and date metadata."""
    mesh = _mesh(model, parameters)

    root = ET.Element("amf", unit="millimeter", version="1.1")
    ET.SubElement(root, "metadata", type="producer").text = metadata.producer
    ET.SubElement(root, "metadata", type="date").text = metadata.date.isoformat()

    mesh_node = ET.SubElement(ET.SubElement(root, "object", id="0"), "mesh")
    vertices = ET.SubElement(mesh_node, "vertices")
    for vertex in mesh.vertices:
        coordinates = ET.SubElement(ET.SubElement(vertices, "vertex"), "coordinates")
        for axis, value in zip(("x", "y", "z"), vertex):
            ET.SubElement(coordinates, axis).text = repr(float(value))

    volume = ET.SubElement(mesh_node, "volume")
    for face in mesh.faces:
        triangle = ET.SubElement(volume, "triangle")
        for key, index in zip(("v1", "v2", "v3"), face):
            ET.SubElement(triangle, key).text = str(int(index))

    return ET.tostring(root, encoding="utf-8", xml_declaration=True)


def encode_script(
    model: ModelSource, metadata: ConversionMetadata, parameters: Mapping[str, str]
) -> bytes:
    """Model script; scripts pass through, meshes become a polyhedron."""
    if isinstance(model, ScriptModel):
        return model.source.encode("utf-8")

    mesh = _mesh(model, parameters)
    points = ",\n".join(
        "            [%s]" % ", ".join(repr(float(v)) for v in vertex) for vertex in mesh.vertices
    )
    faces = ",\n".join(
        "            [%s]" % ", ".join(str(int(i)) for i in face) for face in mesh.faces
    )
    lines = [
        f"# Produced by {metadata.producer} on {metadata.date.isoformat()}",
        "",
        "",
        "def main(params):",
        "    return polyhedron(",
        "        points=[",
        points,
        "        ],",
        "        faces=[",
        faces,
        "        ],",
        "    )",
        "",
    ]
    return "\n".join(lines).encode("utf-8")
