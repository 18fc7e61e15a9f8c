"""Modeling helpers exposed to model scripts.

Thin wrappers around ``trimesh.creation`` and ``trimesh.boolean`` with the
argument conventions model scripts use (``translate([x, y, z], obj)``).
"""

import math
from typing import Any, Iterable, Sequence, Union

import numpy as np
import trimesh

Shape = Union[trimesh.Trimesh, Sequence[trimesh.Trimesh]]


def _flatten(objects: Iterable[Any]) -> list[trimesh.Trimesh]:
    meshes = []
    for obj in objects:
        if isinstance(obj, (list, tuple)):
            meshes.extend(_flatten(obj))
        elif isinstance(obj, trimesh.Trimesh):
            meshes.append(obj)
        else:
            raise TypeError(f"Expected a mesh, got {type(obj).__name__}")
    return meshes


def _vector(value: Any) -> np.ndarray:
    if isinstance(value, (int, float)):
        return np.array([value, value, value], dtype=np.float64)
    vector = np.asarray(value, dtype=np.float64)
    if vector.shape != (3,):
        raise ValueError(f"Expected a 3-vector, got shape {vector.shape}")
    return vector


def combine(*objects: Shape) -> trimesh.Trimesh:
    """Concatenate meshes without boolean evaluation."""
    meshes = _flatten(objects)
    if not meshes:
        raise ValueError("Nothing to combine")
    if len(meshes) == 1:
        return meshes[0].copy()
    return trimesh.util.concatenate(meshes)


def cube(size: Any = 1.0, center: bool = False) -> trimesh.Trimesh:
    """Axis-aligned box; corner at the origin unless centered."""
    extents = _vector(size)
    mesh = trimesh.creation.box(extents=extents)
    if not center:
        mesh.apply_translation(extents / 2.0)
    return mesh


def sphere(r: float = 1.0, subdivisions: int = 2) -> trimesh.Trimesh:
    return trimesh.creation.icosphere(subdivisions=int(subdivisions), radius=float(r))


def cylinder(
    r: float = 1.0, h: float = 1.0, sections: int = 32, center: bool = False
) -> trimesh.Trimesh:
    """Cylinder along Z; base on the XY plane unless centered."""
    mesh = trimesh.creation.cylinder(radius=float(r), height=float(h), sections=int(sections))
    if not center:
        mesh.apply_translation([0.0, 0.0, float(h) / 2.0])
    return mesh


def polyhedron(points: Any, faces: Any = None, polygons: Any = None) -> trimesh.Trimesh:
    """Mesh from points and faces; polygons with more than 3 corners are fanned."""
    polygons = faces if faces is not None else polygons
    if polygons is None:
        raise ValueError("polyhedron() needs faces")

    triangles = []
    for polygon in polygons:
        polygon = [int(index) for index in polygon]
        if len(polygon) < 3:
            raise ValueError(f"Face needs at least 3 vertices, got {len(polygon)}")
        for k in range(1, len(polygon) - 1):
            triangles.append([polygon[0], polygon[k], polygon[k + 1]])

    return trimesh.Trimesh(
        vertices=np.asarray(points, dtype=np.float64).reshape((-1, 3)),
        faces=np.asarray(triangles, dtype=np.int64).reshape((-1, 3)),
        process=False,
    )


def translate(offset: Any, *objects: Shape) -> trimesh.Trimesh:
    mesh = combine(*objects)
    mesh.apply_translation(_vector(offset))
    return mesh


def scale(factor: Any, *objects: Shape) -> trimesh.Trimesh:
    mesh = combine(*objects)
    matrix = np.eye(4)
    matrix[:3, :3] = np.diag(_vector(factor))
    mesh.apply_transform(matrix)
    return mesh


def rotate(angles: Any, *objects: Shape) -> trimesh.Trimesh:
    """Rotate by XYZ euler angles in degrees."""
    ax, ay, az = (math.radians(a) for a in _vector(angles))
    mesh = combine(*objects)
    mesh.apply_transform(trimesh.transformations.euler_matrix(ax, ay, az, axes="sxyz"))
    return mesh


# CSG is delegated to the boolean engine trimesh is configured with
def union(*objects: Shape) -> trimesh.Trimesh:
    return trimesh.boolean.union(_flatten(objects))


def difference(*objects: Shape) -> trimesh.Trimesh:
    return trimesh.boolean.difference(_flatten(objects))


def intersection(*objects: Shape) -> trimesh.Trimesh:
    return trimesh.boolean.intersection(_flatten(objects))


HELPERS = {
    "combine": combine,
    "cube": cube,
    "sphere": sphere,
    "cylinder": cylinder,
    "polyhedron": polyhedron,
    "translate": translate,
    "scale": scale,
    "rotate": rotate,
    "union": union,
    "difference": difference,
    "intersection": intersection,
}
