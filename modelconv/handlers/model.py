"""Intermediate model representations passed from decoders to encoders."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

import trimesh

from modelconv.execution.sandbox import ScriptSandbox


class ModelSource(ABC):
    """Format-agnostic model produced by a decoder."""

    @abstractmethod
    def to_mesh(self, parameters: Mapping[str, str]) -> trimesh.Trimesh:
        """Build the mesh, applying named parameters where the model is parametric."""
        pass


@dataclass(frozen=True)
class MeshModel(ModelSource):
    """Already-evaluated triangle mesh."""

    mesh: trimesh.Trimesh
    name: str = ""

    def to_mesh(self, parameters: Mapping[str, str]) -> trimesh.Trimesh:
        return self.mesh


@dataclass(frozen=True)
class ScriptModel(ModelSource):
    """Unevaluated model script; parameters apply at encode time."""

    source: str
    sandbox: ScriptSandbox
    path: Optional[Path] = None
    include_paths: Tuple[Path, ...] = ()

    def to_mesh(self, parameters: Mapping[str, str]) -> trimesh.Trimesh:
        return self.sandbox.evaluate_model_script(
            self.source,
            include_paths=self.include_paths,
            parameters=parameters,
            path=self.path,
        )
