"""Shared test fixtures and configuration."""

import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator

import pytest
import trimesh

from modelconv.core import Config, ConversionMetadata
from modelconv.execution import ScriptSandbox

BOX_SCRIPT = '''
def get_parameter_definitions():
    return [
        {"name": "width", "type": "float", "initial": 1.0},
        {"name": "depth", "type": "float", "initial": 1.0},
    ]


def main(params):
    return cube(size=[params["width"], params["depth"], 1.0])
'''


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture
def test_config() -> Config:
    """Create a test configuration."""
    return Config(
        conversion={"producer": "modelconv-test"},
        sandbox={"timeout": 5},
    )


@pytest.fixture
def sandbox() -> ScriptSandbox:
    """Create a sandbox with a short timeout."""
    return ScriptSandbox(timeout=5)


@pytest.fixture
def metadata() -> ConversionMetadata:
    """Fixed metadata so outputs are deterministic."""
    return ConversionMetadata(
        producer="modelconv-test",
        date=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
    )


@pytest.fixture
def simple_box_mesh() -> trimesh.Trimesh:
    """Create a simple box mesh for testing."""
    return trimesh.creation.box(extents=[1, 1, 1])


@pytest.fixture
def sample_stl_path(temp_dir: Path, simple_box_mesh: trimesh.Trimesh) -> Path:
    """Create a sample binary STL file."""
    stl_path = temp_dir / "test_box.stl"
    simple_box_mesh.export(stl_path)
    return stl_path


@pytest.fixture
def box_script() -> str:
    """Parametric box script with width and depth parameters."""
    return BOX_SCRIPT


@pytest.fixture
def sample_script_path(temp_dir: Path) -> Path:
    """Create a parametric model script."""
    script_path = temp_dir / "box.jscad"
    script_path.write_text(BOX_SCRIPT)
    return script_path


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that test multiple components"
    )
