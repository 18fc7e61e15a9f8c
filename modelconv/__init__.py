"""modelconv - convert 3D model files between formats."""

__version__ = "0.1.0"
