"""Sandboxed model script execution for modelconv."""

from modelconv.execution.sandbox import (
    ScriptSandbox,
    SecurityValidator,
)

__all__ = [
    "ScriptSandbox",
    "SecurityValidator",
]
