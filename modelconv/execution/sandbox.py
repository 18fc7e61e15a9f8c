"""Sandboxed evaluation of model scripts."""

import ast
import importlib
import math
import signal
import threading
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, TypeVar, Union

import numpy as np
import trimesh

from modelconv.core.exceptions import (
    ModelConvError,
    ScriptExecutionError,
    ScriptValidationError,
    TimeoutError,
)
from modelconv.execution.primitives import HELPERS, combine
from modelconv.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# numpy functions and constants scripts see as ``np``; nothing that touches
# files, memory maps or numpy's submodules
NUMPY_NAMES = (
    "abs", "allclose", "amax", "amin", "arange", "arccos", "arcsin", "arctan",
    "arctan2", "argmax", "argmin", "array", "array_equal", "asarray", "ceil",
    "clip", "column_stack", "concatenate", "cos", "cross", "cumsum", "deg2rad",
    "degrees", "dot", "e", "exp", "eye", "float64", "floor", "full", "hstack",
    "hypot", "inf", "int64", "interp", "isclose", "linspace", "log", "log10",
    "matmul", "max", "maximum", "mean", "meshgrid", "min", "minimum", "mod",
    "ones", "outer", "pi", "power", "prod", "rad2deg", "radians", "repeat",
    "reshape", "round", "sign", "sin", "sort", "sqrt", "square", "stack", "sum",
    "tan", "tile", "transpose", "unique", "vstack", "where", "zeros",
)


def numpy_namespace() -> SimpleNamespace:
    """Curated view of numpy for model scripts."""
    return SimpleNamespace(**{name: getattr(np, name) for name in NUMPY_NAMES})


class SecurityValidator:
    """Validates code for security issues using AST analysis."""

    # Allowed modules for import
    ALLOWED_MODULES = {"math", "numpy"}

    # AST nodes that are forbidden
    FORBIDDEN_AST_NODES = {
        ast.Global,
        ast.Nonlocal,
        ast.ClassDef,
        ast.AsyncFunctionDef,
        ast.AsyncFor,
        ast.AsyncWith,
        ast.Await,
        ast.Yield,
        ast.YieldFrom,
        ast.GeneratorExp,
    }

    # Forbidden function names
    FORBIDDEN_FUNCTIONS = {
        "eval",
        "exec",
        "compile",
        "__import__",
        "open",
        "input",
        "breakpoint",
        "vars",
        "locals",
        "globals",
        "dir",
        "help",
        "type",
        "id",
        "getattr",
        "setattr",
        "delattr",
        "hasattr",
        "memoryview",
        # numpy and trimesh file access
        "load",
        "loadtxt",
        "genfromtxt",
        "fromfile",
        "tofile",
        "save",
        "savez",
        "savetxt",
        "memmap",
        "export",
    }

    # Attribute names that reach numpy file IO or raw memory
    FORBIDDEN_ATTR_NAMES = {
        "lib",
        "format",
        "DataSource",
        "open_memmap",
        "fromregex",
        "dump",
        "dumps",
        "ctypes",
    }

    # Forbidden attribute access patterns
    FORBIDDEN_ATTRS = {
        "__",  # Double underscore attributes
        "func_",  # Function internals
        "tb_",  # Traceback internals
        "f_",  # Frame internals
        "gi_",  # Generator internals
        "co_",  # Code internals
    }

    def validate(self, code: str) -> tuple[bool, Optional[str]]:
        """Validate code for security issues.

        Args:
            code: Script source to validate

        Returns:
            Tuple of (is_valid, error_message)
        """
        try:
            tree = ast.parse(code)
        except SyntaxError as e:
            return False, f"Syntax error: {e}"

        for node in ast.walk(tree):
            if type(node) in self.FORBIDDEN_AST_NODES:
                return False, f"Forbidden construct: {type(node).__name__}"

            if isinstance(node, (ast.Import, ast.ImportFrom)):
                if not self._validate_import(node):
                    module = getattr(node, "module", None) or node.names[0].name
                    return False, f"Forbidden import: {module}"

            if isinstance(node, ast.Call):
                if not self._validate_call(node):
                    return False, f"Forbidden function call: {self._get_call_name(node)}"

            if isinstance(node, ast.Name) and node.id.startswith("__"):
                return False, f"Forbidden name: {node.id}"

            if isinstance(node, ast.Attribute):
                if not self._validate_attribute(node):
                    return False, f"Forbidden attribute access: {node.attr}"

        return True, None

    def _validate_import(self, node: Union[ast.Import, ast.ImportFrom]) -> bool:
        """Validate import statements."""
        if isinstance(node, ast.Import):
            return all(alias.name in self.ALLOWED_MODULES for alias in node.names)
        return node.level == 0 and node.module in self.ALLOWED_MODULES

    def _validate_call(self, node: ast.Call) -> bool:
        """Validate function calls."""
        return self._get_call_name(node) not in self.FORBIDDEN_FUNCTIONS

    def _get_call_name(self, node: ast.Call) -> str:
        """Extract function name from call node."""
        if isinstance(node.func, ast.Name):
            return node.func.id
        elif isinstance(node.func, ast.Attribute):
            return node.func.attr
        return "unknown"

    def _validate_attribute(self, node: ast.Attribute) -> bool:
        """Validate attribute access.

        Forbidden function names are rejected as attributes too, so
        ``f = np.save`` cannot dodge the call check.
        """
        if node.attr in self.FORBIDDEN_ATTR_NAMES or node.attr in self.FORBIDDEN_FUNCTIONS:
            return False
        return not any(node.attr.startswith(pattern) for pattern in self.FORBIDDEN_ATTRS)


class ScriptSandbox:
    """Evaluates model scripts with whitelisted builtins and bounded includes.

    A model script defines ``main(params)`` returning a mesh or a list of
    meshes, and optionally ``get_parameter_definitions()`` returning a list
    of ``{"name", "type", "initial"}`` dicts. Scripts can pull in other
    scripts with ``include("name")``; included files must resolve inside one
    of the include roots.
    """

    SAFE_BUILTINS: dict[str, Any] = {
        "abs": abs,
        "all": all,
        "any": any,
        "bool": bool,
        "dict": dict,
        "enumerate": enumerate,
        "float": float,
        "int": int,
        "isinstance": isinstance,
        "len": len,
        "list": list,
        "map": map,
        "max": max,
        "min": min,
        "pow": pow,
        "range": range,
        "reversed": reversed,
        "round": round,
        "set": set,
        "sorted": sorted,
        "str": str,
        "sum": sum,
        "tuple": tuple,
        "zip": zip,
        "ValueError": ValueError,
    }

    TRUTHY = {"1", "true", "yes", "on"}

    def __init__(
        self,
        timeout: int = 30,
        allow_includes: bool = True,
        max_include_depth: int = 8,
        max_include_bytes: int = 1_000_000,
    ):
        """Initialize the sandbox.

        Args:
            timeout: Maximum execution time in seconds
            allow_includes: Whether include() is available to scripts
            max_include_depth: Maximum nesting of include() calls
            max_include_bytes: Maximum size of one included file
        """
        self.timeout = timeout
        self.allow_includes = allow_includes
        self.max_include_depth = max_include_depth
        self.max_include_bytes = max_include_bytes
        self.validator = SecurityValidator()

    @classmethod
    def from_config(cls, config: Any) -> "ScriptSandbox":
        """Create a sandbox from a SandboxConfig."""
        return cls(
            timeout=config.timeout,
            allow_includes=config.allow_includes,
            max_include_depth=config.max_include_depth,
            max_include_bytes=config.max_include_bytes,
        )

    def validate_code(self, code: str) -> None:
        """Validate code for security issues.

        Raises:
            ScriptValidationError: If code contains security issues
        """
        is_valid, error_msg = self.validator.validate(code)
        if not is_valid:
            raise ScriptValidationError(code, error_msg or "Unknown validation error")

    def create_namespace(self, include_paths: Sequence[Path] = ()) -> dict[str, Any]:
        """Create the globals a script executes in."""
        numpy_view = numpy_namespace()
        builtins = dict(self.SAFE_BUILTINS)
        builtins["__import__"] = self._make_import({"math": math, "numpy": numpy_view})

        namespace: dict[str, Any] = {
            "__builtins__": builtins,
            "math": math,
            "np": numpy_view,
            "numpy": numpy_view,
        }
        namespace.update(HELPERS)
        namespace["include"] = self._make_include(namespace, include_paths)
        return namespace

    def evaluate_model_script(
        self,
        source: str,
        include_paths: Sequence[Union[str, Path]] = (),
        parameters: Optional[Mapping[str, str]] = None,
        path: Optional[Path] = None,
    ) -> trimesh.Trimesh:
        """Run a model script and return the mesh its ``main`` builds.

        Args:
            source: Script source
            include_paths: Directories include() may read from
            parameters: Named parameters as given on the command line
            path: Script path, used in tracebacks only

        Returns:
            The resulting mesh

        Raises:
            ScriptValidationError: If the script or an include fails validation
            ScriptExecutionError: If execution fails or main() is missing
            TimeoutError: If execution times out
        """
        self.validate_code(source)
        roots = [Path(p) for p in include_paths]
        namespace = self.create_namespace(roots)
        filename = str(path) if path is not None else "<model>"

        def run() -> Any:
            exec(compile(source, filename, "exec"), namespace)
            main = namespace.get("main")
            if not callable(main):
                raise ScriptExecutionError(source, "script does not define main(params)")
            params = self.build_parameters(namespace, parameters or {}, source)
            return main(params)

        try:
            result = self.execute_with_timeout(run)
        except ModelConvError:
            raise
        except Exception as e:
            raise ScriptExecutionError(source, f"{type(e).__name__}: {e}") from e

        try:
            mesh = combine(result)
        except (TypeError, ValueError) as e:
            raise ScriptExecutionError(source, f"main() must return meshes: {e}") from e

        logger.debug("script_evaluated", script=filename, faces=len(mesh.faces))
        return mesh

    def build_parameters(
        self,
        namespace: Mapping[str, Any],
        parameters: Mapping[str, str],
        source: str = "",
    ) -> dict[str, Any]:
        """Merge parameter definitions with user values.

        Definitions provide defaults; user values are coerced to the type a
        definition declares. Undeclared parameters pass through as strings.
        """
        definitions = namespace.get("get_parameter_definitions")
        declared: dict[str, str] = {}
        params: dict[str, Any] = {}

        if callable(definitions):
            for definition in definitions() or []:
                name = definition["name"]
                declared[name] = str(definition.get("type", "text"))
                if "initial" in definition:
                    params[name] = definition["initial"]

        for name, value in parameters.items():
            params[name] = self._coerce(name, value, declared.get(name, "text"), source)
        return params

    def _coerce(self, name: str, value: str, kind: str, source: str) -> Any:
        try:
            if kind == "int":
                return int(value)
            if kind in ("float", "number"):
                return float(value)
        except ValueError:
            raise ScriptExecutionError(
                source, f"invalid {kind} value for parameter {name}: {value!r}"
            )
        if kind == "checkbox":
            return value.lower() in self.TRUTHY
        return value

    def _make_import(self, modules: Mapping[str, Any]) -> Callable[..., Any]:
        """Create the ``__import__`` scripts run with.

        Script imports get the entries of ``modules``. numpy imports its own
        submodules lazily from C through the calling frame's builtins, so
        ``numpy.*`` names resolve to the real modules; import statements
        naming them never pass validation.
        """

        def restricted_import(
            name: str,
            globals: Optional[dict] = None,
            locals: Optional[dict] = None,
            fromlist: Iterable[str] = (),
            level: int = 0,
        ) -> Any:
            if level == 0 and name in modules:
                return modules[name]
            if level == 0 and name.startswith("numpy."):
                module = importlib.import_module(name)
                return module if fromlist else np
            raise ImportError(f"import of {name!r} is not allowed")

        return restricted_import

    def _make_include(
        self, namespace: dict[str, Any], include_paths: Sequence[Path]
    ) -> Callable[[str], None]:
        stack: list[Path] = []

        def include(name: str) -> None:
            if not self.allow_includes:
                raise ScriptExecutionError("", "include() is disabled")
            if len(stack) >= self.max_include_depth:
                raise ScriptExecutionError(
                    "", f"include depth limit of {self.max_include_depth} exceeded"
                )

            path = self.resolve_include(name, include_paths)
            if path in stack:
                raise ScriptExecutionError("", f"include cycle detected at {path.name}")

            size = path.stat().st_size
            if size > self.max_include_bytes:
                raise ScriptExecutionError(
                    "", f"include {path.name} is {size} bytes, limit is {self.max_include_bytes}"
                )

            code = path.read_text(encoding="utf-8")
            self.validate_code(code)

            stack.append(path)
            try:
                exec(compile(code, str(path), "exec"), namespace)
            finally:
                stack.pop()

        return include

    def resolve_include(self, name: str, include_paths: Sequence[Path]) -> Path:
        """Resolve an include name inside the include roots.

        Raises:
            ScriptExecutionError: If the file is missing or outside every root
        """
        for root in include_paths:
            root = root.resolve()
            candidate = (root / name).resolve()
            if candidate.is_relative_to(root) and candidate.is_file():
                return candidate
        raise ScriptExecutionError("", f"cannot include <{name}>: not found in include paths")

    def execute_with_timeout(
        self,
        func: Callable[[], T],
        timeout: Optional[int] = None,
    ) -> T:
        """Execute a function with timeout.

        The alarm is only armed on the main thread of platforms with SIGALRM.

        Raises:
            TimeoutError: If execution times out
        """
        timeout = timeout or self.timeout
        if not hasattr(signal, "SIGALRM") or threading.current_thread() is not threading.main_thread():
            return func()

        def timeout_handler(signum: int, frame: Any) -> None:
            raise TimeoutError("Script execution", timeout)

        old_handler = signal.signal(signal.SIGALRM, timeout_handler)
        signal.alarm(timeout)

        try:
            return func()
        finally:
            signal.alarm(0)
            signal.signal(signal.SIGALRM, old_handler)
