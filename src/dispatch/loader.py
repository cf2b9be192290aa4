"""Load dispatch strategies from a module path or a standalone Python file."""

from __future__ import annotations

import importlib
import importlib.util
import inspect
from pathlib import Path

from . import AlgorithmLoadError
from .interface import ElevatorAlgorithm

REQUIRED_METHODS = ("assign_elevator_to_person", "decide_next_floor")


def load_algorithm(reference: str, **kwargs) -> ElevatorAlgorithm:
    """Instantiate the class named by ``reference``.

    ``reference`` is either ``package.module:ClassName`` or
    ``path/to/file.py:ClassName``.
    """

    module_ref, sep, class_name = reference.rpartition(":")
    if not sep or not module_ref or not class_name:
        raise AlgorithmLoadError(f"Expected 'module:Class' or 'file.py:Class', got '{reference}'")

    if module_ref.endswith(".py"):
        module = _load_file(Path(module_ref))
    else:
        try:
            module = importlib.import_module(module_ref)
        except ImportError as exc:
            raise AlgorithmLoadError(f"Cannot import module '{module_ref}': {exc}") from exc

    cls = getattr(module, class_name, None)
    if cls is None or not inspect.isclass(cls):
        raise AlgorithmLoadError(f"'{module_ref}' has no class named '{class_name}'")
    missing = [name for name in REQUIRED_METHODS if not callable(getattr(cls, name, None))]
    if missing:
        raise AlgorithmLoadError(f"{class_name} is missing {', '.join(missing)}")
    try:
        return cls(**kwargs)
    except TypeError as exc:
        raise AlgorithmLoadError(f"Cannot instantiate {class_name}: {exc}") from exc


def _load_file(path: Path):
    if not path.is_file():
        raise AlgorithmLoadError(f"No such file: {path}")
    spec = importlib.util.spec_from_file_location(f"elevator_plugin_{path.stem}", path)
    if spec is None or spec.loader is None:
        raise AlgorithmLoadError(f"Cannot load {path}")
    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        raise AlgorithmLoadError(f"Error while executing {path}: {exc}") from exc
    return module
