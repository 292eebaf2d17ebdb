"""Helpers for building a registry from a user supplied module."""

from __future__ import annotations

import hashlib
import importlib
import importlib.util
import sys
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Union

from .errors import RegistryLoadError
from .registry import PraxisRegistry

RegistrySource = Union[str, Path, PraxisRegistry, Callable[[], PraxisRegistry]]

_DEFAULT_ATTRIBUTES = ("registry", "create_registry")


def load_registry(target: RegistrySource) -> PraxisRegistry:
    """Resolve ``target`` into a :class:`PraxisRegistry`.

    ``target`` may be a registry, a zero-argument factory, a dotted module
    path optionally followed by ``:attribute`` or the path of a ``.py``
    file. Modules without an explicit attribute are searched for
    ``registry`` and then ``create_registry``.
    """

    if isinstance(target, PraxisRegistry):
        return target
    if callable(target):
        return _coerce(target, repr(target))

    label = str(target)
    module_ref, _, attribute = label.partition(":")
    if isinstance(target, Path) and not attribute:
        module_ref = str(target)
    module = _import(module_ref, label)
    if attribute:
        if not hasattr(module, attribute):
            raise RegistryLoadError(label, f"module has no attribute '{attribute}'")
        return _coerce(getattr(module, attribute), label)
    for name in _DEFAULT_ATTRIBUTES:
        if hasattr(module, name):
            return _coerce(getattr(module, name), label)
    raise RegistryLoadError(label, "module defines neither 'registry' nor 'create_registry'")


def _import(module_ref: str, label: str) -> ModuleType:
    path = Path(module_ref)
    try:
        if path.suffix == ".py":
            return _import_file(path.resolve(), label)
        return importlib.import_module(module_ref)
    except RegistryLoadError:
        raise
    except Exception as exc:
        # Anything raised while executing the module body means it cannot be loaded.
        raise RegistryLoadError(label, f"{type(exc).__name__}: {exc}") from exc


def _import_file(path: Path, label: str) -> ModuleType:
    if not path.is_file():
        raise RegistryLoadError(label, "file does not exist")
    digest = hashlib.sha256(str(path).encode("utf8")).hexdigest()[:12]
    module_name = f"_praxis_registry_{path.stem}_{digest}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:  # pragma: no cover - defensive branch
        raise RegistryLoadError(label, "cannot create an import spec")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise
    return module


def _coerce(candidate: Any, label: str) -> PraxisRegistry:
    if isinstance(candidate, PraxisRegistry):
        return candidate
    if callable(candidate):
        try:
            produced = candidate()
        except Exception as exc:
            raise RegistryLoadError(label, f"{type(exc).__name__}: {exc}") from exc
        if isinstance(produced, PraxisRegistry):
            return produced
        raise RegistryLoadError(label, f"factory returned {type(produced).__name__}, not a PraxisRegistry")
    raise RegistryLoadError(label, f"expected a PraxisRegistry, got {type(candidate).__name__}")


__all__ = ["RegistrySource", "load_registry"]
