"""Capability query returning source types marked for native mirrors."""

from __future__ import annotations

import importlib
import sys
from importlib import metadata
from pathlib import Path
from types import ModuleType
from typing import Callable, Iterable, List, Optional, Sequence, Set, Tuple

from .logging import get_logger
from .markers import has_native_marker
from .models import SourceTypeDescriptor
from .reflection import describe_type

_ENTRY_POINT_GROUP = "nativegen.types"

_logger = get_logger("discovery")


def discover_types(
    modules: Sequence[str] = (),
    *,
    include_entry_points: bool = True,
    search_paths: Sequence[Path] = (),
    on_error: Optional[Callable[[type, TypeError], None]] = None,
) -> List[SourceTypeDescriptor]:
    """Return descriptors for every marked class reachable from ``modules``.

    Classes are returned module by module in definition order, followed by
    those registered under the ``nativegen.types`` entry-point group. A class
    reached twice is reported once.

    ``search_paths`` are visible on ``sys.path`` only while modules and entry
    points load. A class whose annotations cannot be resolved is passed to
    ``on_error`` and skipped; without a handler it raises ``RuntimeError``.
    """
    saved_path = list(sys.path)
    for path in search_paths:
        entry = str(Path(path).resolve())
        if entry not in sys.path:
            sys.path.insert(0, entry)
    try:
        classes = _collect_classes(modules, include_entry_points)
    finally:
        sys.path[:] = saved_path

    descriptors: List[SourceTypeDescriptor] = []
    seen: Set[Tuple[str, str]] = set()
    for cls in classes:
        key = (cls.__module__, cls.__qualname__)
        if key in seen:
            continue
        seen.add(key)
        try:
            descriptors.append(describe_type(cls))
        except TypeError as exc:
            if on_error is None:
                raise RuntimeError(f"Cannot describe {cls.__module__}.{cls.__qualname__}: {exc}") from exc
            _logger.error("Skipping %s.%s: %s", cls.__module__, cls.__qualname__, exc)
            on_error(cls, exc)

    _logger.debug("Discovered %d marked types", len(descriptors))
    return descriptors


def _collect_classes(modules: Sequence[str], include_entry_points: bool) -> List[type]:
    classes: List[type] = []
    for module_name in modules:
        module = importlib.import_module(module_name)
        classes.extend(marked_classes(module))

    if include_entry_points:
        for entry in _iter_entry_points():
            try:
                loaded = entry.load()
            except Exception as exc:
                raise RuntimeError(f"Failed to load type entry point '{entry.name}': {exc}") from exc
            classes.extend(_coerce_classes(entry.name, loaded))
    return classes


def marked_classes(module: ModuleType) -> List[type]:
    """Return marked classes defined in ``module``, in definition order."""
    return [
        obj
        for obj in vars(module).values()
        if has_native_marker(obj) and obj.__module__ == module.__name__
    ]


def _coerce_classes(name: str, obj: object) -> List[type]:
    if isinstance(obj, ModuleType):
        return marked_classes(obj)
    if has_native_marker(obj):
        return [obj]  # type: ignore[list-item]
    raise TypeError(f"Type entry point '{name}' must be a module or a marked class")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = ["discover_types", "marked_classes"]
