"""Marker decorator for types that should receive a native mirror."""

from __future__ import annotations

from typing import Callable, Optional, TypeVar, overload

MARKER_ATTRIBUTE = "__nativegen_generate__"

_T = TypeVar("_T", bound=type)


@overload
def generate_native_data(cls: _T) -> _T: ...


@overload
def generate_native_data(cls: None = None) -> Callable[[_T], _T]: ...


def generate_native_data(cls: Optional[_T] = None):  # type: ignore[no-untyped-def]
    """Mark ``cls`` for native mirror generation.

    Usable bare (``@generate_native_data``) or called
    (``@generate_native_data()``).
    """

    def _mark(target: _T) -> _T:
        if not isinstance(target, type):
            raise TypeError("@generate_native_data can only decorate classes")
        setattr(target, MARKER_ATTRIBUTE, True)
        return target

    if cls is None:
        return _mark
    return _mark(cls)


def has_native_marker(obj: object) -> bool:
    """Return True when ``obj`` is a class marked in its own namespace."""
    if not isinstance(obj, type):
        return False
    return bool(vars(obj).get(MARKER_ATTRIBUTE, False))


__all__ = ["MARKER_ATTRIBUTE", "generate_native_data", "has_native_marker"]
