"""Shared constants for mirror struct emission."""

from __future__ import annotations

TEMPLATE_NAME = "native_struct.py.j2"

RUNTIME_MODULE = "nativegen.runtime"

# Allocator used by generated conversion constructors.
ALLOCATOR = "Allocator.PERSISTENT"

# Zero values of builtin scalars in a default-constructed mirror.
ZERO_LITERALS: dict[str, str] = {
    "bool": "False",
    "int": "0",
    "float": "0.0",
}


__all__ = ["ALLOCATOR", "RUNTIME_MODULE", "TEMPLATE_NAME", "ZERO_LITERALS"]
