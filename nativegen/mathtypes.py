"""Managed vector types recognised as 2D/3D vector fields.

Vectors are immutable values, so they can key a mapping and are never shared
mutably between a source object and its mirror.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Vector2:
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class Vector3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


__all__ = ["Vector2", "Vector3"]
