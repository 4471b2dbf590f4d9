"""Build source type descriptors from live Python classes."""

from __future__ import annotations

import dataclasses
import enum
import typing
from typing import Any, Dict, List, Tuple

import numpy as np

from .mathtypes import Vector2, Vector3
from .models import SourceField, SourceTypeDescriptor, TypeRef, TypeShape

# Builtins plus numpy's fixed-width scalars.
PRIMITIVE_TYPES: Tuple[type, ...] = (
    bool,
    int,
    float,
    np.bool_,
    np.int8,
    np.int16,
    np.int32,
    np.int64,
    np.uint8,
    np.uint16,
    np.uint32,
    np.uint64,
    np.float16,
    np.float32,
    np.float64,
)


def describe_type(cls: type) -> SourceTypeDescriptor:
    """Return the descriptor of ``cls`` and its public instance fields."""
    if not isinstance(cls, type):
        raise TypeError(f"Expected a class, got {cls!r}")
    try:
        hints = typing.get_type_hints(cls)
    except Exception as exc:
        raise TypeError(f"Cannot resolve annotations of {cls.__qualname__}: {exc}") from exc

    fields = [
        SourceField(name=name, type=describe_annotation(annotation))
        for name, annotation in _public_instance_fields(cls, hints)
    ]
    return SourceTypeDescriptor(
        name=cls.__name__,
        module=cls.__module__,
        qualname=cls.__qualname__,
        fields=tuple(fields),
    )


def describe_annotation(annotation: Any) -> TypeRef:
    """Describe a resolved annotation as a :class:`TypeRef`."""
    origin = typing.get_origin(annotation)
    args = typing.get_args(annotation)

    if origin is list or annotation is list:
        return _builtin_ref("list", TypeShape.SEQUENCE, args)
    if origin is dict or annotation is dict:
        return _builtin_ref("dict", TypeShape.MAPPING, args)
    if origin is not None:
        name = str(annotation).replace("typing.", "")
        return TypeRef(name=name, module="", qualname=name, shape=TypeShape.OTHER)

    if annotation is Vector3:
        return _class_ref(annotation, TypeShape.VECTOR3)
    if annotation is Vector2:
        return _class_ref(annotation, TypeShape.VECTOR2)
    if isinstance(annotation, type) and issubclass(annotation, enum.Enum):
        return _enum_ref(annotation)
    if annotation in PRIMITIVE_TYPES:
        return _class_ref(annotation, TypeShape.PRIMITIVE)
    if isinstance(annotation, type):
        return _class_ref(annotation, TypeShape.OTHER)

    name = str(annotation).replace("typing.", "")
    return TypeRef(name=name, module="", qualname=name, shape=TypeShape.OTHER)


def _public_instance_fields(cls: type, hints: Dict[str, Any]) -> List[Tuple[str, Any]]:
    if dataclasses.is_dataclass(cls):
        names = [f.name for f in dataclasses.fields(cls)]
    else:
        names = [
            name
            for name, annotation in hints.items()
            if typing.get_origin(annotation) is not typing.ClassVar
            and annotation is not typing.ClassVar
            and not isinstance(annotation, dataclasses.InitVar)
        ]
    return [(name, hints[name]) for name in names if not name.startswith("_") and name in hints]


def _builtin_ref(name: str, shape: TypeShape, args: Tuple[Any, ...]) -> TypeRef:
    return TypeRef(
        name=name,
        module="builtins",
        qualname=name,
        shape=shape,
        args=tuple(describe_annotation(arg) for arg in args),
    )


def _class_ref(cls: type, shape: TypeShape) -> TypeRef:
    return TypeRef(name=cls.__name__, module=cls.__module__, qualname=cls.__qualname__, shape=shape)


def _enum_ref(cls: type) -> TypeRef:
    members = list(cls)  # type: ignore[call-overload]
    int_valued = bool(members) and all(
        isinstance(member.value, int) and not isinstance(member.value, bool) for member in members
    )
    return TypeRef(
        name=cls.__name__,
        module=cls.__module__,
        qualname=cls.__qualname__,
        shape=TypeShape.ENUM,
        int_valued=int_valued,
    )


__all__ = ["PRIMITIVE_TYPES", "describe_annotation", "describe_type"]
