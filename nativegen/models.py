"""Core data models shared across nativegen components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Tuple


class TypeShape(Enum):
    """Structural shape of a field's declared type."""

    SEQUENCE = "sequence"
    MAPPING = "mapping"
    VECTOR2 = "vector2"
    VECTOR3 = "vector3"
    PRIMITIVE = "primitive"
    ENUM = "enum"
    OTHER = "other"


_VALUE_SHAPES = frozenset(
    {TypeShape.PRIMITIVE, TypeShape.ENUM, TypeShape.VECTOR2, TypeShape.VECTOR3}
)


@dataclass(frozen=True)
class TypeRef:
    """Read-only description of a declared field type."""

    name: str
    module: str
    qualname: str
    shape: TypeShape
    args: Tuple["TypeRef", ...] = ()
    # Enum whose members all carry integer values.
    int_valued: bool = False

    @property
    def is_value_type(self) -> bool:
        return self.shape in _VALUE_SHAPES

    @property
    def is_enum(self) -> bool:
        return self.shape is TypeShape.ENUM

    @property
    def is_vector(self) -> bool:
        return self.shape in (TypeShape.VECTOR2, TypeShape.VECTOR3)

    def display(self) -> str:
        """Return a readable rendering such as ``dict[Faction, int]``."""
        if not self.args:
            return self.name
        inner = ", ".join(arg.display() for arg in self.args)
        return f"{self.name}[{inner}]"


@dataclass(frozen=True)
class SourceField:
    """Public instance field of a source type."""

    name: str
    type: TypeRef


@dataclass(frozen=True)
class SourceTypeDescriptor:
    """Read-only view of one source type and its public instance fields."""

    name: str
    module: str
    qualname: str
    fields: Tuple[SourceField, ...] = ()

    @property
    def path(self) -> str:
        return f"{self.module}.{self.qualname}"


class FieldCategory(Enum):
    """Structural bucket of a classified field, in emission order."""

    SEQUENCE = "sequence"
    MAPPING = "mapping"
    VECTOR3 = "vector3"
    VECTOR2 = "vector2"
    SCALAR = "scalar"


@dataclass(frozen=True)
class FieldDescriptor:
    """A field assigned to exactly one category.

    ``element_types`` holds the recorded element type names: one for
    sequences, two for mappings (an enum key is recorded as ``int``) and none
    for the remaining categories. ``type`` keeps the full declared type so
    emission can still see the enum behind a widened key.
    """

    name: str
    category: FieldCategory
    element_types: Tuple[str, ...]
    type: TypeRef


@dataclass(frozen=True)
class DroppedField:
    """A field excluded from the mirror, with the reason it was excluded."""

    name: str
    type_name: str
    reason: str


@dataclass(frozen=True)
class ClassifiedFieldSet:
    """The five category buckets for one source type."""

    source: SourceTypeDescriptor
    sequences: Tuple[FieldDescriptor, ...] = ()
    mappings: Tuple[FieldDescriptor, ...] = ()
    vector3s: Tuple[FieldDescriptor, ...] = ()
    vector2s: Tuple[FieldDescriptor, ...] = ()
    scalars: Tuple[FieldDescriptor, ...] = ()
    dropped: Tuple[DroppedField, ...] = field(default=())

    @property
    def is_empty(self) -> bool:
        return not any(self.buckets())

    def buckets(self) -> Tuple[Tuple[FieldDescriptor, ...], ...]:
        return (self.sequences, self.mappings, self.vector3s, self.vector2s, self.scalars)

    def bucket(self, category: FieldCategory) -> Tuple[FieldDescriptor, ...]:
        return {
            FieldCategory.SEQUENCE: self.sequences,
            FieldCategory.MAPPING: self.mappings,
            FieldCategory.VECTOR3: self.vector3s,
            FieldCategory.VECTOR2: self.vector2s,
            FieldCategory.SCALAR: self.scalars,
        }[category]

    def __iter__(self) -> Iterator[FieldDescriptor]:
        for bucket in self.buckets():
            yield from bucket


@dataclass(frozen=True)
class GenerationTarget:
    """Identifiers of the mirror generated for one source type."""

    generated_type_name: str
    generated_file_name: str
    source_type_name: str
    source_module: str
    source_qualname: str

    @property
    def source_path(self) -> str:
        return f"{self.source_module}.{self.source_qualname}"
