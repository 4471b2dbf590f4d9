"""Ordered decision table assigning field types to categories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from .models import FieldCategory, TypeRef, TypeShape

# Emitted key type for enum-keyed mappings.
ENUM_KEY_TYPE = "int"


@dataclass(frozen=True)
class Rule:
    """One row of the decision table."""

    category: FieldCategory
    matches: Callable[[TypeRef], bool]


def _is_sequence(ref: TypeRef) -> bool:
    return ref.shape is TypeShape.SEQUENCE and len(ref.args) == 1 and ref.args[0].is_value_type


def _is_key_type(ref: TypeRef) -> bool:
    # Enum keys are widened to int, so their members need integer values.
    return ref.is_value_type and (not ref.is_enum or ref.int_valued)


def _is_mapping(ref: TypeRef) -> bool:
    return (
        ref.shape is TypeShape.MAPPING
        and len(ref.args) == 2
        and _is_key_type(ref.args[0])
        and ref.args[1].is_value_type
    )


def _is_vector3(ref: TypeRef) -> bool:
    return ref.shape is TypeShape.VECTOR3


def _is_vector2(ref: TypeRef) -> bool:
    return ref.shape is TypeShape.VECTOR2


def _is_scalar(ref: TypeRef) -> bool:
    return ref.shape in (TypeShape.PRIMITIVE, TypeShape.ENUM)


DECISION_TABLE: Tuple[Rule, ...] = (
    Rule(FieldCategory.SEQUENCE, _is_sequence),
    Rule(FieldCategory.MAPPING, _is_mapping),
    Rule(FieldCategory.VECTOR3, _is_vector3),
    Rule(FieldCategory.VECTOR2, _is_vector2),
    Rule(FieldCategory.SCALAR, _is_scalar),
)


def classify(ref: TypeRef) -> Optional[FieldCategory]:
    """Return the first matching category for ``ref``, or None to drop it."""
    for rule in DECISION_TABLE:
        if rule.matches(ref):
            return rule.category
    return None


def element_types(category: FieldCategory, ref: TypeRef) -> Tuple[str, ...]:
    """Return the element type names recorded for a classified field."""
    if category is FieldCategory.SEQUENCE:
        return (ref.args[0].name,)
    if category is FieldCategory.MAPPING:
        key, value = ref.args
        key_name = ENUM_KEY_TYPE if key.is_enum else key.name
        return (key_name, value.name)
    return ()


def drop_reason(ref: TypeRef) -> str:
    """Explain why ``ref`` matched no category."""
    if ref.shape is TypeShape.SEQUENCE:
        if len(ref.args) != 1:
            return "list without an element type"
        return f"list element {ref.args[0].display()} is not a value type"
    if ref.shape is TypeShape.MAPPING:
        if len(ref.args) != 2:
            return "dict without key and value types"
        key = ref.args[0]
        if key.is_enum and not key.int_valued:
            return f"dict key {key.display()} has non-integer enum values"
        rejected = [arg.display() for arg in ref.args if not arg.is_value_type]
        return f"dict {'/'.join(rejected)} is not a value type"
    return f"unsupported type {ref.display()}"


__all__ = [
    "DECISION_TABLE",
    "ENUM_KEY_TYPE",
    "Rule",
    "classify",
    "drop_reason",
    "element_types",
]
