"""Field descriptor extraction for source types."""

from __future__ import annotations

from typing import Dict, List

from .classifier import classify, drop_reason, element_types
from .logging import get_logger
from .models import (
    ClassifiedFieldSet,
    DroppedField,
    FieldCategory,
    FieldDescriptor,
    SourceTypeDescriptor,
)

_logger = get_logger("extractor")


def extract(source: SourceTypeDescriptor) -> ClassifiedFieldSet:
    """Classify every public field of ``source`` into its category bucket.

    Fields matching no category are left out of every bucket and listed in
    ``dropped`` instead. Extraction never raises for an unsupported field.
    """
    buckets: Dict[FieldCategory, List[FieldDescriptor]] = {
        category: [] for category in FieldCategory
    }
    dropped: List[DroppedField] = []

    for source_field in source.fields:
        category = classify(source_field.type)
        if category is None:
            reason = drop_reason(source_field.type)
            _logger.debug("%s.%s matched no category: %s", source.name, source_field.name, reason)
            dropped.append(
                DroppedField(
                    name=source_field.name,
                    type_name=source_field.type.display(),
                    reason=reason,
                )
            )
            continue
        _logger.debug("%s.%s -> %s", source.name, source_field.name, category.value)
        buckets[category].append(
            FieldDescriptor(
                name=source_field.name,
                category=category,
                element_types=element_types(category, source_field.type),
                type=source_field.type,
            )
        )

    return ClassifiedFieldSet(
        source=source,
        sequences=tuple(buckets[FieldCategory.SEQUENCE]),
        mappings=tuple(buckets[FieldCategory.MAPPING]),
        vector3s=tuple(buckets[FieldCategory.VECTOR3]),
        vector2s=tuple(buckets[FieldCategory.VECTOR2]),
        scalars=tuple(buckets[FieldCategory.SCALAR]),
        dropped=tuple(dropped),
    )


__all__ = ["extract"]
