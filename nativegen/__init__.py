"""Generate native-friendly mirror structs for annotated Python types."""

from .emitting import CodeEmitter, EmissionError
from .extractor import extract
from .markers import generate_native_data, has_native_marker
from .models import (
    ClassifiedFieldSet,
    DroppedField,
    FieldCategory,
    FieldDescriptor,
    GenerationTarget,
    SourceTypeDescriptor,
)
from .naming import derive_target
from .orchestrator import GenerationError, GenerationReport, Orchestrator
from .reflection import describe_type

__version__ = "0.1.0"

__all__ = [
    "ClassifiedFieldSet",
    "CodeEmitter",
    "DroppedField",
    "EmissionError",
    "FieldCategory",
    "FieldDescriptor",
    "GenerationError",
    "GenerationReport",
    "GenerationTarget",
    "Orchestrator",
    "SourceTypeDescriptor",
    "derive_target",
    "describe_type",
    "extract",
    "generate_native_data",
    "has_native_marker",
]
