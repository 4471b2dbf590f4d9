"""Mirror struct emission."""

from __future__ import annotations

from .builder import CodeEmitter, ConversionStep, EmissionError, FieldDecl, StructModel

__all__ = ["CodeEmitter", "ConversionStep", "EmissionError", "FieldDecl", "StructModel"]
