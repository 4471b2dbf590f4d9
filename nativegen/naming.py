"""Naming rule for generated mirror types and files."""

from __future__ import annotations

from .models import GenerationTarget, SourceTypeDescriptor

DEFAULT_TYPE_PREFIX = "Native"
DEFAULT_FILE_SUFFIX = ".py"


def derive_target(
    source: SourceTypeDescriptor,
    *,
    type_prefix: str = DEFAULT_TYPE_PREFIX,
    file_suffix: str = DEFAULT_FILE_SUFFIX,
) -> GenerationTarget:
    """Return the generation target for ``source``.

    The generated type is ``type_prefix + source.name`` and its file is the
    generated type name followed by ``file_suffix``.
    """
    type_name = f"{type_prefix}{source.name}"
    if not type_name.isidentifier():
        raise ValueError(f"Generated type name {type_name!r} is not a valid identifier")
    return GenerationTarget(
        generated_type_name=type_name,
        generated_file_name=f"{type_name}{file_suffix}",
        source_type_name=source.name,
        source_module=source.module,
        source_qualname=source.qualname,
    )


__all__ = ["DEFAULT_FILE_SUFFIX", "DEFAULT_TYPE_PREFIX", "derive_target"]
