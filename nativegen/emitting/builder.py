"""Builds mirror struct models and renders them through jinja templates."""

from __future__ import annotations

import ast
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

from jinja2 import Environment, FileSystemLoader

from ..classifier import ENUM_KEY_TYPE
from ..logging import get_logger
from ..models import (
    ClassifiedFieldSet,
    FieldCategory,
    FieldDescriptor,
    GenerationTarget,
    TypeRef,
    TypeShape,
)
from .constants import ALLOCATOR, RUNTIME_MODULE, TEMPLATE_NAME, ZERO_LITERALS

# Members every generated mirror defines; a field may not shadow them.
RESERVED_MEMBERS = frozenset({"default", "dispose"})


class EmissionError(RuntimeError):
    """Raised when a mirror struct cannot be rendered as valid Python."""


@dataclass(frozen=True)
class FieldDecl:
    """One attribute of the generated struct."""

    name: str
    annotation: str
    default: str


@dataclass(frozen=True)
class ConversionStep:
    """How the conversion constructor fills one attribute."""

    kind: str
    field: str
    element: str = ""
    key: str = ""
    value: str = ""
    widen_key: bool = False
    # Expressions copying one element, key or value out of the source.
    element_expr: str = ""
    key_expr: str = "key"
    value_expr: str = "value"


@dataclass(frozen=True)
class StructModel:
    """Intermediate representation of a mirror struct module."""

    type_name: str
    source_path: str
    source_expr: str
    slots: str
    runtime_module: str
    runtime_imports: Tuple[str, ...]
    imports: Tuple[Tuple[str, Tuple[str, ...]], ...]
    needs_numpy: bool
    allocator: str
    fields: Tuple[FieldDecl, ...]
    conversions: Tuple[ConversionStep, ...]
    releases: Tuple[str, ...]


class _ImportCollector:
    """Tracks the names generated code has to import.

    Each imported name is bound once; a second class with the same name from
    another module is imported under an alias built from its module path.
    """

    def __init__(self) -> None:
        self._modules: Dict[str, Dict[str, str]] = defaultdict(dict)
        self._bound: Dict[str, str] = {}
        self._runtime: Set[str] = set()
        self.needs_numpy = False

    def runtime(self, *names: str) -> None:
        self._runtime.update(names)

    def expression(self, module: str, qualname: str) -> str:
        if module == "builtins":
            return qualname
        if module == "numpy":
            self.needs_numpy = True
            return f"np.{qualname}"
        if not module or "<locals>" in qualname:
            raise EmissionError(f"{qualname} cannot be imported by generated code")
        head, dot, rest = qualname.partition(".")
        local = self._bind(module, head)
        return f"{local}{dot}{rest}"

    def ref(self, ref: TypeRef) -> str:
        return self.expression(ref.module, ref.qualname)

    def runtime_names(self) -> Tuple[str, ...]:
        return tuple(sorted(self._runtime))

    def module_imports(self) -> Tuple[Tuple[str, Tuple[str, ...]], ...]:
        return tuple(
            (
                module,
                tuple(
                    name if local == name else f"{name} as {local}"
                    for name, local in sorted(names.items())
                ),
            )
            for module, names in sorted(self._modules.items())
        )

    def _bind(self, module: str, name: str) -> str:
        names = self._modules[module]
        if name in names:
            return names[name]
        local = name
        if local in self._bound:
            local = f"{module.replace('.', '_')}_{name}"
            if local in self._bound:
                raise EmissionError(f"Cannot import {module}.{name} without shadowing {local}")
        names[name] = local
        self._bound[local] = module
        return local


class CodeEmitter:
    """Renders classified field sets into mirror struct source text."""

    def __init__(
        self,
        templates_dir: Path | None = None,
        *,
        template_name: str = TEMPLATE_NAME,
    ) -> None:
        self.templates_dir = templates_dir
        self.template_name = template_name
        self._env = self._create_env(templates_dir)
        self.logger = get_logger("emitter")

    def emit(self, target: GenerationTarget, fields: ClassifiedFieldSet) -> Optional[str]:
        """Return the module text for ``target``, or None when nothing qualifies."""
        if fields.is_empty:
            return None
        model = self.build_model(target, fields)
        template = self._env.get_template(self.template_name)
        text = template.render(model=model).rstrip("\n") + "\n"
        self._verify(target, text)
        self.logger.debug("Rendered %s with %d fields", target.generated_file_name, len(model.fields))
        return text

    def build_model(self, target: GenerationTarget, fields: ClassifiedFieldSet) -> StructModel:
        imports = _ImportCollector()
        source_expr = imports.expression(target.source_module, target.source_qualname)

        declarations: List[FieldDecl] = []
        conversions: List[ConversionStep] = []
        releases: List[str] = []

        for descriptor in fields:
            if descriptor.name in RESERVED_MEMBERS:
                raise EmissionError(
                    f"{target.source_type_name}.{descriptor.name} collides with a generated member"
                )
            declaration, step = self._describe_field(descriptor, imports)
            declarations.append(declaration)
            conversions.append(step)
            if descriptor.category in (FieldCategory.SEQUENCE, FieldCategory.MAPPING):
                releases.append(descriptor.name)

        return StructModel(
            type_name=target.generated_type_name,
            source_path=target.source_path,
            source_expr=source_expr,
            slots=repr(tuple(declaration.name for declaration in declarations)),
            runtime_module=RUNTIME_MODULE,
            runtime_imports=imports.runtime_names(),
            imports=imports.module_imports(),
            needs_numpy=imports.needs_numpy,
            allocator=ALLOCATOR,
            fields=tuple(declarations),
            conversions=tuple(conversions),
            releases=tuple(releases),
        )

    def _describe_field(
        self, descriptor: FieldDescriptor, imports: _ImportCollector
    ) -> Tuple[FieldDecl, ConversionStep]:
        name = descriptor.name
        category = descriptor.category

        if category is FieldCategory.SEQUENCE:
            imports.runtime("Allocator", "NativeArray")
            element_ref = descriptor.type.args[0]
            element = self._element_type(element_ref, imports)
            return (
                FieldDecl(name, f"NativeArray[{element}]", f"NativeArray.unallocated({element})"),
                ConversionStep(
                    "sequence",
                    name,
                    element=element,
                    element_expr=_copy_expression(element_ref, f"instance.{name}[i]"),
                ),
            )

        if category is FieldCategory.MAPPING:
            imports.runtime("Allocator", "NativeHashMap")
            key_ref, value_ref = descriptor.type.args
            widen_key = key_ref.is_enum
            key = ENUM_KEY_TYPE if widen_key else self._element_type(key_ref, imports)
            value = self._element_type(value_ref, imports)
            key_expr = "int(key.value)" if widen_key else _copy_expression(key_ref, "key")
            return (
                FieldDecl(
                    name,
                    f"NativeHashMap[{key}, {value}]",
                    f"NativeHashMap.unallocated({key}, {value})",
                ),
                ConversionStep(
                    "mapping",
                    name,
                    key=key,
                    value=value,
                    widen_key=widen_key,
                    key_expr=key_expr,
                    value_expr=_copy_expression(value_ref, "value"),
                ),
            )

        if category is FieldCategory.VECTOR3:
            imports.runtime("float3")
            return FieldDecl(name, "float3", "float3()"), ConversionStep("vector3", name)

        if category is FieldCategory.VECTOR2:
            imports.runtime("float2")
            return FieldDecl(name, "float2", "float2()"), ConversionStep("vector2", name)

        expression = imports.ref(descriptor.type)
        return (
            FieldDecl(name, expression, self._zero_value(descriptor.type, expression)),
            ConversionStep("scalar", name),
        )

    @staticmethod
    def _element_type(ref: TypeRef, imports: _ImportCollector) -> str:
        # Vector elements are stored as immutable float vectors.
        if ref.shape is TypeShape.VECTOR3:
            imports.runtime("float3")
            return "float3"
        if ref.shape is TypeShape.VECTOR2:
            imports.runtime("float2")
            return "float2"
        return imports.ref(ref)

    @staticmethod
    def _zero_value(ref: TypeRef, expression: str) -> str:
        if ref.is_enum:
            return f"next(iter({expression}))"
        if ref.module == "builtins":
            return ZERO_LITERALS[ref.name]
        return f"{expression}(0)"

    def _verify(self, target: GenerationTarget, text: str) -> None:
        try:
            ast.parse(text, filename=target.generated_file_name)
        except SyntaxError as exc:
            raise EmissionError(
                f"Rendered {target.generated_file_name} is not valid Python: {exc}"
            ) from exc

    def _create_env(self, templates_dir: Path | None) -> Environment:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        default_dir = str(Path(__file__).with_name("templates"))
        if default_dir not in directories:
            directories.append(default_dir)
        loader = FileSystemLoader(directories)
        return Environment(
            loader=loader,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )


def _copy_expression(ref: TypeRef, expression: str) -> str:
    if ref.shape is TypeShape.VECTOR3:
        return f"float3({expression}.x, {expression}.y, {expression}.z)"
    if ref.shape is TypeShape.VECTOR2:
        return f"float2({expression}.x, {expression}.y)"
    return expression


__all__ = [
    "CodeEmitter",
    "ConversionStep",
    "EmissionError",
    "FieldDecl",
    "RESERVED_MEMBERS",
    "StructModel",
]
