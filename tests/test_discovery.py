"""Tests for nativegen.discovery and the marker decorator."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path

import pytest

import nativegen.discovery as discovery_module
from nativegen.discovery import discover_types, marked_classes
from nativegen.markers import generate_native_data, has_native_marker
from tests._fixtures import sample_types
from tests._fixtures.sample_types import DerivedStats, Stats, Unit, Unmarked


class _FakeEntryPoint:
    def __init__(self, name: str, target: object) -> None:
        self.name = name
        self._target = target

    def load(self) -> object:
        if isinstance(self._target, Exception):
            raise self._target
        return self._target


def test_marker_is_not_inherited() -> None:
    assert has_native_marker(Unit)
    assert has_native_marker(Stats)
    assert not has_native_marker(DerivedStats)
    assert not has_native_marker(Unmarked)
    assert not has_native_marker(Unit())


def test_marker_rejects_non_classes() -> None:
    with pytest.raises(TypeError):
        generate_native_data(lambda: None)  # type: ignore[arg-type]


def test_marked_classes_follow_definition_order() -> None:
    assert [cls.__name__ for cls in marked_classes(sample_types)] == ["Unit", "Label", "Stats"]


def test_discover_types_imports_named_modules() -> None:
    descriptors = discover_types(["tests._fixtures.sample_types"], include_entry_points=False)

    assert [descriptor.name for descriptor in descriptors] == ["Unit", "Label", "Stats"]
    assert descriptors[0].path == "tests._fixtures.sample_types.Unit"


def test_discover_types_deduplicates(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        discovery_module,
        "_iter_entry_points",
        lambda: [_FakeEntryPoint("units", Unit), _FakeEntryPoint("module", sample_types)],
    )

    descriptors = discover_types(["tests._fixtures.sample_types"])

    assert [descriptor.name for descriptor in descriptors] == ["Unit", "Label", "Stats"]


def test_entry_points_may_name_classes(monkeypatch: pytest.MonkeyPatch) -> None:
    @generate_native_data
    @dataclass
    class Crate:
        weight: float = 0.0

    monkeypatch.setattr(
        discovery_module, "_iter_entry_points", lambda: [_FakeEntryPoint("crate", Crate)]
    )

    descriptors = discover_types()

    assert [descriptor.name for descriptor in descriptors] == ["Crate"]


def test_entry_point_errors_are_wrapped(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        discovery_module,
        "_iter_entry_points",
        lambda: [_FakeEntryPoint("broken", ImportError("no module"))],
    )

    with pytest.raises(RuntimeError, match="broken"):
        discover_types()


def test_entry_point_must_be_marked(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        discovery_module, "_iter_entry_points", lambda: [_FakeEntryPoint("plain", Unmarked)]
    )

    with pytest.raises(TypeError):
        discover_types()


def test_missing_module_raises_import_error() -> None:
    with pytest.raises(ImportError):
        discover_types(["tests._fixtures.does_not_exist"], include_entry_points=False)


def _write_broken_module(directory: Path, name: str) -> None:
    (directory / f"{name}.py").write_text(
        "from dataclasses import dataclass\n"
        "\n"
        "from nativegen import generate_native_data\n"
        "\n"
        "\n"
        "@generate_native_data\n"
        "@dataclass\n"
        "class Good:\n"
        "    level: int = 0\n"
        "\n"
        "\n"
        "@generate_native_data\n"
        "@dataclass\n"
        "class Bad:\n"
        "    other: 'Missing' = None\n",
        encoding="utf-8",
    )


def test_search_paths_are_removed_after_discovery(tmp_path: Path) -> None:
    (tmp_path / "discovery_path_shapes.py").write_text("VALUE = 1\n", encoding="utf-8")
    before = list(sys.path)

    assert discover_types(
        ["discovery_path_shapes"], include_entry_points=False, search_paths=[tmp_path]
    ) == []

    assert sys.path == before


def test_unresolvable_class_raises_without_handler(tmp_path: Path) -> None:
    _write_broken_module(tmp_path, "discovery_broken_raise")

    with pytest.raises(RuntimeError, match="discovery_broken_raise.Bad"):
        discover_types(
            ["discovery_broken_raise"], include_entry_points=False, search_paths=[tmp_path]
        )


def test_unresolvable_class_is_reported_and_skipped(tmp_path: Path) -> None:
    _write_broken_module(tmp_path, "discovery_broken_skip")
    failures: list[tuple[str, str]] = []

    descriptors = discover_types(
        ["discovery_broken_skip"],
        include_entry_points=False,
        search_paths=[tmp_path],
        on_error=lambda cls, exc: failures.append((cls.__name__, str(exc))),
    )

    assert [descriptor.name for descriptor in descriptors] == ["Good"]
    assert len(failures) == 1
    assert failures[0][0] == "Bad"
    assert "Missing" in failures[0][1]
