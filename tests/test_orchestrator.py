"""Tests for nativegen.orchestrator."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from nativegen.config import GeneratorConfig
from nativegen.orchestrator import GenerationError, Orchestrator, OutcomeStatus
from nativegen.reflection import describe_type
from nativegen.writer import FileSink
from tests._fixtures.sample_types import Label, Stats, Unit


class FailingSink(FileSink):
    """Sink that refuses to write one file name."""

    def __init__(self, output_dir: Path, failing: str) -> None:
        super().__init__(output_dir)
        self.failing = failing
        self.refreshed = 0

    def write(self, file_name: str, text: str) -> Path:
        if file_name == self.failing:
            raise PermissionError(f"read-only: {file_name}")
        return super().write(file_name, text)

    def refresh(self) -> list[Path]:
        self.refreshed += 1
        return super().refresh()


def _candidates():
    return [describe_type(Unit), describe_type(Label), describe_type(Stats)]


def test_run_writes_one_file_per_supported_type(
    orchestrator: Orchestrator, generator_config: GeneratorConfig
) -> None:
    report = orchestrator.run(_candidates())

    output_dir = generator_config.output_dir
    assert (output_dir / "NativeUnit.py").exists()
    assert (output_dir / "NativeStats.py").exists()
    assert not (output_dir / "NativeLabel.py").exists()
    assert [outcome.source_name for outcome in report.written] == ["Unit", "Stats"]
    assert [outcome.source_name for outcome in report.skipped] == ["Label"]
    assert report.ok


def test_run_preserves_candidate_order(orchestrator: Orchestrator) -> None:
    report = orchestrator.run(_candidates())

    assert [outcome.source_name for outcome in report.outcomes] == ["Unit", "Label", "Stats"]
    assert [outcome.status for outcome in report.outcomes] == [
        OutcomeStatus.WRITTEN,
        OutcomeStatus.SKIPPED,
        OutcomeStatus.WRITTEN,
    ]


def test_empty_type_writes_nothing(
    orchestrator: Orchestrator, generator_config: GeneratorConfig
) -> None:
    report = orchestrator.run([describe_type(Label)])

    assert not generator_config.output_dir.exists()
    assert report.written == []
    assert report.skipped[0].text is None


def test_rerun_overwrites_previous_output(
    orchestrator: Orchestrator, generator_config: GeneratorConfig
) -> None:
    orchestrator.run([describe_type(Stats)])
    target = generator_config.output_dir / "NativeStats.py"
    original = target.read_text(encoding="utf-8")
    target.write_text("# stale\n", encoding="utf-8")

    orchestrator.run([describe_type(Stats)])

    assert target.read_text(encoding="utf-8") == original


def test_dry_run_previews_without_writing(
    orchestrator: Orchestrator, generator_config: GeneratorConfig
) -> None:
    report = orchestrator.run(_candidates(), dry_run=True)

    assert not generator_config.output_dir.exists()
    assert [outcome.source_name for outcome in report.previewed] == ["Unit", "Stats"]
    assert report.previewed[0].text is not None
    assert "class NativeUnit:" in report.previewed[0].text


def test_write_failure_does_not_stop_the_batch(generator_config: GeneratorConfig) -> None:
    sink = FailingSink(generator_config.output_dir, failing="NativeUnit.py")
    orchestrator = Orchestrator(generator_config, sink=sink)

    with pytest.raises(GenerationError) as excinfo:
        orchestrator.run(_candidates())

    report = excinfo.value.report
    assert [outcome.source_name for outcome in report.failed] == ["Unit"]
    assert "read-only" in (report.failed[0].error or "")
    assert [outcome.source_name for outcome in report.written] == ["Stats"]
    assert (generator_config.output_dir / "NativeStats.py").exists()
    assert sink.refreshed == 1


def test_failures_can_be_returned_instead_of_raised(generator_config: GeneratorConfig) -> None:
    sink = FailingSink(generator_config.output_dir, failing="NativeStats.py")
    orchestrator = Orchestrator(generator_config, sink=sink)

    report = orchestrator.run(_candidates(), raise_on_error=False)

    assert not report.ok
    assert [outcome.source_name for outcome in report.failed] == ["Stats"]
    assert (generator_config.output_dir / "NativeUnit.py").exists()


def test_emission_failure_is_recorded(orchestrator: Orchestrator) -> None:
    class Local:
        value: int

    report = orchestrator.run([describe_type(Local), describe_type(Stats)], raise_on_error=False)

    assert [outcome.source_name for outcome in report.failed] == ["Local"]
    assert [outcome.source_name for outcome in report.written] == ["Stats"]


def test_refresh_skipped_when_nothing_written(generator_config: GeneratorConfig) -> None:
    sink = FailingSink(generator_config.output_dir, failing="")
    Orchestrator(generator_config, sink=sink).run([describe_type(Label)])

    assert sink.refreshed == 0


def test_dropped_fields_are_reported_as_warnings(
    orchestrator: Orchestrator, caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(logging.getLogger("nativegen"), "propagate", True)

    with caplog.at_level(logging.WARNING, logger="nativegen"):
        report = orchestrator.run([describe_type(Unit)])

    messages = [record.getMessage() for record in caplog.records if record.levelno == logging.WARNING]
    assert any("Unit.name (str)" in message for message in messages)
    assert any("Unit.tags" in message for message in messages)
    assert [dropped.name for dropped in report.written[0].dropped] == ["name", "tags", "squads", "target"]


def test_silent_drop_policy_keeps_warnings_quiet(
    generator_config: GeneratorConfig, caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(logging.getLogger("nativegen"), "propagate", True)
    generator_config.drop_policy = "silent"

    with caplog.at_level(logging.WARNING, logger="nativegen"):
        Orchestrator(generator_config).run([describe_type(Unit)])

    assert not [record for record in caplog.records if record.levelno == logging.WARNING]


def test_invalid_prefix_fails_only_that_type(generator_config: GeneratorConfig) -> None:
    generator_config.naming.type_prefix = "9"

    report = Orchestrator(generator_config).run([describe_type(Stats)], raise_on_error=False)

    assert report.failed[0].source_name == "Stats"
    assert report.failed[0].target is None


def test_inspect_classifies_without_writing(
    orchestrator: Orchestrator, generator_config: GeneratorConfig
) -> None:
    results = orchestrator.inspect(_candidates())

    assert [target.generated_type_name for target, _ in results] == [
        "NativeUnit",
        "NativeLabel",
        "NativeStats",
    ]
    assert results[1][1].is_empty
    assert not generator_config.output_dir.exists()


def test_run_project_uses_configuration(tmp_path: Path) -> None:
    (tmp_path / "orchestrator_shapes.py").write_text(
        "from dataclasses import dataclass\n"
        "from nativegen import generate_native_data\n"
        "\n"
        "\n"
        "@generate_native_data\n"
        "@dataclass\n"
        "class Box:\n"
        "    width: float = 1.0\n"
        "    height: float = 1.0\n",
        encoding="utf-8",
    )
    (tmp_path / ".nativegen.yml").write_text(
        "output_dir: build/mirrors\n"
        "naming:\n"
        "  type_prefix: Flat\n"
        "discovery:\n"
        "  modules: [orchestrator_shapes]\n"
        "  entry_points: false\n",
        encoding="utf-8",
    )

    report = Orchestrator().run_project(tmp_path)

    assert [outcome.path for outcome in report.written] == [tmp_path / "build" / "mirrors" / "FlatBox.py"]
    text = (tmp_path / "build" / "mirrors" / "FlatBox.py").read_text(encoding="utf-8")
    assert "from orchestrator_shapes import Box" in text
    assert "class FlatBox:" in text


def _write_mixed_project(root: Path, module: str) -> None:
    (root / f"{module}.py").write_text(
        "from dataclasses import dataclass\n"
        "from nativegen import generate_native_data\n"
        "\n"
        "\n"
        "@generate_native_data\n"
        "@dataclass\n"
        "class Box:\n"
        "    width: float = 1.0\n"
        "\n"
        "\n"
        "@generate_native_data\n"
        "@dataclass\n"
        "class Broken:\n"
        "    owner: 'Nowhere' = None\n",
        encoding="utf-8",
    )
    (root / ".nativegen.yml").write_text(
        f"discovery:\n  modules: [{module}]\n  entry_points: false\n", encoding="utf-8"
    )


def test_run_project_reports_undescribable_types(tmp_path: Path) -> None:
    _write_mixed_project(tmp_path, "orchestrator_mixed_report")

    report = Orchestrator().run_project(tmp_path, raise_on_error=False)

    assert [outcome.source_name for outcome in report.written] == ["Box"]
    assert [outcome.source_name for outcome in report.failed] == ["Broken"]
    assert report.outcomes[0].status is OutcomeStatus.FAILED
    assert (tmp_path / "generated" / "native_data" / "NativeBox.py").exists()


def test_run_project_raises_after_writing_the_rest(tmp_path: Path) -> None:
    _write_mixed_project(tmp_path, "orchestrator_mixed_raise")

    with pytest.raises(GenerationError) as excinfo:
        Orchestrator().run_project(tmp_path)

    assert [outcome.source_name for outcome in excinfo.value.report.failed] == ["Broken"]
    assert (tmp_path / "generated" / "native_data" / "NativeBox.py").exists()
