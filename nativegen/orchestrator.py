"""Generation driver coordinating discovery, extraction, emission and writing."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from jinja2 import TemplateError

from .config import GeneratorConfig, load_config
from .discovery import discover_types
from .emitting import CodeEmitter, EmissionError
from .extractor import extract
from .logging import get_logger
from .models import ClassifiedFieldSet, DroppedField, GenerationTarget, SourceTypeDescriptor
from .naming import derive_target
from .writer import FileSink


class OutcomeStatus(enum.Enum):
    WRITTEN = "written"
    PREVIEWED = "previewed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class TypeOutcome:
    """Result of generating the mirror for one source type."""

    source_name: str
    status: OutcomeStatus
    target: Optional[GenerationTarget] = None
    path: Optional[Path] = None
    text: Optional[str] = None
    dropped: Tuple[DroppedField, ...] = ()
    error: Optional[str] = None


@dataclass
class GenerationReport:
    """Per-type outcomes of one generation run, in processing order."""

    outcomes: List[TypeOutcome] = field(default_factory=list)

    def _with_status(self, status: OutcomeStatus) -> List[TypeOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status is status]

    @property
    def written(self) -> List[TypeOutcome]:
        return self._with_status(OutcomeStatus.WRITTEN)

    @property
    def previewed(self) -> List[TypeOutcome]:
        return self._with_status(OutcomeStatus.PREVIEWED)

    @property
    def skipped(self) -> List[TypeOutcome]:
        return self._with_status(OutcomeStatus.SKIPPED)

    @property
    def failed(self) -> List[TypeOutcome]:
        return self._with_status(OutcomeStatus.FAILED)

    @property
    def ok(self) -> bool:
        return not self.failed


class GenerationError(RuntimeError):
    """Raised after a run in which at least one type failed."""

    def __init__(self, report: GenerationReport) -> None:
        names = ", ".join(outcome.source_name for outcome in report.failed)
        super().__init__(f"Generation failed for: {names}")
        self.report = report


class Orchestrator:
    """Runs the generation pipeline for a batch of source types."""

    def __init__(
        self,
        config: GeneratorConfig | None = None,
        *,
        emitter: CodeEmitter | None = None,
        sink: FileSink | None = None,
    ) -> None:
        self.config = config or GeneratorConfig.defaults(Path.cwd())
        self.emitter = emitter or CodeEmitter(self.config.templates_dir)
        self.sink = sink or FileSink(self.config.output_dir)
        self.logger = get_logger("orchestrator")
        # Marked classes that discovery could not describe, as failed outcomes.
        self.discovery_failures: List[TypeOutcome] = []

    def run(
        self,
        candidates: Iterable[SourceTypeDescriptor],
        *,
        dry_run: bool = False,
        raise_on_error: bool = True,
    ) -> GenerationReport:
        """Generate a mirror for every candidate, in order.

        A failure for one type is recorded and does not stop the batch or undo
        files already written. When ``raise_on_error`` is set, a
        :class:`GenerationError` carrying the report is raised at the end if
        any type failed.
        """
        report = GenerationReport()
        directory_ready = False

        for source in candidates:
            try:
                target = self._derive_target(source)
            except ValueError as exc:
                self.logger.error("Cannot name mirror for %s: %s", source.name, exc)
                report.outcomes.append(
                    TypeOutcome(source.name, OutcomeStatus.FAILED, error=str(exc))
                )
                continue

            fields = extract(source)
            self._report_dropped(source, fields)

            try:
                text = self.emitter.emit(target, fields)
            except (EmissionError, TemplateError) as exc:
                self.logger.error("Emission failed for %s: %s", source.name, exc)
                report.outcomes.append(
                    TypeOutcome(
                        source.name,
                        OutcomeStatus.FAILED,
                        target=target,
                        dropped=fields.dropped,
                        error=str(exc),
                    )
                )
                continue

            if text is None:
                self.logger.info("No supported fields on %s; nothing generated", source.name)
                report.outcomes.append(
                    TypeOutcome(source.name, OutcomeStatus.SKIPPED, target=target, dropped=fields.dropped)
                )
                continue

            if dry_run:
                report.outcomes.append(
                    TypeOutcome(
                        source.name,
                        OutcomeStatus.PREVIEWED,
                        target=target,
                        path=self.sink.output_dir / target.generated_file_name,
                        text=text,
                        dropped=fields.dropped,
                    )
                )
                continue

            try:
                if not directory_ready:
                    self.sink.ensure_directory()
                    directory_ready = True
                path = self.sink.write(target.generated_file_name, text)
            except OSError as exc:
                self.logger.error("Failed to write %s: %s", target.generated_file_name, exc)
                report.outcomes.append(
                    TypeOutcome(
                        source.name,
                        OutcomeStatus.FAILED,
                        target=target,
                        text=text,
                        dropped=fields.dropped,
                        error=str(exc),
                    )
                )
                continue

            self.logger.info("Struct %s generated and saved to %s", target.generated_type_name, path)
            report.outcomes.append(
                TypeOutcome(
                    source.name,
                    OutcomeStatus.WRITTEN,
                    target=target,
                    path=path,
                    text=text,
                    dropped=fields.dropped,
                )
            )

        if report.written:
            self.sink.refresh()

        self.logger.debug(
            "Run finished: %d written, %d skipped, %d failed",
            len(report.written),
            len(report.skipped),
            len(report.failed),
        )
        if raise_on_error and report.failed:
            raise GenerationError(report)
        return report

    def inspect(
        self, candidates: Iterable[SourceTypeDescriptor]
    ) -> List[Tuple[GenerationTarget, ClassifiedFieldSet]]:
        """Classify every candidate without emitting or writing anything."""
        return [(self._derive_target(source), extract(source)) for source in candidates]

    def run_project(
        self,
        path: str | Path,
        *,
        modules: Sequence[str] | None = None,
        output_dir: str | Path | None = None,
        include_entry_points: bool | None = None,
        dry_run: bool = False,
        raise_on_error: bool = True,
    ) -> GenerationReport:
        """Load ``.nativegen.yml`` under ``path``, discover marked types and run.

        Marked classes that cannot be described are reported as failed
        outcomes ahead of the generated ones.
        """
        project = self.for_project(path, output_dir=output_dir)
        candidates = project.discover(modules, include_entry_points=include_entry_points)
        report = project.run(candidates, dry_run=dry_run, raise_on_error=False)
        report.outcomes[:0] = project.discovery_failures
        if raise_on_error and report.failed:
            raise GenerationError(report)
        return report

    def for_project(self, path: str | Path, *, output_dir: str | Path | None = None) -> "Orchestrator":
        """Return an orchestrator configured from the project at ``path``."""
        root = Path(path).expanduser().resolve()
        config = load_config(root)
        if output_dir is not None:
            config.output_dir = root / Path(output_dir)
        self.logger.debug("Loaded configuration for %s", config.root)
        return Orchestrator(config)

    def discover(
        self,
        modules: Sequence[str] | None = None,
        *,
        include_entry_points: bool | None = None,
    ) -> List[SourceTypeDescriptor]:
        """Discover marked types from configured and explicitly named modules."""
        names = list(self.config.discovery.modules)
        for name in modules or ():
            if name not in names:
                names.append(name)
        if include_entry_points is None:
            include_entry_points = self.config.discovery.entry_points
        candidates = discover_types(
            names,
            include_entry_points=include_entry_points,
            search_paths=[self.config.root],
            on_error=self._record_discovery_failure,
        )
        self.logger.info("Discovered %d types marked for native generation", len(candidates))
        return candidates

    def _record_discovery_failure(self, cls: type, exc: TypeError) -> None:
        self.discovery_failures.append(
            TypeOutcome(cls.__name__, OutcomeStatus.FAILED, error=str(exc))
        )

    def _derive_target(self, source: SourceTypeDescriptor) -> GenerationTarget:
        naming = self.config.naming
        return derive_target(source, type_prefix=naming.type_prefix, file_suffix=naming.file_suffix)

    def _report_dropped(self, source: SourceTypeDescriptor, fields: ClassifiedFieldSet) -> None:
        silent = self.config.drop_policy == "silent"
        for dropped in fields.dropped:
            message = "Field %s.%s (%s) left out of the mirror: %s"
            args = (source.name, dropped.name, dropped.type_name, dropped.reason)
            if silent:
                self.logger.debug(message, *args)
            else:
                self.logger.warning(message, *args)


__all__ = [
    "GenerationError",
    "GenerationReport",
    "Orchestrator",
    "OutcomeStatus",
    "TypeOutcome",
]
