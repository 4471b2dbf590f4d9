"""CLI entrypoints for nativegen commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigError
from .logging import configure_logging
from .orchestrator import GenerationError, GenerationReport, Orchestrator


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_discovery_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Project root holding .nativegen.yml (defaults to current directory).",
    )
    parser.add_argument(
        "-m",
        "--module",
        dest="modules",
        action="append",
        default=[],
        help="Module to scan for marked types; may be repeated.",
    )
    parser.add_argument(
        "--no-entry-points",
        dest="entry_points",
        action="store_false",
        default=None,
        help="Ignore types registered under the nativegen.types entry-point group.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nativegen",
        description="Generate native-friendly mirror structs for marked Python types.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write logs, with timestamps, to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Regenerate mirror structs for every marked type.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_discovery_options(generate_parser)
    generate_parser.add_argument(
        "-o",
        "--output-dir",
        default=None,
        help="Directory for generated files, relative to the project root.",
    )
    generate_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print generated sources without writing them.",
    )

    inspect_parser = subparsers.add_parser(
        "inspect",
        help="Show how each marked type's fields are classified.",
    )
    _add_verbose_option(inspect_parser, suppress_default=True)
    _add_discovery_options(inspect_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for nativegen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    orchestrator = Orchestrator()

    if args.command == "generate":
        try:
            report = orchestrator.run_project(
                args.path,
                modules=args.modules,
                output_dir=args.output_dir,
                include_entry_points=args.entry_points,
                dry_run=bool(args.dry_run),
                raise_on_error=False,
            )
        except (ConfigError, ImportError) as exc:
            parser.exit(1, f"nativegen generate failed: {exc}\n")
        except (RuntimeError, TypeError) as exc:
            parser.exit(1, f"nativegen generate failed: {exc}\nRun with --verbose for more details.\n")
        _print_report(report, dry_run=bool(args.dry_run))
        if not report.ok:
            parser.exit(1, f"{GenerationError(report)}\n")
    elif args.command == "inspect":
        try:
            project = orchestrator.for_project(args.path)
            candidates = project.discover(args.modules, include_entry_points=args.entry_points)
            classified = project.inspect(candidates)
        except (ConfigError, ImportError) as exc:
            parser.exit(1, f"nativegen inspect failed: {exc}\n")
        except (RuntimeError, TypeError, ValueError) as exc:
            parser.exit(1, f"nativegen inspect failed: {exc}\nRun with --verbose for more details.\n")
        if not classified and not project.discovery_failures:
            print("No marked types found")
        for target, fields in classified:
            print(f"{fields.source.path} -> {target.generated_type_name} ({target.generated_file_name})")
            for descriptor in fields:
                elements = ", ".join(descriptor.element_types)
                suffix = f"[{elements}]" if elements else ""
                print(f"  {descriptor.name}: {descriptor.category.value}{suffix}")
            for dropped in fields.dropped:
                print(f"  {dropped.name}: dropped ({dropped.reason})")
        for failure in project.discovery_failures:
            print(f"Failed {failure.source_name}: {failure.error}", file=sys.stderr)
        if project.discovery_failures:
            parser.exit(1)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _print_report(report: GenerationReport, *, dry_run: bool) -> None:
    for outcome in report.previewed:
        if outcome.target is None or outcome.text is None:
            continue
        print(f"# --- {outcome.target.generated_file_name} ---")
        print(outcome.text, end="")
    for outcome in report.written:
        print(f"Generated {_relativize(outcome.path)}")
    for outcome in report.skipped:
        print(f"Skipped {outcome.source_name} (no supported fields)")
    for outcome in report.failed:
        print(f"Failed {outcome.source_name}: {outcome.error}", file=sys.stderr)
    if not report.outcomes:
        message = "No marked types found"
        if dry_run:
            message += " (dry-run)"
        print(message)


def _relativize(path: Path | None) -> str:
    if path is None:
        return ""
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
