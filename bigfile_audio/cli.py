"""Command-line interface for the BigFile audio extractor.

WHY: Users need one command that takes their game folder (or individual
archive volumes) and leaves a categorized tree of banks, dialogue WEMs,
and MIDI files behind, optionally split and converted for playback.

HOW: Uses argparse to accept input paths, language selection, asset
kinds, output directory, and post-processing flags. Volumes are scanned
through session.run_volumes(). Status messages go to stderr; logging is
configured from --verbose or BIGFILE_LOG_LEVEL.

RULES:
- Positional arguments: game folders or volume files; none → prompt for a folder
- Folders expand to their BigFile_PC.d* volumes
- --kinds: comma-separated extractor keys (default: all registered)
- --languages: comma-separated codes or ALL (default from BIGFILE_LANGUAGES)
- Exit 1 if arguments are invalid or any volume could not be read
- Exit 130 on Ctrl-C (the running scans are cancelled first)
- Status output goes to stderr (not stdout)
"""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from pathlib import Path
from typing import List, Optional

from bigfile_audio import __version__
from bigfile_audio.bnk import split_bank_file
from bigfile_audio.config import (
    DEFAULT_FLATTEN_DIALOGUE,
    DEFAULT_JOBS,
    DEFAULT_LANGUAGES,
    DEFAULT_LOG_LEVEL,
    DEFAULT_OUTPUT_DIR,
    LANGUAGE_MAP,
    VOLUME_GLOB,
    parse_language_list,
)
from bigfile_audio.convert import convert_tree
from bigfile_audio.core.errors import BankFormatError
from bigfile_audio.core.ir import ExtractionRecord, Outcome, VolumeReport
from bigfile_audio.extractors import EXTRACTORS
from bigfile_audio.output import OutputTree
from bigfile_audio.report import build_report, write_report
from bigfile_audio.session import discover_volumes, run_volumes


def _status(msg: str) -> None:
    """Print a status message to stderr."""
    print(msg, file=sys.stderr, flush=True)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, DEFAULT_LOG_LEVEL, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _parse_kinds(text: Optional[str]) -> List[str]:
    """Validate a comma-separated kind list against EXTRACTORS.

    Raises:
        ValueError: naming the unknown kind and the available ones.
    """
    if not text:
        return list(EXTRACTORS)
    kinds = [k.strip() for k in text.split(",") if k.strip()]
    for kind in kinds:
        if kind not in EXTRACTORS:
            raise ValueError(
                "Unknown kind '{}'. Available kinds: {}".format(kind, ", ".join(EXTRACTORS))
            )
    return kinds


def _collect_volumes(inputs: List[str]) -> List[Path]:
    volumes: List[Path] = []
    for raw in inputs:
        path = Path(raw).expanduser()
        found = discover_volumes(path, VOLUME_GLOB)
        if not found:
            _status("  No archive volumes matching {} in {}".format(VOLUME_GLOB, path))
        volumes.extend(found)
    return volumes


def _summarize(report: VolumeReport) -> str:
    if report.error:
        return "{}: unavailable ({})".format(report.volume, report.error)
    line = "{}: {} extracted, {} skipped, {} failed, {} fallback names".format(
        report.volume,
        len(report.extracted),
        len(report.skipped),
        len(report.failed),
        len(report.fallbacks),
    )
    if report.cancelled:
        line += " (cancelled)"
    return line


def _split_banks(reports: List[VolumeReport], tree: OutputTree) -> int:
    split = 0
    for report in reports:
        for record in report.extracted:
            if record.kind != "banks" or record.path is None:
                continue
            try:
                split += len(split_bank_file(record.path, tree.bank_wem_dir))
            except BankFormatError as exc:
                _status("  Could not split {}: {}".format(record.path.name, exc))
    return split


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="bigfile_audio",
        description="Extract sound banks, dialogue WEMs and MIDI tracks from "
                    "BigFile archive volumes.",
    )

    parser.add_argument(
        "paths",
        nargs="*",
        help="Game folder(s) or archive volume file(s). Prompts for a folder when omitted.",
    )

    parser.add_argument(
        "--languages",
        default=DEFAULT_LANGUAGES,
        help="Dialogue languages, comma-separated codes or ALL (default: %(default)s). "
             "Known: {}.".format(", ".join(sorted(LANGUAGE_MAP))),
    )

    parser.add_argument(
        "--kinds",
        default=None,
        help="Comma-separated asset kinds. Available: {}. Default: all.".format(
            ", ".join(EXTRACTORS)
        ),
    )

    parser.add_argument(
        "--output-dir",
        default=DEFAULT_OUTPUT_DIR,
        help="Root of the output tree (default: %(default)s).",
    )

    parser.add_argument(
        "--flatten",
        action=argparse.BooleanOptionalAction,
        default=DEFAULT_FLATTEN_DIALOGUE,
        help="Join dialogue path segments into one file name per language folder.",
    )

    parser.add_argument(
        "--jobs",
        type=int,
        default=DEFAULT_JOBS,
        help="Volumes scanned in parallel (default: %(default)s).",
    )

    parser.add_argument(
        "--split-banks",
        action="store_true",
        help="Unpack each extracted bank into wem/banks/<bank>/<id>.wem.",
    )

    parser.add_argument(
        "--convert",
        action="store_true",
        help="Convert every WEM to OGG with ww2ogg and ReVorb (paths from .env).",
    )

    parser.add_argument(
        "--report",
        default=None,
        help="Write a JSON report of every extraction attempt to this path.",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Debug logging and one status line per extracted asset.",
    )

    parser.add_argument("--version", action="version", version="%(prog)s " + __version__)

    return parser


def _run(args: argparse.Namespace) -> int:
    try:
        kinds = _parse_kinds(args.kinds)
    except ValueError as e:
        print("Error: {}".format(e), file=sys.stderr)
        return 1

    if args.jobs < 1:
        print("Error: --jobs must be at least 1", file=sys.stderr)
        return 1

    inputs = list(args.paths)
    if not inputs:
        try:
            inputs = [input("Enter your game folder directory: ").strip()]
        except EOFError:
            print("Error: No input paths given and no folder entered.", file=sys.stderr)
            return 1

    volumes = _collect_volumes(inputs)
    if not volumes:
        print("Error: No archive volumes found.", file=sys.stderr)
        return 1

    languages = parse_language_list(args.languages)
    if "dialogue" in kinds and not languages:
        _status("No dialogue languages selected; dialogue extraction is disabled.")

    output_dir = Path(args.output_dir).resolve()
    tree = OutputTree(output_dir)

    def _on_record(record: ExtractionRecord) -> None:
        if args.verbose and record.outcome is Outcome.EXTRACTED:
            _status("  [{}] {} -> {}".format(record.volume, record.name, record.path))

    _status("Scanning {} volume(s) into {}".format(len(volumes), output_dir))
    cancel_event = threading.Event()
    reports = run_volumes(
        volumes,
        output=tree,
        languages=languages,
        kinds=kinds,
        flatten=args.flatten,
        jobs=args.jobs,
        cancel_event=cancel_event,
        on_record=_on_record,
    )

    for report in reports:
        _status(_summarize(report))
        for warning in report.warnings:
            _status("  Warning: {}".format(warning))

    if args.split_banks:
        _status("Splitting banks...")
        _status("  Wrote {} WEM file(s)".format(_split_banks(reports, tree)))

    if args.convert:
        _status("Converting WEM to OGG...")
        converted, failures = convert_tree(tree.wem_dir, output_dir / "ogg")
        _status("  Converted {} file(s), {} failed".format(len(converted), len(failures)))

    if args.report:
        path = write_report(build_report(reports, output_dir, sorted(languages)), Path(args.report))
        _status("Report saved: {}".format(path))

    return 1 if any(r.error for r in reports) else 0


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    try:
        code = _run(args)
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)
    sys.exit(code)


if __name__ == "__main__":
    main()
