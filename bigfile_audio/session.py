"""Extraction session: one container volume in, categorized assets out.

WHY: The extractors only turn a buffer into records. Something has to
load a volume, run the extractors in order, write each carved asset to
the output tree as soon as it exists, and collect every outcome so the
caller can judge extraction quality without reading logs.

HOW: ExtractionSession.parse() reads one volume into memory and hands it
to parse_buffer(), which runs the registered extractors (banks, dialogue,
midi) over the same buffer. Each record's asset is written, the record
gets its path and volume, and the asset is dropped. run_volumes() runs
one session per volume on a thread pool, sharing one OutputTree and one
cancellation event.

RULES:
- An unreadable volume yields a VolumeReport with ``error`` set; other
  volumes still run
- Dialogue runs only when the language selection is non-empty
- Cancellation is honoured at occurrence boundaries; partial results are kept
- When more than one volume is scanned, fallback names are prefixed with
  the volume name so they cannot collide
- The engine never prints; on_record is the structured sink
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from bigfile_audio.config import VOLUME_GLOB
from bigfile_audio.core.errors import InputUnavailable, ScanCancelled
from bigfile_audio.core.ir import ExtractionRecord, Outcome, VolumeReport
from bigfile_audio.core.scanner import Buffer
from bigfile_audio.core.signatures import DEFAULT_PROFILE, ScanProfile
from bigfile_audio.extractors import EXTRACTORS
from bigfile_audio.extractors.base import ExtractionContext
from bigfile_audio.output import OutputTree

logger = logging.getLogger(__name__)

RecordCallback = Callable[[ExtractionRecord], None]


def read_volume(path: Union[str, Path]) -> bytes:
    """Read a whole container volume into memory.

    Raises:
        InputUnavailable: if the file is missing or unreadable.
    """
    path = Path(path)
    if not path.is_file():
        raise InputUnavailable(path, "file does not exist")
    try:
        return path.read_bytes()
    except OSError as exc:
        raise InputUnavailable(path, exc.strerror or str(exc)) from exc


def discover_volumes(path: Union[str, Path], pattern: str = VOLUME_GLOB) -> List[Path]:
    """Expand a game folder into its archive volumes; files pass through.

    RULES:
    - Directories are globbed with ``pattern`` (BigFile_PC.dat, .d01, ...)
    - Results are sorted by name so volume order is stable
    - A directory without volumes yields an empty list
    """
    path = Path(path)
    if path.is_dir():
        return sorted(p for p in path.glob(pattern) if p.is_file())
    return [path]


class ExtractionSession:
    """Scans container volumes and writes what the extractors carve.

    Args:
        output: Output tree (or its root directory).
        languages: Dialogue language codes; empty disables dialogue.
        kinds: Asset kinds to extract, default all registered kinds.
        flatten: Put dialogue directly under its language folder.
        profile: Shared signatures and heuristic constants.
        cancel_event: Set it to stop the scan at the next occurrence.
        on_record: Called with every finished ExtractionRecord.
        volume_label: Namespace for fallback names and report volume name.
    """

    def __init__(
        self,
        output: Union[OutputTree, str, Path] = ".",
        languages: Iterable[str] = (),
        kinds: Optional[Iterable[str]] = None,
        flatten: bool = False,
        profile: ScanProfile = DEFAULT_PROFILE,
        cancel_event: Optional[threading.Event] = None,
        on_record: Optional[RecordCallback] = None,
        volume_label: Optional[str] = None,
    ) -> None:
        self.output = output if isinstance(output, OutputTree) else OutputTree(output)
        self.languages = frozenset(code.upper() for code in languages)
        self.kinds = list(kinds) if kinds is not None else list(EXTRACTORS)
        unknown = [k for k in self.kinds if k not in EXTRACTORS]
        if unknown:
            raise ValueError("Unknown asset kind(s): {}".format(", ".join(unknown)))
        self.flatten = flatten
        self.profile = profile
        self.cancel_event = cancel_event
        self.on_record = on_record
        self.volume_label = volume_label

    def parse(self, path: Union[str, Path]) -> VolumeReport:
        """Scan one volume file; never raises for unreadable input."""
        path = Path(path)
        volume = self.volume_label or path.name
        try:
            buffer = read_volume(path)
        except InputUnavailable as exc:
            logger.error("Volume unavailable: %s", exc)
            return VolumeReport(volume=volume, error=str(exc))

        logger.info("Scanning %s (%d bytes)", path, len(buffer))
        return self.parse_buffer(buffer, volume)

    def parse_buffer(self, buffer: Buffer, volume: str = "<memory>") -> VolumeReport:
        """Run every selected extractor over one in-memory container.

        A memoryview is copied to bytes once here so the per-occurrence
        searches do not copy it again.
        """
        if isinstance(buffer, memoryview):
            buffer = buffer.tobytes()
        report = VolumeReport(volume=volume)
        context = ExtractionContext(
            profile=self.profile,
            languages=self.languages,
            cancel_event=self.cancel_event,
            fallback_prefix=self.volume_label or "",
            warnings=report.warnings,
        )
        active = [k for k in self.kinds if k != "dialogue" or self.languages]
        self.output.prepare(active)

        try:
            for kind in active:
                extractor = EXTRACTORS[kind]()
                for record in extractor.extract(buffer, context):
                    self._finish(record, volume)
                    report.records.append(record)
        except ScanCancelled:
            report.cancelled = True
            logger.warning("Scan of %s cancelled after %d records", volume, len(report.records))

        logger.info(
            "%s: %d extracted, %d skipped, %d failed, %d fallback names",
            volume,
            len(report.extracted),
            len(report.skipped),
            len(report.failed),
            len(report.fallbacks),
        )
        return report

    def _finish(self, record: ExtractionRecord, volume: str) -> None:
        record.volume = volume
        if record.outcome is Outcome.EXTRACTED and record.asset is not None:
            try:
                record.path = self.output.write_asset(record.asset, self.flatten)
            except OSError as exc:
                logger.warning("Failed to write %s %s: %s", record.kind, record.name, exc)
                record.outcome = Outcome.FAILED
                record.reason = "write failed: {}".format(exc)
        record.asset = None
        if self.on_record is not None:
            self.on_record(record)


def run_volumes(
    paths: Iterable[Union[str, Path]],
    output: Union[OutputTree, str, Path] = ".",
    languages: Iterable[str] = (),
    kinds: Optional[Iterable[str]] = None,
    flatten: bool = False,
    jobs: int = 1,
    profile: ScanProfile = DEFAULT_PROFILE,
    cancel_event: Optional[threading.Event] = None,
    on_record: Optional[RecordCallback] = None,
) -> List[VolumeReport]:
    """Scan several volumes, concurrently when ``jobs`` > 1.

    Returns one VolumeReport per path, in input order. A KeyboardInterrupt
    sets the shared cancellation event before propagating.
    """
    paths = [Path(p) for p in paths]
    tree = output if isinstance(output, OutputTree) else OutputTree(output)
    cancel_event = cancel_event or threading.Event()
    languages = list(languages)
    kinds = list(kinds) if kinds is not None else None
    label_volumes = len(paths) > 1

    def _scan(path: Path) -> VolumeReport:
        session = ExtractionSession(
            output=tree,
            languages=languages,
            kinds=kinds,
            flatten=flatten,
            profile=profile,
            cancel_event=cancel_event,
            on_record=on_record,
            volume_label=path.name if label_volumes else None,
        )
        return session.parse(path)

    if jobs <= 1 or len(paths) <= 1:
        try:
            return [_scan(path) for path in paths]
        except KeyboardInterrupt:
            cancel_event.set()
            raise

    with ThreadPoolExecutor(max_workers=jobs) as executor:
        futures = [executor.submit(_scan, path) for path in paths]
        try:
            # The event must be set before the executor waits for its workers.
            for future in as_completed(futures):
                future.result()
        except KeyboardInterrupt:
            cancel_event.set()
            raise
        return [future.result() for future in futures]
