"""Pydantic models for the JSON run report.

WHY: Operators need to judge extraction quality after a multi-gigabyte
run: how many assets were carved, which occurrences were skipped or
failed and why, and how many names were synthetic, without scraping
console output. A typed, schema-backed report also makes the output easy
to diff between runs.

HOW: One RecordEntry per ExtractionRecord, one VolumeSummary per
VolumeReport, and a RunReport on top. ``build_report()`` converts the
engine's dataclasses; ``write_report()`` serializes to JSON.

RULES:
- All models use Field(description=...) so the JSON schema is self-describing
- Offsets are plain integers (byte offsets into the volume)
- Paths are stored as strings relative to nothing (as written)
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from bigfile_audio import __version__
from bigfile_audio.core.ir import ExtractionRecord, VolumeReport


class RecordEntry(BaseModel):
    """One extraction attempt."""

    kind: str = Field(description="Asset kind: banks, dialogue or midi.")
    outcome: str = Field(description="extracted, skipped or failed.")
    offset: int = Field(description="Byte offset of the marker inside the volume.")
    name: Optional[str] = Field(default=None, description="Resolved or synthetic asset name.")
    path: Optional[str] = Field(default=None, description="Written file, for extracted assets.")
    reason: Optional[str] = Field(default=None, description="Why the occurrence was skipped or failed.")
    fallback_name: bool = Field(default=False, description="True when the name is synthetic.")


class VolumeSummary(BaseModel):
    """Results for one container volume."""

    volume: str = Field(description="Volume file name or label.")
    error: Optional[str] = Field(default=None, description="Set when the volume could not be read.")
    cancelled: bool = Field(default=False, description="True when the scan stopped early.")
    warnings: List[str] = Field(default_factory=list, description="Volume-level findings.")
    counts: Dict[str, Dict[str, int]] = Field(
        default_factory=dict,
        description="Per-kind outcome counts, including 'fallback'.",
    )
    records: List[RecordEntry] = Field(default_factory=list, description="Every extraction attempt.")


class RunReport(BaseModel):
    """Top-level report for one extractor run."""

    tool_version: str = Field(default=__version__, description="bigfile_audio version.")
    output_dir: str = Field(description="Root of the output tree.")
    languages: List[str] = Field(default_factory=list, description="Selected dialogue languages.")
    volumes: List[VolumeSummary] = Field(default_factory=list, description="One entry per volume.")


def _entry(record: ExtractionRecord) -> RecordEntry:
    return RecordEntry(
        kind=record.kind,
        outcome=record.outcome.value,
        offset=record.offset,
        name=record.name,
        path=str(record.path) if record.path is not None else None,
        reason=record.reason,
        fallback_name=record.fallback_name,
    )


def build_report(
    reports: Sequence[VolumeReport],
    output_dir: Path,
    languages: Sequence[str] = (),
) -> RunReport:
    return RunReport(
        output_dir=str(output_dir),
        languages=sorted(languages),
        volumes=[
            VolumeSummary(
                volume=report.volume,
                error=report.error,
                cancelled=report.cancelled,
                warnings=list(report.warnings),
                counts=report.counts(),
                records=[_entry(r) for r in report.records],
            )
            for report in reports
        ],
    )


def write_report(run: RunReport, destination: Path) -> Path:
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(run.model_dump_json(indent=2), encoding="utf-8")
    return destination
