"""WEM → OGG conversion through external tools.

WHY: WEM streams are Wwise-flavoured Vorbis that ordinary players cannot
open. The community tools ww2ogg (rebuilds an Ogg Vorbis stream) and
ReVorb (fixes its granule positions) turn them into playable .ogg files.
This package never decodes audio itself; it only invokes those tools.

HOW: ``convert_wem_to_ogg()`` runs ww2ogg, then ReVorb in place on its
output, with subprocess.run. ``convert_tree()`` mirrors a WEM tree into an
OGG tree and collects per-file failures instead of stopping.

RULES:
- Tool paths default to config.WW2OGG_PATH / config.REVORB_PATH
- A missing executable or a non-zero exit raises ConversionError
- Downloading the tools is the user's job
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Sequence, Tuple

from bigfile_audio.config import REVORB_PATH, WW2OGG_CODEBOOKS, WW2OGG_PATH
from bigfile_audio.core.errors import ConversionError

logger = logging.getLogger(__name__)


def _run(command: Sequence[str]) -> None:
    try:
        result = subprocess.run(list(command), capture_output=True, text=True, check=False)
    except FileNotFoundError as exc:
        raise ConversionError("converter not found: {}".format(command[0])) from exc
    if result.returncode != 0:
        detail = (result.stderr or result.stdout or "").strip()
        raise ConversionError(
            "{} exited with {}: {}".format(Path(command[0]).name, result.returncode, detail)
        )


def convert_wem_to_ogg(
    wem_path: Path,
    ogg_path: Path,
    ww2ogg: str = WW2OGG_PATH,
    revorb: str = REVORB_PATH,
    codebooks: str = WW2OGG_CODEBOOKS,
) -> Path:
    """Convert one WEM file to ``ogg_path``.

    Raises:
        ConversionError: if either tool is missing or fails.
    """
    ogg_path = Path(ogg_path)
    ogg_path.parent.mkdir(parents=True, exist_ok=True)

    command = [ww2ogg, str(wem_path), "-o", str(ogg_path)]
    if codebooks:
        command += ["--pcb", codebooks]
    _run(command)
    _run([revorb, str(ogg_path), str(ogg_path)])
    return ogg_path


def convert_tree(
    wem_root: Path,
    ogg_root: Path,
    ww2ogg: str = WW2OGG_PATH,
    revorb: str = REVORB_PATH,
) -> Tuple[List[Path], List[Tuple[Path, str]]]:
    """Convert every .wem under ``wem_root`` into the same layout under ``ogg_root``.

    Returns:
        (converted ogg paths, [(wem path, error message), ...])
    """
    wem_root = Path(wem_root)
    converted: List[Path] = []
    failures: List[Tuple[Path, str]] = []
    if not wem_root.is_dir():
        return converted, failures
    for wem in sorted(wem_root.rglob("*.wem")):
        target = Path(ogg_root) / wem.relative_to(wem_root).with_suffix(".ogg")
        try:
            converted.append(convert_wem_to_ogg(wem, target, ww2ogg=ww2ogg, revorb=revorb))
        except ConversionError as exc:
            logger.warning("Conversion failed for %s: %s", wem, exc)
            failures.append((wem, str(exc)))
    return converted, failures
