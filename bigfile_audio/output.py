"""Output tree layout, filename sanitizing, and collision-free writes.

WHY: Carved assets land in a categorized tree (banks/, wem/dialogue/,
midi/). Several volumes may be scanned at once into the same tree, and
archive names can repeat, so path policy and directory creation must live
in one place that tolerates concurrent callers.

HOW: OutputTree maps each asset type to its path. ``write()`` claims a
free path under a lock (adding a numeric suffix on conflict), creates the
parent directories idempotently, and writes the bytes.

RULES:
- Layout: banks/<name>.bnk, wem/dialogue/<LANGUAGE>/[<segments>/]<leaf>.wem,
  wem/banks/<bank>/<id>.wem (split banks),
  midi/<name>.mid; flatten mode joins segments and leaf with "_"
- Invalid filename characters (<>:"/\\|?* and control chars) are removed
- A path already written in this run gets -2, -3, ... before the extension
- Directory creation never fails because the directory already exists
"""

from __future__ import annotations

import logging
import re
import threading
from pathlib import Path
from typing import Iterable, Set, Union

from bigfile_audio.core.ir import Asset, BankAsset, DialogueAsset, MidiAsset

logger = logging.getLogger(__name__)

_INVALID_FILENAME_RE = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def strip_invalid_filename_chars(name: str) -> str:
    return _INVALID_FILENAME_RE.sub("", name)


def sanitize_filename(name: str) -> str:
    """File-system-safe version of ``name``; never empty."""
    cleaned = strip_invalid_filename_chars(name).strip()
    if cleaned in ("", ".", ".."):
        return "_"
    return cleaned


class OutputTree:
    """Categorized output directory shared by one or more sessions."""

    BANKS_DIR = "banks"
    WEM_DIR = "wem"
    DIALOGUE_DIR = "dialogue"
    MIDI_DIR = "midi"

    def __init__(self, root: Union[str, Path] = ".") -> None:
        self.root = Path(root)
        self._claimed: Set[Path] = set()
        self._lock = threading.Lock()

    @property
    def banks_dir(self) -> Path:
        return self.root / self.BANKS_DIR

    @property
    def wem_dir(self) -> Path:
        return self.root / self.WEM_DIR

    @property
    def dialogue_dir(self) -> Path:
        return self.wem_dir / self.DIALOGUE_DIR

    @property
    def bank_wem_dir(self) -> Path:
        """Root for WEM files split out of extracted banks."""
        return self.wem_dir / self.BANKS_DIR

    @property
    def midi_dir(self) -> Path:
        return self.root / self.MIDI_DIR

    def prepare(self, kinds: Iterable[str]) -> None:
        """Create the top-level directories for the requested kinds."""
        wanted = set(kinds)
        if "banks" in wanted:
            self.banks_dir.mkdir(parents=True, exist_ok=True)
        if "dialogue" in wanted:
            self.dialogue_dir.mkdir(parents=True, exist_ok=True)
        if "midi" in wanted:
            self.midi_dir.mkdir(parents=True, exist_ok=True)

    # -------------------------------------------------------------------
    # Path policy
    # -------------------------------------------------------------------

    def bank_path(self, name: str) -> Path:
        return self.banks_dir / "{}.bnk".format(sanitize_filename(name))

    def midi_path(self, name: str) -> Path:
        return self.midi_dir / "{}.mid".format(sanitize_filename(name))

    def dialogue_path(
        self,
        language_folder: str,
        segments: Iterable[str],
        leaf: str,
        flatten: bool = False,
    ) -> Path:
        base = self.dialogue_dir / sanitize_filename(language_folder)
        segments = list(segments)
        if flatten:
            return base / "{}.wem".format(sanitize_filename("_".join(segments + [leaf])))
        directory = base
        for segment in segments:
            directory = directory / sanitize_filename(segment)
        return directory / "{}.wem".format(sanitize_filename(leaf))

    def path_for(self, asset: Asset, flatten: bool = False) -> Path:
        if isinstance(asset, BankAsset):
            return self.bank_path(asset.name)
        if isinstance(asset, DialogueAsset):
            return self.dialogue_path(
                asset.language_folder, asset.path_segments, asset.file_name_leaf, flatten,
            )
        if isinstance(asset, MidiAsset):
            return self.midi_path(asset.name)
        raise TypeError("unsupported asset type: {}".format(type(asset).__name__))

    # -------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------

    def claim(self, path: Path) -> Path:
        """Reserve ``path`` for this run, suffixing -2, -3, ... on conflict."""
        with self._lock:
            candidate = path
            counter = 2
            while candidate in self._claimed:
                candidate = path.with_name("{}-{}{}".format(path.stem, counter, path.suffix))
                counter += 1
            self._claimed.add(candidate)
        if candidate != path:
            logger.info("Output name %s already used, writing %s", path.name, candidate.name)
        return candidate

    def write(self, path: Path, data: bytes) -> Path:
        """Write ``data`` to a claimed version of ``path`` and return the final path."""
        final = self.claim(path)
        final.parent.mkdir(parents=True, exist_ok=True)
        final.write_bytes(data)
        return final

    def write_asset(self, asset: Asset, flatten: bool = False) -> Path:
        return self.write(self.path_for(asset, flatten), asset.data)
