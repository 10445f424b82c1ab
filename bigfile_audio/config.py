"""Configuration constants, language mappings, and .env loading.

WHY: Centralizes all configurable values so they are easy to find,
update, and override. The dialogue language table, default language
selection, output locations, and external tool paths are plain data,
not buried in extractor logic.

HOW: python-dotenv loads the .env file on import. Constants are defined
as module-level dicts and strings. Engine heuristics (marker bytes, probe
counts) are NOT here; they live in core.signatures.ScanProfile.

RULES:
- LANGUAGE_MAP maps the archive's 3-letter codes to output folder names
- Unmapped codes fall back to "UNKNOWN"
- Language codes are compared case-insensitively (stored upper-case)
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os
import re

from dotenv import load_dotenv

# Load .env from the working directory
load_dotenv()

# ---------------------------------------------------------------------------
# Dialogue language table: archive code → output folder
# ---------------------------------------------------------------------------

LANGUAGE_MAP: dict[str, str] = {
    "ENG": "ENGLISH",
    "MEX": "MEXICAN",
    "BRA": "BRAZILIAN",
    "FRE": "FRENCH",
    "ARA": "ARABIC",
    "RUS": "RUSSIAN",
    "POL": "POLISH",
    "POR": "PORTUGUESE",
    "ITA": "ITALIAN",
    "GER": "GERMAN",
    "SPA": "SPANISH",
    "JPN": "JAPANESE",
    "UNK": "UNKNOWN",
}

UNKNOWN_LANGUAGE_CODE = "UNK"
"""Code assigned to dialogue whose trailing language tag cannot be read."""

UNKNOWN_LANGUAGE_FOLDER = "UNKNOWN"
"""Folder used for any code missing from LANGUAGE_MAP."""

ALL_LANGUAGES_KEYWORD = "ALL"


def map_language(code: str) -> str:
    """Map a 3-letter archive language code to its output folder name.

    RULES:
    - Lookup is case-insensitive
    - Unknown codes return "UNKNOWN"
    """
    return LANGUAGE_MAP.get(code.upper(), UNKNOWN_LANGUAGE_FOLDER)


def parse_language_list(text: str | None) -> frozenset[str]:
    """Parse a comma/space separated language selection.

    WHY: Users choose dialogue languages on the command line or in .env
    (e.g. ``ENG,FRE``). The extractor needs a normalized set.

    HOW: Split on commas and whitespace, upper-case each code, drop blanks.
    The keyword ``ALL`` selects every code in LANGUAGE_MAP.

    RULES:
    - None or blank input yields an empty set (dialogue extraction disabled)
    - Codes not in LANGUAGE_MAP are kept; they still select matching dialogue
    """
    if not text:
        return frozenset()
    codes = {part.strip().upper() for part in re.split(r"[,\s]+", text) if part.strip()}
    if ALL_LANGUAGES_KEYWORD in codes:
        codes.discard(ALL_LANGUAGES_KEYWORD)
        codes.update(LANGUAGE_MAP)
    return frozenset(codes)


# ---------------------------------------------------------------------------
# Run defaults
# ---------------------------------------------------------------------------

DEFAULT_LANGUAGES = os.getenv("BIGFILE_LANGUAGES", "ENG")
DEFAULT_OUTPUT_DIR = os.getenv("BIGFILE_OUTPUT_DIR", ".")
DEFAULT_FLATTEN_DIALOGUE = os.getenv("BIGFILE_FLATTEN_DIALOGUE", "false").lower() == "true"
DEFAULT_JOBS = int(os.getenv("BIGFILE_JOBS", "1"))
DEFAULT_LOG_LEVEL = os.getenv("BIGFILE_LOG_LEVEL", "WARNING").upper()

DEFAULT_VOLUME_NAME = "BigFile_PC.dat"
"""Primary archive file inside the game folder."""

VOLUME_GLOB = os.getenv("BIGFILE_VOLUME_GLOB", "BigFile_PC.d*")
"""Pattern matching every archive volume inside the game folder."""

# ---------------------------------------------------------------------------
# External converters (invoked, never bundled)
# ---------------------------------------------------------------------------

WW2OGG_PATH = os.getenv("WW2OGG_PATH", "./extern/ww2ogg.exe")
REVORB_PATH = os.getenv("REVORB_PATH", "./extern/ReVorb.exe")
WW2OGG_CODEBOOKS = os.getenv("WW2OGG_CODEBOOKS", "")
