"""Run settings and the bilingual set file."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .errors import InvalidBilingualSetError

# --- GENERATOR CONFIGURATION ---
ENGLISH = "English"

MANAGED_FILES: Sequence[str] = (
    "text_ui_dialog.xml",  # Dialogues
    "text_ui_quest.xml",  # Quests
    "text_ui_tutorials.xml",  # Tutorials
    "text_ui_soul.xml",  # Stats/Effects
    "text_ui_items.xml",  # Items
    "text_ui_menus.xml",  # Menus
)

LOCALIZATION_DIR_NAME = "Localization"
OUTPUT_DIR_NAME = "bilingual_xml"
DEFAULT_PAIRS_FILE = Path("assets") / "bilingual_set.txt"

# Readers and pair processors share one pool.
DEFAULT_MAX_WORKERS = min(8, (os.cpu_count() or 1) + 4)


@dataclass(frozen=True)
class LanguagePair:
    primary: str
    secondary: str

    @property
    def label(self) -> str:
        return f"primary_language = {self.primary}, secondary_language = {self.secondary}"

    @property
    def dir_name(self) -> str:
        return f"{self.primary} + {self.secondary}"

    def languages(self) -> List[str]:
        return [self.primary, self.secondary, ENGLISH]


@dataclass(frozen=True)
class GeneratorSettings:
    game_path: Path
    working_dir: Path = field(default_factory=Path.cwd)
    files: Sequence[str] = MANAGED_FILES
    max_workers: int = DEFAULT_MAX_WORKERS
    show_progress: bool = True
    pairs_file: Optional[Path] = None

    @property
    def localization_dir(self) -> Path:
        return self.game_path / LOCALIZATION_DIR_NAME

    @property
    def output_root(self) -> Path:
        return self.working_dir / OUTPUT_DIR_NAME

    def resolve_pairs_file(self) -> Path:
        return self.pairs_file if self.pairs_file else self.working_dir / DEFAULT_PAIRS_FILE

    def pair_output_dir(self, pair: LanguagePair) -> Path:
        return self.output_root / pair.dir_name / LOCALIZATION_DIR_NAME


def parse_pair_line(line: str, line_no: int = 0) -> Optional[LanguagePair]:
    """Parse one ``Primary+Secondary`` line; blank lines give None."""
    stripped = line.strip()
    if not stripped:
        return None
    parts = [part.strip() for part in stripped.split("+")]
    if len(parts) != 2 or not all(parts):
        raise InvalidBilingualSetError(f"Invalid bilingual set line {line_no}: {line.rstrip()!r}")
    return LanguagePair(primary=parts[0], secondary=parts[1])


def parse_bilingual_set(lines: Sequence[str]) -> List[LanguagePair]:
    pairs: List[LanguagePair] = []
    for line_no, line in enumerate(lines, start=1):
        pair = parse_pair_line(line, line_no)
        if pair is None:
            continue
        if pair in pairs:
            logging.warning("Duplicate bilingual pair on line %s ignored: %s", line_no, pair.dir_name)
            continue
        pairs.append(pair)
    return pairs


def load_bilingual_set(path: Path) -> List[LanguagePair]:
    try:
        content = path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise InvalidBilingualSetError(f"No readable bilingual set at {path}: {exc}") from exc
    pairs = parse_bilingual_set(content.splitlines())
    logging.info("Loaded %s bilingual pair(s) from %s", len(pairs), path)
    return pairs


def required_languages(pairs: Sequence[LanguagePair]) -> List[str]:
    """English first, then every pair language in first-seen order."""
    ordered = [ENGLISH]
    for pair in pairs:
        ordered.extend((pair.primary, pair.secondary))
    return list(dict.fromkeys(ordered))
