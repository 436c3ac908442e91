"""Localization paks are plain zip archives of flat XML members."""

from __future__ import annotations

import logging
import zipfile
import zlib
from pathlib import Path
from typing import Dict, Sequence

from .errors import PakCreationError, PakExtractionError
from .tables import TextTable, parse_text_table


def pak_name(language: str) -> str:
    return f"{language}_xml.pak"


def read_language(localization_dir: Path, language: str, files: Sequence[str]) -> Dict[str, TextTable]:
    """Parse every managed file of one language pak.

    Members absent from the pak are skipped with a warning. Any unreadable
    or malformed member fails the whole language.
    """
    pak_path = localization_dir / pak_name(language)
    logging.info("Opening pak for %s: %s", language, pak_path)

    tables: Dict[str, TextTable] = {}
    try:
        archive = zipfile.ZipFile(pak_path, "r")
    except (OSError, zipfile.BadZipFile) as exc:
        raise PakExtractionError(language, pak_path, str(exc)) from exc

    with archive:
        names = set(archive.namelist())
        for member in files:
            if member not in names:
                logging.warning("%s not found in %s; skipping it for %s.", member, pak_path, language)
                continue
            try:
                data = archive.read(member)
            except (OSError, EOFError, NotImplementedError, RuntimeError, zipfile.BadZipFile, zlib.error) as exc:
                raise PakExtractionError(language, pak_path, f"{member}: {exc}") from exc
            tables[member] = parse_text_table(data, member, language)
            logging.debug("Parsed %s entries from %s (%s)", len(tables[member]), member, language)

    logging.info("Finished reading %s file(s) for %s.", len(tables), language)
    return tables


def create_pak(files: Sequence[Path], output_dir: Path, language: str) -> Path:
    """Zip ``files`` (flat, by file name) into ``output_dir/{language}_xml.pak``."""
    pak_path = output_dir / pak_name(language)
    try:
        with zipfile.ZipFile(pak_path, "w", zipfile.ZIP_DEFLATED) as archive:
            for path in files:
                archive.write(path, arcname=path.name)
    except (OSError, zipfile.BadZipFile) as exc:
        discard_partial_pak(pak_path)
        raise PakCreationError(pak_path, str(exc)) from exc
    return pak_path


def discard_partial_pak(pak_path: Path) -> None:
    try:
        pak_path.unlink(missing_ok=True)
    except OSError as exc:
        logging.warning("Could not remove incomplete pak %s: %s", pak_path, exc)
