from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Dict, Iterable, Mapping, Sequence
from xml.sax.saxutils import escape

import pytest

from kcd_bilingual.config import GeneratorSettings


def table_xml(rows: Iterable[Sequence[str]], header: bool = True) -> bytes:
    lines = ["<Table>"]
    if header:
        lines.append("<Row><Cell>Entry id</Cell><Cell>Original text</Cell><Cell>Translated text</Cell></Row>")
    for cells in rows:
        lines.append("<Row>" + "".join(f"<Cell>{escape(cell)}</Cell>" for cell in cells) + "</Row>")
    lines.append("</Table>")
    return "\n".join(lines).encode("utf-8")


def entries_xml(entries: Mapping[str, str]) -> bytes:
    return table_xml([(entry_id, "src", text) for entry_id, text in entries.items()])


def write_pak(localization_dir: Path, language: str, members: Mapping[str, bytes]) -> Path:
    localization_dir.mkdir(parents=True, exist_ok=True)
    pak_path = localization_dir / f"{language}_xml.pak"
    with zipfile.ZipFile(pak_path, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, data in members.items():
            archive.writestr(name, data)
    return pak_path


def read_pak(pak_path: Path) -> Dict[str, bytes]:
    with zipfile.ZipFile(pak_path) as archive:
        return {name: archive.read(name) for name in archive.namelist()}


@pytest.fixture
def game_dir(tmp_path: Path) -> Path:
    path = tmp_path / "game"
    (path / "Localization").mkdir(parents=True)
    return path


@pytest.fixture
def settings(tmp_path: Path, game_dir: Path) -> GeneratorSettings:
    working_dir = tmp_path / "work"
    working_dir.mkdir()
    return GeneratorSettings(
        game_path=game_dir,
        working_dir=working_dir,
        files=("text_ui_dialog.xml", "text_ui_menus.xml"),
        max_workers=4,
        show_progress=False,
    )
