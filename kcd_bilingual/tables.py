"""Reading and writing the game's ``<Table><Row><Cell>`` text tables."""

from __future__ import annotations

import os
import xml.etree.ElementTree as ET
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .errors import TableParseError

# Entry id -> text of the third cell, in document order.
TextTable = Mapping[str, str]

HEADER_MARKER = "Entry id"
MIN_CELLS = 3
TEXT_CELL_INDEX = 2

EMPTY_TABLE: TextTable = MappingProxyType({})

_BOMS: Sequence[Tuple[bytes, str]] = (
    (b"\xef\xbb\xbf", "utf-8"),
    (b"\xff\xfe", "utf-16-le"),
    (b"\xfe\xff", "utf-16-be"),
)


def local_name(tag: object) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.split("}")[-1]


def decode_table_bytes(raw: bytes, member: str, language: str) -> str:
    encoding = "utf-8"
    for bom, bom_encoding in _BOMS:
        if raw.startswith(bom):
            raw = raw[len(bom):]
            encoding = bom_encoding
            break
    try:
        return raw.decode(encoding)
    except UnicodeDecodeError as exc:
        raise TableParseError(member, language, f"invalid {encoding} text: {exc}") from exc


class RowCollector:
    """Parser target that keeps ``cell[0] -> cell[2]`` for every data row.

    Every ``Cell`` element inside a ``Row`` is one cell, so an empty
    ``<Cell/>`` still takes its column. Whitespace between tags is not a cell.
    Header rows (first cell ``Entry id``) and rows with fewer than three
    cells are dropped.
    """

    def __init__(self) -> None:
        self.entries: Dict[str, str] = {}
        self._cells: Optional[List[str]] = None
        self._text: Optional[List[str]] = None

    def start(self, tag, attrib) -> None:
        name = local_name(tag)
        if name == "Row":
            self._cells = []
            self._text = None
        elif name == "Cell" and self._cells is not None:
            self._text = []

    def data(self, data: str) -> None:
        if self._text is not None:
            self._text.append(data)

    def end(self, tag) -> None:
        name = local_name(tag)
        if name == "Cell" and self._cells is not None and self._text is not None:
            self._cells.append("".join(self._text))
            self._text = None
        elif name == "Row" and self._cells is not None:
            self._finish_row(self._cells)
            self._cells = None

    def _finish_row(self, cells: List[str]) -> None:
        if not cells or cells[0] == HEADER_MARKER:
            return
        if len(cells) < MIN_CELLS:
            return
        self.entries[cells[0]] = cells[TEXT_CELL_INDEX]

    def close(self) -> TextTable:
        return MappingProxyType(self.entries)


def parse_text_table(data: bytes, member: str, language: str) -> TextTable:
    content = decode_table_bytes(data, member, language)
    parser = ET.XMLParser(target=RowCollector())
    try:
        parser.feed(content)
        return parser.close()
    except ET.ParseError as exc:
        raise TableParseError(member, language, str(exc)) from exc


def serialize_table(rows: Iterable[Sequence[str]]) -> bytes:
    """Render rows as ``<Table>`` with one ``<Row>`` per line, UTF-8, no declaration."""
    table = ET.Element("Table")
    table.text = "\n"
    for cells in rows:
        row = ET.SubElement(table, "Row")
        for value in cells:
            ET.SubElement(row, "Cell").text = value
        row.tail = "\n"
    return ET.tostring(table, encoding="utf-8", short_empty_elements=False)


def atomic_write(data: bytes, output: Path) -> None:
    temp_path = output.with_name(output.name + ".tmp")
    with temp_path.open("wb") as fp:
        fp.write(data)
        fp.flush()
        os.fsync(fp.fileno())
    os.replace(temp_path, output)
