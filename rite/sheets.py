"""
Sheet layout normalization
==========================

The roster spreadsheets changed layout several times. This module turns any
known layout into records, so nothing downstream sees the variance:

    normalize_age_sheet(rows)      -> List[AgeRecord]
    normalize_house_sheets(sheets) -> List[HouseRecord]

Input is what a sheets export gives: rows of cells, where a cell is either a
plain value or a `Cell` carrying the value plus its background colour (the
old house layout marks Rulers and Nobles by colour only).

Best effort: an unrecognized header row is logged and parsed positionally.

`load_age_snapshot` / `load_house_snapshot` are what the merge step calls:
an `.xlsx` workbook is read cell by cell with openpyxl (values plus fills)
and normalized here; a JSON snapshot is already flat and goes straight to
the loader.
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
import logging

from openpyxl import load_workbook

from .loader import (
    READ_ERRORS, PathLike, SnapshotError, to_str, age_record_from, house_record_from,
    load_age_records, load_house_records,
)
from .models import (
    AgeRecord, HouseRecord, AGE_FIELDS,
    DISCORD, VS_NAME, CHARACTER, SOCIAL_CLASS, HOUSE, ROLE, TIMEZONE, COMMENTS,
)

log = logging.getLogger(__name__)

Color = Tuple[float, float, float]


@dataclass(frozen=True)
class Cell:
    value: Any = ""
    background: Optional[Color] = None


def _value(cell) -> str:
    if isinstance(cell, Cell):
        return to_str(cell.value)
    return to_str(cell)


def _raw(cell) -> Any:
    return cell.value if isinstance(cell, Cell) else cell


def _is_empty_row(row: Sequence) -> bool:
    return all(_value(c) == "" for c in row)


def _matches(headers: Sequence[str], expected: Sequence[str]) -> bool:
    return all(i < len(headers) and headers[i] == h for i, h in enumerate(expected))


# ---------------- Age sheet ----------------
AGE_HEADERS = list(AGE_FIELDS)
# Rows above the header row in the age sheet
AGE_METADATA_ROWS = 5

# Older header rows seen in the wild, in the order they are tried.
# Entries marked True lack the VS Username and Year 8 columns.
AGE_ALTERNATIVE_HEADERS: List[Tuple[List[str], bool]] = [
    (["Discord Username", "VS Username", "Character Name", "Affiliation", "PVE Deaths",
      "Year of Maturity", "Current Age", "Year 4", "Year 5", "Year 6", "Year 7", "Year 8"], False),
    (["Player Name", "Ingame Name", "Character Name", "Affiliation", "PVE Deaths",
      "Year of Maturity", "Current Age", "Year 4", "Year 5", "Year 6", "Year 7", "Year 8"], False),
    (["Player Name", "Character Name", "Affiliation", "PVE Deaths", "Year of Birth",
      "Current Age", "Year 4", "Year 5", "Year 6", "Year 7"], True),
    (["Player Name", "Character Name", "Affiliation", "PVE Deaths", "Year of Maturity",
      "Current Age", "Year 4", "Year 5", "Year 6", "Year 7"], True),
]


def clean_age_rows(rows: Sequence[Sequence]) -> List[List[Any]]:
    """Drop the empty first column and metadata rows; remap old headers.

    Returns rows whose first row is `AGE_HEADERS` when the layout is known.
    """
    body = [list(r)[1:] for r in rows][AGE_METADATA_ROWS:]
    if not body:
        return body

    headers = [_value(c) for c in body[0]]
    if _matches(headers, AGE_HEADERS):
        return body

    for alt, shifted in AGE_ALTERNATIVE_HEADERS:
        if not _matches(headers, alt):
            continue
        log.info("Remapping alternative age sheet headers %s", alt[:2])
        if not shifted:
            return [list(AGE_HEADERS)] + body[1:]
        out: List[List[Any]] = [list(AGE_HEADERS)]
        for row in body[1:]:
            cells = list(row) + [""] * (10 - len(row))
            # Player Name, (no VS name), Character .. Year 7; Year 8 left blank
            out.append([cells[0], ""] + cells[1:10])
        return out

    log.warning("Unrecognized age sheet header format: %s", headers)
    return body


def parse_age_rows(rows: Sequence[Sequence]) -> List[AgeRecord]:
    """Positional parse of cleaned age rows (header row first)."""
    out: List[AgeRecord] = []
    for row in rows[1:]:
        if _is_empty_row(row):
            continue
        cells = [_raw(c) for c in row]
        by_col = {col: cells[i] for i, col in enumerate(AGE_FIELDS) if i < len(cells)}
        out.append(age_record_from(by_col.get))
    return out


def normalize_age_sheet(rows: Sequence[Sequence]) -> List[AgeRecord]:
    return parse_age_rows(clean_age_rows(rows))


# ---------------- House sheets ----------------
HOUSE_HEADERS = [SOCIAL_CLASS, ROLE, CHARACTER, VS_NAME, DISCORD, TIMEZONE, COMMENTS]
HOUSE_ALTERNATIVE_HEADERS = [SOCIAL_CLASS, ROLE, CHARACTER, "IGN", "Discord", TIMEZONE, COMMENTS]
OVERVIEW_SHEET = "Overview"

# Background colours of the first cell in the old layout
RULER_COLOR: Color = (0.9882353, 0.8980392, 0.8039216)
NOBLE_COLOR: Color = (1.0, 0.9764706, 0.8862745)
COLOR_TOLERANCE = 0.01

# Old-layout column titles -> current names
_OLD_COLUMN_NAMES = {"IGN": VS_NAME, "Discord": DISCORD}


def _color_close(a: Optional[Color], b: Color) -> bool:
    return a is not None and all(abs(x - y) < COLOR_TOLERANCE for x, y in zip(a, b))


def _class_from_color(cell, default: str) -> str:
    bg = cell.background if isinstance(cell, Cell) else None
    if _color_close(bg, RULER_COLOR):
        return "Ruler"
    if _color_close(bg, NOBLE_COLOR):
        return "Noble"
    return default


def _section_title(rows: List[List[Any]], marker: str) -> Optional[int]:
    for i, row in enumerate(rows):
        if any(marker in _value(c).lower() for c in row):
            return i
    return None


def _flatten_old_layout(sheet_name: str, rows: Sequence[Sequence]) -> List[List[Any]]:
    """Old layout: a 'Notables' table and a 'Commoners' table, no class column.

    Each section title row is followed (or preceded) by its own header row.
    A Ruler or Noble background on the first cell overrides the section class.
    """
    body = [list(r)[1:] for r in rows]
    notable = _section_title(body, "notables")
    commoner = _section_title(body, "commoners")

    sections: List[Tuple[str, int, int]] = []
    if notable is not None:
        end = commoner if commoner is not None and commoner > notable else len(body)
        sections.append(("Notable", notable, end))
    if commoner is not None:
        end = notable if notable is not None and notable > commoner else len(body)
        sections.append(("Commoner", commoner, end))
    if not sections:
        log.warning("Sheet %r has no header row and no Notables/Commoners sections", sheet_name)
        return []

    out: List[List[Any]] = [list(HOUSE_HEADERS)]
    for social_class, title, end in sections:
        header_at = _find_header_row(body, title, end)
        if header_at is None:
            log.warning("Sheet %r: no header row found for %s section", sheet_name, social_class)
            continue
        names = [_OLD_COLUMN_NAMES.get(_value(c), _value(c)) for c in body[header_at]]
        col = {n: i for i, n in enumerate(names) if n}
        for row in body[max(header_at, title) + 1:end]:
            if _is_empty_row(row) or _is_header_row(row):
                continue

            def cell(name: str):
                i = col.get(name)
                return row[i] if i is not None and i < len(row) else ""

            first = row[0] if row else ""
            out.append([
                _class_from_color(first, social_class),
                cell(ROLE), cell(CHARACTER), cell(VS_NAME), cell(DISCORD),
                cell(TIMEZONE), cell(COMMENTS),
            ])
    return out


def _is_header_row(row: Sequence) -> bool:
    return any(_value(c) == CHARACTER for c in row)


def _find_header_row(body: List[List[Any]], title: int, end: int) -> Optional[int]:
    for i in (title + 1, title - 1):
        if 0 <= i < len(body) and i < end and _is_header_row(body[i]):
            return i
    return None


def clean_house_sheet(sheet_name: str, rows: Sequence[Sequence]) -> List[List[Any]]:
    """Bring one house sheet to `HOUSE_HEADERS` layout when possible."""
    if not rows:
        return []
    headers = [_value(c) for c in rows[0]]
    if _matches(headers, HOUSE_HEADERS):
        return [list(r) for r in rows]
    if _matches(headers, HOUSE_ALTERNATIVE_HEADERS):
        log.info("Remapping alternative headers in sheet %r", sheet_name)
        return [list(HOUSE_HEADERS)] + [list(r) for r in rows[1:]]
    if all(h == "" for h in headers):
        log.info("Cleaning old format in sheet %r", sheet_name)
        return _flatten_old_layout(sheet_name, rows)
    log.warning("Unrecognized header format in sheet %r: %s", sheet_name, headers)
    return [list(r) for r in rows]


def parse_house_rows(sheet_name: str, rows: Sequence[Sequence]) -> List[HouseRecord]:
    """Header-keyed parse of one cleaned sheet; the sheet name is the House.

    Rows without a character name are dropped; a repeated name keeps the
    last row (at the position of the first).
    """
    if not rows:
        return []
    headers = [_value(c) for c in rows[0]]
    unique: Dict[str, HouseRecord] = {}
    for row in rows[1:]:
        by_col: Dict[str, Any] = {}
        for i, h in enumerate(headers):
            if h in HOUSE_HEADERS and i < len(row):
                by_col[h] = _raw(row[i])
        by_col[HOUSE] = sheet_name
        rec = house_record_from(by_col.get)
        if rec.character_name == "":
            continue
        unique[rec.character_name] = rec
    return list(unique.values())


def normalize_house_sheets(sheets: Mapping[str, Sequence[Sequence]]) -> List[HouseRecord]:
    """All House sheets of one snapshot -> records (Overview sheet ignored)."""
    out: List[HouseRecord] = []
    for name, rows in sheets.items():
        if name == OVERVIEW_SHEET:
            continue
        out.extend(parse_house_rows(name, clean_house_sheet(name, rows)))
    return out


# ---------------- Workbooks ----------------
WORKBOOK_EXTENSIONS = (".xlsx", ".xlsm")


def is_workbook(path: PathLike) -> bool:
    return Path(path).suffix.lower() in WORKBOOK_EXTENSIONS


def _background(cell) -> Optional[Color]:
    """Solid RGB fill of an openpyxl cell as 0..1 floats (theme colours ignored)."""
    fill = cell.fill
    if fill is None or fill.fill_type != "solid" or fill.fgColor is None:
        return None
    if fill.fgColor.type != "rgb" or not isinstance(fill.fgColor.rgb, str):
        return None
    rgb = fill.fgColor.rgb[-6:]
    try:
        return tuple(int(rgb[k:k + 2], 16) / 255 for k in (0, 2, 4))
    except ValueError:
        return None


def read_workbook(path: PathLike) -> Dict[str, List[List[Cell]]]:
    """Every sheet of a workbook as rows of `Cell`s, starting at A1.

    Raises SnapshotError.
    """
    p = Path(path)
    try:
        wb = load_workbook(p, data_only=True)
    except READ_ERRORS as e:
        raise SnapshotError(f"{p}: {e}") from e
    sheets: Dict[str, List[List[Cell]]] = {}
    for ws in wb.worksheets:
        rows: List[List[Cell]] = []
        for row in ws.iter_rows(min_row=1, min_col=1, max_row=ws.max_row, max_col=ws.max_column):
            rows.append([Cell("" if c.value is None else c.value, _background(c)) for c in row])
        sheets[ws.title] = rows
    wb.close()
    return sheets


def load_age_snapshot(path: PathLike) -> List[AgeRecord]:
    """Age records from a raw workbook (first sheet) or a flat JSON/table file."""
    if not is_workbook(path):
        return load_age_records(path)
    sheets = read_workbook(path)
    if not sheets:
        return []
    return normalize_age_sheet(next(iter(sheets.values())))


def load_house_snapshot(path: PathLike) -> List[HouseRecord]:
    """House records from a raw workbook (one sheet per House) or a flat file."""
    if not is_workbook(path):
        return load_house_records(path)
    return normalize_house_sheets(read_workbook(path))
