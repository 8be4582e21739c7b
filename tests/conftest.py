"""Shared fixtures for RITE tests."""

import json

import pytest

from rite.models import MergedRecord


def merged(name, affiliation="", social_class="", date="2025-04-19", **kw):
    return MergedRecord(
        discord_username=kw.pop("discord_username", ""),
        vs_username=kw.pop("vs_username", ""),
        character_name=name,
        affiliation=affiliation,
        social_class=social_class,
        date=date,
        **kw,
    )


@pytest.fixture
def records():
    """Two snapshot dates, alias spellings, a Wanderer and an undated row."""
    return [
        merged("Alice", "Locke", "Noble", "2025-04-19"),
        merged("Bob", "Nightlocke", "Commoner", "2025-04-19"),
        merged("Cara", "Du Vězos", "Ruler", "2025-04-19"),
        merged("Dan", "Wanderer", "Commoner", "2025-04-19"),
        merged("Alice", "Nightlocke", "Noble", "2025-04-20"),
        merged("Bob", "Nightlocke", "Commoner", "2025-04-20"),
        merged("Cara", "du vezos", "Ruler", "2025-04-20"),
        merged("Dan", "Wanderer", "Commoner", "2025-04-20"),
        merged("Eve", "Unknown", "Commoner", "2025-04-20"),
        merged("Ghost", "Sabr", "Noble", None),
    ]


def write_json(path, payload):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    return path


def write_workbook(path, sheets, fills=None):
    """Write {sheet title: rows} as an .xlsx; `fills` maps (title, row, col) -> RGB hex."""
    from openpyxl import Workbook
    from openpyxl.styles import PatternFill

    wb = Workbook()
    wb.remove(wb.active)
    for title, rows in sheets.items():
        ws = wb.create_sheet(title)
        for r, row in enumerate(rows):
            for c, value in enumerate(row):
                if value not in ("", None):
                    ws.cell(row=r + 1, column=c + 1, value=value)
    for (title, r, c), rgb in (fills or {}).items():
        wb[title].cell(row=r + 1, column=c + 1).fill = PatternFill(fill_type="solid", fgColor=rgb)
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    return path
