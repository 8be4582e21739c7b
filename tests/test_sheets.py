"""Tests for spreadsheet layout normalization."""

import pytest

from rite.loader import SnapshotError
from rite.sheets import (
    AGE_HEADERS, HOUSE_HEADERS, NOBLE_COLOR, RULER_COLOR, Cell,
    clean_age_rows, clean_house_sheet, load_age_snapshot, load_house_snapshot,
    normalize_age_sheet, normalize_house_sheets, read_workbook,
)
from conftest import write_json, write_workbook

META = [[""] * 13 for _ in range(5)]


def _age_sheet(header, *rows):
    return META + [[""] + list(header)] + [[""] + list(r) for r in rows]


class TestAgeSheet:
    def test_current_layout(self):
        rows = _age_sheet(AGE_HEADERS, ["ali", "alivs", "Alice", "Sabr", 1, 3, 20, 1, 2, 3, 4, 5])
        recs = normalize_age_sheet(rows)
        assert len(recs) == 1
        assert recs[0].vs_username == "alivs"
        assert recs[0].yearly == (1, 2, 3, 4, 5)

    def test_renamed_headers_are_remapped(self):
        header = ["Player Name", "Ingame Name", "Character Name", "Affiliation", "PVE Deaths",
                  "Year of Maturity", "Current Age", "Year 4", "Year 5", "Year 6", "Year 7", "Year 8"]
        cleaned = clean_age_rows(_age_sheet(header, ["p"] * 12))
        assert cleaned[0] == AGE_HEADERS

    def test_shifted_layout_inserts_blank_vs_name(self):
        header = ["Player Name", "Character Name", "Affiliation", "PVE Deaths", "Year of Birth",
                  "Current Age", "Year 4", "Year 5", "Year 6", "Year 7"]
        rows = _age_sheet(header, ["bob#1", "Bob", "Stout", 0, 2, 25, 1, 1, 1, 1])
        rec = normalize_age_sheet(rows)[0]
        assert rec.discord_username == "bob#1"
        assert rec.vs_username == ""
        assert rec.character_name == "Bob"
        assert rec.current_age == 25
        assert rec.yearly == (1, 1, 1, 1, 0)

    def test_empty_rows_skipped(self):
        rows = _age_sheet(AGE_HEADERS, [""] * 12, ["a", "b", "C", "Sabr"])
        assert [r.character_name for r in normalize_age_sheet(rows)] == ["C"]

    def test_too_short(self):
        assert normalize_age_sheet(META) == []


class TestHouseSheets:
    def test_current_layout_and_overview_ignored(self):
        sheets = {
            "Overview": [["anything"]],
            "Merrick": [HOUSE_HEADERS, ["Noble", "Lord", "Alice", "alivs", "ali", "UTC", ""]],
        }
        recs = normalize_house_sheets(sheets)
        assert len(recs) == 1
        assert (recs[0].house, recs[0].social_class, recs[0].role) == ("Merrick", "Noble", "Lord")

    def test_alternative_headers(self):
        header = ["Social Class", "Role", "Character Name", "IGN", "Discord", "Timezone", "Comments"]
        cleaned = clean_house_sheet("Stout", [header, ["Commoner", "", "Bob", "b", "b#1", "", ""]])
        assert cleaned[0] == HOUSE_HEADERS

    def test_duplicate_names_last_wins_and_blank_dropped(self):
        sheets = {"Sabr": [HOUSE_HEADERS,
                           ["Noble", "", "Alice", "", "", "", ""],
                           ["Commoner", "", "", "", "", "", ""],
                           ["Ruler", "", "Alice", "", "", "", ""]]}
        recs = normalize_house_sheets(sheets)
        assert [(r.character_name, r.social_class) for r in recs] == [("Alice", "Ruler")]

    def test_old_layout_sections_and_colors(self):
        old_header = ["", "Role", "Character Name", "IGN", "Discord", "Timezone", "Comments"]
        rows = [
            [""] * 8,
            ["", "Notables"] + [""] * 6,
            [""] + old_header,
            ["", Cell("", RULER_COLOR), "Lord", "Ann", "annvs", "ann#1", "UTC", ""],
            ["", Cell("", NOBLE_COLOR), "Lady", "Bea", "", "", "", ""],
            ["", "", "Steward", "Cid", "", "", "", ""],
            [""] * 8,
            ["", "Commoners"] + [""] * 6,
            [""] + old_header,
            ["", "", "", "Dee", "", "", "", ""],
        ]
        recs = normalize_house_sheets({"Wildhart": rows})
        assert [(r.character_name, r.social_class) for r in recs] == [
            ("Ann", "Ruler"), ("Bea", "Noble"), ("Cid", "Notable"), ("Dee", "Commoner"),
        ]
        assert recs[0].vs_username == "annvs"
        assert recs[0].discord_username == "ann#1"
        assert all(r.house == "Wildhart" for r in recs)

    def test_old_layout_without_sections(self):
        rows = [["", ""], ["", "just text"]]
        assert normalize_house_sheets({"Empty": rows}) == []


class TestWorkbooks:
    def test_cells_start_at_a1_and_carry_fills(self, tmp_path):
        p = write_workbook(tmp_path / "April 3.xlsx", {"Sabr": [["", ""], ["", "Ann"]]},
                           fills={("Sabr", 1, 1): "FCE5CD"})
        rows = read_workbook(p)["Sabr"]
        assert [[c.value for c in r] for r in rows] == [["", ""], ["", "Ann"]]
        assert rows[1][1].background == pytest.approx(RULER_COLOR, abs=0.01)
        assert rows[1][0].background is None

    def test_old_layout_house_workbook(self, tmp_path):
        old_header = ["", "", "Role", "Character Name", "IGN", "Discord", "Timezone", "Comments"]
        rows = [
            [""] * 8,
            ["", "Notables"],
            old_header,
            ["", "", "Lord", "Ann", "annvs", "ann#1", "UTC"],
            ["", "", "Lady", "Bea"],
            ["", "", "Steward", "Cid"],
            ["", "Commoners"],
            old_header,
            ["", "", "", "Dee"],
        ]
        p = write_workbook(tmp_path / "April 3.xlsx", {"Overview": [["x"]], "Wildhart": rows},
                           fills={("Wildhart", 3, 1): "FCE5CD", ("Wildhart", 4, 1): "FFF9E2"})
        recs = load_house_snapshot(p)
        assert [(r.character_name, r.social_class, r.house) for r in recs] == [
            ("Ann", "Ruler", "Wildhart"), ("Bea", "Noble", "Wildhart"),
            ("Cid", "Notable", "Wildhart"), ("Dee", "Commoner", "Wildhart"),
        ]

    def test_age_workbook_uses_first_sheet(self, tmp_path):
        rows = [["", "meta"]] * 5 + [[""] + AGE_HEADERS, ["", "d", "v", "Alice", "Stout", 0, 2, 18]]
        p = write_workbook(tmp_path / "April 3.xlsx", {"Ages": rows, "Notes": [["ignored"]]})
        recs = load_age_snapshot(p)
        assert [(r.character_name, r.affiliation, r.current_age) for r in recs] == [("Alice", "Stout", 18)]

    def test_json_snapshots_pass_through(self, tmp_path):
        p = write_json(tmp_path / "April 3.json", [{"Character Name": "Alice", "House": "Sabr"}])
        assert load_house_snapshot(p)[0].house == "Sabr"

    def test_broken_workbook(self, tmp_path):
        p = tmp_path / "April 3.xlsx"
        p.write_bytes(b"PK\x03\x04 broken")
        with pytest.raises(SnapshotError):
            load_house_snapshot(p)
