"""Tests for the RosterTimeline engine and its exports."""

import csv
import json

import pytest

from rite.engine import build_timeline, load_timeline
from rite.loader import save_records


class TestRosterTimeline:
    def test_basic_views(self, records):
        tl = build_timeline(records)
        assert tl.dates == ["2025-04-19", "2025-04-20"]
        assert tl.game_indices == [64, 65]
        assert tl.game_labels() == ["May '5", "Jun '5"]
        assert tl.game_index_of("2025-04-20") == 65
        assert tl.index.dropped == 1
        assert tl.social_classes == ["Noble", "Commoner", "Ruler"]
        assert "Nightlocke" in tl.affiliations

    def test_date_at(self, records):
        tl = build_timeline(records)
        assert tl.date_at(-1) == "2025-04-20"
        with pytest.raises(ValueError):
            tl.date_at(2)

    def test_empty_timeline(self):
        tl = build_timeline([])
        assert tl.dates == []
        assert tl.to_payload()["maxCount"] == 1
        with pytest.raises(ValueError, match="no dates"):
            tl.date_at(0)

    def test_stack_orders(self, records):
        tl = build_timeline(records)
        aff = list(tl.stack("affiliation").columns)
        assert aff[-1] == "Wanderer"
        assert list(tl.stack("social").columns) == ["Ruler", "Noble", "Commoner"]

    def test_bad_grouping(self, records):
        with pytest.raises(ValueError, match="grouping"):
            build_timeline(records).series("house")

    def test_compare_uses_legend_order(self, records):
        out = build_timeline(records).compare(0, affiliations=["Ayrin"])
        assert out == [("Ruler", [("Ayrin", 1)]), ("Noble", [("Ayrin", 0)]),
                       ("Commoner", [("Ayrin", 0)])]

    def test_class_breakdown(self, records):
        tl = build_timeline(records)
        assert tl.class_breakdown("2025-04-19", "Commoner", include_wanderers=False) == (
            1, [("Nightlocke", 1)])
        assert tl.class_count("2025-04-19", "Commoner") == 2

    def test_custom_alias_groups(self, records):
        tl = build_timeline(records, alias_groups=[])
        assert "Locke" in tl.affiliations
        assert "Nightlocke" in tl.affiliations


class TestExports:
    def test_payload(self, records):
        p = build_timeline(records).to_payload()
        assert p["dates"] == ["2025-04-19", "2025-04-20"]
        assert p["gameLabels"] == ["May '5", "Jun '5"]
        assert p["affiliationSeries"]["Nightlocke"] == [2, 2]
        assert p["socialSeries"]["Commoner"] == [2, 3]
        assert set(p["canonicalMembers"]["Ayrin"]) >= {"Du Vězos", "du vezos"}
        assert p["maxCount"] == 2

    def test_export_json(self, records, tmp_path):
        out = tmp_path / "timeline.json"
        build_timeline(records).export_json(str(out))
        with open(out, encoding="utf-8") as f:
            assert json.load(f)["gameIndices"] == [64, 65]

    def test_export_csv(self, records, tmp_path):
        out = tmp_path / "social.csv"
        build_timeline(records).export_csv(str(out), "social")
        with open(out, newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        assert rows[0] == ["date", "game_month", "Ruler", "Noble", "Commoner"]
        assert rows[2] == ["2025-04-20", "Jun '5", "1", "1", "3"]

    def test_load_timeline(self, records, tmp_path):
        path = tmp_path / "all_merged_data.json"
        save_records(records, path)
        tl = load_timeline(path)
        assert tl.source_path == str(path)
        assert len(tl.records) == len(records)
        assert tl.index.dropped == 1
