"""Tests for the DOCX report."""

import matplotlib

matplotlib.use("Agg")

import pytest
from docx import Document

from rite.engine import build_timeline
from rite.report import ReportConfig, _tick_positions, generate_docx_report


class TestTickPositions:
    def test_short_axis_keeps_every_label(self):
        assert _tick_positions(5) == [0, 1, 2, 3, 4]

    def test_long_axis_is_thinned(self):
        ticks = _tick_positions(100, max_ticks=10)
        assert len(ticks) <= 10
        assert ticks[0] == 0


class TestGenerateDocxReport:
    def test_writes_report(self, records, tmp_path):
        out = tmp_path / "reports" / "roster.docx"
        cfg = ReportConfig(title="Test Roster", command_log=["stats", "compare -1"])
        result = generate_docx_report(build_timeline(records), str(out), config=cfg)
        assert result == str(out)
        assert out.exists()

        doc = Document(str(out))
        text = "\n".join(p.text for p in doc.paragraphs)
        assert "Test Roster" in text
        assert "compare -1" in text
        assert "Reproducibility footer" in text
        assert len(doc.inline_shapes) >= 4
        # groups, latest snapshot, totals
        assert len(doc.tables) == 3

    def test_empty_timeline_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            generate_docx_report(build_timeline([]), str(tmp_path / "x.docx"))
