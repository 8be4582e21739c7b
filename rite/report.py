from __future__ import annotations

"""
RITE report generator
---------------------
This module renders a `RosterTimeline` into a DOCX report with charts.

Design goals:
- Keep RITE usable without the report dependencies (lazy imports).
- Show the same views as the roster site: stacked areas and lines per
  affiliation and per social class, with in-game months on the x-axis, and
  a per-class comparison for the latest snapshot.
- Skip charts that would be empty (e.g. no social classes recorded).
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import os
import tempfile

from .engine import RosterTimeline
from .series import Series, social_legend_order


# -----------------------------
# Configuration / colours
# -----------------------------

@dataclass
class ReportConfig:
    """High-level knobs to control how the report is written."""
    title: str = "RITE Roster Report"
    subtitle: str = "Roster Intelligence Timeline Engine"
    dataset_name: str = "Combined roster snapshots"

    # Social class counts include characters of the Wanderer group
    include_wanderers: bool = True

    # How many of the most recent dates to list in the totals table
    max_rows_preview: int = 15

    # Optional: list of CLI commands used before the report was written
    command_log: Optional[List[str]] = None

    colors: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_COLORS))


DEFAULT_COLORS: Dict[str, str] = {
    # affiliations
    "Ayrin": "#b10202",
    "Sabr": "#5a3286",
    "Stout": "#d4edbc",
    "Farring": "#bfe0f6",
    "Wildhart": "#753800",
    "Nightlocke": "#11734b",
    "Rivertal": "#0a53a8",
    "Wanderer": "#e5e5e5",
    # social classes
    "Commoner": "#11734b",
    "Notable": "#d4edbc",
    "Noble": "#473821",
    "Ruler": "#b10202",
}


def _tick_positions(n: int, max_ticks: int = 12) -> List[int]:
    """Evenly spaced x positions so month labels do not overlap."""
    if n <= max_ticks:
        return list(range(n))
    step = -(-n // max_ticks)
    return list(range(0, n, step))


# -----------------------------
# Main entry point used by CLI
# -----------------------------

def generate_docx_report(
    timeline: RosterTimeline,
    out_path: str,
    *,
    config: Optional[ReportConfig] = None,
) -> str:
    """
    Generate a DOCX report + charts for a roster timeline.

    The combined data file is only read; the report is built from the
    in-memory timeline.
    """
    config = config or ReportConfig()

    # Lazy imports: only required when "report" is used.
    try:
        from docx import Document
        from docx.shared import Pt, Inches
        from docx.enum.text import WD_ALIGN_PARAGRAPH
        from docx.oxml.ns import qn
    except ImportError as e:
        raise ImportError(
            "Missing dependency: python-docx.\n"
            "Install it with: python -m pip install python-docx"
        ) from e

    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
        import numpy as np
    except ImportError as e:
        raise ImportError(
            "Missing dependency: matplotlib (and numpy).\n"
            "Install with: python -m pip install matplotlib numpy"
        ) from e

    if not timeline.dates:
        raise ValueError("No dated records to report on (timeline is empty).")

    dates = timeline.dates
    labels = timeline.game_labels()
    x = np.arange(len(dates))
    ticks = _tick_positions(len(dates))

    # -----------------------------
    # 1) Create charts
    # -----------------------------
    tmpdir = tempfile.mkdtemp(prefix="rite_report_")
    # Each chart is: (title, file_path, what_it_shows)
    chart_paths: List[Tuple[str, str, str]] = []

    def _color(key: str) -> Optional[str]:
        return config.colors.get(key)

    def _save(filename: str) -> str:
        path = os.path.join(tmpdir, filename)
        plt.tight_layout()
        plt.savefig(path, dpi=150)
        plt.close()
        return path

    def _axes(title: str) -> None:
        plt.xticks([x[i] for i in ticks], [labels[i] for i in ticks], rotation=45, ha="right")
        plt.title(title)
        plt.xlabel("In-game month")
        plt.ylabel("# of Characters")

    def _stacked(title: str, frame, why: str, filename: str) -> None:
        keys = [k for k in frame.columns if frame[k].sum() > 0]
        if not keys:
            return
        plt.figure(figsize=(9, 5))
        colors = [_color(k) for k in keys]
        plt.stackplot(
            x, *[frame[k].to_numpy() for k in keys], labels=keys,
            colors=colors if all(colors) else None, edgecolor="black", linewidth=0.3,
        )
        plt.legend(loc="upper left", bbox_to_anchor=(1.0, 1.0), fontsize=8)
        _axes(title)
        chart_paths.append((title, _save(filename), why))

    def _lines(title: str, series: List[Series], why: str, filename: str) -> None:
        series = [s for s in series if any(s.counts)]
        if not series:
            return
        plt.figure(figsize=(9, 5))
        for s in series:
            plt.plot(x, s.counts, marker="o", markersize=3, label=s.key, color=_color(s.key))
        plt.legend(loc="upper left", bbox_to_anchor=(1.0, 1.0), fontsize=8)
        _axes(title)
        chart_paths.append((title, _save(filename), why))

    _stacked(
        "Characters per affiliation (stacked)",
        timeline.stack("affiliation"),
        "Alias spellings are merged into their canonical affiliation before stacking.",
        "stack_affiliation.png",
    )
    _lines(
        "Characters per affiliation",
        timeline.affiliation_series(),
        "Lines make it easier to compare the size of two affiliations over time.",
        "lines_affiliation.png",
    )
    _stacked(
        "Characters per social class (stacked)",
        timeline.stack("social"),
        "Classes are stacked in legend order: Ruler, Noble, Notable, Commoner.",
        "stack_social.png",
    )
    _lines(
        "Characters per social class",
        timeline.social_series(),
        "Line chart of the same social class counts.",
        "lines_social.png",
    )

    # Latest snapshot: grouped bars (one group per class, one bar per affiliation)
    latest = timeline.compare(-1)
    if latest and any(n for _, vals in latest for _, n in vals):
        affs = [a for a, _ in latest[0][1]]
        width = 0.8 / max(len(affs), 1)
        plt.figure(figsize=(9, 5))
        for j, aff in enumerate(affs):
            heights = [vals[j][1] for _, vals in latest]
            plt.bar(np.arange(len(latest)) + j * width, heights, width, label=aff, color=_color(aff))
        plt.xticks(np.arange(len(latest)) + 0.4 - width / 2, [cls for cls, _ in latest])
        plt.ylabel("# of Characters")
        title = f"Affiliations per social class on {dates[-1]} ({labels[-1]})"
        plt.title(title)
        plt.legend(loc="upper left", bbox_to_anchor=(1.0, 1.0), fontsize=8)
        chart_paths.append((title, _save("compare_latest.png"),
                            "Side-by-side bars compare affiliations inside each social class."))

    # -----------------------------
    # 2) Build DOCX report
    # -----------------------------
    doc = Document()

    # Set a simple readable default style
    style = doc.styles["Normal"]
    style.font.name = "Calibri"
    style._element.rPr.rFonts.set(qn("w:eastAsia"), "Calibri")
    style.font.size = Pt(11)

    def _center_title(text: str, size: int, bold: bool = False, italic: bool = False) -> None:
        p = doc.add_paragraph()
        r = p.add_run(text)
        r.bold = bold
        r.italic = italic
        r.font.size = Pt(size)
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER

    def _kv(key: str, value: str) -> None:
        p = doc.add_paragraph()
        r = p.add_run(f"{key}: ")
        r.bold = True
        p.add_run(value)

    _center_title(config.title, 22, bold=True)
    _center_title(config.subtitle, 12, italic=True)

    doc.add_paragraph("")
    _kv("Dataset", config.dataset_name)
    if timeline.source_path:
        _kv("Data file", os.path.basename(timeline.source_path))
    _kv("Snapshots", str(len(dates)))
    _kv("Date range", f"{dates[0]} to {dates[-1]} ({labels[0]} to {labels[-1]})")
    _kv("Records", str(len(timeline.records)))
    if timeline.index.dropped:
        _kv("Records without a date (left out)", str(timeline.index.dropped))

    # Command log (optional) for reproducibility
    if config.command_log:
        doc.add_paragraph("")
        doc.add_heading("Command log (reproducibility)", level=1)
        for line in config.command_log:
            doc.add_paragraph(line, style="List Bullet")

    # Affiliation groups
    doc.add_paragraph("")
    doc.add_heading("Affiliation groups", level=1)
    doc.add_paragraph("Raw affiliation spellings counted under each canonical label:")
    t = doc.add_table(rows=1, cols=2)
    t.rows[0].cells[0].text = "Affiliation"
    t.rows[0].cells[1].text = "Spellings"
    for label in timeline.affiliations:
        row = t.add_row().cells
        row[0].text = label
        row[1].text = ", ".join(timeline.canonical.members_of(label))

    # Visualizations
    doc.add_paragraph("")
    doc.add_heading("Visualizations", level=1)
    for title, path, why in chart_paths:
        doc.add_paragraph(title)
        doc.add_picture(path, width=Inches(6.5))
        doc.add_paragraph(why)
        doc.add_paragraph("")

    # Latest snapshot per social class
    doc.add_paragraph("")
    doc.add_heading(f"Latest snapshot ({dates[-1]}, {labels[-1]})", level=1)
    t2 = doc.add_table(rows=1, cols=3)
    h = t2.rows[0].cells
    h[0].text = "Social class"
    h[1].text = "Characters"
    h[2].text = "Largest affiliations"
    for cls in social_legend_order(timeline.social_classes):
        _, listed = timeline.class_breakdown(dates[-1], cls, config.include_wanderers)
        top = sorted(listed, key=lambda p: -p[1])[:3]
        r = t2.add_row().cells
        r[0].text = cls
        r[1].text = str(timeline.class_count(dates[-1], cls, config.include_wanderers))
        r[2].text = ", ".join(f"{a} ({n})" for a, n in top)

    # Per-date totals
    doc.add_paragraph("")
    doc.add_heading("Snapshot totals", level=1)
    t3 = doc.add_table(rows=1, cols=3)
    h = t3.rows[0].cells
    h[0].text = "Date"
    h[1].text = "In-game month"
    h[2].text = "Characters"
    rows = list(zip(dates, labels))[-config.max_rows_preview:]
    for d, label in rows:
        r = t3.add_row().cells
        r[0].text = d
        r[1].text = label
        r[2].text = str(len(timeline.index[d].all))

    # -----------------------------
    # Reproducibility footer
    # -----------------------------
    doc.add_paragraph("")
    doc.add_heading("Reproducibility footer", level=1)

    from . import __version__ as rite_version
    from datetime import datetime as _dt
    generated_at = _dt.now().isoformat(timespec="seconds")

    doc.add_paragraph(f"RITE version: {rite_version}")
    doc.add_paragraph(f"Report generated at: {generated_at}")
    cal = timeline.calendar
    doc.add_paragraph(
        f"Game calendar: {cal.anchor_date.isoformat()} is Year {cal.anchor_year}, month {cal.anchor_month}; "
        f"{cal.active_minutes_per_day} active minutes per real day."
    )

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    doc.save(out_path)
    return out_path
