"""
Timeline engine (RITE)
======================

This is the heart of the project. RITE works like a tiny offline analytics
engine over the combined roster file:

1) Load merged records (immutable)
2) Build the canonical affiliation groups from every raw affiliation seen
3) Group the records per date (per-date indices)
4) Map each date onto the in-game calendar
5) Hand out chart-ready series, breakdowns and exports

Everything is computed once in `build_timeline`; a `RosterTimeline` is only
read afterwards.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
import csv
import json

from .canonical import CanonicalIndex, build_canonical_index, raw_affiliations
from .gamecal import DEFAULT_CALENDAR, GameCalendar, format_game_month
from .indices import DateIndex, build_date_groups
from .loader import PathLike, load_merged_records
from .models import MergedRecord
from . import series as S


@dataclass
class RosterTimeline:
    """Merged roster records plus everything derived from them.

    - records: all merged records (including any without a date)
    - index: per-date groups (records without a date are left out)
    - canonical: affiliation groups for the whole corpus
    - game_indices: in-game month index for each entry of `dates`
    """
    records: List[MergedRecord]
    index: DateIndex
    canonical: CanonicalIndex
    calendar: GameCalendar = DEFAULT_CALENDAR
    source_path: Optional[str] = None
    game_indices: List[int] = field(init=False)

    def __post_init__(self) -> None:
        self.game_indices = [self.calendar.month_index_for(d) for d in self.index.dates]

    # ---------------- Rendering contract ----------------
    @property
    def dates(self) -> List[str]:
        return self.index.dates

    @property
    def affiliations(self) -> List[str]:
        return self.canonical.affiliations

    @property
    def social_classes(self) -> List[str]:
        return self.index.social_classes()

    def game_labels(self) -> List[str]:
        return [format_game_month(i) for i in self.game_indices]

    def game_index_of(self, date: str) -> int:
        return self.game_indices[self.dates.index(date)]

    def date_at(self, i: int) -> str:
        """Date by position; negative positions count from the end."""
        if not self.dates:
            raise ValueError("Timeline has no dates")
        if not -len(self.dates) <= i < len(self.dates):
            raise ValueError(f"Date index must be in [0, {len(self.dates) - 1}], got {i}")
        return self.dates[i]

    # ---------------- Series ----------------
    def affiliation_series(self) -> List[S.Series]:
        return S.affiliation_series(self.index, self.canonical)

    def social_series(self) -> List[S.Series]:
        return S.social_series(self.index, self.social_classes)

    def series(self, grouping: str) -> List[S.Series]:
        if _grouping(grouping) == "social":
            return self.social_series()
        return self.affiliation_series()

    def stack(self, grouping: str):
        """Stacked matrix (DataFrame) in display order for `grouping`."""
        rows = self.series(grouping)
        keys = [s.key for s in rows]
        order = S.social_legend_order(keys) if _grouping(grouping) == "social" else S.stack_order(keys)
        return S.stack_frame(rows, self.dates, order)

    def compare(self, i: int, classes: Optional[Sequence[str]] = None,
                affiliations: Optional[Sequence[str]] = None) -> List[Tuple[str, List[Tuple[str, int]]]]:
        """Per class, per affiliation counts on the i-th date."""
        classes = S.social_legend_order(self.social_classes) if classes is None else classes
        return S.counts_for_date(self.index, self.canonical, self.date_at(i), classes, affiliations)

    def class_breakdown(self, date: str, cls: str, include_wanderers: bool = True):
        return S.affiliation_counts_for_social(self.index, self.canonical, date, cls, include_wanderers)

    def class_count(self, date: str, cls: str, include_wanderers: bool = True) -> int:
        return S.social_count_for(self.index, self.canonical, date, cls, include_wanderers)

    # ---------------- Output operations ----------------
    def to_payload(self) -> Dict[str, Any]:
        """Everything a chart needs, as plain JSON-ready data."""
        aff = self.affiliation_series()
        soc = self.social_series()
        return {
            "dates": list(self.dates),
            "gameIndices": list(self.game_indices),
            "gameLabels": self.game_labels(),
            "affiliations": list(self.affiliations),
            "socialClasses": list(self.social_classes),
            "canonicalMembers": {k: list(v) for k, v in self.canonical.members.items()},
            "affiliationSeries": {s.key: s.counts for s in aff},
            "socialSeries": {s.key: s.counts for s in soc},
            "maxCount": S.max_count(aff),
        }

    def export_json(self, path: str) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_payload(), f, ensure_ascii=False, indent=2)

    def export_csv(self, path: str, grouping: str = "affiliation") -> None:
        """Stacked counts as CSV: date, game month, one column per group."""
        frame = self.stack(grouping)
        with open(path, "w", newline="", encoding="utf-8") as f:
            w = csv.writer(f)
            w.writerow(["date", "game_month"] + list(frame.columns))
            for d, label, row in zip(self.dates, self.game_labels(), frame.itertuples(index=False)):
                w.writerow([d, label] + list(row))


def _grouping(grouping: str) -> str:
    g = grouping.lower().strip()
    if g in ("affiliation", "affiliations", "aff"):
        return "affiliation"
    if g in ("social", "class", "social_class"):
        return "social"
    raise ValueError("grouping must be: affiliation | social")


def build_timeline(records: Sequence[MergedRecord],
                   alias_groups: Optional[Sequence[Sequence[str]]] = None,
                   calendar: GameCalendar = DEFAULT_CALENDAR,
                   source_path: Optional[str] = None) -> RosterTimeline:
    recs = list(records)
    canonical = build_canonical_index(raw_affiliations(recs), alias_groups)
    index = build_date_groups(recs)
    return RosterTimeline(records=recs, index=index, canonical=canonical,
                          calendar=calendar, source_path=source_path)


def load_timeline(path: PathLike, alias_groups: Optional[Sequence[Sequence[str]]] = None,
                  calendar: GameCalendar = DEFAULT_CALENDAR) -> RosterTimeline:
    """Build a timeline from a combined merged file. Raises SnapshotError."""
    return build_timeline(load_merged_records(path), alias_groups, calendar, source_path=str(path))
