"""
Per-date indices (precomputed lookup tables)
============================================

RITE groups the merged records by snapshot date once, and inside each date
builds two more maps (value -> list of records):

- `groups["2025-04-19"].by_social_class["Noble"]`
- `groups["2025-04-19"].by_affiliation["Du Vězos"]`

The affiliation map is keyed by the *raw* sheet value; canonical grouping is
applied later by the series builders, so a change to the alias table never
requires rebuilding these indices.

Why ISO date strings as keys?
- "YYYY-MM-DD" sorts lexicographically in calendar order, so `dates` is
  just `sorted(keys)`.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional
import logging

from .models import MergedRecord, is_known

log = logging.getLogger(__name__)


@dataclass
class DateGroup:
    """All records of one date plus the two derived indexes."""
    all: List[MergedRecord] = field(default_factory=list)
    by_social_class: Dict[str, List[MergedRecord]] = field(default_factory=dict)
    by_affiliation: Dict[str, List[MergedRecord]] = field(default_factory=dict)

    def class_count(self, social_class: str) -> int:
        return len(self.by_social_class.get(social_class, []))

    def affiliation_count(self, raw_affiliation: str) -> int:
        return len(self.by_affiliation.get(raw_affiliation, []))


@dataclass
class DateIndex:
    """Container of per-date groups and their sorted keys."""
    groups: Dict[str, DateGroup]
    dates: List[str]
    # Records left out because their date could not be resolved
    dropped: int = 0

    def __getitem__(self, date: str) -> DateGroup:
        return self.groups[date]

    def __len__(self) -> int:
        return len(self.dates)

    def get(self, date: str) -> Optional[DateGroup]:
        return self.groups.get(date)

    def social_classes(self) -> List[str]:
        """Distinct social classes, first-seen order walking the sorted dates.

        For a combined file (written date by date) this equals record order;
        an unsorted input is still read in date order.
        """
        seen: Dict[str, None] = {}
        for d in self.dates:
            for cls in self.groups[d].by_social_class:
                seen.setdefault(cls, None)
        return list(seen)


def build_date_groups(records: Iterable[MergedRecord]) -> DateIndex:
    """Group merged records by their date in a single pass.

    Records without a date are dropped (and counted); records with a blank
    or 'Unknown' class/affiliation stay in `all` but are left out of the
    corresponding index.
    """
    groups: Dict[str, DateGroup] = {}
    dropped = 0

    for r in records:
        if not r.date:
            dropped += 1
            continue
        g = groups.get(r.date)
        if g is None:
            g = groups[r.date] = DateGroup()
        g.all.append(r)
        if is_known(r.social_class):
            g.by_social_class.setdefault(r.social_class, []).append(r)
        if is_known(r.affiliation):
            g.by_affiliation.setdefault(r.affiliation, []).append(r)

    if dropped:
        log.warning("Dropped %d records without a date", dropped)
    return DateIndex(groups=groups, dates=sorted(groups), dropped=dropped)
