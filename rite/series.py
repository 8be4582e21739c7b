"""
Series builders
===============

Chart-ready numbers derived from the per-date indices:

- one count series per canonical affiliation (summing its raw members),
- one count series per social class,
- the same numbers as stacked matrices (pandas DataFrame, one row per date,
  one column per group), and
- the per-date breakdowns used by the comparison and tooltip views.

Nothing here mutates the indices or the canonical index.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import pandas as pd

from .canonical import CanonicalIndex, WANDERER
from .indices import DateIndex

# Legend order for social classes (top -> bottom); unknown classes follow
SOCIAL_PREFERRED_ORDER = ["Ruler", "Noble", "Notable", "Commoner"]


@dataclass(frozen=True)
class Series:
    """Counts of one group, aligned with `dates`."""
    key: str
    dates: List[str]
    counts: List[int]

    def points(self) -> List[Tuple[str, int]]:
        return list(zip(self.dates, self.counts))


def affiliation_count(index: DateIndex, canonical: CanonicalIndex, date: str, label: str) -> int:
    """Records on `date` whose raw affiliation belongs to canonical `label`."""
    g = index.get(date)
    if g is None:
        return 0
    return sum(g.affiliation_count(m) for m in canonical.members_of(label))


def affiliation_series(index: DateIndex, canonical: CanonicalIndex) -> List[Series]:
    return [
        Series(key=label, dates=list(index.dates),
               counts=[affiliation_count(index, canonical, d, label) for d in index.dates])
        for label in canonical.affiliations
    ]


def social_series(index: DateIndex, classes: Optional[Sequence[str]] = None) -> List[Series]:
    classes = index.social_classes() if classes is None else classes
    return [
        Series(key=cls, dates=list(index.dates),
               counts=[index[d].class_count(cls) for d in index.dates])
        for cls in classes
    ]


def max_count(series: Iterable[Series]) -> int:
    """Largest single count across all series (1 if there is none)."""
    return max((c for s in series for c in s.counts), default=0) or 1


def stack_frame(series: Sequence[Series], dates: Sequence[str],
                keys: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """Stacked matrix: index = dates, columns = series keys (in `keys` order)."""
    by_key = {s.key: s.counts for s in series}
    cols = list(keys) if keys is not None else [s.key for s in series]
    data = {k: by_key.get(k, [0] * len(dates)) for k in cols}
    frame = pd.DataFrame(data, index=pd.Index(list(dates), name="date"), columns=cols)
    return frame.astype(int)


def affiliation_stack(index: DateIndex, canonical: CanonicalIndex,
                      keys: Optional[Sequence[str]] = None) -> pd.DataFrame:
    return stack_frame(affiliation_series(index, canonical), index.dates, keys)


def social_stack(index: DateIndex, keys: Optional[Sequence[str]] = None) -> pd.DataFrame:
    series = social_series(index)
    return stack_frame(series, index.dates, keys)


# ---------------- Orderings ----------------
def alphabetical(keys: Iterable[str]) -> List[str]:
    return sorted(keys, key=lambda k: (k.casefold(), k))


def social_legend_order(classes: Iterable[str]) -> List[str]:
    present = list(classes)
    preferred = [c for c in SOCIAL_PREFERRED_ORDER if c in present]
    rest = alphabetical(c for c in present if c not in SOCIAL_PREFERRED_ORDER)
    return preferred + rest


def stack_order(keys: Iterable[str]) -> List[str]:
    """Alphabetical, with the Wanderer band kept on top of the stack."""
    out = alphabetical(keys)
    if WANDERER in out:
        out.remove(WANDERER)
        out.append(WANDERER)
    return out


# ---------------- Per-date breakdowns ----------------
def counts_for_date(index: DateIndex, canonical: CanonicalIndex, date: str,
                    classes: Sequence[str],
                    affiliations: Optional[Iterable[str]] = None) -> List[Tuple[str, List[Tuple[str, int]]]]:
    """Per social class, the count of each canonical affiliation on `date`.

    Only records whose class equals the class are counted. `affiliations`
    restricts (but does not reorder) the canonical labels.
    """
    g = index.get(date)
    wanted = None if affiliations is None else set(affiliations)
    labels = [a for a in canonical.affiliations if wanted is None or a in wanted]
    out: List[Tuple[str, List[Tuple[str, int]]]] = []
    for cls in classes:
        values: List[Tuple[str, int]] = []
        for label in labels:
            n = 0
            if g is not None:
                for m in canonical.members_of(label):
                    n += sum(1 for r in g.by_affiliation.get(m, []) if r.social_class == cls)
            values.append((label, n))
        out.append((cls, values))
    return out


def social_count_for(index: DateIndex, canonical: CanonicalIndex, date: str, cls: str,
                     include_wanderers: bool = True) -> int:
    g = index.get(date)
    if g is None:
        return 0
    entries = g.by_social_class.get(cls, [])
    if include_wanderers:
        return len(entries)
    wanderers = set(canonical.members.get(WANDERER, []))
    return sum(1 for r in entries if r.affiliation not in wanderers)


def affiliation_counts_for_social(index: DateIndex, canonical: CanonicalIndex, date: str, cls: str,
                                  include_wanderers: bool = True) -> Tuple[int, List[Tuple[str, int]]]:
    """(total, [(canonical affiliation, count)]) for one class on one date.

    Alphabetical order, zero counts omitted. Records whose affiliation is
    blank or 'Unknown' are not listed and not part of the total.
    """
    g = index.get(date)
    entries = g.by_social_class.get(cls, []) if g is not None else []
    member_to_label = canonical.member_to_label()
    counts: Dict[str, int] = {}
    for r in entries:
        label = member_to_label.get(r.affiliation, r.affiliation)
        if not include_wanderers and label == WANDERER:
            continue
        counts[label] = counts.get(label, 0) + 1
    listed = [(a, counts[a]) for a in alphabetical(canonical.affiliations) if counts.get(a)]
    return sum(n for _, n in listed), listed
