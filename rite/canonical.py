"""
Affiliation canonicalization
============================

Affiliation names are typed by hand in the roster sheets, so one group shows
up under several spellings ("Du Vězos" / "du vezos"), and some groups were
renamed or absorbed over time ("Locke" became "Nightlocke").

`build_canonical_index` turns the raw strings seen in a corpus into stable
groups:

1) every hand-maintained alias group becomes one canonical label (its first
   entry),
2) every raw string is compared through `normalize` (accents stripped,
   case-folded, trimmed) and joins the group its normalized form maps to,
3) anything left over becomes a singleton group labelled by itself.

The result is a plain value (`CanonicalIndex`) that is built once per run
and then only read.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence
import unicodedata

from .models import MergedRecord, is_known

# Hand-maintained alias table. First entry of each group is the label.
ALIAS_GROUPS: List[List[str]] = [
    ["Nightlocke", "Locke"],
    ["Ayrin", "Du Vězos", "Mercenary"],
    ["Stout", "Aetos"],
    ["Sabr", "Merrick"],
    ["Rivertal", "Dayne", "Windstrom"],
    ["Farring", "Davila"],
]

WANDERER = "Wanderer"


def normalize(s: str) -> str:
    """Comparison key for an affiliation: no diacritics, trimmed, lowercase."""
    decomposed = unicodedata.normalize("NFD", s)
    stripped = "".join(ch for ch in decomposed if not unicodedata.category(ch).startswith("M"))
    return unicodedata.normalize("NFC", stripped).strip().lower()


@dataclass(frozen=True)
class CanonicalIndex:
    """Mapping from raw affiliation strings to canonical labels.

    - `affiliations`: labels in insertion order (alias groups first, then
      groups discovered in the corpus)
    - `members`: label -> raw strings belonging to it (no duplicates)
    - `by_key`: normalized raw string -> label
    """
    affiliations: List[str]
    members: Dict[str, List[str]]
    by_key: Dict[str, str] = field(repr=False)

    def canonicalize(self, raw: str) -> str:
        """Label for a raw string; unknown strings are their own label."""
        return self.by_key.get(normalize(raw), raw)

    def members_of(self, label: str) -> List[str]:
        return self.members.get(label, [label])

    def group_of(self, raw: str) -> Optional[str]:
        """Label whose member list holds `raw` verbatim, if any."""
        for label in self.affiliations:
            if raw in self.members[label]:
                return label
        return None

    def member_to_label(self) -> Dict[str, str]:
        out: Dict[str, str] = {}
        for label in self.affiliations:
            for m in self.members[label]:
                out[m] = label
        return out


def raw_affiliations(records: Iterable[MergedRecord]) -> List[str]:
    """Distinct raw affiliations in first-seen order, blanks/'Unknown' excluded."""
    seen: Dict[str, None] = {}
    for r in records:
        if is_known(r.affiliation):
            seen.setdefault(r.affiliation, None)
    return list(seen)


def build_canonical_index(raw: Iterable[str],
                          alias_groups: Optional[Sequence[Sequence[str]]] = None) -> CanonicalIndex:
    """Build the canonical groups for a corpus of raw affiliation strings.

    A normalized key keeps the first label it was given, so a later alias
    group can never pull a string away from an earlier one.
    """
    groups = ALIAS_GROUPS if alias_groups is None else alias_groups
    by_key: Dict[str, str] = {}
    members: Dict[str, List[str]] = {}
    affiliations: List[str] = []

    def _add_member(label: str, value: str) -> None:
        if label not in members:
            members[label] = []
            affiliations.append(label)
        if value not in members[label]:
            members[label].append(value)

    for group in groups:
        if not group:
            continue
        label = by_key.setdefault(normalize(group[0]), group[0])
        for member in group:
            _add_member(by_key.setdefault(normalize(member), label), member)

    for value in raw:
        if not is_known(value):
            continue
        _add_member(by_key.setdefault(normalize(value), value), value)

    return CanonicalIndex(affiliations=affiliations, members=members, by_key=by_key)
