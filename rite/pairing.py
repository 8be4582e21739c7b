"""
Snapshot date pairing
=====================

Age snapshots and house snapshots are exported independently, on different
days and at different rates. Their file names carry the day they were taken
("April 3.json"), but no year.

`pair_files_by_date` walks both (date-sorted) lists with two pointers and
emits one `Pairing` per step:

- the pointer at the earlier date advances (both advance on a tie),
- the last file consumed from each list is remembered, so a sparse source
  keeps being reused until its next snapshot comes up,
- the pairing date is the later of the two remembered files' dates, or
  None when the step consumed a file whose name holds no date.

Known limitation: every name is read in one reference year, so a corpus
spanning New Year sorts and pairs incorrectly.
"""

from __future__ import annotations
from datetime import date, datetime
from typing import List, Optional, Sequence
import logging
import os
import re

from .models import Pairing

log = logging.getLogger(__name__)

REFERENCE_YEAR = 2025
# Dates are pinned to noon so no timezone shift can move them to another day
NOON_HOUR = 12
# Snapshot file types; the extension is not part of the embedded date
SNAPSHOT_EXTENSIONS = (".json", ".xlsx", ".xlsm")

_MERGED_NAME_RE = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$")


def _stem(file_name: str) -> str:
    base, ext = os.path.splitext(os.path.basename(file_name))
    if ext.lower() not in SNAPSHOT_EXTENSIONS:
        base += ext
    return base.strip()


def parse_snapshot_date(file_name: Optional[str], year: int = REFERENCE_YEAR) -> Optional[datetime]:
    """Read the "Month Day" date embedded in a snapshot file name.

    Accepts full or abbreviated month names ("April 3", "Apr 3").
    Returns None for anything else.
    """
    if not file_name:
        return None
    text = " ".join(_stem(file_name).split())
    for fmt in ("%B %d %Y", "%b %d %Y"):
        try:
            d = datetime.strptime(f"{text} {year}", fmt)
        except ValueError:
            continue
        return d.replace(hour=NOON_HOUR)
    return None


def sort_by_embedded_date(files: Sequence[str], year: int = REFERENCE_YEAR) -> List[str]:
    """Sort file names by embedded date; unparseable names go last."""
    return sorted(files, key=lambda name: _order_key(name, year))


def pair_files_by_date(age_files: Sequence[str], house_files: Sequence[str],
                       year: int = REFERENCE_YEAR) -> List[Pairing]:
    """Pair two date-sorted snapshot lists into merge points.

    Every iteration advances at least one pointer, so the output has one
    entry per distinct step: len(age) + len(house) minus the number of ties.
    """
    pairs: List[Pairing] = []
    last_age: Optional[str] = None
    last_house: Optional[str] = None
    i = j = 0

    while i < len(age_files) or j < len(house_files):
        age_file = age_files[i] if i < len(age_files) else None
        house_file = house_files[j] if j < len(house_files) else None

        # An unparseable date compares as later than any real date
        age_key = _order_key(age_file, year)
        house_key = _order_key(house_file, year)

        consumed: List[str] = []
        if age_file is not None and (house_file is None or age_key <= house_key):
            last_age = age_file
            consumed.append(age_file)
            i += 1
        if house_file is not None and (age_file is None or house_key <= age_key):
            last_house = house_file
            consumed.append(house_file)
            j += 1

        age_used = parse_snapshot_date(last_age, year)
        house_used = parse_snapshot_date(last_house, year)
        if any(parse_snapshot_date(f, year) is None for f in consumed):
            # a step that consumes an undated file has no date
            pair_date: Optional[datetime] = None
        elif age_used and house_used:
            pair_date = max(age_used, house_used)
        else:
            pair_date = age_used or house_used
        if pair_date is None:
            log.warning("No usable date for pair age=%r house=%r", last_age, last_house)
        pairs.append(Pairing(age_file=last_age, house_file=last_house, date=pair_date))
    return pairs


def _order_key(file_name: Optional[str], year: int):
    d = parse_snapshot_date(file_name, year)
    return (d is None, d or datetime.max)


# ---------------- Daily merged file names (M-D-YYYY.json) ----------------
def merged_file_name(d: date) -> str:
    """File name of a daily merged file, e.g. 4-3-2025.json (no zero padding)."""
    return f"{d.month}-{d.day}-{d.year}.json"


def parse_merged_file_date(file_name: str) -> Optional[date]:
    """Inverse of `merged_file_name`; None when the name does not match."""
    m = _MERGED_NAME_RE.match(_stem(file_name))
    if not m:
        return None
    month, day, year = (int(g) for g in m.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None
