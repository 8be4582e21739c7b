"""
Record merge
============

Joins the age snapshot and the house snapshot of one merge point into
`MergedRecord`s, and drives the whole batch:

    age dir + house dir --pair_files_by_date--> pairs
    pair --merge_age_and_house--> merged_data/M-D-YYYY.json
    merged_data/*.json --combine_merged_files--> all_merged_data.json

The join is one-sided: the age list drives it, so a character that only
appears in the house snapshot is not emitted. Missing house data becomes
empty strings.
"""

from __future__ import annotations
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional, Sequence
import logging

from .models import AgeRecord, HouseRecord, MergedRecord, Pairing
from .loader import (
    PathLike, SnapshotError, list_snapshot_files, load_merged_records, save_records,
)
from .sheets import load_age_snapshot, load_house_snapshot
from .pairing import (
    REFERENCE_YEAR, SNAPSHOT_EXTENSIONS, merged_file_name, pair_files_by_date,
    parse_merged_file_date, sort_by_embedded_date,
)

log = logging.getLogger(__name__)

COMBINED_FILE_NAME = "all_merged_data.json"


def merge_age_and_house(age_records: Sequence[AgeRecord],
                        house_records: Sequence[HouseRecord],
                        date: Optional[str] = None) -> List[MergedRecord]:
    """Left-join house data onto age data by character name.

    If a character name repeats in the house list, the last row wins.
    Usernames come from the age row unless it left them blank.
    """
    by_name: Dict[str, HouseRecord] = {}
    for h in house_records:
        by_name[h.character_name] = h

    out: List[MergedRecord] = []
    for a in age_records:
        h = by_name.get(a.character_name)
        out.append(MergedRecord(
            discord_username=a.discord_username or (h.discord_username if h else ""),
            vs_username=a.vs_username or (h.vs_username if h else ""),
            character_name=a.character_name,
            affiliation=a.affiliation,
            pve_deaths=a.pve_deaths,
            year_of_maturity=a.year_of_maturity,
            current_age=a.current_age,
            yearly=a.yearly,
            social_class=h.social_class if h else "",
            house=h.house if h else "",
            role=h.role if h else "",
            timezone=h.timezone if h else "",
            comments=h.comments if h else "",
            date=date,
        ))
    return out


def _load_or_empty(loader, directory: Path, file_name: Optional[str], kind: str) -> list:
    if not file_name:
        return []
    path = directory / file_name
    try:
        return loader(path)
    except SnapshotError as e:
        log.warning("Could not load %s data from %s, using empty data: %s", kind, path, e)
        return []


def merge_pair(pair: Pairing, age_dir: PathLike, house_dir: PathLike) -> List[MergedRecord]:
    """Load both files of a pair (tolerating failures) and merge them."""
    ages = _load_or_empty(load_age_snapshot, Path(age_dir), pair.age_file, "age")
    houses = _load_or_empty(load_house_snapshot, Path(house_dir), pair.house_file, "house")
    return merge_age_and_house(ages, houses, pair.date_iso())


def merge_all_pairs(age_dir: PathLike, house_dir: PathLike, merged_dir: PathLike,
                    year: int = REFERENCE_YEAR) -> List[Path]:
    """Pair every age/house snapshot and write one daily merged file per pair.

    Returns the written paths. Pairs without a date are skipped.
    """
    age_files = sort_by_embedded_date(list_snapshot_files(age_dir, SNAPSHOT_EXTENSIONS), year)
    house_files = sort_by_embedded_date(list_snapshot_files(house_dir, SNAPSHOT_EXTENSIONS), year)
    pairs = pair_files_by_date(age_files, house_files, year)
    log.info("Paired %d age and %d house snapshots into %d merge points",
             len(age_files), len(house_files), len(pairs))

    written: List[Path] = []
    for pair in pairs:
        if pair.date is None:
            log.warning("Skipping pair age=%r house=%r: no date", pair.age_file, pair.house_file)
            continue
        log.info("Merging data for %s (age=%s, house=%s)",
                 pair.date_iso(), pair.age_file, pair.house_file)
        merged = merge_pair(pair, age_dir, house_dir)
        out_path = Path(merged_dir) / merged_file_name(pair.date.date())
        save_records(merged, out_path)
        written.append(out_path)
    return written


def combine_merged_files(merged_dir: PathLike, out_path: Optional[PathLike] = None) -> List[MergedRecord]:
    """Concatenate the daily merged files, tagging each record with its file's date.

    The date in the file name is authoritative. Files whose name is not
    M-D-YYYY are skipped, as are files that fail to load.
    """
    directory = Path(merged_dir)
    target = Path(out_path) if out_path else directory / COMBINED_FILE_NAME

    dated = []
    for name in list_snapshot_files(directory):
        if (directory / name).resolve() == target.resolve():
            continue
        d = parse_merged_file_date(name)
        if d is None:
            log.warning("Skipping %s: file name is not M-D-YYYY.json", name)
            continue
        dated.append((d, name))
    dated.sort()

    combined: List[MergedRecord] = []
    for d, name in dated:
        try:
            records = load_merged_records(directory / name)
        except SnapshotError as e:
            log.warning("Could not load merged data from %s, skipping: %s", name, e)
            continue
        iso = d.isoformat()
        combined.extend(_with_date(r, iso) for r in records)

    save_records(combined, target)
    return combined


def _with_date(r: MergedRecord, iso: str) -> MergedRecord:
    if r.date == iso:
        return r
    return replace(r, date=iso)
