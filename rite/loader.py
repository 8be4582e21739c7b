"""
Snapshot loader (JSON / Excel -> records)
=========================================

Each snapshot is a flat table, one row per character, exported either as a
JSON array of objects or as an `.xlsx` sheet. Both are read through pandas
and every row is converted into an immutable record.

Key ideas:
- Conversion helpers (to_num/to_str) turn blanks and junk into "" / 0, so
  a record never has a missing field.
- Any failure to read a file surfaces as `SnapshotError`; callers decide
  whether that is fatal (the merge step is not).
- Saving goes through the standard `json` module with the same layout the
  exporter produces (UTF-8, indent=2).
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, Callable, Iterable, List, Sequence, TypeVar, Union
import json
import logging
import math
import zipfile
import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from .models import (
    AgeRecord, HouseRecord, MergedRecord, Number,
    DISCORD, VS_NAME, CHARACTER, AFFILIATION, PVE_DEATHS, MATURITY, CURRENT_AGE,
    YEAR_COLUMNS, SOCIAL_CLASS, HOUSE, ROLE, TIMEZONE, COMMENTS, DATE,
)

log = logging.getLogger(__name__)

PathLike = Union[str, Path]
T = TypeVar("T")

# What a damaged or foreign file can raise while being read
READ_ERRORS = (OSError, ValueError, KeyError, zipfile.BadZipFile, InvalidFileException)


class SnapshotError(ValueError):
    """A snapshot file is missing, unreadable or not a table of records."""


def to_num(x) -> Number:
    """Convert a cell to int (or float if fractional); 0 if missing/invalid."""
    if x is None:
        return 0
    if isinstance(x, bool):
        return int(x)
    try:
        if pd.isna(x):
            return 0
    except (TypeError, ValueError):
        return 0
    try:
        f = float(str(x).strip()) if isinstance(x, str) else float(x)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(f):
        return 0
    return int(f) if f.is_integer() else f


def to_str(x) -> str:
    if x is None:
        return ""
    try:
        if pd.isna(x):
            return ""
    except (TypeError, ValueError):
        pass
    if isinstance(x, float) and x.is_integer():
        return str(int(x))
    return str(x).strip()


def _opt_str(x):
    s = to_str(x)
    return s or None


def read_table(path: PathLike) -> pd.DataFrame:
    """Read one flat snapshot table into a DataFrame (all columns as objects).

    Excel files must hold the header in their first row; raw roster
    workbooks go through `rite.sheets` instead.
    """
    p = Path(path)
    try:
        if p.suffix.lower() in (".xlsx", ".xlsm"):
            df = pd.read_excel(p, engine="openpyxl", dtype=object)
        else:
            with open(p, encoding="utf-8") as f:
                payload = json.load(f)
            if not isinstance(payload, list):
                raise SnapshotError(f"{p}: expected a JSON array of records, got {type(payload).__name__}")
            bad = [r for r in payload if not isinstance(r, dict)]
            if bad:
                raise SnapshotError(f"{p}: expected JSON objects as records, got {type(bad[0]).__name__}")
            df = pd.DataFrame.from_records(payload)
    except SnapshotError:
        raise
    except READ_ERRORS as e:
        raise SnapshotError(f"{p}: {e}") from e
    df.rename(columns={c: str(c).strip() for c in df.columns}, inplace=True)
    return df


def _rows(df: pd.DataFrame, build: Callable[[Callable[[str], Any]], T]) -> List[T]:
    out: List[T] = []
    for _, row in df.iterrows():
        out.append(build(lambda col: row[col] if col in row.index else None))
    return out


def age_record_from(get: Callable[[str], Any]) -> AgeRecord:
    return AgeRecord(
        discord_username=to_str(get(DISCORD)),
        vs_username=to_str(get(VS_NAME)),
        character_name=to_str(get(CHARACTER)),
        affiliation=to_str(get(AFFILIATION)),
        pve_deaths=to_num(get(PVE_DEATHS)),
        year_of_maturity=to_num(get(MATURITY)),
        current_age=to_num(get(CURRENT_AGE)),
        yearly=tuple(to_num(get(c)) for c in YEAR_COLUMNS),
    )


def house_record_from(get: Callable[[str], Any]) -> HouseRecord:
    return HouseRecord(
        social_class=to_str(get(SOCIAL_CLASS)),
        house=to_str(get(HOUSE)),
        role=to_str(get(ROLE)),
        character_name=to_str(get(CHARACTER)),
        vs_username=to_str(get(VS_NAME)),
        discord_username=to_str(get(DISCORD)),
        timezone=to_str(get(TIMEZONE)),
        comments=to_str(get(COMMENTS)),
    )


def merged_record_from(get: Callable[[str], Any]) -> MergedRecord:
    age = age_record_from(get)
    return MergedRecord(
        discord_username=age.discord_username,
        vs_username=age.vs_username,
        character_name=age.character_name,
        affiliation=age.affiliation,
        pve_deaths=age.pve_deaths,
        year_of_maturity=age.year_of_maturity,
        current_age=age.current_age,
        yearly=age.yearly,
        social_class=to_str(get(SOCIAL_CLASS)),
        house=to_str(get(HOUSE)),
        role=to_str(get(ROLE)),
        timezone=to_str(get(TIMEZONE)),
        comments=to_str(get(COMMENTS)),
        date=_opt_str(get(DATE)),
    )


def load_age_records(path: PathLike) -> List[AgeRecord]:
    """Load an age snapshot. Raises SnapshotError."""
    return _rows(read_table(path), age_record_from)


def load_house_records(path: PathLike) -> List[HouseRecord]:
    """Load a house snapshot. Raises SnapshotError."""
    return _rows(read_table(path), house_record_from)


def load_merged_records(path: PathLike) -> List[MergedRecord]:
    """Load a daily or combined merged file. Raises SnapshotError."""
    return _rows(read_table(path), merged_record_from)


def save_records(records: Iterable[Any], path: PathLike) -> None:
    """Write records (anything with `to_dict`) as a JSON array."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    payload = [r.to_dict() for r in records]
    with open(p, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
    log.info("Wrote %d records to %s", len(payload), p)


def list_snapshot_files(dir_path: PathLike, extensions: Sequence[str] = (".json",)) -> List[str]:
    """Names (not paths) of the files in `dir_path` with one of `extensions`.

    A missing directory is treated as empty.
    """
    d = Path(dir_path)
    if not d.is_dir():
        log.warning("Snapshot directory %s does not exist", d)
        return []
    exts = tuple(e.lower() for e in extensions)
    return sorted(p.name for p in d.iterdir() if p.is_file() and p.name.lower().endswith(exts))
