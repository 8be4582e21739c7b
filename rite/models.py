"""
Data model (roster records)
===========================

Every row of an age snapshot becomes an `AgeRecord`, every row of a house
snapshot becomes a `HouseRecord`, and the merge step joins the two into a
`MergedRecord` tagged with an ISO calendar day.

All records are immutable (`frozen=True`):
- a snapshot is parsed once and never edited afterwards, and
- the aggregation layers only build lookup tables that point at records.

Field names in the JSON files are the spreadsheet column titles, so each
record knows how to convert itself to and from that dict layout.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple, Union

Number = Union[int, float]

# Column titles as they appear in the exported files
DISCORD = "Discord Username"
VS_NAME = "VS Username"
CHARACTER = "Character Name"
AFFILIATION = "Affiliation"
PVE_DEATHS = "PvE Deaths"
MATURITY = "Year of Maturity"
CURRENT_AGE = "Current Age"
YEAR_COLUMNS = ("Year 4", "Year 5", "Year 6", "Year 7", "Year 8")
SOCIAL_CLASS = "Social Class"
HOUSE = "House"
ROLE = "Role"
TIMEZONE = "Timezone"
COMMENTS = "Comments"
DATE = "Date"

AGE_FIELDS = (DISCORD, VS_NAME, CHARACTER, AFFILIATION, PVE_DEATHS, MATURITY, CURRENT_AGE) + YEAR_COLUMNS
HOUSE_FIELDS = (SOCIAL_CLASS, HOUSE, ROLE, CHARACTER, VS_NAME, DISCORD, TIMEZONE, COMMENTS)
MERGED_FIELDS = AGE_FIELDS + (SOCIAL_CLASS, HOUSE, ROLE, TIMEZONE, COMMENTS, DATE)

# Values that mean "no class / no affiliation" in the sheets
UNKNOWN = "Unknown"


def is_known(value: Optional[str]) -> bool:
    """True for a non-blank value other than the 'Unknown' placeholder."""
    if not value:
        return False
    v = value.strip()
    return v != "" and v != UNKNOWN


@dataclass(frozen=True)
class AgeRecord:
    """One character row from an age snapshot."""
    discord_username: str
    vs_username: str
    character_name: str
    affiliation: str
    pve_deaths: Number = 0
    year_of_maturity: Number = 0
    current_age: Number = 0
    # Year 4 .. Year 8 counters, in column order
    yearly: Tuple[Number, ...] = (0, 0, 0, 0, 0)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            DISCORD: self.discord_username,
            VS_NAME: self.vs_username,
            CHARACTER: self.character_name,
            AFFILIATION: self.affiliation,
            PVE_DEATHS: self.pve_deaths,
            MATURITY: self.year_of_maturity,
            CURRENT_AGE: self.current_age,
        }
        for col, val in zip(YEAR_COLUMNS, _pad_yearly(self.yearly)):
            out[col] = val
        return out


@dataclass(frozen=True)
class HouseRecord:
    """One character row from a house snapshot (one sheet per House)."""
    social_class: str
    house: str
    role: str
    character_name: str
    vs_username: str = ""
    discord_username: str = ""
    timezone: str = ""
    comments: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            SOCIAL_CLASS: self.social_class,
            HOUSE: self.house,
            ROLE: self.role,
            CHARACTER: self.character_name,
            VS_NAME: self.vs_username,
            DISCORD: self.discord_username,
            TIMEZONE: self.timezone,
            COMMENTS: self.comments,
        }


@dataclass(frozen=True)
class MergedRecord:
    """Age fields + house fields for one character on one snapshot date.

    Missing house data is stored as empty strings, missing numbers as 0.
    `date` is an ISO day (YYYY-MM-DD) or None when the snapshot date could
    not be resolved.
    """
    discord_username: str
    vs_username: str
    character_name: str
    affiliation: str
    pve_deaths: Number = 0
    year_of_maturity: Number = 0
    current_age: Number = 0
    yearly: Tuple[Number, ...] = (0, 0, 0, 0, 0)
    social_class: str = ""
    house: str = ""
    role: str = ""
    timezone: str = ""
    comments: str = ""
    date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            DISCORD: self.discord_username,
            VS_NAME: self.vs_username,
            CHARACTER: self.character_name,
            AFFILIATION: self.affiliation,
            PVE_DEATHS: self.pve_deaths,
            MATURITY: self.year_of_maturity,
            CURRENT_AGE: self.current_age,
        }
        for col, val in zip(YEAR_COLUMNS, _pad_yearly(self.yearly)):
            out[col] = val
        out[SOCIAL_CLASS] = self.social_class
        out[HOUSE] = self.house
        out[ROLE] = self.role
        out[TIMEZONE] = self.timezone
        out[COMMENTS] = self.comments
        out[DATE] = self.date
        return out


@dataclass(frozen=True)
class Pairing:
    """One merge point: the age file and house file to join, and its date.

    A file is None when its source has not produced a snapshot yet.
    """
    age_file: Optional[str]
    house_file: Optional[str]
    date: Optional[datetime]

    def date_iso(self) -> Optional[str]:
        return self.date.date().isoformat() if self.date else None


def _pad_yearly(values: Tuple[Number, ...]) -> Tuple[Number, ...]:
    vals = tuple(values)[:len(YEAR_COLUMNS)]
    return vals + (0,) * (len(YEAR_COLUMNS) - len(vals))
