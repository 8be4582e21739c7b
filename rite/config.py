"""
Configuration
=============

Where the snapshot folders live, and which year the "Month Day" file names
belong to. Defaults match the exporter's folder layout:

    <data>/parsed_data/age/April 3.json
    <data>/parsed_data/house/April 3.json
    <data>/merged_data/4-3-2025.json
    <data>/merged_data/all_merged_data.json

Environment variables (a `.env` file in the working directory is read too):
- RITE_DATA_DIR        root data folder (default: current directory)
- RITE_REFERENCE_YEAR  year used for snapshot file names (default: 2025)
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import os

from dotenv import load_dotenv

from .pairing import REFERENCE_YEAR
from .merge import COMBINED_FILE_NAME


@dataclass(frozen=True)
class Settings:
    data_dir: Path = Path(".")
    reference_year: int = REFERENCE_YEAR

    @property
    def age_dir(self) -> Path:
        return self.data_dir / "parsed_data" / "age"

    @property
    def house_dir(self) -> Path:
        return self.data_dir / "parsed_data" / "house"

    @property
    def merged_dir(self) -> Path:
        return self.data_dir / "merged_data"

    @property
    def combined_file(self) -> Path:
        return self.merged_dir / COMBINED_FILE_NAME


def load_settings(data_dir: Optional[str] = None, reference_year: Optional[int] = None) -> Settings:
    """Settings from arguments, falling back to the environment, then defaults."""
    load_dotenv()
    if data_dir is None:
        data_dir = os.getenv("RITE_DATA_DIR", ".").strip() or "."
    if reference_year is None:
        raw = os.getenv("RITE_REFERENCE_YEAR", "").strip()
        try:
            reference_year = int(raw) if raw else REFERENCE_YEAR
        except ValueError:
            raise ValueError(f"RITE_REFERENCE_YEAR must be a year, got {raw!r}") from None
    return Settings(data_dir=Path(data_dir), reference_year=reference_year)
