"""Tests for settings resolution."""

from pathlib import Path

import pytest

from rite.config import Settings, load_settings


class TestLoadSettings:
    def test_arguments_win(self, monkeypatch):
        monkeypatch.setenv("RITE_DATA_DIR", "/env/data")
        s = load_settings("/arg/data", 2024)
        assert s.data_dir == Path("/arg/data")
        assert s.reference_year == 2024

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("RITE_DATA_DIR", "/env/data")
        monkeypatch.setenv("RITE_REFERENCE_YEAR", "2026")
        s = load_settings()
        assert s.data_dir == Path("/env/data")
        assert s.reference_year == 2026

    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("RITE_DATA_DIR", raising=False)
        monkeypatch.delenv("RITE_REFERENCE_YEAR", raising=False)
        assert load_settings() == Settings()

    def test_bad_year(self, monkeypatch):
        monkeypatch.setenv("RITE_REFERENCE_YEAR", "soon")
        with pytest.raises(ValueError, match="RITE_REFERENCE_YEAR"):
            load_settings("/data")


class TestSettingsPaths:
    def test_folder_layout(self):
        s = Settings(data_dir=Path("/r"))
        assert s.age_dir == Path("/r/parsed_data/age")
        assert s.house_dir == Path("/r/parsed_data/house")
        assert s.combined_file == Path("/r/merged_data/all_merged_data.json")
