"""
Tests for the historical market data store.
"""

import numpy as np
import pandas as pd
import pytest

from fers_planner.models.errors import HistoricalDataUnavailableError
from fers_planner.models.historical_data import (
    SERIES_FILES,
    HistoricalDataManager,
    normalize_fund_name,
    read_series_csv,
)


class TestLookups:
    """Test series lookups."""

    def test_is_loaded(self, historical_data):
        """Test that a C Fund series marks the data as loaded."""
        assert historical_data.is_loaded
        assert not HistoricalDataManager().is_loaded

    def test_fund_names_are_normalized(self, historical_data):
        """Test case-insensitive and suffixed fund names."""
        assert historical_data.get_tsp_return("c", 2008) == -0.37
        assert historical_data.get_tsp_return("C_fund", 2008) == -0.37
        assert normalize_fund_name("L2030") is None

    def test_missing_values_are_none(self, historical_data):
        """Test that absent years and series report None."""
        assert historical_data.get_tsp_return("C", 1990) is None
        assert historical_data.get_inflation_rate(2020) is None
        assert historical_data.get_cola_rate(2008) == 0.058
        assert HistoricalDataManager().get_cola_rate(2008) is None

    def test_available_years(self, historical_data):
        """Test the reference year range."""
        assert historical_data.available_years() == (2000, 2009)

    def test_available_years_requires_data(self):
        """Test that an empty store cannot report a year range."""
        with pytest.raises(HistoricalDataUnavailableError):
            HistoricalDataManager().available_years()

    def test_series_names(self, historical_data):
        """Test the loaded series keys."""
        assert historical_data.series_names() == ["C", "F", "G", "I", "S", "cola", "inflation"]


class TestStatistics:
    """Test series statistics and quality checks."""

    def test_statistics(self, historical_data):
        """Test mean and population standard deviation."""
        stats = historical_data.statistics("G")
        values = [0.06, 0.05, 0.05, 0.04, 0.04, 0.04, 0.05, 0.05, 0.04, 0.03]
        assert stats.mean == pytest.approx(np.mean(values))
        assert stats.standard_deviation == pytest.approx(np.std(values))
        assert stats.minimum == 0.03
        assert stats.maximum == 0.06
        assert stats.count == 10
        assert stats.missing_years == []

    def test_statistics_for_unknown_series(self, historical_data):
        """Test that unknown series raise."""
        with pytest.raises(HistoricalDataUnavailableError):
            historical_data.statistics("bonds")

    def test_clean_data_has_no_issues(self, historical_data):
        """Test that a complete series passes the quality checks."""
        assert historical_data.validate_data_quality() == []

    def test_quality_issues_reported(self):
        """Test gaps, extremes and length mismatches."""
        manager = HistoricalDataManager(
            {"C": {2000: 0.1, 2001: 1.2, 2003: -0.6}, "G": {2000: 0.05}}
        )
        issues = manager.validate_data_quality()
        assert "Missing years in C Fund data: [2002]" in issues
        assert any("Extreme positive return" in issue for issue in issues)
        assert any("Extreme negative return" in issue for issue in issues)
        assert "C Fund has 3 data points, expected 4" in issues
        assert "G Fund has 1 data points, expected 4" in issues


class TestLoading:
    """Test loading series from frames and files."""

    def test_from_dataframe(self):
        """Test building from a wide DataFrame, skipping blanks."""
        frame = pd.DataFrame(
            {"year": [2020, 2021], "C": [0.18, 0.28], "inflation": [0.012, np.nan]}
        )
        manager = HistoricalDataManager.from_dataframe(frame)
        assert manager.get_tsp_return("C", 2021) == 0.28
        assert manager.get_inflation_rate(2020) == 0.012
        assert manager.get_inflation_rate(2021) is None

    def test_from_dataframe_requires_year(self):
        """Test that a year column is required."""
        with pytest.raises(ValueError, match="year"):
            HistoricalDataManager.from_dataframe(pd.DataFrame({"C": [0.1]}))

    def test_read_series_csv_skips_bad_rows(self, tmp_path):
        """Test that malformed rows are ignored."""
        path = tmp_path / "series.csv"
        path.write_text("year,value\n2020,0.18\nbad,row\n2021, 0.28\n")
        assert read_series_csv(path) == {2020: 0.18, 2021: 0.28}

    def test_read_series_csv_requires_rows(self, tmp_path):
        """Test that a file without valid rows is rejected."""
        path = tmp_path / "series.csv"
        path.write_text("year,value\nbad,row\n")
        with pytest.raises(ValueError, match="no valid data points"):
            read_series_csv(path)

    def test_load_directory(self, tmp_path):
        """Test loading the standard directory layout."""
        for relative in SERIES_FILES.values():
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("year,value\n2020,0.02\n2021,0.03\n")
        manager = HistoricalDataManager.load_directory(tmp_path)
        assert manager.is_loaded
        assert manager.get_cola_rate(2021) == 0.03

    def test_load_directory_missing_file(self, tmp_path):
        """Test that a missing series file raises."""
        with pytest.raises(HistoricalDataUnavailableError):
            HistoricalDataManager.load_directory(tmp_path)
