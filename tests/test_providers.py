"""Tests for data providers."""

from __future__ import annotations

import pandas as pd
import pytest

from lex_preprocessing import (
    ColumnType,
    CsvDataProvider,
    DataLoadError,
    FrameDataProvider,
    InvalidDataError,
    LabelNotFoundError,
)


class TestFrameDataProvider:
    """Tests for the in-memory provider."""

    def test_load(self, clean_data):
        """load() captures the frame as a snapshot."""
        snapshot = FrameDataProvider(clean_data).load()

        assert snapshot.row_count == 100
        assert snapshot.column_names == list(clean_data.columns)

    def test_rejects_non_frames(self):
        """Only DataFrames are accepted."""
        with pytest.raises(InvalidDataError, match="Expected a pandas DataFrame"):
            FrameDataProvider([[1, 2], [3, 4]])

    def test_later_changes_do_not_leak(self, clean_data):
        """A snapshot taken earlier is not affected by edits to the frame."""
        provider = FrameDataProvider(clean_data)
        snapshot = provider.load()

        clean_data.loc[0, "feature_a"] = 99.0

        assert snapshot.series("feature_a")[0] != 99.0
        assert provider.load().series("feature_a")[0] == 99.0

    def test_select_label(self, clean_data):
        """The default label is validated against the snapshot."""
        provider = FrameDataProvider(clean_data, label_column="target")
        snapshot = provider.load()

        assert provider.select_label(snapshot) == "target"
        assert provider.select_label(snapshot, "color") == "color"

    def test_select_missing_label(self, clean_data):
        """Unknown labels raise LabelNotFoundError listing the columns."""
        provider = FrameDataProvider(clean_data)
        snapshot = provider.load()

        with pytest.raises(LabelNotFoundError) as exc_info:
            provider.select_label(snapshot, "nope")

        assert exc_info.value.available == list(clean_data.columns)

    def test_no_label(self, clean_data):
        """No label requested means no label selected."""
        provider = FrameDataProvider(clean_data)
        assert provider.select_label(provider.load()) is None


class TestCsvDataProvider:
    """Tests for the CSV provider."""

    def test_load(self, dirty_data, temp_dir):
        """A CSV round-trips into a typed snapshot."""
        path = temp_dir / "data.csv"
        dirty_data.to_csv(path, index=False)

        snapshot = CsvDataProvider(path).load()

        assert snapshot.row_count == 100
        assert snapshot.column("age").dtype is ColumnType.NUMERIC
        assert snapshot.series("age").isna().sum() == 12
        assert " " in snapshot.series("city")[3]

    def test_null_tokens_stay_as_text(self, temp_dir):
        """Tokens pandas does not know are left for the detector."""
        path = temp_dir / "tokens.csv"
        path.write_text("a,b\n1,?\n2,x\n")

        snapshot = CsvDataProvider(path).load()

        assert snapshot.series("b").tolist() == ["?", "x"]

    def test_read_options(self, temp_dir):
        """Extra options are passed to the CSV reader."""
        path = temp_dir / "semi.csv"
        path.write_text("a;b\n1;2\n")

        snapshot = CsvDataProvider(path, sep=";").load()

        assert snapshot.column_names == ["a", "b"]

    def test_missing_file(self, temp_dir):
        """A missing file is a load error."""
        with pytest.raises(DataLoadError, match="file does not exist"):
            CsvDataProvider(temp_dir / "missing.csv").load()

    def test_empty_file(self, temp_dir):
        """An empty file is a load error."""
        path = temp_dir / "empty.csv"
        path.write_text("")

        with pytest.raises(DataLoadError, match="file is empty"):
            CsvDataProvider(path).load()

    def test_duplicate_header(self, temp_dir):
        """Duplicate headers renamed by pandas still load."""
        path = temp_dir / "dup.csv"
        path.write_text("a,a\n1,2\n")

        snapshot = CsvDataProvider(path).load()

        assert snapshot.column_names == ["a", "a.1"]

    def test_select_label(self, temp_dir):
        """The provider's default label is checked against the file."""
        path = temp_dir / "labels.csv"
        pd.DataFrame({"x": [1, 2], "y": ["a", "b"]}).to_csv(path, index=False)
        provider = CsvDataProvider(path, label_column="z")

        with pytest.raises(LabelNotFoundError):
            provider.select_label(provider.load())
