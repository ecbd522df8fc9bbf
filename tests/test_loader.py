"""Tests for confluence.data.loader — CSV / Parquet candle loading."""

import pandas as pd
import pytest

from confluence.data.loader import candles_from_frame, load_candles


@pytest.fixture
def sample_df():
    """Five hourly candles, written out of order with one duplicate."""
    rows = [
        {"timestamp": 3 * 3_600_000, "open": 103, "high": 104, "low": 102, "close": 103.5, "volume": 13},
        {"timestamp": 0, "open": 100, "high": 101, "low": 99, "close": 100.5, "volume": 10},
        {"timestamp": 3_600_000, "open": 101, "high": 102, "low": 100, "close": 101.5, "volume": 11},
        {"timestamp": 3_600_000, "open": 999, "high": 999, "low": 999, "close": 999, "volume": 99},
        {"timestamp": 2 * 3_600_000, "open": 102, "high": 103, "low": 101, "close": 102.5, "volume": 12},
    ]
    return pd.DataFrame(rows)


class TestCandlesFromFrame:

    def test_sorted_and_deduplicated(self, sample_df):
        candles = candles_from_frame(sample_df)
        assert [c.timestamp for c in candles] == [0, 3_600_000, 7_200_000, 10_800_000]
        # First occurrence of a duplicated timestamp wins
        assert candles[1].open == 101.0
        assert isinstance(candles[0].timestamp, int)
        assert isinstance(candles[0].volume, float)

    def test_time_alias_and_iso_strings(self):
        df = pd.DataFrame({
            "time": ["2025-01-01T00:00:00Z", "2025-01-01T01:00:00Z"],
            "open": [1.0, 2.0], "high": [1.5, 2.5], "low": [0.5, 1.5],
            "close": [1.2, 2.2], "volume": [5, 6],
        })
        candles = candles_from_frame(df)
        assert candles[0].timestamp == 1_735_689_600_000
        assert candles[1].timestamp - candles[0].timestamp == 3_600_000

    def test_non_finite_rows_dropped(self, sample_df):
        sample_df.loc[0, "close"] = float("nan")
        candles = candles_from_frame(sample_df)
        assert len(candles) == 3
        assert 3 * 3_600_000 not in [c.timestamp for c in candles]

    def test_missing_numeric_timestamp_dropped(self):
        df = pd.DataFrame({
            "timestamp": [0, None, 7_200_000],
            "open": [1.0, 2.0, 3.0], "high": [1.5, 2.5, 3.5], "low": [0.5, 1.5, 2.5],
            "close": [1.2, 2.2, 3.2], "volume": [5, 6, 7],
        })
        candles = candles_from_frame(df)
        assert [c.timestamp for c in candles] == [0, 7_200_000]
        assert isinstance(candles[1].timestamp, int)
        assert candles[1].close == 3.2

    def test_missing_iso_timestamp_dropped(self):
        df = pd.DataFrame({
            "time": ["2025-01-01T00:00:00Z", None, "2025-01-01T02:00:00Z"],
            "open": [1.0, 2.0, 3.0], "high": [1.5, 2.5, 3.5], "low": [0.5, 1.5, 2.5],
            "close": [1.2, 2.2, 3.2], "volume": [5, 6, 7],
        })
        candles = candles_from_frame(df)
        assert len(candles) == 2
        assert candles[1].timestamp - candles[0].timestamp == 7_200_000

    def test_blank_timestamp_cell_in_csv(self, sample_df, tmp_path):
        sample_df["timestamp"] = sample_df["timestamp"].astype("object")
        sample_df.loc[4, "timestamp"] = None
        path = tmp_path / "candles.csv"
        sample_df.to_csv(path, index=False)
        candles = load_candles(path)
        assert [c.timestamp for c in candles] == [0, 3_600_000, 10_800_000]

    def test_missing_columns(self):
        df = pd.DataFrame({"timestamp": [0], "close": [1.0]})
        with pytest.raises(ValueError, match="open"):
            candles_from_frame(df)

    def test_empty_frame(self):
        df = pd.DataFrame(columns=["timestamp", "open", "high", "low", "close", "volume"])
        assert candles_from_frame(df) == ()


class TestLoadCandles:

    def test_csv(self, sample_df, tmp_path):
        path = tmp_path / "candles.csv"
        sample_df.to_csv(path, index=False)
        candles = load_candles(path)
        assert len(candles) == 4
        assert candles[-1].close == 103.5

    def test_parquet(self, sample_df, tmp_path):
        path = tmp_path / "candles.parquet"
        sample_df.to_parquet(path, engine="pyarrow", index=False)
        candles = load_candles(str(path))
        assert len(candles) == 4
        assert candles[0].high == 101.0

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "candles.txt"
        path.write_text("nothing")
        with pytest.raises(ValueError, match="Unsupported"):
            load_candles(path)
