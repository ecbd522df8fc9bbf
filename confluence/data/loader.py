"""Candle file loading — CSV / Parquet into an immutable candle series.

Usage (CLI):
    python -m confluence.main --data data/btcusdt_1h.csv
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pandas as pd

from confluence.strategy.models import Candle

logger = logging.getLogger("confluence.data")

# ── Constants ────────────────────────────────────────────────────────────

PRICE_COLUMNS = ["open", "high", "low", "close", "volume"]
REQUIRED_COLUMNS = ["timestamp", *PRICE_COLUMNS]


def load_candles(path: str | Path) -> tuple[Candle, ...]:
    """Load a candle file (``.csv`` or ``.parquet``).

    Raises ``ValueError`` for unsupported extensions or missing columns.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(path)
    elif suffix in (".parquet", ".pq"):
        df = pd.read_parquet(path, engine="pyarrow")
    else:
        raise ValueError(f"Unsupported candle file type '{suffix}' ({path})")

    candles = candles_from_frame(df)
    logger.info("Loaded %d candles from %s", len(candles), path)
    return candles


def candles_from_frame(df: pd.DataFrame) -> tuple[Candle, ...]:
    """Convert an OHLCV DataFrame to candles, oldest first.

    1. Accept ``time`` as an alias for ``timestamp``.
    2. Convert datetime / string timestamps to epoch milliseconds.
    3. Drop rows with a missing timestamp or non-finite prices or volume.
    4. Drop duplicate timestamps (first wins) and sort ascending.
    """
    if "timestamp" not in df.columns and "time" in df.columns:
        df = df.rename(columns={"time": "timestamp"})

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Candle data missing column(s): {', '.join(missing)}")

    if df.empty:
        return ()

    df = df[REQUIRED_COLUMNS].copy()
    df["timestamp"] = _to_epoch_ms(df["timestamp"])
    for col in PRICE_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors="coerce")

    finite = np.isfinite(df[REQUIRED_COLUMNS].to_numpy(dtype=float)).all(axis=1)
    dropped = int((~finite).sum())
    if dropped:
        logger.warning("Dropping %d row(s) with missing timestamps or non-finite prices", dropped)
    df = df[finite].astype({"timestamp": "int64"})

    df = (
        df.drop_duplicates(subset=["timestamp"])
        .sort_values("timestamp", kind="stable")
        .reset_index(drop=True)
    )

    return tuple(
        Candle(
            timestamp=int(row.timestamp),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume),
        )
        for row in df.itertuples(index=False)
    )


def _to_epoch_ms(col: pd.Series) -> pd.Series:
    """Epoch milliseconds; unparseable or blank cells become NaN."""
    if pd.api.types.is_numeric_dtype(col):
        return pd.to_numeric(col, errors="coerce")
    times = pd.to_datetime(col, utc=True, errors="coerce")
    return (times - pd.Timestamp(0, tz="UTC")) // pd.Timedelta(milliseconds=1)
