"""
Sheet Import/Export

Reads the games sheet and the settings sheet from CSV exports and writes the
rated games table back. The games table is handed to RecordStore as a plain
2D grid (header row first); every cell is read as a string so the store
decides how to interpret it.

Usage:
    from pref_elo.ingestion.sheet import read_table, read_settings
    raw_rows = read_table(GAMES_FILE)
    settings = read_settings(SETTINGS_FILE)
"""

from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from pref_elo.config import (
    INITIAL_RATING_KEY,
    K_FACTOR_KEY,
    DIFFERENCE_DIVISOR_KEY,
    DEFAULT_INITIAL_RATING,
    DEFAULT_K_FACTOR,
    DEFAULT_DIFFERENCE_DIVISOR,
)
from pref_elo.exceptions import SettingsError
from pref_elo.utils import setup_logging, atomic_write_csv, round_half_up, to_number, is_blank

# --- Module Logger ---
logger = setup_logging(__name__)


@dataclass(frozen=True)
class RatingSettings:
    """Typed rating constants from the settings sheet."""

    initial_rating: int = DEFAULT_INITIAL_RATING
    k_factor: int = DEFAULT_K_FACTOR
    difference_divisor: int = DEFAULT_DIFFERENCE_DIVISOR


def read_table(path: Path) -> list[list]:
    """
    Load a sheet export as a 2D grid of strings.

    Args:
        path: CSV file; the first line is the header

    Returns:
        List of rows, header first. Empty list for an empty file.
    """
    try:
        df = pd.read_csv(path, header=None, dtype=str, keep_default_na=False, skip_blank_lines=True)
    except pd.errors.EmptyDataError:
        logger.warning(f"{path} is empty")
        return []

    df = df.fillna("")
    logger.info(f"Loaded {len(df)} lines from {path}")
    return df.values.tolist()


def settings_from_mapping(settings_dict: dict) -> RatingSettings:
    """
    Turn a raw key/value mapping into RatingSettings.

    All three values are rounded half-up to whole numbers. Missing keys fall
    back to the defaults from config.

    Raises:
        SettingsError: If a value is not a number or the divisor is not positive
    """
    defaults = {
        INITIAL_RATING_KEY: DEFAULT_INITIAL_RATING,
        K_FACTOR_KEY: DEFAULT_K_FACTOR,
        DIFFERENCE_DIVISOR_KEY: DEFAULT_DIFFERENCE_DIVISOR,
    }

    values = {}
    for key, default in defaults.items():
        raw = settings_dict.get(key)
        if is_blank(raw):
            logger.warning(f"Setting '{key}' not found, using default {default}")
            values[key] = default
            continue
        try:
            values[key] = round_half_up(to_number(raw))
        except (TypeError, ValueError):
            raise SettingsError(f"{raw!r} is not a number", key=key, value=raw) from None

    if values[DIFFERENCE_DIVISOR_KEY] <= 0:
        raise SettingsError(
            f"must be positive, got {values[DIFFERENCE_DIVISOR_KEY]}",
            key=DIFFERENCE_DIVISOR_KEY,
            value=settings_dict.get(DIFFERENCE_DIVISOR_KEY),
        )

    settings = RatingSettings(
        initial_rating=values[INITIAL_RATING_KEY],
        k_factor=values[K_FACTOR_KEY],
        difference_divisor=values[DIFFERENCE_DIVISOR_KEY],
    )
    logger.info(f"Settings: {settings}")
    return settings


def read_settings(path: Path) -> RatingSettings:
    """
    Read a two-column settings sheet (key in the first column, value in the second).

    Rows with an empty key are ignored; a repeated key keeps its last value.
    """
    settings_dict = {}
    for row in read_table(path):
        key = str(row[0]).strip() if row else ""
        if not key:
            continue
        settings_dict[key] = row[1] if len(row) > 1 else ""

    logger.debug(f"Raw settings: {settings_dict}")
    return settings_from_mapping(settings_dict)


def write_table(store, path: Path, columns=None) -> None:
    """
    Flush the games table to CSV.

    Args:
        store: RecordStore after a successful run
        path: Destination CSV
        columns: Column labels to write as whole columns, in this order
            (e.g. COMPUTED_COLUMNS to paste back into the sheet). Default
            writes the full table with its sheet header.
    """
    if columns:
        frame = pd.DataFrame({column: store.column_values(column) for column in columns})
    else:
        frame = store.to_frame()

    atomic_write_csv(frame, path, index=False)
    logger.info(f"Wrote {len(frame)} rows x {len(frame.columns)} columns to {path}")
