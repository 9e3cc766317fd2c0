"""
Shared utilities for the Preferans Elo ledger.

This module provides common functions used across multiple modules
to avoid code duplication.
"""

import logging
import math
import shutil
import tempfile
from pathlib import Path

from pref_elo.config import OUTPUT_FOLDER


# --- Logging Setup ---
def setup_logging(name: str | None = None, level: int = logging.INFO) -> logging.Logger:
    """
    Configure and return a logger with consistent formatting.

    Args:
        name: Logger name (usually __name__ from the calling module)
        level: Logging level (default: INFO)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger


# --- Numbers ---
def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves up (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def to_number(value) -> float:
    """Parse a cell into a float; raises ValueError if it is not a finite number."""
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"{value!r} is not a finite number")
    return number


def is_blank(value) -> bool:
    """True for None, NaN and whitespace-only strings (empty spreadsheet cells)."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


# --- File Operations ---
def cleanup_old_files(pattern: str, keep_file: Path | None = None, folder: Path | None = None) -> list[Path]:
    """
    Remove old files matching pattern, optionally keeping one specific file.

    Args:
        pattern: Glob pattern to match files (e.g., "ratings_*.csv")
        keep_file: Path to the file that should NOT be deleted (usually the newest)
        folder: Folder to search in (default: OUTPUT_FOLDER)

    Returns:
        List of deleted file paths
    """
    logger = setup_logging(__name__)
    target_folder = folder or OUTPUT_FOLDER
    deleted = []

    for f in target_folder.glob(pattern):
        if keep_file and f.resolve() == keep_file.resolve():
            continue
        try:
            f.unlink()
            deleted.append(f)
            logger.debug(f"Deleted old file: {f}")
        except OSError as e:
            logger.warning(f"Could not delete {f}: {e}")

    return deleted


def atomic_write_csv(df, path: Path, **kwargs) -> None:
    """
    Write a DataFrame to CSV atomically using a temporary file.

    This prevents a half-written ledger if the write is interrupted.

    Args:
        df: pandas DataFrame to write
        path: Destination path for the CSV file
        **kwargs: Additional arguments to pass to df.to_csv()
    """
    logger = setup_logging(__name__)

    path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            mode='w',
            delete=False,
            suffix='.csv',
            dir=path.parent  # Same filesystem for atomic move
        ) as tmp:
            tmp_path = Path(tmp.name)
        df.to_csv(tmp_path, **kwargs)

        shutil.move(str(tmp_path), str(path))
        logger.debug(f"Atomically wrote {len(df)} rows to {path}")

    except Exception:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise


__all__ = [
    # Logging
    'setup_logging',
    # Numbers
    'round_half_up',
    'to_number',
    'is_blank',
    # File operations
    'cleanup_old_files',
    'atomic_write_csv',
]
