"""
Central configuration for the Preferans Elo ledger.

All shared constants and configuration values should be defined here
to avoid duplication and ensure consistency across modules.
"""

from pathlib import Path

# --- Project Paths ---
PROJECT_ROOT = Path(__file__).parent.parent
DATA_FOLDER = PROJECT_ROOT / "data"
OUTPUT_FOLDER = DATA_FOLDER / "processed"
RAW_FOLDER = DATA_FOLDER / "raw"

# Default input files (exports of the "Игры(место)" and "Настройки" sheets)
GAMES_FILE = RAW_FOLDER / "games.csv"
SETTINGS_FILE = RAW_FOLDER / "settings.csv"

# Output file patterns
RATED_GAMES_PREFIX = "games_rated"
RATINGS_PREFIX = "ratings"

# --- Ledger Columns ---
# Header labels of the games sheet, matched by label rather than position
GAME_ID_COL = "Номер игры"
GAME_DATE_COL = "Дата игры"
PLAYER_COL = "Игрок"
VISTS_COL = "Висты"
RATING_BEFORE_COL = "Рейтинг до"
EXPECTED_RESULT_COL = "Ожидаемый рез-тат"
RESULT_COL = "Результат"
RATING_AFTER_COL = "Рейтинг после"

REQUIRED_COLUMNS = (
    GAME_ID_COL,
    GAME_DATE_COL,
    PLAYER_COL,
    VISTS_COL,
    RATING_BEFORE_COL,
    EXPECTED_RESULT_COL,
    RESULT_COL,
    RATING_AFTER_COL,
)

# Fields written back by the engine, in sheet order
COMPUTED_COLUMNS = (RATING_BEFORE_COL, EXPECTED_RESULT_COL, RESULT_COL, RATING_AFTER_COL)

# --- Settings Sheet Keys ---
INITIAL_RATING_KEY = "initialRating"
K_FACTOR_KEY = "k-factor"
DIFFERENCE_DIVISOR_KEY = "difference_divisor"

# --- Elo System Configuration ---
DEFAULT_INITIAL_RATING = 1500  # Starting rating for all new players
DEFAULT_K_FACTOR = 32  # Elo K-factor (higher = faster rating changes)
DEFAULT_DIFFERENCE_DIVISOR = 400  # Rating gap that means 10:1 odds

# Roster bounds
MIN_ROSTER_SIZE = 2  # Need at least one pair
EXPECTED_ROSTER_SIZES = range(3, 6)  # Usual Preferans tables; outside this only warns
