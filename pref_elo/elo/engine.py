"""
Elo Rating Engine for the Preferans ledger

This module recomputes player ratings from the games ledger using a pairwise
comparison model. Every game is split into all player pairs; each pair adds an
expected result (from the pre-game ratings) and an actual result (from the
vists) for both players. Both sums are averaged over the n - 1 opponents and
the rating moves by K times their difference.

Games are processed strictly in ascending game id order, one at a time, and
all ratings of a game are updated together from the same pre-game values.

Usage:
    python -m pref_elo.elo.engine [games.csv] [settings.csv] [output_folder]
    OR
    from pref_elo.elo import compute_ratings, process_ledger
"""

import sys
from pathlib import Path

# Enable both `python pref_elo/elo/engine.py` and `python -m pref_elo.elo.engine` execution.
# Required for pref_elo.config/pref_elo.utils imports to resolve correctly.
_project_root = str(Path(__file__).parent.parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import argparse
from collections import defaultdict
from datetime import datetime
from itertools import combinations

import pandas as pd

from pref_elo.config import (
    GAMES_FILE,
    SETTINGS_FILE,
    OUTPUT_FOLDER,
    RATED_GAMES_PREFIX,
    RATINGS_PREFIX,
    COMPUTED_COLUMNS,
    DEFAULT_INITIAL_RATING,
    DEFAULT_DIFFERENCE_DIVISOR,
    MIN_ROSTER_SIZE,
    EXPECTED_ROSTER_SIZES,
)
from pref_elo.exceptions import InvalidRosterError, PrefEloError
from pref_elo.ingestion.sheet import RatingSettings, read_settings, read_table, write_table
from pref_elo.ledger.processor import SequentialProcessor
from pref_elo.ledger.snapshot import GameSnapshot
from pref_elo.ledger.store import RecordStore
from pref_elo.utils import setup_logging, cleanup_old_files, atomic_write_csv

# --- Module Logger ---
logger = setup_logging(__name__)


def expected_score(rating_a, rating_b, difference_divisor=DEFAULT_DIFFERENCE_DIVISOR):
    """Calculate expected probability of player A beating player B"""
    exponent = (rating_b - rating_a) / difference_divisor
    try:
        return 1 / (1 + 10 ** exponent)
    except OverflowError:
        # B is so far ahead that 10 ** exponent exceeds float range
        return 0.0


def actual_score(score_a, score_b):
    """1 if A has more vists than B, 0.5 on equal vists, 0 otherwise"""
    if score_a > score_b:
        return 1.0
    if score_a == score_b:
        return 0.5
    return 0.0


def compute_game_ratings(scores, ratings_before, difference_divisor, k_factor, game_id=None):
    """
    Compute expected results, results and new ratings for one game.

    Pure function: every pair uses the ratings from ratings_before, so the
    order of players and pairs never affects the outcome.

    Args:
        scores: player -> vists for this game
        ratings_before: player -> rating before this game (must cover every player)
        difference_divisor: Logistic scale D
        k_factor: Rating volatility K
        game_id: Only used in error messages

    Returns:
        player -> {rating_before, expected_result, result, rating_after}

    Raises:
        InvalidRosterError: If the game has fewer than two players
    """
    players = list(scores)
    n = len(players)
    if n < MIN_ROSTER_SIZE:
        raise InvalidRosterError(game_id, n)

    expected = defaultdict(float)
    actual = defaultdict(float)

    for player_1, player_2 in combinations(players, 2):
        rating_1 = ratings_before[player_1]
        rating_2 = ratings_before[player_2]
        expected[player_1] += expected_score(rating_1, rating_2, difference_divisor)
        expected[player_2] += expected_score(rating_2, rating_1, difference_divisor)

        score_1 = scores[player_1]
        score_2 = scores[player_2]
        actual[player_1] += actual_score(score_1, score_2)
        actual[player_2] += actual_score(score_2, score_1)

    results = {}
    for player in players:
        expected_result = expected[player] / (n - 1)
        result = actual[player] / (n - 1)
        delta = k_factor * (result - expected_result)
        results[player] = {
            'rating_before': ratings_before[player],
            'expected_result': expected_result,
            'result': result,
            'rating_after': ratings_before[player] + delta,
        }

    return results


class PlayerRatings:
    """
    Running rating of every player seen so far in one pass.

    Owned by a single run and passed into each game's processing step.
    Players are seeded with initial_rating the first time they are looked up.
    """

    def __init__(self, initial_rating=DEFAULT_INITIAL_RATING):
        self.initial_rating = initial_rating
        self._ratings: dict[str, float] = {}
        self._games_played: dict[str, int] = defaultdict(int)
        self._last_game: dict[str, int] = {}

    def rating_for(self, player: str) -> float:
        if player not in self._ratings:
            self._ratings[player] = self.initial_rating
        return self._ratings[player]

    def snapshot(self, players) -> dict[str, float]:
        """Frozen copy of the current ratings of a roster."""
        return {player: self.rating_for(player) for player in players}

    def apply(self, new_ratings: dict[str, float], game_id: int | None = None) -> None:
        """Store a whole game's new ratings at once."""
        for player, rating in new_ratings.items():
            self._ratings[player] = rating
            self._games_played[player] += 1
            if game_id is not None:
                self._last_game[player] = game_id

    def games_played(self, player: str) -> int:
        return self._games_played.get(player, 0)

    def last_game(self, player: str) -> int | None:
        return self._last_game.get(player)

    def as_dict(self) -> dict[str, float]:
        return dict(self._ratings)

    def __contains__(self, player) -> bool:
        return player in self._ratings

    def __len__(self) -> int:
        return len(self._ratings)


def rate_game(snapshot: GameSnapshot, player_ratings: PlayerRatings, settings: RatingSettings):
    """
    Fill one game's snapshot and move its players' ratings.

    The roster's ratings are frozen before any delta is computed and written
    back only after every delta of the game is known.
    """
    players = snapshot.players()
    if len(players) >= MIN_ROSTER_SIZE and len(players) not in EXPECTED_ROSTER_SIZES:
        logger.warning(f"Game {snapshot.game_id} has {len(players)} players")

    ratings_before = player_ratings.snapshot(players)
    results = compute_game_ratings(
        snapshot.vists(),
        ratings_before,
        settings.difference_divisor,
        settings.k_factor,
        game_id=snapshot.game_id,
    )

    snapshot.merge(results)
    player_ratings.apply(
        {player: values['rating_after'] for player, values in results.items()},
        game_id=snapshot.game_id,
    )
    return results


def compute_ratings(store: RecordStore, settings: RatingSettings) -> PlayerRatings:
    """
    Run one full pass over the ledger.

    Args:
        store: Freshly loaded RecordStore; its computed columns are overwritten
        settings: Rating constants

    Returns:
        Final PlayerRatings of the pass
    """
    player_ratings = PlayerRatings(settings.initial_rating)
    processor = SequentialProcessor(store)

    logger.info(f"Processing {len(processor.game_ids)} games...")

    while not processor.is_finished():
        snapshot = processor.next()
        results = rate_game(snapshot, player_ratings, settings)
        processor.commit(snapshot)
        logger.debug(f"Game {snapshot.game_id}: {results}")

    logger.info(f"Processed {len(processor.game_ids)} games, {len(player_ratings)} unique players")
    return player_ratings


def build_ratings_summary(store: RecordStore, player_ratings: PlayerRatings) -> pd.DataFrame:
    """Current ratings, highest first, with each player's last game."""
    columns = ['rank', 'player', 'rating', 'games_played', 'last_game_id', 'last_game_date']

    rows = []
    for player, rating in player_ratings.as_dict().items():
        last_game_id = player_ratings.last_game(player)
        rows.append({
            'player': player,
            'rating': round(rating, 2),
            'games_played': player_ratings.games_played(player),
            'last_game_id': last_game_id,
            'last_game_date': store.game_date(last_game_id) if last_game_id is not None else None,
        })

    summary = pd.DataFrame(rows, columns=columns[1:])
    summary = summary.sort_values(['rating', 'player'], ascending=[False, True]).reset_index(drop=True)
    summary.insert(0, 'rank', summary.index + 1)
    return summary[columns]


def process_ledger(games_csv=GAMES_FILE, settings_csv=SETTINGS_FILE, output_folder=OUTPUT_FOLDER,
                   computed_only=False):
    """
    Rate a games sheet export and write the results.

    Output is written only when every game was processed; on any error the
    run is abandoned and nothing is written.

    Returns:
        Tuple of (store, ratings_summary_df)
    """
    games_csv = Path(games_csv)
    output_folder = Path(output_folder)

    logger.info("=" * 60)
    logger.info(f"Rating games from {games_csv}")
    logger.info("=" * 60)

    try:
        settings = read_settings(Path(settings_csv))
        store = RecordStore(read_table(games_csv))
        player_ratings = compute_ratings(store, settings)
    except PrefEloError as e:
        logger.error(f"Rating run aborted, nothing written: {e}")
        raise

    summary = build_ratings_summary(store, player_ratings)

    stamp = datetime.now().strftime('%Y%m%d')
    games_out = output_folder / f"{RATED_GAMES_PREFIX}_{stamp}.csv"
    ratings_out = output_folder / f"{RATINGS_PREFIX}_{stamp}.csv"

    write_table(store, games_out, columns=COMPUTED_COLUMNS if computed_only else None)
    atomic_write_csv(summary, ratings_out, index=False)

    cleanup_old_files(f"{RATED_GAMES_PREFIX}_*.csv", keep_file=games_out, folder=output_folder)
    cleanup_old_files(f"{RATINGS_PREFIX}_*.csv", keep_file=ratings_out, folder=output_folder)

    logger.info("Top 10 players by rating:")
    logger.info("\n" + summary.head(10).to_string(index=False))
    logger.info("Exported CSV files:")
    logger.info(f"  Rated games: {games_out}")
    logger.info(f"  Ratings: {ratings_out}")

    return store, summary


def main(argv=None):
    parser = argparse.ArgumentParser(description="Recompute Elo ratings for a Preferans games ledger")
    parser.add_argument("games", nargs="?", default=GAMES_FILE, type=Path, help="games sheet CSV")
    parser.add_argument("settings", nargs="?", default=SETTINGS_FILE, type=Path, help="settings sheet CSV")
    parser.add_argument("output", nargs="?", default=OUTPUT_FOLDER, type=Path, help="output folder")
    parser.add_argument("--computed-only", action="store_true",
                        help="write only the four computed columns, ready to paste back into the sheet")
    args = parser.parse_args(argv)

    try:
        process_ledger(args.games, args.settings, args.output, computed_only=args.computed_only)
    except PrefEloError:
        return 1
    except (OSError, pd.errors.ParserError) as e:
        logger.error(f"Could not read input files: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
