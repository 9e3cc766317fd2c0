"""
End-to-end tests for a full rating run.
"""

import pandas as pd
import pytest

from pref_elo.config import (
    GAME_ID_COL,
    GAME_DATE_COL,
    PLAYER_COL,
    VISTS_COL,
    RATING_BEFORE_COL,
    EXPECTED_RESULT_COL,
    RESULT_COL,
    RATING_AFTER_COL,
    COMPUTED_COLUMNS,
)
from pref_elo.elo.engine import (
    compute_ratings,
    build_ratings_summary,
    process_ledger,
    main,
)
from pref_elo.exceptions import DuplicatePlayerError, InvalidRosterError
from pref_elo.ingestion.sheet import RatingSettings, settings_from_mapping
from pref_elo.ledger.store import RecordStore

HEADER = [
    GAME_ID_COL, GAME_DATE_COL, PLAYER_COL, VISTS_COL,
    RATING_BEFORE_COL, EXPECTED_RESULT_COL, RESULT_COL, RATING_AFTER_COL,
]

SETTINGS = RatingSettings(initial_rating=1500, k_factor=32, difference_divisor=400)

# Rows deliberately out of game order
LEDGER = [
    ["3", "08.02.2024", "A", "-4", "", "", "", ""],
    ["3", "08.02.2024", "B", "12", "", "", "", ""],
    ["3", "08.02.2024", "D", "2", "", "", "", ""],
    ["1", "01.02.2024", "A", "10", "", "", "", ""],
    ["1", "01.02.2024", "B", "5", "", "", "", ""],
    ["1", "01.02.2024", "C", "0", "", "", "", ""],
    ["2", "04.02.2024", "C", "7", "", "", "", ""],
    ["2", "04.02.2024", "A", "7", "", "", "", ""],
    ["2", "04.02.2024", "D", "1", "", "", "", ""],
    ["2", "04.02.2024", "B", "-3", "", "", "", ""],
]


def ledger_rows():
    return [list(HEADER)] + [list(row) for row in LEDGER]


def column(store, label):
    return store.column_values(label)


class TestComputeRatings:
    """Tests for compute_ratings over a whole ledger."""

    def test_first_game_matches_scenario(self):
        store = RecordStore(ledger_rows())
        compute_ratings(store, SETTINGS)

        after = column(store, RATING_AFTER_COL)
        # Rows 3..5 hold game 1
        assert after[3] == pytest.approx(1516)
        assert after[4] == pytest.approx(1500)
        assert after[5] == pytest.approx(1484)

    def test_ratings_carry_over_between_games(self):
        store = RecordStore(ledger_rows())
        compute_ratings(store, SETTINGS)

        before = column(store, RATING_BEFORE_COL)
        after = column(store, RATING_AFTER_COL)

        # Game 2: C and A come in with their game 1 ratings, D is new
        assert before[6] == pytest.approx(after[5])
        assert before[7] == pytest.approx(after[3])
        assert before[8] == 1500
        # Game 3 is played after game 2 even though its rows come first
        assert before[0] == pytest.approx(after[7])
        assert before[2] == pytest.approx(after[8])

    def test_every_row_filled(self):
        store = RecordStore(ledger_rows())
        compute_ratings(store, SETTINGS)
        for label in COMPUTED_COLUMNS:
            assert all(isinstance(value, float) or isinstance(value, int) for value in column(store, label))

    def test_game_sums_are_half_roster(self):
        store = RecordStore(ledger_rows())
        compute_ratings(store, SETTINGS)

        expected = column(store, EXPECTED_RESULT_COL)
        result = column(store, RESULT_COL)
        for game_id, positions in store.games_mapping.items():
            n = len(positions)
            assert sum(expected[p] for p in positions) == pytest.approx(n / 2)
            assert sum(result[p] for p in positions) == pytest.approx(n / 2)

    def test_final_ratings_returned(self):
        store = RecordStore(ledger_rows())
        player_ratings = compute_ratings(store, SETTINGS)

        after = column(store, RATING_AFTER_COL)
        assert player_ratings.as_dict()["B"] == pytest.approx(after[1])
        assert player_ratings.games_played("A") == 3
        assert player_ratings.games_played("C") == 2
        assert player_ratings.last_game("C") == 2

    def test_idempotent_over_previous_values(self):
        first = RecordStore(ledger_rows())
        compute_ratings(first, SETTINGS)

        stale = ledger_rows()
        for row in stale[1:]:
            row[4:] = ["999", "0.1", "0.9", "2000"]
        second = RecordStore(stale)
        compute_ratings(second, SETTINGS)

        assert column(first, RATING_AFTER_COL) == column(second, RATING_AFTER_COL)

    def test_initial_rating_from_settings(self):
        store = RecordStore(ledger_rows())
        compute_ratings(store, RatingSettings(initial_rating=1200, k_factor=32, difference_divisor=400))
        assert column(store, RATING_BEFORE_COL)[3] == 1200

    def test_duplicate_player_stops_run(self):
        rows = ledger_rows()
        rows[1][2] = "B"
        store = RecordStore(rows)
        with pytest.raises(DuplicatePlayerError):
            compute_ratings(store, SETTINGS)
        # Games before the bad one stay committed in memory
        assert column(store, RATING_AFTER_COL)[4] == pytest.approx(1500)

    def test_steep_settings_do_not_overflow(self):
        rows = [list(HEADER)] + [
            [str(game_id), "", player, str(vists), "", "", "", ""]
            for game_id in range(1, 21)
            for player, vists in (("A", 10), ("B", 0))
        ]
        store = RecordStore(rows)
        player_ratings = compute_ratings(store, settings_from_mapping({"k-factor": 1000, "difference_divisor": 1}))
        assert player_ratings.as_dict()["A"] > player_ratings.as_dict()["B"]
        # Once the gap is out of float range the favourite is certain to win
        assert column(store, EXPECTED_RESULT_COL)[-2] == 1.0
        assert column(store, EXPECTED_RESULT_COL)[-1] == 0.0

    def test_single_player_game_stops_run(self):
        rows = ledger_rows() + [["4", "09.02.2024", "A", "3", "", "", "", ""]]
        with pytest.raises(InvalidRosterError):
            compute_ratings(RecordStore(rows), SETTINGS)


class TestRatingsSummary:
    """Tests for build_ratings_summary."""

    def test_sorted_by_rating(self):
        store = RecordStore(ledger_rows())
        player_ratings = compute_ratings(store, SETTINGS)
        summary = build_ratings_summary(store, player_ratings)

        assert list(summary.columns) == ['rank', 'player', 'rating', 'games_played', 'last_game_id', 'last_game_date']
        assert summary['rank'].tolist() == [1, 2, 3, 4]
        assert summary['rating'].is_monotonic_decreasing
        assert set(summary['player']) == {"A", "B", "C", "D"}

        row_c = summary[summary['player'] == "C"].iloc[0]
        assert row_c['last_game_id'] == 2
        assert row_c['last_game_date'] == "04.02.2024"


class TestProcessLedger:
    """Tests for process_ledger and the CLI entry point."""

    def write_inputs(self, tmp_path, rows=None):
        games = tmp_path / "games.csv"
        settings = tmp_path / "settings.csv"
        pd.DataFrame((rows or ledger_rows())[1:], columns=HEADER).to_csv(games, index=False)
        settings.write_text("initialRating,1500\nk-factor,32\ndifference_divisor,400\n", encoding="utf-8")
        return games, settings

    def test_writes_outputs(self, tmp_path):
        games, settings = self.write_inputs(tmp_path)
        out = tmp_path / "processed"

        store, summary = process_ledger(games, settings, out)

        rated_files = list(out.glob("games_rated_*.csv"))
        ratings_files = list(out.glob("ratings_*.csv"))
        assert len(rated_files) == 1
        assert len(ratings_files) == 1

        rated = pd.read_csv(rated_files[0])
        assert rated[RATING_AFTER_COL].tolist() == pytest.approx(column(store, RATING_AFTER_COL))
        assert pd.read_csv(ratings_files[0])['player'].tolist() == summary['player'].tolist()

    def test_computed_only(self, tmp_path):
        games, settings = self.write_inputs(tmp_path)
        out = tmp_path / "processed"

        process_ledger(games, settings, out, computed_only=True)

        rated = pd.read_csv(next(out.glob("games_rated_*.csv")))
        assert list(rated.columns) == list(COMPUTED_COLUMNS)
        assert len(rated) == len(LEDGER)

    def test_nothing_written_on_error(self, tmp_path):
        rows = ledger_rows()
        rows[-1][2] = "C"
        games, settings = self.write_inputs(tmp_path, rows)
        out = tmp_path / "processed"

        with pytest.raises(DuplicatePlayerError):
            process_ledger(games, settings, out)
        assert not list(out.glob("*.csv"))

    def test_main_exit_codes(self, tmp_path):
        games, settings = self.write_inputs(tmp_path)
        assert main([str(games), str(settings), str(tmp_path / "ok")]) == 0

        rows = ledger_rows()
        rows[-1][2] = "C"
        bad_dir = tmp_path / "bad"
        bad_dir.mkdir()
        games, settings = self.write_inputs(bad_dir, rows)
        assert main([str(games), str(settings), str(tmp_path / "failed")]) == 1
        assert not (tmp_path / "failed").exists()

    def test_main_missing_input_file(self, tmp_path):
        _, settings = self.write_inputs(tmp_path)
        missing = tmp_path / "no_such_games.csv"
        assert main([str(missing), str(settings), str(tmp_path / "out")]) == 1
        assert not (tmp_path / "out").exists()

    def test_main_ragged_settings_file(self, tmp_path):
        games, settings = self.write_inputs(tmp_path)
        settings.write_text("initialRating,1500\nk-factor,32,extra,cells\n", encoding="utf-8")
        assert main([str(games), str(settings), str(tmp_path / "out")]) == 1
