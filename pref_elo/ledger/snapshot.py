"""
Per-game value snapshots.

A GameSnapshot is the partial view of one game handed out by the record
store: raw scores are known, the four computed fields are filled in by the
rating engine through merge(). Once every field is present the snapshot can
be frozen into a CompletedGame, which is what gets written back to the rows.
"""

import math
import numbers
from dataclasses import dataclass, replace

from pref_elo.config import (
    RATING_BEFORE_COL,
    EXPECTED_RESULT_COL,
    RESULT_COL,
    RATING_AFTER_COL,
)
from pref_elo.exceptions import IncompleteSnapshotError, SnapshotFrozenError

# Computed fields, in sheet order, and the columns they are written to
COMPUTED_FIELDS = ("rating_before", "expected_result", "result", "rating_after")
FIELD_COLUMNS = {
    "rating_before": RATING_BEFORE_COL,
    "expected_result": EXPECTED_RESULT_COL,
    "result": RESULT_COL,
    "rating_after": RATING_AFTER_COL,
}


def _is_filled(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return not math.isnan(value)


@dataclass(frozen=True)
class PlayerValues:
    """One player's row in a game that is still being computed."""

    player: str
    row: int
    vists: float
    rating_before: float | None = None
    expected_result: float | None = None
    result: float | None = None
    rating_after: float | None = None

    def missing_fields(self) -> list[str]:
        return [name for name in COMPUTED_FIELDS if not _is_filled(getattr(self, name))]


@dataclass(frozen=True)
class PlayerResult:
    """One player's fully computed row."""

    player: str
    row: int
    vists: float
    rating_before: float
    expected_result: float
    result: float
    rating_after: float

    @property
    def delta(self) -> float:
        return self.rating_after - self.rating_before


@dataclass(frozen=True)
class CompletedGame:
    """Immutable, fully computed game ready to be written back."""

    game_id: int
    results: tuple[PlayerResult, ...]

    def players(self) -> list[str]:
        return [r.player for r in self.results]

    def by_player(self, player: str) -> PlayerResult:
        for r in self.results:
            if r.player == player:
                return r
        raise KeyError(f"Player {player!r} did not play game {self.game_id}")

    def __iter__(self):
        return iter(self.results)


class GameSnapshot:
    """
    Mutable holder for one game's per-player values.

    Completeness is recomputed after every merge and cannot be set from
    outside. After freeze() the snapshot rejects further merges.
    """

    def __init__(self, game_id: int, values: list[PlayerValues]):
        self.game_id = game_id
        self._values: dict[str, PlayerValues] = {v.player: v for v in values}
        self._is_complete = False
        self._committed = False
        self._update_is_complete()

    @property
    def is_complete(self) -> bool:
        return self._is_complete

    @property
    def is_committed(self) -> bool:
        return self._committed

    def players(self) -> list[str]:
        """Return the roster in first-seen row order."""
        return list(self._values)

    def values(self, player: str) -> PlayerValues:
        return self._values[player]

    def vists(self) -> dict[str, float]:
        """Raw score per player."""
        return {player: v.vists for player, v in self._values.items()}

    def missing(self) -> dict[str, list[str]]:
        """Computed fields still unset, per player (empty when complete)."""
        result = {}
        for player, v in self._values.items():
            fields = v.missing_fields()
            if fields:
                result[player] = fields
        return result

    def merge(self, updates_by_player: dict[str, dict[str, float]]) -> None:
        """
        Apply partial updates to the computed fields.

        Args:
            updates_by_player: player -> {field name: value}, any subset of
                rating_before, expected_result, result, rating_after

        Raises:
            SnapshotFrozenError: If the snapshot was already committed
            KeyError: If a player is not in this game or a field is unknown
        """
        if self._committed:
            raise SnapshotFrozenError(self.game_id)

        for player in updates_by_player:
            if player not in self._values:
                raise KeyError(f"Player {player!r} is not in game {self.game_id}")
            unknown = set(updates_by_player[player]) - set(COMPUTED_FIELDS)
            if unknown:
                raise KeyError(f"Unknown fields for {player!r}: {sorted(unknown)}")

        for player, update in updates_by_player.items():
            self._values[player] = replace(self._values[player], **update)

        self._update_is_complete()

    def freeze(self) -> CompletedGame:
        """
        Turn a complete snapshot into an immutable CompletedGame.

        Raises:
            IncompleteSnapshotError: If any computed field is still unset
        """
        if not self._is_complete:
            raise IncompleteSnapshotError(self.game_id, self.missing())

        self._committed = True
        return CompletedGame(
            game_id=self.game_id,
            results=tuple(
                PlayerResult(
                    player=v.player,
                    row=v.row,
                    vists=v.vists,
                    rating_before=v.rating_before,
                    expected_result=v.expected_result,
                    result=v.result,
                    rating_after=v.rating_after,
                )
                for v in self._values.values()
            ),
        )

    def _update_is_complete(self) -> None:
        self._is_complete = all(not v.missing_fields() for v in self._values.values())

    def __repr__(self) -> str:
        state = "committed" if self._committed else ("complete" if self._is_complete else "partial")
        return f"GameSnapshot(game_id={self.game_id}, players={self.players()}, {state})"
