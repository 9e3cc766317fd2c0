"""
Record Store for the games ledger

Holds the raw games table (header row + one row per player per game),
validates it, indexes row positions by game id and hands out per-game
snapshots. commit() is the only operation that changes the table: it writes
the four computed fields of a finished game into that game's rows.

Usage:
    store = RecordStore(read_table(GAMES_FILE))
    for game_id in store.ordered_game_ids():
        snapshot = store.get_game_view(game_id)
        ...
"""

import pandas as pd

from pref_elo.config import (
    REQUIRED_COLUMNS,
    GAME_ID_COL,
    GAME_DATE_COL,
    PLAYER_COL,
    VISTS_COL,
)
from pref_elo.exceptions import (
    SchemaError,
    EmptyDatasetError,
    DuplicatePlayerError,
    IncompleteSnapshotError,
    NotCurrentGameError,
)
from pref_elo.ledger.snapshot import FIELD_COLUMNS, GameSnapshot, PlayerValues
from pref_elo.utils import setup_logging, is_blank, to_number

# --- Module Logger ---
logger = setup_logging(__name__)

# Header occupies sheet row 1, so data position 0 is sheet row 2
FIRST_DATA_ROW = 2


class RecordStore:
    """
    Indexed, in-memory games table.

    Args:
        raw_rows: 2D grid; first row is the header, the rest are data rows
    """

    def __init__(self, raw_rows):
        self.validate(raw_rows)

        self.header = [str(label).strip() for label in raw_rows[0]]
        self.columns = {label: i for i, label in enumerate(self.header)}

        width = len(self.header)
        rows = [self._fit_row(list(row), width) for row in raw_rows[1:]]
        self.data = pd.DataFrame(rows, columns=range(width), dtype=object)
        self.rows_count = len(self.data)

        self.games_mapping: dict[int, list[int]] = {}
        self._ordered_game_ids: list[int] = []
        self.build_index()

        logger.info(f"Rows count: {self.rows_count}")
        logger.info(f"Games found: {len(self._ordered_game_ids)}")

    @staticmethod
    def validate(raw_rows) -> None:
        """
        Check the header and that there is data below it.

        Raises:
            SchemaError: If any required column label is missing from the header
            EmptyDatasetError: If there are no data rows
        """
        header = [str(label).strip() for label in raw_rows[0]] if len(raw_rows) else []
        missing = [col for col in REQUIRED_COLUMNS if col not in header]
        if missing:
            raise SchemaError(
                f"Column {missing[0]} is missing" if len(missing) == 1
                else f"Columns {', '.join(missing)} are missing",
                column=missing[0],
            )

        if len(raw_rows) < 2:
            raise EmptyDatasetError()

    @staticmethod
    def _fit_row(row: list, width: int) -> list:
        # Spreadsheet exports drop trailing empty cells
        if len(row) < width:
            return row + [""] * (width - len(row))
        return row[:width]

    def build_index(self) -> None:
        """Group data-row positions by game id and sort the distinct ids once."""
        id_position = self.columns[GAME_ID_COL]
        game_ids = pd.Series(
            [self._parse_game_id(value, pos) for pos, value in enumerate(self.data[id_position])],
            dtype="int64",
        )

        groups = game_ids.groupby(game_ids, sort=False).indices
        self.games_mapping = {int(game_id): [int(pos) for pos in positions] for game_id, positions in groups.items()}
        self._ordered_game_ids = sorted(self.games_mapping)

        logger.debug(f"Games mapping: {self.games_mapping}")

    def ordered_game_ids(self) -> list[int]:
        """Return the distinct game ids in ascending numeric order."""
        return list(self._ordered_game_ids)

    def get_game_view(self, game_id: int) -> GameSnapshot:
        """
        Build a snapshot of one game from its rows.

        Raises:
            KeyError: If the game id is not in the table
            DuplicatePlayerError: If a player appears twice in the game
            SchemaError: If a player or score cell cannot be read
        """
        positions = self._positions(game_id)
        player_position = self.columns[PLAYER_COL]
        vists_position = self.columns[VISTS_COL]

        values = []
        seen = set()
        for pos in positions:
            cell = self.data.iat[pos, player_position]
            if is_blank(cell):
                raise SchemaError("Player is empty", column=PLAYER_COL, row=pos + FIRST_DATA_ROW)
            player = str(cell).strip()

            if player in seen:
                raise DuplicatePlayerError(game_id, player)
            seen.add(player)

            vists = self._parse_vists(self.data.iat[pos, vists_position], pos)
            values.append(PlayerValues(player=player, row=pos, vists=vists))

        return GameSnapshot(game_id, values)

    def commit(self, game_id: int, snapshot: GameSnapshot) -> None:
        """
        Write a finished game's computed fields into its rows.

        Raises:
            NotCurrentGameError: If the snapshot belongs to another game
            IncompleteSnapshotError: If the snapshot is not complete
        """
        if snapshot.game_id != game_id:
            raise NotCurrentGameError(snapshot.game_id, game_id)
        if not snapshot.is_complete:
            raise IncompleteSnapshotError(game_id, snapshot.missing())

        completed = snapshot.freeze()
        logger.debug(f"Setting values for game {game_id}")

        for result in completed:
            for field, column in FIELD_COLUMNS.items():
                self.data.iat[result.row, self.columns[column]] = getattr(result, field)
            logger.debug(f"Row after update: {self.data.iloc[result.row].tolist()}")

    def column_values(self, column: str) -> list:
        """Return one column's values in row order."""
        if column not in self.columns:
            raise KeyError(f"Unknown column {column!r}")
        return self.data[self.columns[column]].tolist()

    def game_date(self, game_id: int):
        """Date cell of the game's first row, as read."""
        return self.data.iat[self._positions(game_id)[0], self.columns[GAME_DATE_COL]]

    def to_frame(self) -> pd.DataFrame:
        """Return a copy of the whole table labelled with the sheet header."""
        frame = self.data.copy()
        frame.columns = self.header
        return frame

    def _positions(self, game_id: int) -> list[int]:
        try:
            return self.games_mapping[game_id]
        except KeyError:
            raise KeyError(f"Game {game_id} is not in the table") from None

    @staticmethod
    def _parse_game_id(value, pos: int) -> int:
        row = pos + FIRST_DATA_ROW
        if is_blank(value):
            raise SchemaError("Game id is empty", column=GAME_ID_COL, row=row)
        try:
            number = to_number(value)
        except (TypeError, ValueError):
            raise SchemaError(f"Game id {value!r} is not a number", column=GAME_ID_COL, row=row) from None
        if not number.is_integer():
            raise SchemaError(f"Game id {value!r} is not a whole number", column=GAME_ID_COL, row=row)
        return int(number)

    @staticmethod
    def _parse_vists(value, pos: int) -> float:
        # A blank score cell counts as zero vists
        if is_blank(value):
            return 0.0
        try:
            return to_number(value)
        except (TypeError, ValueError):
            raise SchemaError(
                f"Vists {value!r} is not a number", column=VISTS_COL, row=pos + FIRST_DATA_ROW
            ) from None
