"""
Exceptions raised by the Preferans Elo ledger.

Every error is fatal to the current run: nothing is retried internally and
the run driver writes nothing back once one of these is raised.
"""


class PrefEloError(Exception):
    """Base exception for all ledger and rating errors"""
    pass


# --- Data errors ---
class LedgerDataError(PrefEloError):
    """The games table itself is malformed"""
    pass


class SchemaError(LedgerDataError):
    """A required column is missing or a cell cannot be read"""

    def __init__(self, message: str, column: str | None = None, row: int | None = None):
        self.column = column
        self.row = row
        full_message = message
        if row is not None:
            full_message = f"Row {row}: {message}"
        super().__init__(full_message)


class EmptyDatasetError(LedgerDataError):
    """The table has a header but no data rows"""

    def __init__(self):
        super().__init__("No data found: the games table has no rows below the header")


class DuplicatePlayerError(LedgerDataError):
    """The same player is listed twice in one game"""

    def __init__(self, game_id: int, player: str):
        self.game_id = game_id
        self.player = player
        super().__init__(f"Duplicate player {player!r} in game {game_id}")


class InvalidRosterError(LedgerDataError):
    """A game has fewer than two players, so no pair can be formed"""

    def __init__(self, game_id: int | None, size: int):
        self.game_id = game_id
        self.size = size
        where = f"Game {game_id}" if game_id is not None else "Game"
        super().__init__(f"{where} has {size} player(s); at least 2 are required")


# --- Sequencing errors ---
class SequenceError(PrefEloError):
    """The request-next/commit protocol was violated"""
    pass


class IncompleteSnapshotError(SequenceError):
    """A snapshot was committed before every computed field was filled"""

    def __init__(self, game_id: int, missing: dict[str, list[str]] | None = None):
        self.game_id = game_id
        self.missing = missing or {}
        message = f"Game {game_id} is not filled"
        if self.missing:
            details = "; ".join(f"{player}: {', '.join(fields)}" for player, fields in self.missing.items())
            message += f" (missing {details})"
        super().__init__(message)


class NotCurrentGameError(SequenceError):
    """A snapshot for a game other than the one in flight was committed"""

    def __init__(self, game_id: int, expected: int | None):
        self.game_id = game_id
        self.expected = expected
        if expected is None:
            message = f"Game {game_id} was committed but no game is awaiting commit"
        else:
            message = f"Game {game_id} is not the current game {expected}"
        super().__init__(message)


class PendingCommitError(SequenceError):
    """next() was called while the previous game is still uncommitted"""

    def __init__(self, game_id: int):
        self.game_id = game_id
        super().__init__(f"Game {game_id} has not been committed")


class SequenceExhaustedError(SequenceError):
    """next() was called after the last game"""

    def __init__(self):
        super().__init__("All games have been processed")


class SnapshotFrozenError(SequenceError):
    """A committed snapshot was modified"""

    def __init__(self, game_id: int):
        self.game_id = game_id
        super().__init__(f"Game {game_id} is already committed and cannot be changed")


# --- Configuration errors ---
class SettingsError(PrefEloError):
    """A settings value is unusable"""

    def __init__(self, message: str, key: str | None = None, value=None):
        self.key = key
        self.value = value
        full_message = message
        if key:
            full_message = f"Setting '{key}': {message}"
        super().__init__(full_message)


__all__ = [
    'PrefEloError',
    'LedgerDataError',
    'SchemaError',
    'EmptyDatasetError',
    'DuplicatePlayerError',
    'InvalidRosterError',
    'SequenceError',
    'IncompleteSnapshotError',
    'NotCurrentGameError',
    'PendingCommitError',
    'SequenceExhaustedError',
    'SnapshotFrozenError',
    'SettingsError',
]
