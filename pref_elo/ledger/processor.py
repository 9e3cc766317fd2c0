"""
Sequential game processor.

Walks the ledger's games in ascending id order with a strict two-phase
protocol: next() hands out one game's snapshot, commit() writes it back, and
no second snapshot is handed out until the first is committed.
"""

from enum import Enum

from pref_elo.exceptions import (
    IncompleteSnapshotError,
    NotCurrentGameError,
    PendingCommitError,
    SequenceExhaustedError,
)
from pref_elo.ledger.snapshot import GameSnapshot
from pref_elo.ledger.store import RecordStore
from pref_elo.utils import setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)


class ProcessorState(Enum):
    IDLE = "idle"
    AWAITING_COMMIT = "awaiting_commit"
    DONE = "done"


class SequentialProcessor:
    """
    Finite-state machine over the store's ordered game ids.

    States: IDLE(cursor) -> AWAITING_COMMIT(cursor, snapshot) -> IDLE(cursor + 1),
    ending in DONE once every game is committed.
    """

    def __init__(self, store: RecordStore):
        self.store = store
        self.game_ids = store.ordered_game_ids()
        self._cursor = 0
        self._pending: GameSnapshot | None = None
        self._state = ProcessorState.IDLE if self.game_ids else ProcessorState.DONE

    @property
    def state(self) -> ProcessorState:
        return self._state

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current_game_id(self) -> int | None:
        """Game id at the cursor, or None when every game is committed."""
        if self._cursor < len(self.game_ids):
            return self.game_ids[self._cursor]
        return None

    def is_finished(self) -> bool:
        if self._state is ProcessorState.DONE:
            return True
        return self._state is ProcessorState.IDLE and self._cursor == len(self.game_ids)

    def next(self) -> GameSnapshot:
        """
        Hand out the snapshot of the next game.

        Raises:
            PendingCommitError: If the previous snapshot has not been committed
            SequenceExhaustedError: If every game has been processed
        """
        if self._state is ProcessorState.AWAITING_COMMIT:
            raise PendingCommitError(self.current_game_id)
        if self.is_finished():
            raise SequenceExhaustedError()

        snapshot = self.store.get_game_view(self.game_ids[self._cursor])
        self._pending = snapshot
        self._state = ProcessorState.AWAITING_COMMIT
        return snapshot

    def commit(self, snapshot: GameSnapshot) -> None:
        """
        Commit the snapshot handed out by the last next() call.

        Raises:
            NotCurrentGameError: If nothing is awaiting commit or the snapshot is
                not the one for the current game
            IncompleteSnapshotError: If the snapshot is not complete
        """
        if self._state is not ProcessorState.AWAITING_COMMIT:
            raise NotCurrentGameError(snapshot.game_id, None)

        expected = self.game_ids[self._cursor]
        if snapshot.game_id != expected or snapshot is not self._pending:
            raise NotCurrentGameError(snapshot.game_id, expected)
        if not snapshot.is_complete:
            logger.debug(f"Game values: {snapshot!r}")
            raise IncompleteSnapshotError(snapshot.game_id, snapshot.missing())

        logger.debug(f"Updating game {snapshot.game_id}")
        self.store.commit(expected, snapshot)

        self._pending = None
        self._cursor += 1
        if self._cursor == len(self.game_ids):
            self._state = ProcessorState.DONE
        else:
            self._state = ProcessorState.IDLE
