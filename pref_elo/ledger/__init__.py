"""
Games Ledger

Modules:
- store: Indexed games table and the only writer of computed columns
- snapshot: Per-game partial and completed value holders
- processor: Strict-order next/commit state machine
"""

from pref_elo.ledger.snapshot import GameSnapshot, CompletedGame, PlayerValues, PlayerResult
from pref_elo.ledger.store import RecordStore
from pref_elo.ledger.processor import SequentialProcessor, ProcessorState

__all__ = [
    'GameSnapshot',
    'CompletedGame',
    'PlayerValues',
    'PlayerResult',
    'RecordStore',
    'SequentialProcessor',
    'ProcessorState',
]
