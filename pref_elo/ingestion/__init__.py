"""
Sheet Ingestion

Modules:
- sheet: Read the games and settings sheets, write the rated games table
"""

from pref_elo.ingestion.sheet import (
    RatingSettings,
    read_table,
    read_settings,
    settings_from_mapping,
    write_table,
)

__all__ = [
    'RatingSettings',
    'read_table',
    'read_settings',
    'settings_from_mapping',
    'write_table',
]
