"""
Preferans Elo Ledger - Core Package

This package contains the core modules for:
- Game ledger indexing and sequential commit protocol (pref_elo.ledger)
- Pairwise Elo computation (pref_elo.elo)
- Sheet I/O (pref_elo.ingestion)
- Shared configuration and utilities
"""

from pref_elo.config import *
