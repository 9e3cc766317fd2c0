"""
Elo Rating System

Modules:
- engine: Pairwise Elo computation, running ratings and the rating run
"""


def __getattr__(name):
    """Lazy imports to avoid RuntimeWarning when running modules directly."""
    if name == "compute_game_ratings":
        from pref_elo.elo.engine import compute_game_ratings
        return compute_game_ratings
    if name == "PlayerRatings":
        from pref_elo.elo.engine import PlayerRatings
        return PlayerRatings
    if name == "compute_ratings":
        from pref_elo.elo.engine import compute_ratings
        return compute_ratings
    if name == "process_ledger":
        from pref_elo.elo.engine import process_ledger
        return process_ledger
    if name == "run_ratings":
        from pref_elo.elo.engine import main
        return main
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
