# src/fcrank/__init__.py

"""FC Rank: Fightcade leaderboard aggregation service."""

__version__ = "0.1.0"
