"""Driver score providers feeding the alert monitor.

Components:
- ScoreProvider: Interface yielding per-driver EMA snapshots
- BackendScoreProvider: Reads ``/stats/all`` from the sentiment backend
- StaticScoreProvider: Fixed snapshots (CLI input files, tests)
"""

from src.drivers.provider import BackendScoreProvider, ScoreProvider, StaticScoreProvider

__all__ = [
    "BackendScoreProvider",
    "ScoreProvider",
    "StaticScoreProvider",
]
