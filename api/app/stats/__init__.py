"""Event aggregation for project analytics."""

from app.stats.engine import StatsEngine, empty_counts, summarize

__all__ = [
    "StatsEngine",
    "empty_counts",
    "summarize",
]
