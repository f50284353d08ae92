"""StatsEngine — per-variation impression counts for projects.

Every ``visitor_events`` row is one impression; repeat beacons from the same
visitor are counted again. This is the read path behind the stats router and
the project listing.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.event import VARIATIONS, VisitorEvent


def empty_counts() -> dict[str, int]:
    return {variation: 0 for variation in VARIATIONS}


def summarize(counts: dict[str, int]) -> dict[str, Any]:
    """Shape raw counts as ``{"total_visitors": n, "variations": {...}}``."""
    variations = empty_counts()
    for variation, count in counts.items():
        if variation in variations:
            variations[variation] = count
    return {"total_visitors": sum(variations.values()), "variations": variations}


class StatsEngine:
    """Aggregates visitor events by variation.

    Parameters
    ----------
    db : AsyncSession
        SQLAlchemy async session for querying events.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def variation_counts(self, project_id: str) -> dict[str, Any]:
        """Count events for one project, grouped by variation.

        All four variations are always present; the total is their sum.
        Does not check that the project exists.
        """
        result = await self.db.execute(
            select(VisitorEvent.variation, func.count(VisitorEvent.id))
            .where(VisitorEvent.project_id == project_id)
            .group_by(VisitorEvent.variation)
        )
        return summarize({variation: count for variation, count in result.all()})

    async def counts_for_projects(self, project_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
        """Same as :meth:`variation_counts` for many projects in one query."""
        ids = list(project_ids)
        if not ids:
            return {}

        result = await self.db.execute(
            select(VisitorEvent.project_id, VisitorEvent.variation, func.count(VisitorEvent.id))
            .where(VisitorEvent.project_id.in_(ids))
            .group_by(VisitorEvent.project_id, VisitorEvent.variation)
        )
        raw: dict[str, dict[str, int]] = {project_id: {} for project_id in ids}
        for project_id, variation, count in result.all():
            raw[project_id][variation] = count
        return {project_id: summarize(counts) for project_id, counts in raw.items()}
