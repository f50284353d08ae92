"""Stats router — per-variation counts for the dashboard."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_project
from app.stats.engine import StatsEngine

router = APIRouter(tags=["stats"])


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class ProjectStats(BaseModel):
    project_id: str
    total_visitors: int
    variations: dict[str, int]


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------


@router.get("/projects/{project_id}/stats", response_model=ProjectStats)
async def get_project_stats(
    project_id: str,
    db: AsyncSession = Depends(get_db),
) -> ProjectStats:
    """Total and per-variation event counts for a project.

    Returns 404 for unknown (or deleted) projects rather than zeroed counts.
    """
    project = await get_project(project_id, db)
    counts = await StatsEngine(db).variation_counts(project.id)
    return ProjectStats(project_id=project.id, **counts)
