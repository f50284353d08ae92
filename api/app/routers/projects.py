from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.dependencies import get_project
from app.models.event import VisitorEvent
from app.models.project import Project
from app.services.script_generator import generate_embed_code
from app.stats.engine import StatsEngine

router = APIRouter(tags=["projects"])

_NON_NULLABLE_FIELDS = ("name", "domain", "is_active")


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class ProjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    domain: str = Field(min_length=1, max_length=255)
    description: str | None = None

    model_config = {"str_strip_whitespace": True}


class ProjectUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    domain: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    is_active: bool | None = None

    model_config = {"str_strip_whitespace": True}


class VariationStats(BaseModel):
    total_visitors: int
    variations: dict[str, int]


class ProjectOut(BaseModel):
    id: str
    name: str
    domain: str
    description: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime
    embed_script: str | None = None
    stats: VariationStats | None = None

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _project_out(project: Project, stats: dict | None = None) -> ProjectOut:
    out = ProjectOut.model_validate(project)
    out.embed_script = generate_embed_code(project.id, settings.PUBLIC_API_URL)
    if stats is not None:
        out.stats = VariationStats(**stats)
    return out


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/projects", response_model=list[ProjectOut])
async def list_projects(db: AsyncSession = Depends(get_db)) -> list[ProjectOut]:
    """List all projects, newest first, with their variation counts."""
    result = await db.execute(select(Project).order_by(Project.created_at.desc(), Project.id))
    projects = result.scalars().all()
    stats = await StatsEngine(db).counts_for_projects(p.id for p in projects)
    return [_project_out(p, stats[p.id]) for p in projects]


@router.post("/projects", response_model=ProjectOut, status_code=status.HTTP_201_CREATED)
async def create_project(body: ProjectCreate, db: AsyncSession = Depends(get_db)) -> ProjectOut:
    """Create a new, active project."""
    project = Project(
        name=body.name,
        domain=body.domain,
        description=body.description or None,
        is_active=True,
    )
    db.add(project)
    await db.flush()
    await db.refresh(project)
    return _project_out(project)


@router.get("/projects/{project_id}", response_model=ProjectOut)
async def get_project_detail(project_id: str, db: AsyncSession = Depends(get_db)) -> ProjectOut:
    """Get a single project with its embed snippet and stats."""
    project = await get_project(project_id, db)
    stats = await StatsEngine(db).variation_counts(project.id)
    return _project_out(project, stats)


@router.api_route("/projects/{project_id}", methods=["PATCH", "PUT"], response_model=ProjectOut)
async def update_project(
    project_id: str,
    body: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
) -> ProjectOut:
    """Update name, domain, description or the active flag."""
    project = await get_project(project_id, db)

    update_data = body.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    for field in _NON_NULLABLE_FIELDS:
        if field in update_data and update_data[field] is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} cannot be null")
    if "description" in update_data:
        update_data["description"] = update_data["description"] or None

    for field, value in update_data.items():
        setattr(project, field, value)
    await db.flush()
    await db.refresh(project)
    return _project_out(project)


@router.delete("/projects/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(project_id: str, db: AsyncSession = Depends(get_db)) -> None:
    """Delete a project together with all of its visitor events."""
    project = await get_project(project_id, db)
    await db.execute(delete(VisitorEvent).where(VisitorEvent.project_id == project.id))
    await db.execute(delete(Project).where(Project.id == project.id))
    await db.flush()
