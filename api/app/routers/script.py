"""Script serving endpoint — ``GET /s/{project_id}``.

Host pages load this through a plain ``<script>`` tag, so every outcome is a
200 with a JavaScript body. Missing, inactive and failing projects get an
inert comment instead of the embed script.
"""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.dependencies import find_project
from app.core.security import is_safe_identifier
from app.services.script_generator import generate_embed_script, placeholder_script

logger = logging.getLogger(__name__)

router = APIRouter(tags=["script"])

JAVASCRIPT_MEDIA_TYPE = "application/javascript; charset=utf-8"
NO_CACHE = "no-cache, no-store, must-revalidate"

NOT_FOUND_SCRIPT = placeholder_script("Project not found")
INACTIVE_SCRIPT = placeholder_script("Project is inactive")
ERROR_SCRIPT = placeholder_script("Internal error")


def _script_response(body: str, cache_control: str) -> Response:
    return Response(
        content=body,
        media_type=JAVASCRIPT_MEDIA_TYPE,
        headers={
            "Cache-Control": cache_control,
            "Access-Control-Allow-Origin": "*",
        },
    )


@router.get("/s/{project_id}", response_class=Response)
async def serve_script(project_id: str, db: AsyncSession = Depends(get_db)) -> Response:
    """Serve the embed script for an active project."""
    try:
        if not is_safe_identifier(project_id):
            return _script_response(NOT_FOUND_SCRIPT, NO_CACHE)

        project = await find_project(project_id, db)
        if project is None:
            return _script_response(NOT_FOUND_SCRIPT, NO_CACHE)
        if not project.is_active:
            return _script_response(INACTIVE_SCRIPT, NO_CACHE)

        script = generate_embed_script(project.id, settings.PUBLIC_API_URL)
        return _script_response(script, f"public, max-age={settings.SCRIPT_CACHE_MAX_AGE}")
    except Exception:
        logger.exception("Failed to serve embed script for %r", project_id)
        return _script_response(ERROR_SCRIPT, NO_CACHE)
