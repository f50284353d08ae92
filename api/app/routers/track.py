"""Tracking beacon endpoint — ``GET /track``.

Called by the embed script through an image load, so it uses GET with query
parameters and always answers with the same 1x1 GIF. Whether an event was
recorded is only visible in the store.

Query params:
- v: visitor id
- p: project id
- var: variation (A, B, C or D)
- t: cache buster, ignored
"""

import base64
import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import find_project
from app.core.security import is_safe_identifier
from app.models.event import VisitorEvent
from app.services.assignment import is_valid_variation

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tracking"])

# 1x1 transparent GIF
PIXEL = base64.b64decode("R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7")

PIXEL_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
    "Access-Control-Allow-Origin": "*",
}

MAX_VISITOR_ID_LENGTH = 255


def _pixel_response() -> Response:
    return Response(content=PIXEL, media_type="image/gif", headers=PIXEL_HEADERS)


def _rejection_reason(visitor_id: str | None, project_id: str | None, variation: str | None) -> str | None:
    if not visitor_id or not project_id or not variation:
        return "missing parameter"
    if not is_valid_variation(variation):
        return "invalid variation"
    if len(visitor_id) > MAX_VISITOR_ID_LENGTH:
        return "visitor id too long"
    if not is_safe_identifier(project_id):
        return "invalid project id"
    return None


@router.get("/track", response_class=Response)
async def track(
    request: Request,
    visitor_id: str | None = Query(None, alias="v"),
    project_id: str | None = Query(None, alias="p"),
    variation: str | None = Query(None, alias="var"),
    cache_buster: str | None = Query(None, alias="t"),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Record a visitor's variation assignment and return a tracking pixel."""
    try:
        reason = _rejection_reason(visitor_id, project_id, variation)
        if reason is not None:
            logger.debug("Dropping beacon (%s): p=%r var=%r", reason, project_id, variation)
            return _pixel_response()

        if await find_project(project_id, db) is None:
            logger.debug("Dropping beacon for unknown project %r", project_id)
            return _pixel_response()

        db.add(
            VisitorEvent(
                project_id=project_id,
                visitor_id=visitor_id,
                variation=variation,
                timestamp=datetime.now(UTC),
                user_agent=request.headers.get("user-agent") or None,
                referrer=request.headers.get("referer") or None,
            )
        )
        await db.commit()
    except Exception:
        logger.exception("Failed to record beacon for project %r", project_id)
        try:
            await db.rollback()
        except Exception:
            logger.exception("Rollback after failed beacon also failed")

    return _pixel_response()
