from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lgl_sync.db.session import get_session

router = APIRouter()


@router.get("/healthz", summary="Service health check")
async def service_health(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    database = "ok"
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        database = "error"

    scheduler = getattr(request.app.state, "renewal_scheduler", None)
    return {
        "status": "ok" if database == "ok" else "degraded",
        "database": database,
        "renewal_scheduler": "running" if scheduler is not None and scheduler.is_running else "disabled",
    }
