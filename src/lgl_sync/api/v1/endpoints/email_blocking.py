from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel, Field

from lgl_sync.api.dependencies.security import require_admin_api_key
from lgl_sync.api.dependencies.services import get_email_blocking_gate
from lgl_sync.core.settings import Settings, get_settings
from lgl_sync.services.email_blocking import EmailBlockingGate, InvalidSettingsPayloadError

router = APIRouter(
    prefix="/email-blocking",
    tags=["Email Blocking"],
    dependencies=[Depends(require_admin_api_key)],
)


class BlockedEmailResponse(BaseModel):
    timestamp: datetime
    to: list[str]
    subject: str
    message_preview: str
    headers: dict[str, str]


class BlockingStatusResponse(BaseModel):
    is_development: bool
    is_force_blocking: bool
    is_temporarily_paused: bool
    is_actively_blocking: bool
    paused_until: datetime | None
    whitelist_count: int
    blocked_count: int


class PauseRequest(BaseModel):
    duration_seconds: int | None = Field(default=None, ge=1, le=24 * 60 * 60)


class PauseResponse(BaseModel):
    paused_until: datetime


class EmailBlockingSettingsResponse(BaseModel):
    force_blocking: bool
    whitelist: list[str]


@router.get("/log", response_model=list[BlockedEmailResponse])
async def get_blocked_email_log(
    gate: EmailBlockingGate = Depends(get_email_blocking_gate),
) -> list[BlockedEmailResponse]:
    """Blocked emails, newest first."""

    entries = await gate.log.entries()
    return [
        BlockedEmailResponse(
            timestamp=entry.timestamp,
            to=entry.to,
            subject=entry.subject,
            message_preview=entry.message_preview,
            headers=entry.headers,
        )
        for entry in entries
    ]


@router.delete("/log", status_code=status.HTTP_204_NO_CONTENT)
async def clear_blocked_email_log(gate: EmailBlockingGate = Depends(get_email_blocking_gate)) -> Response:
    await gate.log.clear()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/status", response_model=BlockingStatusResponse)
async def get_blocking_status(gate: EmailBlockingGate = Depends(get_email_blocking_gate)) -> BlockingStatusResponse:
    snapshot = await gate.status()
    return BlockingStatusResponse(
        is_development=snapshot.is_development,
        is_force_blocking=snapshot.is_force_blocking,
        is_temporarily_paused=snapshot.is_temporarily_paused,
        is_actively_blocking=snapshot.is_actively_blocking,
        paused_until=snapshot.paused_until,
        whitelist_count=snapshot.whitelist_count,
        blocked_count=snapshot.blocked_count,
    )


@router.post("/pause", response_model=PauseResponse)
async def pause_blocking(
    payload: PauseRequest | None = None,
    gate: EmailBlockingGate = Depends(get_email_blocking_gate),
    settings: Settings = Depends(get_settings),
) -> PauseResponse:
    duration = (payload.duration_seconds if payload else None) or settings.email_blocking_default_pause_seconds
    paused_until = await gate.state.pause(duration)
    return PauseResponse(paused_until=paused_until)


@router.post("/resume", status_code=status.HTTP_204_NO_CONTENT)
async def resume_blocking(gate: EmailBlockingGate = Depends(get_email_blocking_gate)) -> Response:
    await gate.state.resume()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/settings/export")
async def export_blocking_settings(gate: EmailBlockingGate = Depends(get_email_blocking_gate)) -> Response:
    document = await gate.state.export_settings()
    return Response(
        content=document,
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="email-blocking-settings.json"'},
    )


@router.post("/settings/import", response_model=EmailBlockingSettingsResponse)
async def import_blocking_settings(
    request: Request,
    gate: EmailBlockingGate = Depends(get_email_blocking_gate),
) -> EmailBlockingSettingsResponse:
    """Replace settings with a document produced by the export endpoint."""

    document = (await request.body()).decode("utf-8", errors="replace")
    try:
        imported = await gate.state.import_settings(document)
    except InvalidSettingsPayloadError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return EmailBlockingSettingsResponse(
        force_blocking=imported.force_blocking,
        whitelist=sorted(imported.whitelist),
    )
