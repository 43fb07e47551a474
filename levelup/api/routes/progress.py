"""
levelup.api.routes.progress — Gameplay event intake & progress reads
=====================================================================
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy import Engine

from levelup.api.deps import get_clock, get_config, get_engine, get_locks
from levelup.config import LevelUpConfig
from levelup.database.engine import run_db
from levelup.engine.daily import ServiceClock
from levelup.engine.events import parse_event
from levelup.engine.locks import UserLockRegistry
from levelup.exceptions import InvalidEventPayload, ProgressNotFound
from levelup.services import progress_service

router = APIRouter(prefix="/progress", tags=["progress"])
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class EventRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str | None = None
    guest_id: str | None = None
    auth_user_id: str | None = None
    event_type: str
    payload: dict[str, Any] = Field(default_factory=dict)


class SelectTitle(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title_id: int | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
async def _resolve_user_id(
    body: EventRequest, engine: Engine, clock: ServiceClock
) -> str:
    """userId wins; otherwise look up (or create) by authUserId, then guestId."""
    if body.user_id:
        return body.user_id
    if body.auth_user_id:
        user = await run_db(
            progress_service.get_or_create_user_by_auth_id,
            engine, body.auth_user_id, clock=clock,
        )
        return user.id
    if body.guest_id:
        user = await run_db(
            progress_service.get_or_create_user_by_guest_id,
            engine, body.guest_id, clock=clock,
        )
        return user.id
    raise HTTPException(400, "One of userId, guestId or authUserId is required")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@router.post("/event")
async def post_event(
    body: EventRequest,
    engine: Engine = Depends(get_engine),
    cfg: LevelUpConfig = Depends(get_config),
    clock: ServiceClock = Depends(get_clock),
    locks: UserLockRegistry = Depends(get_locks),
):
    try:
        event = parse_event(body.event_type, body.payload)
    except InvalidEventPayload as exc:
        raise HTTPException(400, exc.message)

    user_id = await _resolve_user_id(body, engine, clock)

    try:
        result = await run_db(
            progress_service.apply_event,
            engine,
            user_id,
            event,
            clock=clock,
            locks=locks,
            max_unlock_passes=cfg.max_unlock_passes,
        )
    except ProgressNotFound as exc:
        raise HTTPException(404, exc.user_message)

    if not result.success:
        logger.warning("Event %s failed for %s: %s", body.event_type, user_id, result.error)
        raise HTTPException(500, result.error or "Failed to process event")

    return {"userId": user_id, **result.to_dict()}


@router.get("/{user_id}")
async def get_progress(user_id: str, engine: Engine = Depends(get_engine)):
    try:
        summary = await run_db(progress_service.get_progress_summary, engine, user_id)
    except ProgressNotFound as exc:
        raise HTTPException(404, exc.user_message)
    return summary.to_dict()


@router.put("/{user_id}/title")
async def put_selected_title(
    user_id: str,
    body: SelectTitle,
    engine: Engine = Depends(get_engine),
):
    try:
        ok, message = await run_db(
            progress_service.select_title, engine, user_id, body.title_id,
        )
    except ProgressNotFound as exc:
        raise HTTPException(404, exc.user_message)
    if not ok:
        raise HTTPException(409, message)
    return {"userId": user_id, "selectedTitleId": body.title_id, "message": message}
