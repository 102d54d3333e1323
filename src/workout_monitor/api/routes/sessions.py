"""Exercise session lifecycle routes."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from workout_monitor.api.schemas import SaveSessionRequest, StartSessionRequest
from workout_monitor.errors import MissingUserIdError

router = APIRouter(tags=["sessions"])


@router.post("/start-session")
async def start_session(req: StartSessionRequest):
    from workout_monitor.api.server import _sessions

    if _sessions is None:
        raise HTTPException(503, "Session store not ready.")
    try:
        await _sessions.start_session(req.user_id, req.planned_intensity, req.baseline)
    except MissingUserIdError as exc:
        raise HTTPException(400, str(exc)) from exc
    return {"success": True, "message": "Session started on server"}


@router.get("/sessions/{user_id}")
async def get_session(user_id: str):
    from workout_monitor.api.server import _sessions

    session = _sessions.get_session(user_id) if _sessions else None
    if session is None:
        raise HTTPException(404, "No active session.")
    return session.model_dump(mode="json")


@router.post("/save-session")
async def save_session(req: SaveSessionRequest):
    from workout_monitor.api.server import _sessions

    if _sessions is None:
        raise HTTPException(503, "Session store not ready.")
    if not req.user_id or req.session_data is None:
        raise HTTPException(400, "user_id and session_data are required.")
    record = _sessions.complete_session(req.user_id, req.session_data)
    return {"success": True, "session_id": record.session_id, "session": record.model_dump(mode="json")}


@router.post("/reset-session/{user_id}")
async def reset_session(user_id: str):
    from workout_monitor.api.server import _sessions

    if _sessions is None:
        raise HTTPException(503, "Session store not ready.")
    _sessions.reset_session(user_id)
    return {"success": True}
