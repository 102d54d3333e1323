"""Sensor sample ingestion and latest-reading routes."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from workout_monitor.api.schemas import SampleRequest, SampleResponse
from workout_monitor.errors import MissingUserIdError
from workout_monitor.models import SensorSample

router = APIRouter(tags=["data"])


@router.post("/receive-data", response_model=SampleResponse)
async def receive_data(req: SampleRequest):
    """Score one sample, cache it as the user's latest, and forward it downstream."""
    from workout_monitor.api.server import _engine, _latest, _pipeline

    if _engine is None or _latest is None:
        raise HTTPException(503, "Engine not ready.")

    sample = SensorSample(**req.model_dump())
    try:
        processed = _engine.process(sample)
    except MissingUserIdError as exc:
        raise HTTPException(400, str(exc)) from exc

    _latest.record(processed)
    if _pipeline is not None:
        await _pipeline.publish(processed)

    result = processed.result
    return SampleResponse(
        intensity=result.intensity,
        message=result.status_message,
        alert_level=result.alert_level.value,
        alert_message=result.alert_message,
    )


@router.get("/sensor-data/{user_id}")
async def get_sensor_data(user_id: str):
    from workout_monitor.api.server import _latest

    if _latest is None:
        return None
    return _latest.get(user_id)
