"""Request / response models shared across API route modules."""

from __future__ import annotations

from pydantic import BaseModel

from workout_monitor.models import BaselineInput, OptionalNumber, SessionSummary, TrendNumber


class SampleRequest(BaseModel):
    """One sensor reading as posted by the wearable gateway.

    Numeric fields accept numbers or numeric strings; anything else is
    treated as missing rather than rejected.
    """
    user_id: str | None = None
    temperature: OptionalNumber = None
    humidity: OptionalNumber = None
    gas: OptionalNumber = None
    heart_rate: OptionalNumber = None
    predicted_heat_index_trend: TrendNumber = 0.0
    predicted_gas_trend: TrendNumber = 0.0


class SampleResponse(BaseModel):
    success: bool = True
    intensity: int
    message: str
    alert_level: str
    alert_message: str | None = None


class StartSessionRequest(BaseModel):
    user_id: str | None = None
    planned_intensity: OptionalNumber = None
    baseline: BaselineInput = BaselineInput()


class SaveSessionRequest(BaseModel):
    user_id: str | None = None
    session_data: SessionSummary | None = None
