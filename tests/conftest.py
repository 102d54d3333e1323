"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from workout_monitor.models import BaselineInput, SensorSample
from workout_monitor.monitors.alerts import AlertClassifier
from workout_monitor.monitors.intensity import IntensityEngine
from workout_monitor.notifications.handlers import NotificationDispatcher
from workout_monitor.profiles import InMemoryProfileDirectory
from workout_monitor.sessions.store import SessionStore


@pytest.fixture
def baseline_input() -> BaselineInput:
    return BaselineInput(temperature=25.0, humidity=50.0, gas=400.0, heart_rate=70.0)


@pytest.fixture
def profiles() -> InMemoryProfileDirectory:
    directory = InMemoryProfileDirectory()
    directory.register("U001", height_cm=175.0, weight_kg=70.0)  # BMI ≈ 22.9
    directory.register("U_HEAVY", height_cm=170.0, weight_kg=95.0)  # BMI ≈ 32.9
    return directory


@pytest.fixture
def store(profiles: InMemoryProfileDirectory) -> SessionStore:
    return SessionStore(profiles)


@pytest.fixture
def engine(store: SessionStore) -> IntensityEngine:
    return IntensityEngine(store)


@pytest.fixture
def classifier() -> AlertClassifier:
    return AlertClassifier()


@pytest.fixture
async def active_engine(engine: IntensityEngine, baseline_input: BaselineInput) -> IntensityEngine:
    """Engine with an active session for ``U001``."""
    await engine.sessions.start_session("U001", 5, baseline_input)
    return engine


@pytest.fixture
def resting_sample() -> SensorSample:
    """A reading identical to the baseline."""
    return SensorSample(user_id="U001", temperature=25.0, humidity=50.0, gas=400.0, heart_rate=70.0)


@pytest.fixture
def dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher()
