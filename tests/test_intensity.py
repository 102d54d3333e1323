"""Tests for the intensity engine."""

import threading

import pytest

from workout_monitor.errors import MissingUserIdError
from workout_monitor.models import AlertLevel, BaselineInput, SensorSample
from workout_monitor.monitors.intensity import (
    STATUS_AWAITING_START,
    STATUS_BASELINE_SETTLING,
    STATUS_GOOD,
    STATUS_LIGHT,
    STATUS_OVEREXERTION,
    TREND_GAS_WORSENING,
    TREND_HEAT_INDEX_FALLING,
    TREND_HEAT_INDEX_RISING,
    TREND_SEPARATOR,
    discretize,
    finalize,
    normalize_delta,
    recency_weighted_mean,
    trend_adjustment,
)


def _sample(**overrides) -> SensorSample:
    fields = {"user_id": "U001", "temperature": 25.0, "humidity": 50.0, "gas": 400.0, "heart_rate": 70.0}
    fields.update(overrides)
    return SensorSample(**fields)


class TestScoringSteps:
    def test_normalize_clamps_to_one(self):
        assert normalize_delta(90.0, 60.0) == 1.0

    def test_normalize_negative_is_zero(self):
        assert normalize_delta(-5.0, 3.0) == 0.0

    def test_normalize_sqrt(self):
        assert normalize_delta(15.0, 60.0) == pytest.approx(0.5)

    def test_discretize_endpoints(self):
        assert discretize(0.0) == 1.0
        assert discretize(1.0) == 10.0

    def test_discretize_power_curve(self):
        assert discretize(0.5) == pytest.approx(1 + 0.5**0.8 * 9)

    def test_weighted_mean(self):
        # weights 1, 2, 3
        assert recency_weighted_mean([1.0, 4.0, 7.0]) == pytest.approx((1 + 8 + 21) / 6)

    def test_finalize_rounds_half_up_and_clamps(self):
        assert finalize(6.5) == 7
        assert finalize(2.5) == 3
        assert finalize(0.2) == 1
        assert finalize(12.0) == 10

    def test_trend_below_thresholds(self):
        assert trend_adjustment(0.49, 49.9) == (0.0, [])

    def test_heat_index_trend_scaled(self):
        boost, causes = trend_adjustment(1.0, 0.0)
        assert boost == pytest.approx(0.15)
        assert causes == [TREND_HEAT_INDEX_RISING]

    def test_falling_heat_index_also_boosts(self):
        boost, causes = trend_adjustment(-3.0, 0.0)
        assert boost == pytest.approx(0.3)
        assert causes == [TREND_HEAT_INDEX_FALLING]

    def test_trends_are_additive(self):
        boost, causes = trend_adjustment(2.0, 200.0)
        assert boost == pytest.approx(0.5)
        assert causes == [TREND_HEAT_INDEX_RISING, TREND_GAS_WORSENING]


class TestIntensityEngine:
    async def test_no_session(self, engine):
        processed = engine.process(_sample())
        assert processed.result.intensity == 0
        assert processed.result.status_message == STATUS_AWAITING_START
        assert processed.result.alert_level == AlertLevel.NONE
        assert "U001" not in engine.sessions.history

    async def test_missing_user_id(self, engine):
        with pytest.raises(MissingUserIdError):
            engine.process(_sample(user_id=None))

    async def test_invalid_baseline(self, engine):
        await engine.sessions.start_session("U001", 5, BaselineInput(temperature=25.0, humidity=50.0))

        result = engine.process(_sample(heart_rate=180.0, gas=900.0)).result

        assert result.intensity == 1
        assert result.status_message == STATUS_BASELINE_SETTLING
        assert result.alert_level == AlertLevel.NONE
        assert result.alert_message is None

    async def test_resting_sample(self, active_engine, resting_sample):
        result = active_engine.process(resting_sample).result
        assert result.intensity == 1
        assert result.status_message == STATUS_LIGHT
        assert result.alert_level == AlertLevel.NONE
        assert result.alert_message is None

    async def test_high_heart_rate_first_sample(self, active_engine):
        result = active_engine.process(_sample(heart_rate=160.0)).result
        # raw 0.5 → 1 + 0.5**0.8 * 9 ≈ 6.17
        assert result.intensity == 6
        assert result.status_message == STATUS_GOOD
        assert result.alert_level == AlertLevel.NONE

    async def test_gas_rise_is_critical(self, active_engine):
        result = active_engine.process(_sample(gas=520.0)).result
        assert result.alert_level == AlertLevel.CRITICAL
        assert "Air quality degraded" in result.alert_message

    async def test_smoothing_uses_recency_weights(self, active_engine):
        active_engine.process(_sample(heart_rate=160.0))
        result = active_engine.process(_sample()).result
        # (6.17 * 1 + 1.0 * 2) / 3 ≈ 2.72
        assert result.intensity == 3
        assert len(active_engine.sessions.history.get("U001")) == 2

    async def test_history_bounded(self, active_engine):
        for _ in range(8):
            active_engine.process(_sample(heart_rate=100.0))
        assert len(active_engine.sessions.history.get("U001")) == 5

    async def test_max_intensity_overexertion(self, active_engine):
        result = active_engine.process(
            _sample(temperature=34.0, humidity=60.0, gas=700.0, heart_rate=150.0),
        ).result
        assert result.intensity == 10
        assert result.status_message == STATUS_OVEREXERTION
        assert result.alert_level == AlertLevel.CRITICAL
        assert "Overexertion: 10/10" in result.alert_message

    async def test_trend_message_takes_priority(self, active_engine):
        result = active_engine.process(
            _sample(heart_rate=150.0, predicted_heat_index_trend=1.2, predicted_gas_trend=80),
        ).result
        assert result.status_message == TREND_SEPARATOR.join(
            [TREND_HEAT_INDEX_RISING, TREND_GAS_WORSENING],
        )

    async def test_trend_raises_intensity(self, engine, baseline_input):
        await engine.sessions.start_session("A", 5, baseline_input)
        await engine.sessions.start_session("B", 5, baseline_input)
        plain = engine.process(_sample(user_id="A", heart_rate=100.0)).result
        boosted = engine.process(
            _sample(user_id="B", heart_rate=100.0, predicted_heat_index_trend=2.0),
        ).result
        assert boosted.intensity > plain.intensity

    async def test_non_numeric_trend_is_zero(self, active_engine):
        sample = SensorSample(
            user_id="U001", temperature=25.0, humidity=50.0, gas=400.0, heart_rate=70.0,
            predicted_heat_index_trend="n/a", predicted_gas_trend=float("nan"),
        )
        assert sample.predicted_heat_index_trend == 0.0
        assert sample.predicted_gas_trend == 0.0
        assert active_engine.process(sample).result.intensity == 1

    async def test_missing_fields_never_raise(self, active_engine):
        sample = SensorSample(user_id="U001", temperature="", humidity=None, gas="bad", heart_rate=None)
        processed = active_engine.process(sample)
        assert processed.heat_index is None
        assert processed.result.intensity == 1
        assert processed.result.alert_level == AlertLevel.NONE

    async def test_sensitivity_dampens_heat_and_gas(self, engine, baseline_input):
        await engine.sessions.start_session("U001", 5, baseline_input)
        await engine.sessions.start_session("U_HEAVY", 5, baseline_input)
        normal = engine.process(_sample(user_id="U001", gas=460.0)).result
        heavy = engine.process(_sample(user_id="U_HEAVY", gas=460.0)).result
        assert heavy.intensity <= normal.intensity

    @pytest.mark.parametrize(
        "field,values",
        [
            ("heart_rate", [70.0, 80.0, 95.0, 110.0, 130.0, 160.0, 200.0]),
            ("gas", [400.0, 420.0, 450.0, 500.0, 600.0, 900.0]),
            ("temperature", [25.0, 26.0, 27.5, 29.0, 32.0, 36.0]),
        ],
    )
    async def test_monotonic_in_each_delta(self, engine, baseline_input, field, values):
        intensities = []
        for i, value in enumerate(values):
            user = f"mono-{field}-{i}"
            await engine.sessions.start_session(user, 5, baseline_input)
            intensities.append(engine.process(_sample(user_id=user, **{field: value})).result.intensity)
        assert intensities == sorted(intensities)
        assert all(1 <= v <= 10 for v in intensities)

    async def test_sample_after_reset_has_no_session(self, active_engine):
        active_engine.process(_sample(heart_rate=150.0))
        active_engine.sessions.reset_session("U001")

        result = active_engine.process(_sample(heart_rate=150.0)).result
        assert result.intensity == 0
        assert result.status_message == STATUS_AWAITING_START

    async def test_session_not_mutated(self, active_engine):
        before = active_engine.sessions.get_session("U001").model_dump()
        active_engine.process(_sample(heart_rate=150.0, gas=800.0))
        assert active_engine.sessions.get_session("U001").model_dump() == before

    async def test_concurrent_users_are_isolated(self, engine, baseline_input):
        users = [f"C{i}" for i in range(8)]
        for u in users:
            await engine.sessions.start_session(u, 5, baseline_input)

        def run(user: str) -> None:
            for _ in range(20):
                engine.process(_sample(user_id=user, heart_rate=130.0))

        threads = [threading.Thread(target=run, args=(u,)) for u in users]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        for u in users:
            history = engine.sessions.history.get(u)
            assert len(history) == 5
            assert len(set(history)) == 1
