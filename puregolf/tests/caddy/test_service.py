from __future__ import annotations

import asyncio
import gc
import logging
import time

import pytest
from pydantic import ValidationError

from puregolf.caddy import recommendations
from puregolf.caddy import service as service_module
from puregolf.caddy.models import (
    CaddyError,
    CaddyErrorCode,
    CaddyRequest,
    CaddyResponse,
    HistoricalSample,
    MissPattern,
    PersonalTendencies,
    RiskLevel,
    StrokesSavedData,
)
from puregolf.caddy.service import CaddyService
from puregolf.caddy.store import FileHistoricalStore
from puregolf.config import reset_settings_cache
from puregolf.metrics import REGISTRY


def _request(distance: float = 150.0, lie: str = "fairway", **extra) -> CaddyRequest:
    return CaddyRequest.model_validate(
        {"shot_context": {"distance_to_target": distance, "lie_type": lie}, **extra}
    )


def _metric(name: str, labels: dict) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


class _FailingStore:
    def __init__(self) -> None:
        self.saved_samples = []

    async def load(self, user_id):
        raise RuntimeError("store offline")

    async def save_sample(self, user_id, sample):
        self.saved_samples.append((user_id, sample))
        return True

    async def save(self, user_id, tendencies):
        raise RuntimeError("store offline")


class _SlowStore:
    async def load(self, user_id):
        await asyncio.sleep(1.0)
        return HistoricalSample()

    async def save_sample(self, user_id, sample):
        await asyncio.sleep(1.0)
        return True

    async def save(self, user_id, tendencies):
        await asyncio.sleep(1.0)
        return True


def _short_right_missing_history(make_shot) -> HistoricalSample:
    shots = [
        make_shot(intended=150.0, actual=142.0, result="right" if i % 2 else "good")
        for i in range(12)
    ]
    return HistoricalSample(shots=shots)


def test_advice_without_history(service: CaddyService) -> None:
    response = asyncio.run(service.get_advice(_request()))

    assert isinstance(response, CaddyResponse)
    rec = response.advice.recommendation
    assert rec.primary_club == "7-Iron"
    assert rec.confidence == 0.7
    assert response.analysis.expected_strokes == 2.8
    assert response.analysis.recommended_strokes == 2.6
    assert response.analysis.difficulty_rating == 5
    assert response.analysis.success_probability == 0.7
    assert response.advice.risk_assessment is RiskLevel.MEDIUM
    assert response.advice.context_factors == ["150y to target"]
    assert response.advice.alternative_strategy is None
    assert response.advice.personal_note is None
    assert response.personalization_applied is False
    assert response.mode.value == "training"
    assert response.processing_time_ms >= 0


def test_advice_with_stored_history(service, store, make_shot) -> None:
    store.put_sample("golfer-1", _short_right_missing_history(make_shot))

    response = asyncio.run(service.get_advice(_request(user_id="golfer-1")))

    rec = response.advice.recommendation
    assert rec.primary_club == "6-Iron"
    assert rec.distance_adjustment == -8
    assert rec.aim_adjustment == "aim slightly left"
    assert rec.confidence == 0.72
    assert response.personalization_applied is True
    assert response.advice.personal_note == "you tend to miss right"
    assert "personal tendencies applied" in response.advice.context_factors
    assert response.analysis.factors[-1].type.value == "personal"


def test_unknown_user_is_not_personalized(service) -> None:
    response = asyncio.run(service.get_advice(_request(user_id="nobody")))
    assert response.personalization_applied is False


def test_store_failure_degrades_to_standard_advice(caplog) -> None:
    service = CaddyService(_FailingStore())
    before = _metric("caddy_store_failures_total", {"operation": "load", "reason": "error"})

    with caplog.at_level(logging.WARNING, logger=service_module.__name__):
        response = asyncio.run(service.get_advice(_request(user_id="golfer-1")))

    assert isinstance(response, CaddyResponse)
    assert response.personalization_applied is False
    assert response.advice.recommendation.primary_club == "7-Iron"
    assert _metric(
        "caddy_store_failures_total", {"operation": "load", "reason": "error"}
    ) == before + 1
    assert any("load failed" in record.getMessage() for record in caplog.records)


def test_store_timeout_degrades_to_standard_advice(monkeypatch) -> None:
    monkeypatch.setenv("CADDY_STORE_TIMEOUT_S", "0.05")
    reset_settings_cache()
    service = CaddyService(_SlowStore())
    before = _metric("caddy_store_failures_total", {"operation": "load", "reason": "timeout"})

    response = asyncio.run(service.get_advice(_request(user_id="golfer-1")))

    assert isinstance(response, CaddyResponse)
    assert response.personalization_applied is False
    assert _metric(
        "caddy_store_failures_total", {"operation": "load", "reason": "timeout"}
    ) == before + 1


def test_unexpected_failure_returns_processing_error(service, monkeypatch) -> None:
    def _boom(*args, **kwargs):
        raise RuntimeError("engine exploded")

    monkeypatch.setattr(recommendations, "recommend", _boom)
    before = _metric("caddy_advice_errors_total", {"code": "PROCESSING_ERROR"})

    result = asyncio.run(service.get_advice(_request()))

    assert isinstance(result, CaddyError)
    assert result.code is CaddyErrorCode.PROCESSING_ERROR
    assert result.message == "Unable to generate advice at this time"
    assert result.suggestion == "Please try again in a moment"
    assert _metric("caddy_advice_errors_total", {"code": "PROCESSING_ERROR"}) == before + 1


def test_successful_advice_records_metrics_and_audit_log(service, caplog) -> None:
    labels = {"mode": "training", "personalized": "false"}
    before = _metric("caddy_advice_requests_total", labels)

    with caplog.at_level(logging.INFO, logger="caddy_core"):
        asyncio.run(service.get_advice(_request(user_id="golfer-9")))

    assert _metric("caddy_advice_requests_total", labels) == before + 1
    audit = [r for r in caplog.records if r.name == "caddy_core"]
    assert audit, "expected a caddy_core audit record"
    payload = audit[-1].caddy_core
    assert payload["user_id"] == "golfer-9"
    assert payload["risk"] == "medium"
    assert payload["recommendation"]["primary_club"] == "7-Iron"
    assert payload["personalization_applied"] is False


def test_quick_advice(service) -> None:
    quick = asyncio.run(service.get_quick_advice(150, "fairway"))

    assert quick.club == "7-Iron"
    assert quick.reasoning == "7-Iron fits your typical distance"
    assert quick.confidence == 0.7


def test_quick_advice_uses_personal_history(service, store, make_shot) -> None:
    store.put_sample("golfer-1", _short_right_missing_history(make_shot))
    quick = asyncio.run(service.get_quick_advice(150, "fairway", "golfer-1"))
    assert quick.club == "6-Iron"


@pytest.mark.parametrize("distance, club", [(160.0, "7-Iron"), (150.0, "9-Iron")])
def test_quick_advice_fallback(service, monkeypatch, distance, club) -> None:
    def _boom(*args, **kwargs):
        raise RuntimeError("engine exploded")

    monkeypatch.setattr(recommendations, "recommend", _boom)

    quick = asyncio.run(service.get_quick_advice(distance, "fairway"))

    assert quick.club == club
    assert quick.reasoning == "Standard distance recommendation"
    assert quick.confidence == 0.5


def test_quick_advice_rejects_unknown_lie(service) -> None:
    with pytest.raises(ValidationError):
        asyncio.run(service.get_quick_advice(150, "mud"))


def test_update_personalization_merges_and_saves(service, store, make_shot) -> None:
    store.put_sample(
        "golfer-1",
        HistoricalSample(shots=[make_shot(actual=140.0) for _ in range(9)]),
    )
    batch = [make_shot(actual=140.0) for _ in range(3)]

    tendencies = asyncio.run(service.update_personalization("golfer-1", batch, []))

    assert tendencies.club_bias == {"7-Iron": -10}
    assert tendencies.confidence_level == 0.06
    assert store.get_tendencies("golfer-1") == tendencies


def test_update_personalization_without_history(service, store, make_shot) -> None:
    tendencies = asyncio.run(
        service.update_personalization("new-player", [make_shot() for _ in range(3)], [])
    )

    assert tendencies.miss_pattern is MissPattern.INCONSISTENT
    assert tendencies.confidence_level == 0.1
    assert store.get_tendencies("new-player") == tendencies


def test_update_personalization_survives_save_failure(make_shot) -> None:
    store = _FailingStore()
    service = CaddyService(store)
    tendencies = asyncio.run(
        service.update_personalization("golfer-1", [make_shot() for _ in range(12)], [])
    )
    assert isinstance(tendencies, PersonalTendencies)
    assert tendencies.confidence_level == 0.06
    # The stored history could not be read, so it is left untouched.
    assert store.saved_samples == []


def test_concurrent_updates_for_one_player(service, store, make_shot) -> None:
    first = [make_shot(actual=140.0) for _ in range(10)]
    second = [make_shot(actual=140.0) for _ in range(12)]

    async def _both():
        return await asyncio.gather(
            service.update_personalization("golfer-1", first, []),
            service.update_personalization("golfer-1", second, []),
        )

    results = asyncio.run(_both())

    assert [r.confidence_level for r in results] == [0.05, 0.22]
    assert store.get_tendencies("golfer-1") == results[1]
    assert len(asyncio.run(store.load("golfer-1")).shots) == 22


def test_quota_for_free_user(service) -> None:
    status = service.check_quota_status(3, False)
    assert status.can_get_advice is False
    assert status.quota_reached is True
    assert status.saved_strokes is None

    status = service.check_quota_status(2, False)
    assert status.can_get_advice is True
    assert status.quota_reached is False


def test_quota_for_plus_user(service) -> None:
    status = service.check_quota_status(50, True)
    assert status.can_get_advice is True
    assert status.quota_reached is False
    assert status.saved_strokes is None


def test_quota_reports_saved_strokes_from_history(service) -> None:
    history = [
        service.calculate_strokes_saved(4.0, 2.9, True),
        service.calculate_strokes_saved(4.0, 5.0, True),
    ]

    assert service.check_quota_status(2, False, history).saved_strokes == 1.1
    assert service.check_quota_status(0, False, history).saved_strokes is None


def test_quota_limit_comes_from_settings(monkeypatch) -> None:
    monkeypatch.setenv("CADDY_FREE_ADVICE_LIMIT", "5")
    reset_settings_cache()
    service = CaddyService()

    assert service.check_quota_status(4, False).can_get_advice is True
    assert service.check_quota_status(5, False).quota_reached is True


@pytest.mark.parametrize(
    "expected, actual, followed, saved, outcome",
    [
        (4.0, 3.0, True, 1.0, "good"),
        (4.0, 5.0, True, 0.0, "poor"),
        (4.0, 3.0, False, 0.0, "good"),
        (3.0, 3.0, True, 0.0, "good"),
    ],
)
def test_calculate_strokes_saved(expected, actual, followed, saved, outcome) -> None:
    data = CaddyService.calculate_strokes_saved(expected, actual, followed)

    assert isinstance(data, StrokesSavedData)
    assert data.saved_strokes == pytest.approx(saved)
    assert data.outcome == outcome
    assert data.advice_followed is followed
    assert data.hole_number == 0


@pytest.mark.parametrize(
    "distance, strokes",
    [(50, 2.5), (100, 2.5), (101, 2.8), (150, 2.8), (200, 3.1), (201, 3.5)],
)
def test_expected_strokes_table(distance, strokes) -> None:
    assert service_module.expected_strokes(distance) == strokes


def test_difficulty_is_capped() -> None:
    request = _request(
        50.0,
        "sand",
        weather_context={
            "temperature": 70,
            "wind_speed": 20,
            "wind_direction": "cross",
            "conditions": "wind",
        },
    )
    request.shot_context.elevation_change = 25
    assert service_module.difficulty_rating(request) == 10


def test_difficulty_uses_context_wind_without_weather() -> None:
    request = CaddyRequest.model_validate(
        {
            "shot_context": {
                "distance_to_target": 190,
                "lie_type": "rough",
                "wind_speed": 16,
                "wind_direction": "left to right",
            }
        }
    )
    assert service_module.difficulty_rating(request) == 10


@pytest.mark.parametrize(
    "difficulty, confidence, risk",
    [
        (4, 0.8, RiskLevel.LOW),
        (4, 0.79, RiskLevel.MEDIUM),
        (7, 0.6, RiskLevel.MEDIUM),
        (7, 0.59, RiskLevel.HIGH),
        (8, 0.95, RiskLevel.HIGH),
    ],
)
def test_assess_risk(difficulty, confidence, risk) -> None:
    assert service_module.assess_risk(difficulty, confidence) is risk


def test_sand_advice_suggests_laying_up(service) -> None:
    response = asyncio.run(service.get_advice(_request(150.0, "sand")))

    assert response.advice.alternative_strategy == "Consider laying up to avoid the hazard"
    assert response.advice.context_factors == ["150y to target", "sand lie"]
    assert response.analysis.difficulty_rating == 8
    assert response.advice.risk_assessment is RiskLevel.HIGH


def test_long_approach_plays_for_centre(service) -> None:
    response = asyncio.run(service.get_advice(_request(190.0)))
    assert response.advice.alternative_strategy == (
        "Play for center of green for safer approach"
    )


def test_personal_note_variants() -> None:
    assert (
        service_module.personal_note(
            PersonalTendencies(recurring_flaws=["casting"])
        )
        == "your miss direction is inconsistent and watch for casting"
    )
    assert (
        service_module.personal_note(PersonalTendencies(miss_pattern=MissPattern.STRAIGHT))
        is None
    )


def test_updated_history_drives_later_advice(service, make_shot) -> None:
    batch = [make_shot(intended=150.0, actual=140.0) for _ in range(12)]

    updated = asyncio.run(service.update_personalization("golfer-1", batch, []))
    response = asyncio.run(service.get_advice(_request(user_id="golfer-1")))

    assert updated.club_bias == {"7-Iron": -10}
    assert response.personalization_applied is True
    assert response.advice.recommendation.primary_club == "6-Iron"
    assert response.advice.recommendation.distance_adjustment == -10


def test_successive_updates_accumulate_history(service, store, make_shot) -> None:
    first = [make_shot(actual=140.0) for _ in range(6)]
    second = [make_shot(actual=140.0) for _ in range(6)]

    asyncio.run(service.update_personalization("golfer-1", first, []))
    tendencies = asyncio.run(service.update_personalization("golfer-1", second, []))

    assert tendencies.club_bias == {"7-Iron": -10}
    assert asyncio.run(store.load("golfer-1")).shots == first + second


def test_player_locks_are_released_after_updates(service) -> None:
    async def _many():
        for i in range(50):
            await service.update_personalization(f"player-{i}", [], [])

    asyncio.run(_many())
    gc.collect()

    assert len(service._user_locks) == 0


def test_telemetry_failure_returns_processing_error(service, monkeypatch) -> None:
    def _broken(**kwargs):
        raise RuntimeError("metrics backend down")

    monkeypatch.setattr(service_module.telemetry, "record_advice_metrics", _broken)

    result = asyncio.run(service.get_advice(_request()))

    assert isinstance(result, CaddyError)
    assert result.code is CaddyErrorCode.PROCESSING_ERROR


class _SlowDiskStore(FileHistoricalStore):
    def _read(self, user_id):
        time.sleep(0.3)
        return super()._read(user_id)


def test_slow_file_store_read_times_out(monkeypatch, tmp_path, make_shot) -> None:
    FileHistoricalStore(tmp_path).append_sample(
        "golfer-1", [make_shot(intended=150.0, actual=140.0) for _ in range(12)]
    )
    monkeypatch.setenv("CADDY_STORE_TIMEOUT_S", "0.05")
    reset_settings_cache()
    service = CaddyService(_SlowDiskStore(tmp_path))

    async def _timed():
        started = time.perf_counter()
        response = await service.get_advice(_request(user_id="golfer-1"))
        return response, time.perf_counter() - started

    response, elapsed = asyncio.run(_timed())

    assert isinstance(response, CaddyResponse)
    assert response.personalization_applied is False
    assert response.advice.recommendation.primary_club == "7-Iron"
    assert elapsed < 0.25
