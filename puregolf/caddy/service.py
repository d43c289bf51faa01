"""Service orchestration for the caddy: advice, personalization, quota."""

from __future__ import annotations

import asyncio
import logging
import time
from functools import lru_cache
from typing import Awaitable, Iterable, List, Optional, Sequence, Tuple
from weakref import WeakValueDictionary

from puregolf.config import get_settings
from puregolf.utils.rounding import round_half_up

from . import personalization, recommendations, telemetry
from .models import (
    AdviceMode,
    CaddyAdvice,
    CaddyError,
    CaddyErrorCode,
    CaddyRequest,
    CaddyResponse,
    HistoricalSample,
    HistoricalShot,
    LieType,
    MissPattern,
    PersonalTendencies,
    QuickAdvice,
    QuotaStatus,
    RiskLevel,
    ShotAnalysis,
    ShotContext,
    StrokesSavedData,
    SwingFlaw,
)
from .playslike import resolve_conditions
from .store import FileHistoricalStore, HistoricalStore

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("caddy_core")

FREE_ADVICE_LIMIT = 3
STROKE_GAIN_PER_CONFIDENCE = 0.3
FALLBACK_CONFIDENCE = 0.5

# (max distance in yards, expected strokes to hole out)
EXPECTED_STROKES_TABLE = ((100, 2.5), (150, 2.8), (200, 3.1))
EXPECTED_STROKES_BEYOND = 3.5


def expected_strokes(distance: float) -> float:
    for limit, strokes in EXPECTED_STROKES_TABLE:
        if distance <= limit:
            return strokes
    return EXPECTED_STROKES_BEYOND


def recommended_strokes(expected: float, confidence: float) -> float:
    return round_half_up(expected - confidence * STROKE_GAIN_PER_CONFIDENCE, 1)


def difficulty_rating(request: CaddyRequest) -> int:
    context = request.shot_context
    difficulty = 5
    if context.distance_to_target > 180:
        difficulty += 1
    if context.distance_to_target < 60:
        difficulty += 1
    if context.lie_type is LieType.ROUGH:
        difficulty += 2
    if context.lie_type is LieType.SAND:
        difficulty += 3
    if resolve_conditions(context, request.weather_context).wind_speed > 15:
        difficulty += 2
    if context.elevation_change and abs(context.elevation_change) > 20:
        difficulty += 1
    return min(difficulty, 10)


def assess_risk(difficulty: int, confidence: float) -> RiskLevel:
    if difficulty <= 4 and confidence >= 0.8:
        return RiskLevel.LOW
    if difficulty <= 7 and confidence >= 0.6:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def alternative_strategy(context: ShotContext) -> Optional[str]:
    if context.lie_type is LieType.SAND:
        return "Consider laying up to avoid the hazard"
    if context.distance_to_target > 180:
        return "Play for center of green for safer approach"
    return None


def personal_note(tendencies: PersonalTendencies) -> Optional[str]:
    notes: List[str] = []
    if tendencies.miss_pattern is MissPattern.INCONSISTENT:
        notes.append("your miss direction is inconsistent")
    elif tendencies.miss_pattern is not MissPattern.STRAIGHT:
        notes.append(f"you tend to miss {tendencies.miss_pattern.value}")
    if tendencies.recurring_flaws:
        notes.append(f"watch for {tendencies.recurring_flaws[0]}")
    return " and ".join(notes) if notes else None


def context_factors(
    request: CaddyRequest, tendencies: PersonalTendencies | None
) -> List[str]:
    context = request.shot_context
    factors = [f"{context.distance_to_target:g}y to target"]
    if context.lie_type is not LieType.FAIRWAY:
        factors.append(f"{context.lie_type.value} lie")
    wind = resolve_conditions(context, request.weather_context).wind_speed
    if wind > 10:
        factors.append(f"{wind:g}mph wind")
    if tendencies is not None and tendencies.club_bias:
        factors.append("personal tendencies applied")
    return factors


def check_quota_status(
    advice_count: int,
    is_plus_user: bool,
    history: Iterable[StrokesSavedData] | None = None,
    *,
    free_limit: int = FREE_ADVICE_LIMIT,
) -> QuotaStatus:
    """Freemium gate; ``saved_strokes`` totals the supplied outcome history."""
    if is_plus_user:
        return QuotaStatus(can_get_advice=True, quota_reached=False)

    quota_reached = advice_count >= free_limit
    saved: Optional[float] = None
    if advice_count > 0 and history is not None:
        saved = round_half_up(sum(item.saved_strokes or 0.0 for item in history), 1)
    return QuotaStatus(
        can_get_advice=not quota_reached,
        quota_reached=quota_reached,
        saved_strokes=saved,
    )


def calculate_strokes_saved(
    expected: float, actual: float, advice_followed: bool
) -> StrokesSavedData:
    saved = max(0.0, expected - actual) if advice_followed else 0.0
    return StrokesSavedData(
        hole_number=0,
        expected_strokes=expected,
        actual_strokes=actual,
        saved_strokes=saved,
        advice_followed=advice_followed,
        outcome="good" if actual <= expected else "poor",
    )


def fallback_quick_advice(distance: float) -> QuickAdvice:
    return QuickAdvice(
        club="7-Iron" if distance > 150 else "9-Iron",
        reasoning="Standard distance recommendation",
        confidence=FALLBACK_CONFIDENCE,
    )


def build_response(
    request: CaddyRequest,
    tendencies: PersonalTendencies | None,
    *,
    started_at: float,
) -> CaddyResponse:
    context = request.shot_context
    weather = request.weather_context
    recommendation = recommendations.recommend(context, tendencies, weather)
    factors = recommendations.get_analysis_factors(context, weather, tendencies)

    expected = expected_strokes(context.distance_to_target)
    difficulty = difficulty_rating(request)
    analysis = ShotAnalysis(
        expected_strokes=expected,
        recommended_strokes=recommended_strokes(expected, recommendation.confidence),
        difficulty_rating=difficulty,
        success_probability=recommendation.confidence,
        factors=factors,
    )
    advice = CaddyAdvice(
        recommendation=recommendation,
        context_factors=context_factors(request, tendencies),
        risk_assessment=assess_risk(difficulty, recommendation.confidence),
        alternative_strategy=alternative_strategy(context),
        personal_note=personal_note(tendencies) if tendencies else None,
    )
    return CaddyResponse(
        advice=advice,
        analysis=analysis,
        processing_time_ms=round((time.perf_counter() - started_at) * 1000),
        mode=request.mode,
        personalization_applied=tendencies is not None,
    )


class CaddyService:
    """Stateless orchestrator around an injected historical store."""

    def __init__(self, store: HistoricalStore | None = None, *, settings=None) -> None:
        self._store = store
        self._settings = settings or get_settings()
        # Entries drop out once no update for that player holds or awaits the lock.
        self._user_locks: WeakValueDictionary[str, asyncio.Lock] = WeakValueDictionary()

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._user_locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._user_locks[user_id] = lock
        return lock

    async def _load_sample(self, user_id: str | None) -> Optional[HistoricalSample]:
        sample, _ = await self._read_sample(user_id)
        return sample

    async def _read_sample(
        self, user_id: str | None
    ) -> Tuple[Optional[HistoricalSample], bool]:
        """Return the stored sample and whether the store answered at all."""
        if not user_id or self._store is None:
            return None, False
        try:
            sample = await asyncio.wait_for(
                self._store.load(user_id), timeout=self._settings.store_timeout_s
            )
            return sample, True
        except asyncio.TimeoutError:
            telemetry.record_store_failure("load", "timeout")
            logger.warning(
                "historical store load timed out; continuing without personalization",
                extra={"user_id": user_id},
            )
        except Exception:
            telemetry.record_store_failure("load", "error")
            logger.warning(
                "historical store load failed; continuing without personalization",
                extra={"user_id": user_id},
                exc_info=True,
            )
        return None, False

    async def _store_write(
        self, operation: str, user_id: str, pending: Awaitable[bool]
    ) -> bool:
        try:
            saved = await asyncio.wait_for(pending, timeout=self._settings.store_timeout_s)
        except asyncio.TimeoutError:
            telemetry.record_store_failure(operation, "timeout")
            logger.warning(
                "historical store write timed out",
                extra={"user_id": user_id, "operation": operation},
            )
            return False
        except Exception:
            telemetry.record_store_failure(operation, "error")
            logger.warning(
                "historical store write failed",
                extra={"user_id": user_id, "operation": operation},
                exc_info=True,
            )
            return False
        if not saved:
            telemetry.record_store_failure(operation, "rejected")
            logger.warning(
                "historical store rejected write",
                extra={"user_id": user_id, "operation": operation},
            )
        return bool(saved)

    async def load_tendencies(self, user_id: str | None) -> Optional[PersonalTendencies]:
        sample = await self._load_sample(user_id)
        if sample is None:
            return None
        return personalization.calculate_tendencies(
            sample.shots, sample.flaws, sample.course_scores
        )

    async def get_advice(self, request: CaddyRequest) -> CaddyResponse | CaddyError:
        started_at = time.perf_counter()
        try:
            tendencies = await self.load_tendencies(request.user_id)
            response = build_response(request, tendencies, started_at=started_at)
            self._record_advice(request, response, started_at)
        except Exception:
            telemetry.record_advice_error(CaddyErrorCode.PROCESSING_ERROR.value)
            logger.exception("caddy advice failed", extra={"user_id": request.user_id})
            return CaddyError(
                code=CaddyErrorCode.PROCESSING_ERROR,
                message="Unable to generate advice at this time",
                suggestion="Please try again in a moment",
            )
        return response

    @staticmethod
    def _record_advice(
        request: CaddyRequest, response: CaddyResponse, started_at: float
    ) -> None:
        duration_ms = (time.perf_counter() - started_at) * 1000
        risk = response.advice.risk_assessment.value
        telemetry.record_advice_metrics(
            duration_ms=duration_ms,
            mode=request.mode.value,
            risk=risk,
            personalized=response.personalization_applied,
        )
        audit_logger.info(
            "caddy_advice",
            extra={
                "caddy_core": telemetry.build_structured_log_payload(
                    user_id=request.user_id,
                    recommendation=response.advice.recommendation.model_dump(mode="json"),
                    risk=risk,
                    personalization_applied=response.personalization_applied,
                    duration_ms=duration_ms,
                )
            },
        )

    async def get_quick_advice(
        self, distance: float, lie_type: LieType | str, user_id: str | None = None
    ) -> QuickAdvice:
        request = CaddyRequest(
            shot_context=ShotContext(distance_to_target=distance, lie_type=lie_type),
            mode=AdviceMode.QUICK,
            user_id=user_id,
        )
        response = await self.get_advice(request)
        if isinstance(response, CaddyError):
            return fallback_quick_advice(distance)
        recommendation = response.advice.recommendation
        return QuickAdvice(
            club=recommendation.primary_club,
            reasoning=recommendation.reasoning,
            confidence=recommendation.confidence,
        )

    async def update_personalization(
        self,
        user_id: str,
        shots: Sequence[HistoricalShot],
        flaws: Sequence[SwingFlaw],
    ) -> PersonalTendencies:
        """Recompute a player's tendencies over stored history plus ``shots``/``flaws``.

        Writes for one player are serialized so a stale, smaller sample cannot
        overwrite a more complete one.
        """
        async with self._lock_for(user_id):
            history, answered = await self._read_sample(user_id)
            current = (
                personalization.calculate_tendencies(
                    history.shots, history.flaws, history.course_scores
                )
                if history
                else None
            )
            tendencies = personalization.update_tendencies(current, history, shots, flaws)
            # A failed read must not replace the stored history with this batch alone.
            if answered:
                sample = personalization.merge_sample(history, shots, flaws)
                await self._store_write(
                    "save_sample", user_id, self._store.save_sample(user_id, sample)
                )
            if self._store is not None:
                await self._store_write(
                    "save", user_id, self._store.save(user_id, tendencies)
                )
        return tendencies

    def check_quota_status(
        self,
        advice_count: int,
        is_plus_user: bool,
        history: Iterable[StrokesSavedData] | None = None,
    ) -> QuotaStatus:
        return check_quota_status(
            advice_count,
            is_plus_user,
            history,
            free_limit=self._settings.free_advice_limit,
        )

    @staticmethod
    def calculate_strokes_saved(
        expected: float, actual: float, advice_followed: bool
    ) -> StrokesSavedData:
        return calculate_strokes_saved(expected, actual, advice_followed)


@lru_cache(maxsize=1)
def get_caddy_service() -> CaddyService:
    return CaddyService(FileHistoricalStore())


__all__ = [
    "CaddyService",
    "assess_risk",
    "build_response",
    "calculate_strokes_saved",
    "check_quota_status",
    "difficulty_rating",
    "expected_strokes",
    "get_caddy_service",
    "recommended_strokes",
]
