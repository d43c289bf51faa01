"""HTTP surface for the caddy service."""

from __future__ import annotations

import logging
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from puregolf.api.user_header import UserIdHeader
from puregolf.caddy.models import (
    CaddyError,
    CaddyErrorCode,
    CaddyRequest,
    CaddyResponse,
    ErrorEnvelope,
    HistoricalShot,
    LieType,
    PersonalTendencies,
    QuickAdvice,
    QuotaStatus,
    StrokesSavedData,
    SwingFlaw,
)
from puregolf.caddy.service import CaddyService, get_caddy_service
from puregolf.config import coerce_boolish

logger = logging.getLogger("caddy_core")

router = APIRouter(prefix="/caddy", tags=["caddy"])

AdviceCountHeader = Annotated[Optional[int], Header(alias="x-advice-count")]
PlusUserHeader = Annotated[Optional[str], Header(alias="x-plus-user")]


class QuickAdviceIn(BaseModel):
    distance: float = Field(..., ge=0)
    lie_type: LieType = Field(alias="lieType")
    user_id: Optional[str] = Field(default=None, alias="userId")

    model_config = ConfigDict(populate_by_name=True)


class PersonalizationIn(BaseModel):
    shots: List[HistoricalShot] = Field(default_factory=list)
    flaws: List[SwingFlaw] = Field(default_factory=list)


class QuotaIn(BaseModel):
    advice_count: int = Field(alias="adviceCount", ge=0)
    is_plus_user: bool = Field(default=False, alias="isPlusUser")
    history: Optional[List[StrokesSavedData]] = None

    model_config = ConfigDict(populate_by_name=True)


class StrokesSavedIn(BaseModel):
    expected: float
    actual: float
    advice_followed: bool = Field(alias="adviceFollowed")
    hole_number: int = Field(default=0, alias="holeNumber", ge=0)

    model_config = ConfigDict(populate_by_name=True)


def _validation_error(exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=ErrorEnvelope(
            error_code="validation_error", message=str(exc), details=None
        ).model_dump(),
    )


def _caddy_error(error: CaddyError, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error.model_dump(mode="json"))


@router.post("/advice", response_model=CaddyResponse)
async def post_advice(
    payload: dict,
    user_id: UserIdHeader = None,
    advice_count: AdviceCountHeader = None,
    plus_user: PlusUserHeader = None,
    service: CaddyService = Depends(get_caddy_service),
):
    try:
        request = CaddyRequest.model_validate(payload)
    except (ValidationError, ValueError, TypeError) as exc:
        return _validation_error(exc)
    if user_id and not request.user_id:
        request = request.model_copy(update={"user_id": user_id})

    if advice_count is not None:
        quota = service.check_quota_status(advice_count, bool(coerce_boolish(plus_user)))
        if not quota.can_get_advice:
            logger.info("caddy_quota_exceeded", extra={"user_id": request.user_id})
            return _caddy_error(
                CaddyError(
                    code=CaddyErrorCode.QUOTA_EXCEEDED,
                    message="Free caddy advice limit reached",
                    suggestion="Upgrade to Plus for unlimited advice",
                ),
                status_code=402,
            )

    result = await service.get_advice(request)
    if isinstance(result, CaddyError):
        return _caddy_error(result, status_code=503)
    return result


@router.post("/quick", response_model=QuickAdvice)
async def post_quick_advice(
    payload: QuickAdviceIn,
    user_id: UserIdHeader = None,
    service: CaddyService = Depends(get_caddy_service),
) -> QuickAdvice:
    return await service.get_quick_advice(
        payload.distance, payload.lie_type, payload.user_id or user_id
    )


@router.post("/personalization/{user_id}", response_model=PersonalTendencies)
async def post_personalization(
    user_id: str,
    payload: PersonalizationIn,
    service: CaddyService = Depends(get_caddy_service),
) -> PersonalTendencies:
    return await service.update_personalization(user_id, payload.shots, payload.flaws)


@router.post("/quota", response_model=QuotaStatus)
def post_quota(
    payload: QuotaIn, service: CaddyService = Depends(get_caddy_service)
) -> QuotaStatus:
    return service.check_quota_status(
        payload.advice_count, payload.is_plus_user, payload.history
    )


@router.post("/strokes-saved", response_model=StrokesSavedData)
def post_strokes_saved(payload: StrokesSavedIn) -> StrokesSavedData:
    result = CaddyService.calculate_strokes_saved(
        payload.expected, payload.actual, payload.advice_followed
    )
    return result.model_copy(update={"hole_number": payload.hole_number})


__all__ = [
    "router",
    "post_advice",
    "post_quick_advice",
    "post_personalization",
    "post_quota",
    "post_strokes_saved",
]
