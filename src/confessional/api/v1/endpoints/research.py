# src/confessional/api/v1/endpoints/research.py
"""Researcher dashboard endpoints built on anonymized metadata."""

import logging

from fastapi import APIRouter, HTTPException, Request, status

from confessional.core.rate_limit import api_limit
from confessional.schemas.research import CrisisAlert, SentimentReport
from confessional.services.errors import StorageFailureError

from ..dependencies import ConfessionServiceDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/research", tags=["research"])


@router.get("/sentiment", response_model=SentimentReport)
@api_limit
async def get_sentiment_report(
    request: Request,
    service: ConfessionServiceDep,
) -> SentimentReport:
    """Return totals, average length and time distributions of submissions."""
    try:
        aggregate = service.aggregate()
    except StorageFailureError as exc:
        logger.error("Failed to generate research data", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from exc
    return SentimentReport.from_aggregate(aggregate)


@router.get("/crisis-alert", response_model=CrisisAlert)
@api_limit
async def get_crisis_alert(request: Request, service: ConfessionServiceDep) -> CrisisAlert:
    """Flag elevated submission frequency over the trailing crisis window."""
    try:
        crisis = service.crisis_level()
    except StorageFailureError as exc:
        logger.error("Failed to generate crisis alert", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from exc
    return CrisisAlert.from_level(crisis)
