"""
Shared pieces for the record routers.
"""
import logging

from fastapi import HTTPException

from ..schemas import SummaryResponse
from ..services.ai_service import AIService, AIServiceError, SummaryInProgressError

logger = logging.getLogger("tracker.ai")

SORT_ORDER_PATTERN = "^(asc|desc)$"


async def run_analysis(service: AIService, kind: str, prompt: str, record_count: int) -> SummaryResponse:
    """
    Ask for a summary and turn any failure into display text.

    Only a concurrent request for the same kind is an HTTP error (409); every
    other failure comes back as `ok: false` with the reason as the summary.
    """
    try:
        summary = await service.summarize(kind, prompt)
    except SummaryInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except AIServiceError as e:
        logger.warning(f"Analysis of {kind} failed ({e.code}): {e}")
        return SummaryResponse(
            summary=f"Analysis failed: {e}",
            ok=False,
            error=e.code,
            record_count=record_count,
        )
    return SummaryResponse(summary=summary, record_count=record_count)
