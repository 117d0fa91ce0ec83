"""
Tracker - CRUD API for research applications.

Applications to university labs / professors, tracked from Preparing
through Accepted/Rejected.
"""
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import or_
from typing import List, Optional

from ..models import ResearchApplication
from ..schemas import (
    ResearchCreate, ResearchUpdate, ResearchResponse, ResearchStatus,
    BulkDeleteRequest, DeleteResult, StatusStats, SummaryResponse
)
from ..store import RecordStore, get_store, get_or_404
from ..rate_limit import limiter, RATE_LIMIT_AI, RATE_LIMIT_BULK, RATE_LIMIT_GENERAL, RATE_LIMIT_READ
from ..services.ai_service import AIService, get_ai_service
from ..services.prompt_builder import build_research_prompt
from .common import SORT_ORDER_PATTERN, run_analysis

router = APIRouter()


@router.get("/", response_model=List[ResearchResponse])
def list_research(
    status: Optional[ResearchStatus] = None,
    research_field: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: Optional[str] = Query("apply_date", pattern="^(university_name|professor_name|research_field|apply_date|status)$"),
    sort_order: Optional[str] = Query("desc", pattern=SORT_ORDER_PATTERN),
    store: RecordStore = Depends(get_store)
):
    """List research applications with optional filters, search, and sorting."""
    filters = []
    if status:
        filters.append(ResearchApplication.status == status.value)
    if research_field:
        filters.append(ResearchApplication.research_field == research_field)
    if search:
        search_term = f"%{search}%"
        filters.append(or_(
            ResearchApplication.university_name.ilike(search_term),
            ResearchApplication.professor_name.ilike(search_term),
            ResearchApplication.research_field.ilike(search_term)
        ))

    return store.list(ResearchApplication, sort_by, ascending=(sort_order == "asc"), filters=filters)


@router.get("/recent", response_model=List[ResearchResponse])
def recent_research(
    limit: int = Query(5, ge=1, le=50),
    store: RecordStore = Depends(get_store)
):
    """Most recently submitted research applications."""
    return store.recent(ResearchApplication, limit=limit)


@router.get("/stats", response_model=StatusStats)
@limiter.limit(RATE_LIMIT_READ)
def get_research_stats(request: Request, store: RecordStore = Depends(get_store)):
    """Count research applications per status."""
    by_status = store.count_by_status(ResearchApplication)
    return StatusStats(total=sum(by_status.values()), by_status=by_status)


@router.post("/analyze", response_model=SummaryResponse)
@limiter.limit(RATE_LIMIT_AI)
async def analyze_research(
    request: Request,
    store: RecordStore = Depends(get_store),
    service: AIService = Depends(get_ai_service)
):
    """Summarize the five most recent research applications."""
    items = store.list(ResearchApplication, "apply_date", ascending=False)
    prompt = build_research_prompt(items)
    return await run_analysis(service, "research", prompt, min(len(items), 5))


@router.get("/{research_id}", response_model=ResearchResponse)
def get_research(research_id: int, store: RecordStore = Depends(get_store)):
    """Get a specific research application."""
    return get_or_404(store, ResearchApplication, research_id, "Research application")


@router.post("/", response_model=ResearchResponse, status_code=201)
@limiter.limit(RATE_LIMIT_GENERAL)
def create_research(
    request: Request,
    research: ResearchCreate,
    store: RecordStore = Depends(get_store)
):
    """Create a research application. apply_date defaults to now."""
    data = research.model_dump(exclude_none=True)
    data["status"] = research.status.value
    return store.create(ResearchApplication, **data)


@router.patch("/{research_id}", response_model=ResearchResponse)
@limiter.limit(RATE_LIMIT_GENERAL)
def update_research(
    request: Request,
    research_id: int,
    research: ResearchUpdate,
    store: RecordStore = Depends(get_store)
):
    """Update a research application."""
    db_research = get_or_404(store, ResearchApplication, research_id, "Research application")
    update_data = research.model_dump(exclude_unset=True, exclude_none=True)
    if "status" in update_data:
        update_data["status"] = research.status.value
    return store.update(db_research, **update_data)


@router.delete("/{research_id}", response_model=DeleteResult)
@limiter.limit(RATE_LIMIT_GENERAL)
def delete_research(
    request: Request,
    research_id: int,
    store: RecordStore = Depends(get_store)
):
    """Delete a research application."""
    db_research = get_or_404(store, ResearchApplication, research_id, "Research application")
    deleted = store.delete(db_research)
    return DeleteResult(message="Research application deleted", deleted=deleted)


# --- Bulk operations ---

@router.post("/bulk-delete", response_model=DeleteResult)
@limiter.limit(RATE_LIMIT_BULK)
def bulk_delete_research(
    request: Request,
    body: BulkDeleteRequest,
    store: RecordStore = Depends(get_store)
):
    """Delete several research applications at once."""
    items = [
        get_or_404(store, ResearchApplication, research_id, "Research application")
        for research_id in dict.fromkeys(body.ids)
    ]
    deleted = store.delete(items)
    return DeleteResult(message=f"Deleted {deleted} research applications", deleted=deleted)


@router.delete("/", response_model=DeleteResult)
@limiter.limit(RATE_LIMIT_BULK)
def delete_all_research(request: Request, store: RecordStore = Depends(get_store)):
    """Delete every research application."""
    deleted = store.delete_all(ResearchApplication)
    return DeleteResult(message="All research applications deleted", deleted=deleted)
