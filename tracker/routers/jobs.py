"""
Tracker - CRUD API for job applications.

Endpoints for tracking job applications from Applied through
Offer/Rejected, plus the AI summary of recent applications.
"""
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import or_
from typing import List, Optional

from ..models import JobApplication
from ..schemas import (
    JobCreate, JobUpdate, JobResponse, JobStatus,
    ListItemRequest, BulkDeleteRequest, DeleteResult, StatusStats, SummaryResponse
)
from ..store import RecordStore, get_store, get_or_404
from ..rate_limit import limiter, RATE_LIMIT_AI, RATE_LIMIT_BULK, RATE_LIMIT_GENERAL, RATE_LIMIT_READ
from ..services.ai_service import AIService, get_ai_service
from ..services.prompt_builder import build_job_prompt
from .common import SORT_ORDER_PATTERN, run_analysis

router = APIRouter()


@router.get("/", response_model=List[JobResponse])
def list_jobs(
    status: Optional[JobStatus] = None,
    search: Optional[str] = None,
    sort_by: Optional[str] = Query("apply_date", pattern="^(company_name|position_name|apply_date|status)$"),
    sort_order: Optional[str] = Query("desc", pattern=SORT_ORDER_PATTERN),
    store: RecordStore = Depends(get_store)
):
    """List job applications with optional status filter, search, and sorting."""
    filters = []
    if status:
        filters.append(JobApplication.status == status.value)
    if search:
        search_term = f"%{search}%"
        filters.append(or_(
            JobApplication.company_name.ilike(search_term),
            JobApplication.position_name.ilike(search_term)
        ))

    return store.list(JobApplication, sort_by, ascending=(sort_order == "asc"), filters=filters)


@router.get("/stats", response_model=StatusStats)
@limiter.limit(RATE_LIMIT_READ)
def get_job_stats(request: Request, store: RecordStore = Depends(get_store)):
    """Count applications per status (every status present)."""
    by_status = store.count_by_status(JobApplication)
    return StatusStats(total=sum(by_status.values()), by_status=by_status)


@router.post("/analyze", response_model=SummaryResponse)
@limiter.limit(RATE_LIMIT_AI)
async def analyze_jobs(
    request: Request,
    store: RecordStore = Depends(get_store),
    service: AIService = Depends(get_ai_service)
):
    """Summarize the five most recent applications."""
    jobs = store.list(JobApplication, "apply_date", ascending=False)
    prompt = build_job_prompt(jobs)
    return await run_analysis(service, "jobs", prompt, min(len(jobs), 5))


@router.get("/{job_id}", response_model=JobResponse)
def get_job(job_id: int, store: RecordStore = Depends(get_store)):
    """Get a specific job application."""
    return get_or_404(store, JobApplication, job_id, "Job application")


@router.post("/", response_model=JobResponse, status_code=201)
@limiter.limit(RATE_LIMIT_GENERAL)
def create_job(
    request: Request,
    job: JobCreate,
    store: RecordStore = Depends(get_store)
):
    """Create a new job application. apply_date defaults to now."""
    data = job.model_dump(exclude_none=True)
    data["status"] = job.status.value
    return store.create(JobApplication, **data)


@router.patch("/{job_id}", response_model=JobResponse)
@limiter.limit(RATE_LIMIT_GENERAL)
def update_job(
    request: Request,
    job_id: int,
    job: JobUpdate,
    store: RecordStore = Depends(get_store)
):
    """Update a job application."""
    db_job = get_or_404(store, JobApplication, job_id, "Job application")
    update_data = job.model_dump(exclude_unset=True, exclude_none=True)
    if "status" in update_data:
        update_data["status"] = job.status.value
    return store.update(db_job, **update_data)


@router.delete("/{job_id}", response_model=DeleteResult)
@limiter.limit(RATE_LIMIT_GENERAL)
def delete_job(
    request: Request,
    job_id: int,
    store: RecordStore = Depends(get_store)
):
    """Delete a job application."""
    db_job = get_or_404(store, JobApplication, job_id, "Job application")
    deleted = store.delete(db_job)
    return DeleteResult(message="Job application deleted", deleted=deleted)


# --- Required skills ---

@router.post("/{job_id}/skills", response_model=JobResponse)
@limiter.limit(RATE_LIMIT_GENERAL)
def add_job_skill(
    request: Request,
    job_id: int,
    body: ListItemRequest,
    store: RecordStore = Depends(get_store)
):
    """Append a required skill."""
    db_job = get_or_404(store, JobApplication, job_id, "Job application")
    return store.add_list_item(db_job, "required_skills", body.item)


@router.delete("/{job_id}/skills", response_model=JobResponse)
@limiter.limit(RATE_LIMIT_GENERAL)
def remove_job_skill(
    request: Request,
    job_id: int,
    item: str = Query(..., min_length=1),
    store: RecordStore = Depends(get_store)
):
    """Remove every occurrence of a required skill."""
    db_job = get_or_404(store, JobApplication, job_id, "Job application")
    return store.remove_list_item(db_job, "required_skills", item)


# --- Bulk operations ---

@router.post("/bulk-delete", response_model=DeleteResult)
@limiter.limit(RATE_LIMIT_BULK)
def bulk_delete_jobs(
    request: Request,
    body: BulkDeleteRequest,
    store: RecordStore = Depends(get_store)
):
    """Delete several job applications at once. Unknown ids are a 404 and nothing is deleted."""
    jobs = [get_or_404(store, JobApplication, job_id, "Job application") for job_id in dict.fromkeys(body.ids)]
    deleted = store.delete(jobs)
    return DeleteResult(message=f"Deleted {deleted} job applications", deleted=deleted)


@router.delete("/", response_model=DeleteResult)
@limiter.limit(RATE_LIMIT_BULK)
def delete_all_jobs(request: Request, store: RecordStore = Depends(get_store)):
    """Delete every job application."""
    deleted = store.delete_all(JobApplication)
    return DeleteResult(message="All job applications deleted", deleted=deleted)
