"""
Tracker - CRUD API for skill-learning goals.

Besides plain CRUD, a skill has inline controls: a progress slider, a
display color, a list of learning resources, and dated daily-update notes.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from typing import List, Optional

from ..models import SkillLearning
from ..schemas import (
    SkillCreate, SkillUpdate, SkillResponse, ProgressUpdate, ColorUpdate,
    DailyUpdateCreate, DailyUpdateResponse, ListItemRequest, BulkDeleteRequest,
    DeleteResult, SkillStats, SummaryResponse, check_date_range
)
from ..store import RecordStore, RecordNotFoundError, get_store, get_or_404
from ..rate_limit import limiter, RATE_LIMIT_AI, RATE_LIMIT_BULK, RATE_LIMIT_GENERAL, RATE_LIMIT_READ
from ..services.ai_service import AIService, get_ai_service
from ..services.progress import PROGRESS_BUCKETS
from ..services.prompt_builder import build_skills_prompt
from .common import SORT_ORDER_PATTERN, run_analysis

router = APIRouter()


@router.get("/", response_model=List[SkillResponse])
def list_skills(
    active_only: bool = False,
    search: Optional[str] = None,
    sort_by: str = Query("skill_name", pattern="^(skill_name|start_date|target_date|progress)$"),
    sort_order: str = Query("asc", pattern=SORT_ORDER_PATTERN),
    store: RecordStore = Depends(get_store)
):
    """
    List skills.

    active_only=true returns unfinished skills (progress < 1) ordered by
    target date then name, ignoring sort_by.
    """
    if active_only:
        skills = store.active_skills()
    else:
        skills = store.list(SkillLearning, sort_by, ascending=(sort_order == "asc"))

    if search:
        needle = search.casefold()
        skills = [skill for skill in skills if needle in skill.skill_name.casefold()]
    return skills


@router.get("/stats", response_model=SkillStats)
@limiter.limit(RATE_LIMIT_READ)
def get_skill_stats(request: Request, store: RecordStore = Depends(get_store)):
    """Progress overview across all skills."""
    skills = store.list(SkillLearning)
    by_progress_status = {label: 0 for _, label in reversed(PROGRESS_BUCKETS)}
    by_progress_status["Completed"] = 0
    for skill in skills:
        by_progress_status[skill.progress_status] = by_progress_status.get(skill.progress_status, 0) + 1

    completed = sum(1 for skill in skills if skill.is_completed)
    average = sum(skill.progress or 0.0 for skill in skills) / len(skills) if skills else 0.0
    return SkillStats(
        total=len(skills),
        active=len(skills) - completed,
        completed=completed,
        average_progress=round(average, 3),
        by_progress_status=by_progress_status,
    )


@router.post("/analyze", response_model=SummaryResponse)
@limiter.limit(RATE_LIMIT_AI)
async def analyze_skills(
    request: Request,
    store: RecordStore = Depends(get_store),
    service: AIService = Depends(get_ai_service)
):
    """Summarize progress on the unfinished skills."""
    skills = store.list(SkillLearning, "skill_name")
    prompt = build_skills_prompt(skills)
    active = sum(1 for skill in skills if not skill.is_completed)
    return await run_analysis(service, "skills", prompt, active)


@router.get("/{skill_id}", response_model=SkillResponse)
def get_skill(skill_id: int, store: RecordStore = Depends(get_store)):
    """Get a specific skill with its resources and daily updates."""
    return get_or_404(store, SkillLearning, skill_id, "Skill")


@router.post("/", response_model=SkillResponse, status_code=201)
@limiter.limit(RATE_LIMIT_GENERAL)
def create_skill(
    request: Request,
    skill: SkillCreate,
    store: RecordStore = Depends(get_store)
):
    """Create a skill goal. Rejected with 422 if target_date precedes start_date."""
    return store.create(SkillLearning, **skill.model_dump(exclude_none=True))


@router.patch("/{skill_id}", response_model=SkillResponse)
@limiter.limit(RATE_LIMIT_GENERAL)
def update_skill(
    request: Request,
    skill_id: int,
    skill: SkillUpdate,
    store: RecordStore = Depends(get_store)
):
    """Update a skill. The resulting date range is validated against stored values."""
    db_skill = get_or_404(store, SkillLearning, skill_id, "Skill")
    update_data = skill.model_dump(exclude_unset=True, exclude_none=True)

    try:
        check_date_range(
            update_data.get("start_date", db_skill.start_date),
            update_data.get("target_date", db_skill.target_date),
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return store.update(db_skill, **update_data)


@router.patch("/{skill_id}/progress", response_model=SkillResponse)
@limiter.limit(RATE_LIMIT_GENERAL)
def update_skill_progress(
    request: Request,
    skill_id: int,
    body: ProgressUpdate,
    store: RecordStore = Depends(get_store)
):
    """Set progress (clamped to 0..1)."""
    db_skill = get_or_404(store, SkillLearning, skill_id, "Skill")
    return store.update(db_skill, progress=body.progress)


@router.patch("/{skill_id}/color", response_model=SkillResponse)
@limiter.limit(RATE_LIMIT_GENERAL)
def update_skill_color(
    request: Request,
    skill_id: int,
    body: ColorUpdate,
    store: RecordStore = Depends(get_store)
):
    """Set the display color."""
    db_skill = get_or_404(store, SkillLearning, skill_id, "Skill")
    return store.update(db_skill, color=body.color)


@router.delete("/{skill_id}", response_model=DeleteResult)
@limiter.limit(RATE_LIMIT_GENERAL)
def delete_skill(
    request: Request,
    skill_id: int,
    store: RecordStore = Depends(get_store)
):
    """Delete a skill and its daily updates."""
    db_skill = get_or_404(store, SkillLearning, skill_id, "Skill")
    deleted = store.delete(db_skill)
    return DeleteResult(message="Skill deleted", deleted=deleted)


# --- Learning resources ---

@router.post("/{skill_id}/resources", response_model=SkillResponse)
@limiter.limit(RATE_LIMIT_GENERAL)
def add_skill_resource(
    request: Request,
    skill_id: int,
    body: ListItemRequest,
    store: RecordStore = Depends(get_store)
):
    """Append a learning resource (usually a URL)."""
    db_skill = get_or_404(store, SkillLearning, skill_id, "Skill")
    return store.add_list_item(db_skill, "resources", body.item)


@router.delete("/{skill_id}/resources", response_model=SkillResponse)
@limiter.limit(RATE_LIMIT_GENERAL)
def remove_skill_resource(
    request: Request,
    skill_id: int,
    item: str = Query(..., min_length=1),
    store: RecordStore = Depends(get_store)
):
    """Remove every occurrence of a learning resource."""
    db_skill = get_or_404(store, SkillLearning, skill_id, "Skill")
    return store.remove_list_item(db_skill, "resources", item)


# --- Daily updates ---

@router.post("/{skill_id}/updates", response_model=DailyUpdateResponse, status_code=201)
@limiter.limit(RATE_LIMIT_GENERAL)
def add_daily_update(
    request: Request,
    skill_id: int,
    body: DailyUpdateCreate,
    store: RecordStore = Depends(get_store)
):
    """Log a dated note against a skill."""
    db_skill = get_or_404(store, SkillLearning, skill_id, "Skill")
    return store.add_daily_update(db_skill, body.note, body.timestamp)


@router.delete("/{skill_id}/updates/{update_id}", response_model=DeleteResult)
@limiter.limit(RATE_LIMIT_GENERAL)
def remove_daily_update(
    request: Request,
    skill_id: int,
    update_id: str,
    store: RecordStore = Depends(get_store)
):
    """Delete one daily-update note."""
    db_skill = get_or_404(store, SkillLearning, skill_id, "Skill")
    try:
        store.remove_daily_update(db_skill, update_id)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Daily update not found")
    return DeleteResult(message="Daily update deleted", deleted=1)


# --- Bulk operations ---

@router.post("/bulk-delete", response_model=DeleteResult)
@limiter.limit(RATE_LIMIT_BULK)
def bulk_delete_skills(
    request: Request,
    body: BulkDeleteRequest,
    store: RecordStore = Depends(get_store)
):
    """Delete several skills at once."""
    skills = [get_or_404(store, SkillLearning, skill_id, "Skill") for skill_id in dict.fromkeys(body.ids)]
    deleted = store.delete(skills)
    return DeleteResult(message=f"Deleted {deleted} skills", deleted=deleted)


@router.delete("/", response_model=DeleteResult)
@limiter.limit(RATE_LIMIT_BULK)
def delete_all_skills(request: Request, store: RecordStore = Depends(get_store)):
    """Delete every skill."""
    deleted = store.delete_all(SkillLearning)
    return DeleteResult(message="All skills deleted", deleted=deleted)
