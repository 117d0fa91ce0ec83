"""
Tracker - FastAPI application entry point.

A personal tracker for job applications, research applications, and
skill-learning goals, with optional AI summaries of each.
"""
from fastapi import FastAPI, Request, Depends, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from contextlib import asynccontextmanager
from datetime import date, datetime
import logging
import os
import io
import csv
import json

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from . import __version__
from . import list_fields
from .config import settings
from .rate_limit import limiter, RATE_LIMIT_AI, RATE_LIMIT_BULK, RATE_LIMIT_READ
from .database import StoreError, setup_database
from .models import JobApplication, ResearchApplication, SkillLearning
from .routers import jobs, research, skills
from .schemas import DailyUpdateCreate, ImportResult, JobCreate, ResearchCreate, SkillCreate
from .services import ai_prompts
from .services.ai_service import AIService, get_ai_service
from .services.progress import formatted_date
from .services.sample_data import seed_sample_data
from .store import RecordStore, get_store

# --- Logging Configuration ---
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("tracker")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the record store on startup. A store that cannot open aborts startup."""
    logger.info("Starting Tracker application...")
    os.makedirs("data", exist_ok=True)
    setup_database()
    if not get_ai_service().is_configured:
        logger.warning("AI summaries disabled: set TRACKER_DEEPINFRA_API_KEY to enable Analyze")
    logger.info("Tracker ready!")
    yield
    logger.info("Shutting down Tracker...")


app = FastAPI(
    title="Tracker",
    description="Track job applications, research applications, and skill-learning goals",
    version=__version__,
    lifespan=lifespan
)

# --- Rate Limiting ---
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# --- Store failures ---
@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    """A failed save/delete was rolled back; report it without taking the app down."""
    logger.error(f"Store error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": str(exc), "dismissible": True})


# --- Middleware ---
# Parse allowed origins from config
_allowed_origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])
app.include_router(research.router, prefix="/api/research", tags=["research"])
app.include_router(skills.router, prefix="/api/skills", tags=["skills"])


# --- API Endpoints ---

@app.get("/api/health", tags=["system"])
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.utcnow().isoformat()
    }


@app.get("/api/ai/status", tags=["ai"])
@limiter.limit(RATE_LIMIT_READ)
async def ai_status(request: Request, service: AIService = Depends(get_ai_service)):
    """Report whether the Analyze feature can make requests."""
    return {
        "enabled": service.enabled,
        "configured": service.is_configured,
        "model": service.model,
        "endpoint": service.endpoint,
    }


@app.get("/api/ai/prompts", tags=["ai"])
@limiter.limit(RATE_LIMIT_READ)
async def get_all_prompts(request: Request):
    """Get all AI prompt templates for viewing and prompt engineering."""
    return {
        "prompts": {
            name: {
                "template": template,
                "character_count": len(template),
            }
            for name, template in ai_prompts.ALL_PROMPTS.items()
        },
        "available_names": list(ai_prompts.ALL_PROMPTS.keys())
    }


@app.get("/api/ai/prompts/{prompt_name}", tags=["ai"])
@limiter.limit(RATE_LIMIT_READ)
async def get_prompt(request: Request, prompt_name: str):
    """Get a specific AI prompt template by name."""
    if prompt_name not in ai_prompts.ALL_PROMPTS:
        raise HTTPException(
            status_code=404,
            detail=f"Prompt '{prompt_name}' not found. Available: {list(ai_prompts.ALL_PROMPTS.keys())}"
        )
    template = ai_prompts.get_prompt(prompt_name)
    return {
        "name": prompt_name,
        "template": template,
        "character_count": len(template)
    }


@app.put("/api/ai/prompts/{prompt_name}", tags=["ai"])
@limiter.limit(RATE_LIMIT_AI)
async def update_prompt(request: Request, prompt_name: str, data: dict):
    """
    Update an AI prompt template at runtime for prompt engineering.

    Changes persist until the app restarts. Send {"template": "your new prompt..."}.
    The template must keep every {placeholder} the original had.
    """
    if prompt_name not in ai_prompts.ALL_PROMPTS:
        raise HTTPException(
            status_code=404,
            detail=f"Prompt '{prompt_name}' not found. Available: {list(ai_prompts.ALL_PROMPTS.keys())}"
        )
    template = data.get("template")
    if not template:
        raise HTTPException(status_code=400, detail="'template' field is required")
    if not isinstance(template, str):
        raise HTTPException(status_code=400, detail="'template' must be a string")

    missing = ai_prompts.missing_fields(prompt_name, template)
    if missing:
        raise HTTPException(status_code=400, detail=f"Template is missing placeholders: {missing}")
    try:
        template.format(**{field: "" for field in ai_prompts.REQUIRED_FIELDS[prompt_name]})
    except Exception as e:
        # str.format on a user-written template can fail in many ways
        raise HTTPException(status_code=400, detail=f"Template cannot be formatted: {e}")

    ai_prompts.set_prompt(prompt_name, template)
    logger.info(f"Prompt '{prompt_name}' updated")
    return {
        "message": f"Prompt '{prompt_name}' updated successfully",
        "name": prompt_name,
        "character_count": len(template),
        "note": "Changes persist until app restart"
    }


@app.get("/api/stats", tags=["system"])
@limiter.limit(RATE_LIMIT_READ)
async def get_dashboard_stats(request: Request, store: RecordStore = Depends(get_store)):
    """Summary counts for the dashboard tabs."""
    job_counts = store.count_by_status(JobApplication)
    research_counts = store.count_by_status(ResearchApplication)
    total_skills = store.count(SkillLearning)
    active_skills = store.count(SkillLearning, [SkillLearning.progress < 1.0])

    return {
        "jobs": {
            "total": sum(job_counts.values()),
            "by_status": job_counts
        },
        "research": {
            "total": sum(research_counts.values()),
            "by_status": research_counts
        },
        "skills": {
            "total": total_skills,
            "active": active_skills,
            "completed": total_skills - active_skills
        }
    }


def _iso(value):
    return value.isoformat() if value else None


def _skills_cell(skills):
    """Comma-encoded skills, or a JSON list when a skill itself contains a comma."""
    try:
        return list_fields.encode(skills, list_fields.SKILL_SEPARATOR)
    except ValueError:
        return json.dumps(skills)


def _import_section(container, key, label, errors):
    """The list stored under key; missing or null is empty, anything else is reported."""
    section = container.get(key)
    if section is None:
        return []
    if not isinstance(section, list):
        errors.append(f"{label}: expected a list, got {type(section).__name__}")
        return []
    return section


@app.get("/api/export", tags=["system"])
@limiter.limit(RATE_LIMIT_READ)
async def export_data(
    request: Request,
    format: str = Query("json", pattern="^(json|csv)$"),
    store: RecordStore = Depends(get_store)
):
    """Export all records as JSON, or job applications as CSV."""
    job_records = store.list(JobApplication, "apply_date", ascending=False)

    if format == "csv":
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(["company_name", "position_name", "apply_date", "status", "required_skills"])
        for job in job_records:
            writer.writerow([
                job.company_name,
                job.position_name,
                formatted_date(job.apply_date),
                job.status,
                _skills_cell(job.skills),
            ])

        return StreamingResponse(
            io.BytesIO(output.getvalue().encode()),
            media_type="text/csv",
            headers={
                "Content-Disposition": f"attachment; filename=tracker_jobs_{date.today()}.csv"
            }
        )

    data = {
        "jobs": [
            {
                "id": j.id,
                "company_name": j.company_name,
                "position_name": j.position_name,
                "apply_date": _iso(j.apply_date),
                "status": j.status,
                "required_skills": j.skills,
            }
            for j in job_records
        ],
        "research": [
            {
                "id": r.id,
                "university_name": r.university_name,
                "professor_name": r.professor_name,
                "research_field": r.research_field,
                "apply_date": _iso(r.apply_date),
                "status": r.status,
            }
            for r in store.list(ResearchApplication, "apply_date", ascending=False)
        ],
        "skills": [
            {
                "id": s.id,
                "skill_name": s.skill_name,
                "start_date": _iso(s.start_date),
                "target_date": _iso(s.target_date),
                "progress": s.progress,
                "resources": s.resource_links,
                "color": s.color_hex,
                "daily_updates": [
                    {"id": u.id, "timestamp": _iso(u.timestamp), "note": u.note}
                    for u in s.daily_updates
                ],
            }
            for s in store.list(SkillLearning, "skill_name")
        ],
    }
    return JSONResponse(
        content=data,
        headers={
            "Content-Disposition": f"attachment; filename=tracker_export_{date.today()}.json"
        }
    )


@app.post("/api/import", response_model=ImportResult, tags=["system"])
@limiter.limit(RATE_LIMIT_BULK)
async def import_data(request: Request, data: dict, store: RecordStore = Depends(get_store)):
    """
    Import records from a JSON export.

    Each record is validated like a create request, so legacy exports that
    store skills as "Swift,UIKit" or resources as newline-separated text are
    accepted. Invalid records are reported and skipped.
    """
    result = ImportResult()

    for index, job_data in enumerate(_import_section(data, "jobs", "jobs", result.errors)):
        try:
            job = JobCreate(**job_data)
        except (ValueError, TypeError) as e:
            result.errors.append(f"jobs[{index}]: {e}")
            continue
        payload = job.model_dump(exclude_none=True)
        payload["status"] = job.status.value
        store.create(JobApplication, **payload)
        result.jobs_imported += 1

    for index, research_data in enumerate(_import_section(data, "research", "research", result.errors)):
        try:
            item = ResearchCreate(**research_data)
        except (ValueError, TypeError) as e:
            result.errors.append(f"research[{index}]: {e}")
            continue
        payload = item.model_dump(exclude_none=True)
        payload["status"] = item.status.value
        store.create(ResearchApplication, **payload)
        result.research_imported += 1

    for index, skill_data in enumerate(_import_section(data, "skills", "skills", result.errors)):
        updates = []
        if isinstance(skill_data, dict):
            updates = _import_section(skill_data, "daily_updates", f"skills[{index}].daily_updates", result.errors)
            skill_data = {key: value for key, value in skill_data.items() if key != "daily_updates"}
        try:
            skill = SkillCreate(**skill_data)
        except (ValueError, TypeError) as e:
            result.errors.append(f"skills[{index}]: {e}")
            continue
        db_skill = store.create(SkillLearning, **skill.model_dump(exclude_none=True))
        for update_index, update_data in enumerate(updates):
            try:
                update = DailyUpdateCreate(**update_data)
            except (ValueError, TypeError) as e:
                result.errors.append(f"skills[{index}].daily_updates[{update_index}]: {e}")
                continue
            store.add_daily_update(db_skill, update.note, update.timestamp)
        result.skills_imported += 1

    logger.info(
        f"Imported {result.jobs_imported} jobs, {result.research_imported} research, "
        f"{result.skills_imported} skills ({len(result.errors)} errors)"
    )
    return result


@app.post("/api/sample-data", tags=["system"])
@limiter.limit(RATE_LIMIT_BULK)
async def load_sample_data(
    request: Request,
    reset: bool = False,
    store: RecordStore = Depends(get_store)
):
    """Insert demo records; reset=true clears all three record types first."""
    created = seed_sample_data(store, reset=reset)
    logger.info(f"Seeded sample data: {created}")
    return {"message": "Sample data created", "created": created}
