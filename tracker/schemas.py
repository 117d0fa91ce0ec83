"""
Tracker - Pydantic schemas for request/response validation.

Defines data models for API request bodies and responses,
including validation rules and serialization configuration.
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime, timezone
from typing import Optional, List, Dict
from enum import Enum
import re

from . import list_fields
from .services.progress import clamp_progress


# --- Enums for validated fields ---

class JobStatus(str, Enum):
    APPLIED = "Applied"
    INTERVIEW = "Interview"
    OFFER = "Offer"
    REJECTED = "Rejected"


class ResearchStatus(str, Enum):
    PREPARING = "Preparing"
    SUBMITTED = "Submitted"
    UNDER_REVIEW = "Under Review"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"


# --- Helper validators ---

COLOR_PATTERN = re.compile(r'^#[0-9A-Fa-f]{6}$')


def validate_color(color: Optional[str]) -> Optional[str]:
    """Validate a #RRGGBB display color if provided."""
    if color is None or color == "":
        return None
    if not COLOR_PATTERN.match(color):
        raise ValueError('Color must be a hex value like #4A90E2')
    return color.upper()


def validate_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ValueError('Must not be blank')
    return value


def normalize_datetime(value: Optional[datetime]) -> Optional[datetime]:
    """Store naive UTC timestamps; convert aware input."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def check_date_range(start: Optional[datetime], target: Optional[datetime]):
    if start is not None and target is not None and target < start:
        raise ValueError('target_date must not be before start_date')


# --- Job Application Schemas ---

class JobBase(BaseModel):
    company_name: str = Field(..., min_length=1, max_length=200)
    position_name: str = Field(..., min_length=1, max_length=200)
    status: JobStatus = JobStatus.APPLIED
    required_skills: List[str] = []

    @field_validator('company_name', 'position_name')
    @classmethod
    def strip_names(cls, v):
        return validate_name(v)

    @field_validator('required_skills', mode='before')
    @classmethod
    def split_skills(cls, v):
        return list_fields.coerce_list(v, list_fields.SKILL_SEPARATOR)


class JobCreate(JobBase):
    apply_date: Optional[datetime] = None

    @field_validator('apply_date')
    @classmethod
    def to_utc(cls, v):
        return normalize_datetime(v)


class JobUpdate(BaseModel):
    company_name: Optional[str] = Field(None, min_length=1, max_length=200)
    position_name: Optional[str] = Field(None, min_length=1, max_length=200)
    status: Optional[JobStatus] = None
    apply_date: Optional[datetime] = None
    required_skills: Optional[List[str]] = None

    @field_validator('apply_date')
    @classmethod
    def to_utc(cls, v):
        return normalize_datetime(v)

    @field_validator('company_name', 'position_name')
    @classmethod
    def strip_names(cls, v):
        return validate_name(v)

    @field_validator('required_skills', mode='before')
    @classmethod
    def split_skills(cls, v):
        if v is None:
            return None
        return list_fields.coerce_list(v, list_fields.SKILL_SEPARATOR)


class JobResponse(BaseModel):
    id: int
    company_name: str
    position_name: str
    apply_date: datetime
    status: str
    required_skills: List[str] = Field([], validation_alias='skills')
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        populate_by_name = True


# --- Research Application Schemas ---

class ResearchBase(BaseModel):
    university_name: str = Field(..., min_length=1, max_length=200)
    professor_name: str = Field(..., min_length=1, max_length=200)
    research_field: str = Field(..., min_length=1, max_length=200)
    status: ResearchStatus = ResearchStatus.PREPARING

    @field_validator('university_name', 'professor_name', 'research_field')
    @classmethod
    def strip_names(cls, v):
        return validate_name(v)


class ResearchCreate(ResearchBase):
    apply_date: Optional[datetime] = None

    @field_validator('apply_date')
    @classmethod
    def to_utc(cls, v):
        return normalize_datetime(v)


class ResearchUpdate(BaseModel):
    university_name: Optional[str] = Field(None, min_length=1, max_length=200)
    professor_name: Optional[str] = Field(None, min_length=1, max_length=200)
    research_field: Optional[str] = Field(None, min_length=1, max_length=200)
    status: Optional[ResearchStatus] = None
    apply_date: Optional[datetime] = None

    @field_validator('university_name', 'professor_name', 'research_field')
    @classmethod
    def strip_names(cls, v):
        return validate_name(v)

    @field_validator('apply_date')
    @classmethod
    def to_utc(cls, v):
        return normalize_datetime(v)


class ResearchResponse(ResearchBase):
    id: int
    apply_date: datetime
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# --- Skill Learning Schemas ---

class SkillCreate(BaseModel):
    skill_name: str = Field(..., min_length=1, max_length=200)
    start_date: Optional[datetime] = None
    target_date: datetime
    progress: float = 0.0
    resources: List[str] = []
    color: Optional[str] = None

    @field_validator('skill_name')
    @classmethod
    def strip_name(cls, v):
        return validate_name(v)

    @field_validator('progress')
    @classmethod
    def clamp(cls, v):
        return clamp_progress(v)

    @field_validator('start_date', 'target_date')
    @classmethod
    def to_utc(cls, v):
        return normalize_datetime(v)

    @field_validator('resources', mode='before')
    @classmethod
    def split_resources(cls, v):
        return list_fields.coerce_list(v, list_fields.RESOURCE_SEPARATOR)

    @field_validator('color')
    @classmethod
    def check_color(cls, v):
        return validate_color(v)

    @model_validator(mode='after')
    def check_dates(self):
        check_date_range(self.start_date or datetime.utcnow(), self.target_date)
        return self


class SkillUpdate(BaseModel):
    skill_name: Optional[str] = Field(None, min_length=1, max_length=200)
    start_date: Optional[datetime] = None
    target_date: Optional[datetime] = None
    progress: Optional[float] = None
    resources: Optional[List[str]] = None
    color: Optional[str] = None

    @field_validator('skill_name')
    @classmethod
    def strip_name(cls, v):
        return validate_name(v)

    @field_validator('progress')
    @classmethod
    def clamp(cls, v):
        return None if v is None else clamp_progress(v)

    @field_validator('start_date', 'target_date')
    @classmethod
    def to_utc(cls, v):
        return normalize_datetime(v)

    @field_validator('resources', mode='before')
    @classmethod
    def split_resources(cls, v):
        if v is None:
            return None
        return list_fields.coerce_list(v, list_fields.RESOURCE_SEPARATOR)

    @field_validator('color')
    @classmethod
    def check_color(cls, v):
        return validate_color(v)

    @model_validator(mode='after')
    def check_dates(self):
        check_date_range(self.start_date, self.target_date)
        return self


class ProgressUpdate(BaseModel):
    progress: float

    @field_validator('progress')
    @classmethod
    def clamp(cls, v):
        return clamp_progress(v)


class ColorUpdate(BaseModel):
    color: str

    @field_validator('color')
    @classmethod
    def check_color(cls, v):
        color = validate_color(v)
        if color is None:
            raise ValueError('Color is required')
        return color


class DailyUpdateCreate(BaseModel):
    note: str = Field(..., min_length=1, max_length=5000)
    timestamp: Optional[datetime] = None

    @field_validator('note')
    @classmethod
    def strip_note(cls, v):
        return validate_name(v)

    @field_validator('timestamp')
    @classmethod
    def to_utc(cls, v):
        return normalize_datetime(v)


class DailyUpdateResponse(BaseModel):
    id: str
    timestamp: datetime
    note: str

    class Config:
        from_attributes = True


class SkillResponse(BaseModel):
    id: int
    skill_name: str
    start_date: Optional[datetime] = None
    target_date: Optional[datetime] = None
    progress: float
    progress_status: str
    formatted_progress: str
    days_remaining: int
    resources: List[str] = Field([], validation_alias='resource_links')
    color: str = Field(..., validation_alias='color_hex')
    daily_updates: List[DailyUpdateResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        populate_by_name = True


# --- Shared request bodies ---

class ListItemRequest(BaseModel):
    item: str = Field(..., min_length=1, max_length=1000)

    @field_validator('item')
    @classmethod
    def strip_item(cls, v):
        return validate_name(v)


class BulkDeleteRequest(BaseModel):
    ids: List[int] = Field(..., min_length=1)


class DeleteResult(BaseModel):
    message: str
    deleted: int


# --- Summary / Stats Schemas ---

class SummaryResponse(BaseModel):
    summary: str
    ok: bool = True
    error: Optional[str] = None
    record_count: int = 0


class StatusStats(BaseModel):
    total: int
    by_status: Dict[str, int]


class SkillStats(BaseModel):
    total: int
    active: int
    completed: int
    average_progress: float
    by_progress_status: Dict[str, int]


# --- Export/Import Schemas ---

class ImportResult(BaseModel):
    jobs_imported: int = 0
    research_imported: int = 0
    skills_imported: int = 0
    errors: List[str] = []
