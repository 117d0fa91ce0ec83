"""
Tracker - SQLAlchemy ORM models

Database models for job applications, research applications, and
skill-learning goals (with their daily progress notes).

List-valued fields (required skills, learning resources) are stored as JSON
arrays. Columns added after the first release are nullable; the read-side
properties substitute defaults so older rows never break a response.
"""
import uuid
from datetime import datetime, timedelta

from sqlalchemy import Column, Integer, String, DateTime, Float, Text, ForeignKey, JSON
from sqlalchemy.orm import relationship

from .config import settings
from .database import Base
from .services import progress as progress_helpers


class JobApplication(Base):
    __tablename__ = "job_applications"

    STATUSES = ["Applied", "Interview", "Offer", "Rejected"]

    id = Column(Integer, primary_key=True, index=True)
    company_name = Column(String, nullable=False)
    position_name = Column(String, nullable=False)
    apply_date = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    status = Column(String, nullable=False, default="Applied")
    required_skills = Column(JSON)  # ["Swift", "UIKit", ...]
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def skills(self):
        return list(self.required_skills or [])


class ResearchApplication(Base):
    __tablename__ = "research_applications"

    STATUSES = ["Preparing", "Submitted", "Under Review", "Accepted", "Rejected"]

    id = Column(Integer, primary_key=True, index=True)
    university_name = Column(String, nullable=False)
    professor_name = Column(String, nullable=False)
    research_field = Column(String, nullable=False)
    apply_date = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    status = Column(String, nullable=False, default="Preparing")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


def _default_target_date(context):
    start = context.get_current_parameters().get("start_date") or datetime.utcnow()
    return start + timedelta(days=30)


class SkillLearning(Base):
    __tablename__ = "skill_learnings"

    id = Column(Integer, primary_key=True, index=True)
    skill_name = Column(String, nullable=False)
    start_date = Column(DateTime, default=datetime.utcnow)
    target_date = Column(DateTime, default=_default_target_date, index=True)
    progress = Column(Float, nullable=False, default=0.0, server_default="0")
    resources = Column(JSON)  # ["https://...", ...]
    color = Column(String)  # "#RRGGBB", display only
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    daily_updates = relationship(
        "SkillDailyUpdate",
        back_populates="skill",
        cascade="all, delete-orphan",
        order_by=lambda: [SkillDailyUpdate.timestamp, SkillDailyUpdate.position],
    )

    @property
    def resource_links(self):
        return list(self.resources or [])

    @property
    def color_hex(self):
        return self.color or settings.default_skill_color

    @property
    def progress_status(self):
        return progress_helpers.progress_status(self.progress or 0.0)

    @property
    def formatted_progress(self):
        return progress_helpers.formatted_progress(self.progress or 0.0)

    @property
    def days_remaining(self):
        return progress_helpers.days_remaining(self.start_date, self.target_date)

    @property
    def is_completed(self):
        return (self.progress or 0.0) >= 1.0


class SkillDailyUpdate(Base):
    __tablename__ = "skill_daily_updates"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    skill_id = Column(Integer, ForeignKey("skill_learnings.id", ondelete="CASCADE"), nullable=False, index=True)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow)
    note = Column(Text, nullable=False)
    position = Column(Integer, nullable=False, default=0)  # insertion order within a skill

    # Relationships
    skill = relationship("SkillLearning", back_populates="daily_updates")
