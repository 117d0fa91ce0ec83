"""
Record store - create/read/update/delete over the tracker's record types.

One RecordStore wraps one SQLAlchemy session. Routers receive it through the
`get_store` dependency; scripts build one around their own session.

Every write commits immediately. A failed commit rolls the session back
(which also discards the attempted in-memory change), is logged, and
surfaces as StoreError.
"""
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from fastapi import Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import list_fields
from .database import StoreError, get_db
from .models import SkillDailyUpdate, SkillLearning

logger = logging.getLogger("tracker.store")


class RecordNotFoundError(LookupError):
    """No record with the requested id."""
    pass


class RecordStore:
    """Persistence collaborator for JobApplication, ResearchApplication and SkillLearning."""

    def __init__(self, db: Session):
        self.db = db

    def _commit(self, action: str):
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Failed to %s: %s", action, exc)
            raise StoreError(f"Failed to {action}") from exc

    # --- Create ---

    def create(self, model, **fields):
        """Persist a new record. Column defaults fill in anything not supplied."""
        record = model(**fields)
        self.db.add(record)
        self._commit(f"create {model.__name__}")
        self.db.refresh(record)
        logger.debug("Created %s %s", model.__name__, record.id)
        return record

    def create_many(self, model, rows: Iterable[Dict]) -> List:
        records = [model(**row) for row in rows]
        self.db.add_all(records)
        self._commit(f"create {model.__name__} records")
        for record in records:
            self.db.refresh(record)
        return records

    # --- Read ---

    def get(self, model, record_id):
        record = self.db.get(model, record_id)
        if record is None:
            raise RecordNotFoundError(f"{model.__name__} {record_id} not found")
        return record

    def list(self, model, sort_key: Optional[str] = None, ascending: bool = True, filters=None, limit=None):
        """
        Return records of a type ordered by sort_key.

        filters is an optional list of SQLAlchemy criteria. Ties fall back to
        creation order so the result is stable between calls.
        """
        query = self.db.query(model)
        for criterion in filters or []:
            query = query.filter(criterion)

        if sort_key:
            column = getattr(model, sort_key)
            query = query.order_by(column.asc() if ascending else column.desc())
        query = query.order_by(model.id.asc())

        if limit:
            query = query.limit(limit)
        return query.all()

    def active_skills(self) -> List[SkillLearning]:
        """Skills still in progress, soonest target first, then by name."""
        return self.db.query(SkillLearning).filter(
            SkillLearning.progress < 1.0
        ).order_by(
            SkillLearning.target_date.asc(),
            SkillLearning.skill_name.asc(),
        ).all()

    def recent(self, model, limit: int = 5):
        """Most recently applied records first."""
        return self.list(model, "apply_date", ascending=False, limit=limit)

    def count_by_status(self, model) -> Dict[str, int]:
        """Count records per status. Every known status is present, zero or not."""
        counts = {status: 0 for status in model.STATUSES}
        rows = self.db.query(model.status, func.count(model.id)).group_by(model.status).all()
        for status, count in rows:
            counts[status] = count
        return counts

    def count(self, model, filters=None) -> int:
        query = self.db.query(func.count(model.id))
        for criterion in filters or []:
            query = query.filter(criterion)
        return query.scalar() or 0

    # --- Update ---

    def update(self, record, **changes):
        """Apply changes to an already-fetched record and persist them."""
        for key, value in changes.items():
            setattr(record, key, value)
        self._commit(f"update {type(record).__name__} {record.id}")
        self.db.refresh(record)
        return record

    def add_list_item(self, record, field: str, item: str):
        """Append to a list field and persist. The whole list is replaced in one write."""
        items = list_fields.add_item(getattr(record, field) or [], item)
        return self.update(record, **{field: items})

    def remove_list_item(self, record, field: str, item: str):
        items = list_fields.remove_item(getattr(record, field) or [], item)
        return self.update(record, **{field: items})

    def add_daily_update(self, skill: SkillLearning, note: str, timestamp: Optional[datetime] = None) -> SkillDailyUpdate:
        entry = SkillDailyUpdate(
            note=note,
            timestamp=timestamp or datetime.utcnow(),
            position=max((update.position for update in skill.daily_updates), default=-1) + 1,
        )
        skill.daily_updates.append(entry)
        self._commit(f"add daily update to skill {skill.id}")
        self.db.refresh(entry)
        return entry

    def remove_daily_update(self, skill: SkillLearning, update_id: str):
        entry = self.db.query(SkillDailyUpdate).filter(
            SkillDailyUpdate.id == update_id,
            SkillDailyUpdate.skill_id == skill.id,
        ).first()
        if entry is None:
            raise RecordNotFoundError(f"Daily update {update_id} not found")
        self.db.delete(entry)
        self._commit(f"delete daily update {update_id}")

    # --- Delete ---

    def delete(self, records):
        """Delete one record or a list of records in a single transaction."""
        if not isinstance(records, (list, tuple)):
            records = [records]
        for record in records:
            self.db.delete(record)
        self._commit(f"delete {len(records)} record(s)")
        return len(records)

    def delete_all(self, model) -> int:
        """Remove every record of a type (sample-data resets)."""
        records = self.db.query(model).all()
        for record in records:
            self.db.delete(record)
        self._commit(f"delete all {model.__name__} records")
        logger.info("Deleted all %d %s records", len(records), model.__name__)
        return len(records)


def get_store(db: Session = Depends(get_db)) -> RecordStore:
    """FastAPI dependency that builds a record store around the request's session."""
    return RecordStore(db)


def get_or_404(store: RecordStore, model, record_id, label: str = "Record"):
    """Fetch a record by id, or raise 404."""
    try:
        return store.get(model, record_id)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail=f"{label} not found")
