"""Append-only storage of checklist records.

Appends and snapshot reads are serialized by one process-wide lock, so a
dashboard render always reconciles a complete, consistent list of records
even while a new checklist is being submitted.
"""
import logging
import threading
from uuid import UUID

from sqlalchemy import func
from sqlmodel import Session, select

from app.models import ChecklistRecord

logger = logging.getLogger(__name__)

_lock = threading.Lock()


def append_checklist(session: Session, record: ChecklistRecord) -> ChecklistRecord:
    """Store a new record, assigning it the next insertion sequence."""
    with _lock:
        last = session.exec(select(func.max(ChecklistRecord.sequence))).one()
        record.sequence = (last or 0) + 1
        session.add(record)
        session.commit()
        session.refresh(record)

    logger.info(
        f"Stored {record.kind.value} checklist {record.id} for {record.vehicle_plate}"
    )
    return record


def snapshot_checklists(session: Session) -> list[ChecklistRecord]:
    """All stored records in insertion order, read in one statement."""
    with _lock:
        statement = select(ChecklistRecord).order_by(ChecklistRecord.sequence)
        return list(session.exec(statement).all())


def get_checklist(session: Session, record_id: UUID) -> ChecklistRecord | None:
    return session.get(ChecklistRecord, record_id)


def count_checklists(session: Session) -> int:
    return session.exec(select(func.count()).select_from(ChecklistRecord)).one()
