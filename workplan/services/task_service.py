"""Task service"""

import logging
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import List
from workplan.models.task import Task
from workplan.schemas.task import ReorderItem

logger = logging.getLogger(__name__)


def list_tasks(db: Session) -> List[Task]:
    # Toutes colonnes confondues, le client partitionne par column_id
    return db.query(Task).order_by(Task.position.asc(), Task.id.asc()).all()


def next_position(db: Session, column_id: str) -> int:
    count = db.query(func.count(Task.id)).filter(Task.column_id == column_id).scalar()
    return count or 0


def apply_reorder(db: Session, items: List[ReorderItem]) -> List[int]:
    """Apply every (id, column_id, position) triple in one commit.

    Returns the ids that were not found; when that list is non-empty nothing
    is written.
    """
    ids = [item.id for item in items]
    tasks = {task.id: task for task in db.query(Task).filter(Task.id.in_(ids)).all()} if ids else {}

    missing = [task_id for task_id in ids if task_id not in tasks]
    if missing:
        return missing

    for item in items:
        task = tasks[item.id]
        task.column_id = item.column_id
        task.position = item.position

    db.commit()
    logger.info(f"Reorder applied to {len(items)} task(s)")
    return []


def clear_tasks(db: Session) -> int:
    deleted = db.query(Task).delete()
    db.commit()
    return deleted
