from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from workplan.core.config import settings
from workplan.core.database import get_db
from workplan.models.task import Task
from workplan.schemas.task import (
    TaskCreate,
    TaskUpdate,
    TaskResponse,
    ReorderRequest,
    AckResponse,
)
from workplan.services.task_service import (
    list_tasks,
    next_position,
    apply_reorder,
    clear_tasks,
)

router = APIRouter(prefix="/tasks", tags=["tasks"])


def get_task_or_404(task_id: int, db: Session) -> Task:
    task = db.query(Task).filter(Task.id == task_id).first()
    if not task:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return task


@router.get("", response_model=List[TaskResponse])
def get_tasks(db: Session = Depends(get_db)):
    return list_tasks(db)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(task_data: TaskCreate, db: Session = Depends(get_db)):
    column_id = task_data.column_id or settings.DEFAULT_COLUMN

    # Nouvelle tâche en fin de colonne
    new_task = Task(
        title=task_data.title,
        description=task_data.description or "",
        followup=task_data.followup or "",
        column_id=column_id,
        position=next_position(db, column_id),
    )
    db.add(new_task)
    db.commit()
    db.refresh(new_task)
    return new_task


@router.delete("", response_model=AckResponse)
def delete_all_tasks(db: Session = Depends(get_db)):
    """Vide le tableau (utilisé par l'import en mode replace)"""
    return AckResponse(deleted=clear_tasks(db))


@router.post("/reorder", response_model=AckResponse)
def reorder_tasks(request: ReorderRequest, db: Session = Depends(get_db)):
    """Applique un lot (id, column_id, position) en une seule transaction"""
    missing = apply_reorder(db, request.tasks)
    if missing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown task id(s): {missing}"
        )
    return AckResponse(updated=len(request.tasks))


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(task_id: int, db: Session = Depends(get_db)):
    return get_task_or_404(task_id, db)


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(task_id: int, task_data: TaskUpdate, db: Session = Depends(get_db)):
    task = get_task_or_404(task_id, db)

    update_data = task_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        # null explicite = on garde la valeur actuelle
        if value is not None:
            setattr(task, field, value)

    db.commit()
    db.refresh(task)
    return task


@router.delete("/{task_id}", response_model=AckResponse)
def delete_task(task_id: int, db: Session = Depends(get_db)):
    task = get_task_or_404(task_id, db)
    db.delete(task)
    db.commit()
    return AckResponse()
