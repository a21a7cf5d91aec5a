"""Pydantic schemas for task request/response validation."""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, timezone
from typing import Optional, List, Literal


class TaskCreate(BaseModel):
    """Schema for creating a task (position is assigned by the server)."""

    title: str = Field(min_length=1)
    description: Optional[str] = None
    followup: Optional[str] = None
    column_id: Optional[str] = None


class TaskUpdate(BaseModel):
    """Schema for updating an existing task. Unset fields keep their value."""

    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    followup: Optional[str] = None
    column_id: Optional[str] = None
    position: Optional[int] = Field(default=None, ge=0)


class TaskResponse(BaseModel):
    """Schema for task responses from API.

    Also used by the client as its in-memory task record, so it stays mutable.
    """

    id: int
    title: str
    description: str = ""
    followup: str = ""
    column_id: str
    position: int = Field(ge=0)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# Schemas réordonnancement

class ReorderItem(BaseModel):
    id: int
    column_id: str
    position: int = Field(ge=0)


class ReorderRequest(BaseModel):
    tasks: List[ReorderItem]


class AckResponse(BaseModel):
    success: bool = True
    updated: Optional[int] = None
    deleted: Optional[int] = None


# Schemas export / import

class ExportedTask(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    followup: str = ""
    column_id: str = Field(min_length=1)
    position: int = Field(default=0, ge=0)


class ExportPayload(BaseModel):
    version: Literal[1] = 1
    exported_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    tasks: List[ExportedTask]
