"""Pydantic schemas for task request/response validation."""

from pydantic import BaseModel, ConfigDict, field_validator
from datetime import datetime, timezone
from typing import Optional, List, Dict

from taskboard.models.task import TaskStatus, TaskPriority


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # La base stocke de l'UTC naïf
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class TaskCreate(BaseModel):
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    assignees: Optional[List[str]] = None
    channel_id: Optional[str] = None
    is_recurring: bool = False
    recurrence_rule: Optional[str] = None

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, value):
        return _to_naive_utc(value)


class TaskUpdate(BaseModel):
    """Schema for updating an existing task (creator only)."""

    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: Optional[TaskPriority] = None
    is_recurring: Optional[bool] = None
    recurrence_rule: Optional[str] = None
    assignees: Optional[List[str]] = None

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, value):
        return _to_naive_utc(value)


class StatusUpdate(BaseModel):
    status: TaskStatus


class KanbanMove(BaseModel):
    status: TaskStatus
    position: int


class TaskResponse(BaseModel):
    """Schema for task responses from API."""

    id: int
    title: str
    description: Optional[str]
    due_date: Optional[datetime]
    priority: str
    status: str
    my_status: Optional[str] = None
    position: int
    last_status_change_at: Optional[datetime]
    snoozed_until: Optional[datetime]
    is_recurring: bool
    recurrence_rule: Optional[str]
    parent_task_id: Optional[int]
    channel_id: Optional[str]
    created_by: str
    assigned_to: List[str] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BoardResponse(BaseModel):
    columns: Dict[str, List[TaskResponse]]


class RecurrenceSweepResult(BaseModel):
    processed: int
    errors: int
    skipped: int
    total: int


class StaleSweepResult(BaseModel):
    users: int
    notified: int
    errors: int


class DeadlineSweepResult(BaseModel):
    approaching: int
    overdue: int
    notifications_sent: int
