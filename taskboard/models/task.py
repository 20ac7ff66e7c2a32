"""Task model"""

import enum
from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from taskboard.core.database import Base


class TaskStatus(str, enum.Enum):
    """Aggregate status of a task, as seen by its creator and the board."""

    BACKLOG = "backlog"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"
    HIDDEN = "hidden"


class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


# Colonnes du Kanban (hidden n'en est pas une)
KANBAN_COLUMNS = (
    TaskStatus.BACKLOG,
    TaskStatus.IN_PROGRESS,
    TaskStatus.REVIEW,
    TaskStatus.DONE,
)


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    created_by = Column(String, nullable=False, index=True)
    parent_task_id = Column(Integer, ForeignKey("tasks.id"), nullable=True, index=True)
    channel_id = Column(String, nullable=True)

    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    due_date = Column(DateTime, nullable=True, index=True)
    priority = Column(String, default=TaskPriority.MEDIUM.value)
    status = Column(String, default=TaskStatus.BACKLOG.value, index=True)
    position = Column(Integer, default=0)

    last_status_change_at = Column(DateTime, default=datetime.utcnow)
    snoozed_until = Column(DateTime, nullable=True)

    is_recurring = Column(Boolean, default=False)
    recurrence_rule = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    assignments = relationship("Assignment", back_populates="task", order_by="Assignment.id")
