"""Assignment model: one row per (task, assignee)"""

import enum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from taskboard.core.database import Base


class AssignmentStatus(str, enum.Enum):
    """Per-assignee progress. Same values as TaskStatus, different meaning."""

    BACKLOG = "backlog"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"
    HIDDEN = "hidden"


class Assignment(Base):
    __tablename__ = "task_assignments"
    __table_args__ = (UniqueConstraint("task_id", "assignee", name="uq_task_assignee"),)

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    assignee = Column(String, nullable=False, index=True)
    status = Column(String, default=AssignmentStatus.BACKLOG.value)

    created_at = Column(DateTime, default=datetime.utcnow)

    task = relationship("Task", back_populates="assignments")
