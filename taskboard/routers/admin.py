"""
Router admin: vue d'ensemble des tâches (admin / manager)
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from taskboard.core.database import get_db
from taskboard.core.deps import require_manager
from taskboard.models.user import User
from taskboard.schemas.task import TaskResponse
from taskboard.services.task_service import list_all_tasks, task_to_response

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/tasks", response_model=List[TaskResponse])
def all_tasks(
    user_email: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_manager)
):
    # Avec user_email: ce que cet utilisateur voit (créées ou assignées)
    tasks = list_all_tasks(db, user_email)
    return [task_to_response(task, user_email) for task in tasks]
