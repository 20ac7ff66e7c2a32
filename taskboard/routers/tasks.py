from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from taskboard.core.database import get_db
from taskboard.core.deps import get_current_user, get_directory, get_notifier
from taskboard.models.task import TaskPriority, TaskStatus
from taskboard.models.user import User
from taskboard.schemas.task import (
    BoardResponse,
    KanbanMove,
    StatusUpdate,
    TaskCreate,
    TaskResponse,
    TaskUpdate,
)
from taskboard.services.deadline_service import (
    get_today_tasks,
    get_overdue_tasks,
    get_this_week_tasks
)
from taskboard.services.directory_service import UserDirectory
from taskboard.services.kanban_service import get_board, move_kanban
from taskboard.services.notification_service import DatabaseNotifier
from taskboard.services.staleness_service import list_stale_tasks_for, snooze_task
from taskboard.services.status_service import set_status
from taskboard.services.task_service import (
    create_task,
    delete_task,
    get_task_for,
    list_tasks_for,
    task_to_response,
    update_task,
)

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _respond(tasks, user: User) -> List[TaskResponse]:
    return [task_to_response(task, user.email) for task in tasks]


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create(
    task_data: TaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    directory: UserDirectory = Depends(get_directory),
    notifier: DatabaseNotifier = Depends(get_notifier)
):
    task = create_task(db, task_data, current_user.email, directory, notifier)
    return task_to_response(task, current_user.email)


@router.get("", response_model=List[TaskResponse])
def list_tasks(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    status_filter: Optional[TaskStatus] = Query(None),
    priority_filter: Optional[TaskPriority] = Query(None)
):
    tasks = list_tasks_for(
        db,
        current_user.email,
        status=status_filter.value if status_filter else None,
        priority=priority_filter.value if priority_filter else None
    )
    return _respond(tasks, current_user)


@router.get("/board", response_model=BoardResponse)
def board(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    columns = get_board(db, current_user.email)
    return {"columns": {name: _respond(tasks, current_user) for name, tasks in columns.items()}}


@router.get("/stale", response_model=List[TaskResponse])
def stale(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _respond(list_stale_tasks_for(db, current_user.email), current_user)


@router.get("/today", response_model=List[TaskResponse])
def today(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _respond(get_today_tasks(db, current_user.email), current_user)


@router.get("/overdue", response_model=List[TaskResponse])
def overdue(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _respond(get_overdue_tasks(db, current_user.email), current_user)


@router.get("/this-week", response_model=List[TaskResponse])
def this_week(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _respond(get_this_week_tasks(db, current_user.email), current_user)


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return task_to_response(get_task_for(db, task_id, current_user.email), current_user.email)


@router.put("/{task_id}", response_model=TaskResponse)
def update(
    task_id: int,
    task_data: TaskUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    directory: UserDirectory = Depends(get_directory),
    notifier: DatabaseNotifier = Depends(get_notifier)
):
    task = update_task(db, task_id, task_data, current_user.email, directory, notifier)
    return task_to_response(task, current_user.email)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    delete_task(db, task_id, current_user.email)


@router.post("/{task_id}/status", response_model=TaskResponse)
def update_status(
    task_id: int,
    body: StatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    task = set_status(db, task_id, body.status, current_user.email)
    return task_to_response(task, current_user.email)


@router.post("/{task_id}/move", response_model=TaskResponse)
def move(
    task_id: int,
    body: KanbanMove,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    task = move_kanban(db, task_id, body.status, body.position, current_user.email)
    return task_to_response(task, current_user.email)


@router.post("/{task_id}/snooze", response_model=TaskResponse)
def snooze(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    task = snooze_task(db, task_id, current_user.email)
    return task_to_response(task, current_user.email)
