# llamaio/routers/task.py
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from llamaio.config.settings import settings
from llamaio.database import get_db
from llamaio.models import Task, UNASSIGNED_NAME
from llamaio.schemas.task import TaskPayload, TaskOut
from llamaio.services.assignment_service import AssignmentService
from llamaio.services.document_store import DocumentCollection
from llamaio.utils.errors import ApiError, NotFound, UnexpectedStoreError, ValidationFailed
from llamaio.utils.object_id import is_valid_object_id
from llamaio.utils.parsing import parse_bool, parse_timestamp
from llamaio.utils.query_params import parse_json_param, parse_list_query, parse_select
from llamaio.utils.responses import send

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["Tasks"])


def _tasks(db: Session) -> DocumentCollection:
    return DocumentCollection(db, Task, TaskOut)


def _load_task(db: Session, task_id: str) -> Task:
    task = None
    if is_valid_object_id(task_id):
        task = db.query(Task).filter(Task.id == task_id).first()
    if not task:
        raise NotFound("Task not found")
    return task


def _required_deadline(payload: TaskPayload) -> datetime:
    # 0 is a real epoch value, only absent/blank counts as missing
    if not payload.name or payload.deadline is None or payload.deadline == "":
        raise ValidationFailed("Task name and deadline are required")
    deadline = parse_timestamp(payload.deadline)
    if deadline is None:
        raise ValidationFailed("Invalid deadline value")
    return deadline


def _completed_flag(payload: TaskPayload) -> bool:
    if payload.completed is None:
        return False
    try:
        return parse_bool(payload.completed)
    except ValueError:
        raise ValidationFailed("Invalid completed value")


def _apply_payload(db: Session, task: Task, payload: TaskPayload):
    """Full replacement of the writable fields; the assignee is validated first"""
    deadline = _required_deadline(payload)
    completed = _completed_flag(payload)
    assignee = AssignmentService.resolve_assignee(db, payload.assignedUser)

    task.name = payload.name
    task.description = payload.description or ""
    task.deadline = deadline
    task.completed = completed
    if assignee is not None:
        task.assigned_user = assignee.id
        task.assigned_user_name = assignee.name
    else:
        task.assigned_user = ""
        task.assigned_user_name = UNASSIGNED_NAME


@router.get("")
def list_tasks(
    where: Optional[str] = Query(None),
    sort: Optional[str] = Query(None),
    select: Optional[str] = Query(None),
    skip: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    count: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """List or count tasks, 100 per page unless a limit is given"""
    list_query = parse_list_query(
        Task.API_FIELDS, "task",
        where=where, sort=sort, select=select, skip=skip, limit=limit, count=count,
        default_limit=settings.TASKS_DEFAULT_LIMIT,
    )
    try:
        result = _tasks(db).run_listing(list_query, "Task not found")
    except SQLAlchemyError:
        logger.exception("Error listing tasks")
        raise UnexpectedStoreError()

    if list_query.count:
        return send(status.HTTP_200_OK, "Tasks count retrieved successfully", result)
    return send(status.HTTP_200_OK, "Tasks retrieved successfully", result)


@router.post("")
def create_task(payload: Optional[TaskPayload] = None, db: Session = Depends(get_db)):
    payload = payload or TaskPayload()
    try:
        db_task = Task()
        _apply_payload(db, db_task, payload)

        db.add(db_task)
        db.flush()
        AssignmentService.link_task(db, db_task)

        db.commit()
        db.refresh(db_task)
    except ApiError:
        db.rollback()
        raise
    except Exception:
        db.rollback()
        logger.exception("Error creating task")
        raise UnexpectedStoreError("Unable to create task", status.HTTP_400_BAD_REQUEST)

    logger.info(f"Task created with ID: {db_task.id}")
    return send(status.HTTP_201_CREATED, "Task created", _tasks(db).to_document(db_task))


@router.get("/{task_id}")
def get_task(task_id: str, select: Optional[str] = Query(None), db: Session = Depends(get_db)):
    projection = parse_select(parse_json_param(select, "select"))
    try:
        task = _load_task(db, task_id)
    except SQLAlchemyError:
        logger.exception(f"Error fetching task {task_id}")
        raise UnexpectedStoreError()
    return send(status.HTTP_200_OK, "Task retrieved successfully", _tasks(db).to_document(task, projection))


@router.put("/{task_id}")
def replace_task(task_id: str, payload: Optional[TaskPayload] = None, db: Session = Depends(get_db)):
    """
    Replace a task.

    The task leaves its previous assignee's pendingTasks and joins the new
    assignee's list when it is still incomplete.
    """
    payload = payload or TaskPayload()
    try:
        db_task = _load_task(db, task_id)
        previous_user_id = db_task.assigned_user

        _apply_payload(db, db_task, payload)
        AssignmentService.link_task(db, db_task, previous_user_id)

        db.commit()
        db.refresh(db_task)
    except ApiError:
        db.rollback()
        raise
    except Exception:
        db.rollback()
        logger.exception(f"Error updating task {task_id}")
        raise UnexpectedStoreError("Unable to update task", status.HTTP_400_BAD_REQUEST)

    logger.info(f"Task {db_task.id} updated, assigned to {db_task.assigned_user or 'nobody'}")
    return send(status.HTTP_200_OK, "Task updated", _tasks(db).to_document(db_task))


@router.delete("/{task_id}")
def delete_task(task_id: str, db: Session = Depends(get_db)):
    try:
        db_task = _load_task(db, task_id)
        AssignmentService.unlink_task(db, db_task)
        db.delete(db_task)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    except Exception:
        db.rollback()
        logger.exception(f"Error deleting task {task_id}")
        raise UnexpectedStoreError("Unable to delete task", status.HTTP_400_BAD_REQUEST)

    logger.info(f"Task {task_id} deleted")
    return send(status.HTTP_200_OK, "Task deleted", {})
