# llamaio/routers/user.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from llamaio.database import get_db
from llamaio.models import User
from llamaio.schemas.user import UserPayload, UserOut
from llamaio.services.assignment_service import AssignmentService
from llamaio.services.document_store import DocumentCollection
from llamaio.utils.errors import ApiError, ConflictError, NotFound, UnexpectedStoreError, ValidationFailed
from llamaio.utils.query_params import parse_json_param, parse_list_query, parse_select
from llamaio.utils.responses import send

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

DUPLICATE_EMAIL = "A user with that email already exists"


def _users(db: Session) -> DocumentCollection:
    return DocumentCollection(db, User, UserOut)


def _require_name_and_email(payload: UserPayload):
    if not payload.name or not payload.email:
        raise ValidationFailed("User name and email are required")


def _load_user(db: Session, user_id: str) -> User:
    user = AssignmentService.find_user(db, user_id)
    if not user:
        raise NotFound("User not found")
    return user


@router.get("")
def list_users(
    where: Optional[str] = Query(None),
    sort: Optional[str] = Query(None),
    select: Optional[str] = Query(None),
    skip: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    count: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """List or count users. Unlimited unless a limit is given."""
    list_query = parse_list_query(
        User.API_FIELDS, "user",
        where=where, sort=sort, select=select, skip=skip, limit=limit, count=count,
        default_limit=None,
    )
    try:
        result = _users(db).run_listing(list_query, "User not found")
    except SQLAlchemyError:
        logger.exception("Error listing users")
        raise UnexpectedStoreError()

    if list_query.count:
        return send(status.HTTP_200_OK, "Users count retrieved successfully", result)
    return send(status.HTTP_200_OK, "Users retrieved successfully", result)


@router.post("")
def create_user(payload: Optional[UserPayload] = None, db: Session = Depends(get_db)):
    """Create a user; pendingTasks always starts empty"""
    payload = payload or UserPayload()
    _require_name_and_email(payload)

    try:
        db_user = User(name=payload.name, email=payload.email, pending_tasks=[])
        db.add(db_user)
        db.commit()
        db.refresh(db_user)
    except IntegrityError:
        db.rollback()
        raise ConflictError(DUPLICATE_EMAIL)
    except Exception:
        db.rollback()
        logger.exception("Error creating user")
        raise UnexpectedStoreError("Unable to create user", status.HTTP_400_BAD_REQUEST)

    logger.info(f"User created with ID: {db_user.id}")
    return send(status.HTTP_201_CREATED, "User created", _users(db).to_document(db_user))


@router.get("/{user_id}")
def get_user(user_id: str, select: Optional[str] = Query(None), db: Session = Depends(get_db)):
    projection = parse_select(parse_json_param(select, "select"))
    try:
        user = _load_user(db, user_id)
    except SQLAlchemyError:
        logger.exception(f"Error fetching user {user_id}")
        raise UnexpectedStoreError()
    return send(status.HTTP_200_OK, "User retrieved successfully", _users(db).to_document(user, projection))


@router.put("/{user_id}")
def replace_user(user_id: str, payload: Optional[UserPayload] = None, db: Session = Depends(get_db)):
    """
    Replace a user.

    The new pendingTasks list must only name existing, incomplete tasks that
    are unassigned or already this user's. Listed tasks get assigned to the
    user, incomplete tasks dropped from the list get unassigned.
    """
    payload = payload or UserPayload()
    try:
        db_user = _load_user(db, user_id)
        _require_name_and_email(payload)

        # Set semantics; first occurrence wins the position
        task_ids = list(dict.fromkeys(payload.pendingTasks or []))
        tasks = AssignmentService.validate_pending_tasks(db, db_user, task_ids)

        db_user.name = payload.name
        db_user.email = payload.email
        AssignmentService.replace_pending_tasks(db, db_user, tasks, task_ids)

        db.commit()
        db.refresh(db_user)
    except ApiError:
        db.rollback()
        raise
    except IntegrityError:
        db.rollback()
        raise ConflictError(DUPLICATE_EMAIL)
    except Exception:
        db.rollback()
        logger.exception(f"Error updating user {user_id}")
        raise UnexpectedStoreError("Unable to update user", status.HTTP_400_BAD_REQUEST)

    logger.info(f"User {db_user.id} updated with {len(task_ids)} pending task(s)")
    return send(status.HTTP_200_OK, "User updated", _users(db).to_document(db_user))


@router.delete("/{user_id}")
def delete_user(user_id: str, db: Session = Depends(get_db)):
    """Delete a user after unassigning every task that points at it"""
    try:
        db_user = _load_user(db, user_id)
        unassigned = AssignmentService.unassign_all(db, db_user)
        db.delete(db_user)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    except Exception:
        db.rollback()
        logger.exception(f"Error deleting user {user_id}")
        raise UnexpectedStoreError("Unable to delete user", status.HTTP_400_BAD_REQUEST)

    logger.info(f"User {user_id} deleted, {unassigned} task(s) unassigned")
    return send(status.HTTP_200_OK, "User deleted", {})
