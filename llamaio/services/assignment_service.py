# llamaio/services/assignment_service.py
"""
Bookkeeping that keeps User.pendingTasks and Task.assignedUser in agreement.

Every method works on the caller's session and leaves committing to the
caller, so all follow-up writes of one request land in one commit.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from llamaio.models import Task, User
from llamaio.utils.errors import ValidationFailed
from llamaio.utils.object_id import is_valid_object_id

logger = logging.getLogger(__name__)


class AssignmentService:
    @staticmethod
    def find_user(db: Session, user_id: str) -> Optional[User]:
        if not is_valid_object_id(user_id):
            return None
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def add_pending_task(db: Session, user_id: str, task_id: str) -> bool:
        """Add ``task_id`` to the user's pendingTasks unless already there"""
        user = AssignmentService.find_user(db, user_id)
        if user is None or task_id in user.pending_tasks:
            return False
        user.pending_tasks.append(task_id)
        return True

    @staticmethod
    def remove_pending_task(db: Session, user_id: str, task_id: str) -> bool:
        """Drop every occurrence of ``task_id`` from the user's pendingTasks"""
        user = AssignmentService.find_user(db, user_id)
        if user is None or task_id not in user.pending_tasks:
            return False
        user.pending_tasks[:] = [pending for pending in user.pending_tasks if pending != task_id]
        return True

    @staticmethod
    def resolve_assignee(db: Session, assigned_user: Optional[str]) -> Optional[User]:
        """User a task body points at; None when unassigned, 400 when it doesn't exist"""
        if not assigned_user:
            return None
        user = AssignmentService.find_user(db, assigned_user)
        if user is None:
            raise ValidationFailed("assignedUser is invalid")
        return user

    @staticmethod
    def link_task(db: Session, task: Task, previous_user_id: str = ""):
        """Reflect a task's (new) assignment in pendingTasks after a create or replace"""
        if previous_user_id:
            AssignmentService.remove_pending_task(db, previous_user_id, task.id)
        if task.is_pending:
            AssignmentService.add_pending_task(db, task.assigned_user, task.id)

    @staticmethod
    def unlink_task(db: Session, task: Task):
        """Forget a task that is about to be deleted"""
        if task.assigned_user:
            AssignmentService.remove_pending_task(db, task.assigned_user, task.id)

    @staticmethod
    def validate_pending_tasks(db: Session, user: User, task_ids: List[str]) -> List[Task]:
        """
        Check a replacement pendingTasks list.

        Every id must name an existing, incomplete task that is unassigned or
        already assigned to ``user``.
        """
        if not task_ids:
            return []
        if not all(is_valid_object_id(task_id) for task_id in task_ids):
            raise ValidationFailed("One or more tasks in pendingTasks do not exist")

        tasks = db.query(Task).filter(Task.id.in_(task_ids)).all()
        if len(tasks) != len(task_ids):
            raise ValidationFailed("One or more tasks in pendingTasks do not exist")

        for task in tasks:
            if task.completed or (task.assigned_user and task.assigned_user != user.id):
                raise ValidationFailed(
                    "pendingTasks must be incomplete and not assigned to a different user"
                )
        return tasks

    @staticmethod
    def replace_pending_tasks(db: Session, user: User, tasks: List[Task], task_ids: List[str]):
        """
        Make ``tasks`` the user's pending work.

        Listed tasks are assigned to the user, incomplete tasks no longer listed
        are released, and the denormalized name is refreshed everywhere.
        """
        for task in tasks:
            task.assigned_user = user.id
            task.assigned_user_name = user.name

        released = 0
        for task in db.query(Task).filter(Task.assigned_user == user.id).all():
            if task.id in task_ids:
                continue
            if task.completed:
                task.assigned_user_name = user.name
            else:
                task.unassign()
                released += 1

        user.pending_tasks = list(task_ids)
        if released:
            logger.info(f"Released {released} task(s) no longer pending for user {user.id}")

    @staticmethod
    def unassign_all(db: Session, user: User) -> int:
        """Unassign every task pointing at ``user``; returns how many"""
        tasks = db.query(Task).filter(Task.assigned_user == user.id).all()
        for task in tasks:
            task.unassign()
        return len(tasks)
