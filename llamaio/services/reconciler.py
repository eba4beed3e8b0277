# llamaio/services/reconciler.py
"""
Reference reconciler: repairs pendingTasks / assignedUser drift left behind
by racing requests, optionally on an APScheduler interval.
"""

import logging
from typing import Any, Dict

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session

from llamaio.database import SessionLocal
from llamaio.models import Task, User
from llamaio.utils.parsing import format_timestamp, utcnow

logger = logging.getLogger(__name__)


def reconcile_references(db: Session) -> Dict[str, int]:
    """
    Bring both collections back in line and commit.

    Tasks pointing at missing users are unassigned, stale assignedUserName
    values are rewritten, and every user's pendingTasks becomes exactly its
    assigned incomplete tasks (surviving ids keep their order, new ones are
    appended in id order).
    """
    users = {user.id: user for user in db.query(User).all()}
    pending_by_user = {user_id: [] for user_id in users}
    tasks_repaired = 0

    for task in db.query(Task).order_by(Task.id.asc()).all():
        if not task.assigned_user:
            continue
        user = users.get(task.assigned_user)
        if user is None:
            task.unassign()
            tasks_repaired += 1
            continue
        if task.assigned_user_name != user.name:
            task.assigned_user_name = user.name
            tasks_repaired += 1
        if not task.completed:
            pending_by_user[user.id].append(task.id)

    users_repaired = 0
    for user_id, user in users.items():
        expected = pending_by_user[user_id]
        current = list(user.pending_tasks or [])
        expected_set = set(expected)
        kept = [task_id for task_id in dict.fromkeys(current) if task_id in expected_set]
        kept_set = set(kept)
        repaired = kept + [task_id for task_id in expected if task_id not in kept_set]
        if repaired != current:
            user.pending_tasks = repaired
            users_repaired += 1

    db.commit()
    return {"usersRepaired": users_repaired, "tasksRepaired": tasks_repaired}


class ReferenceReconciler:
    """Scheduler wrapper around reconcile_references"""

    def __init__(self, interval_minutes: int = 0):
        self.interval_minutes = interval_minutes
        self.scheduler = AsyncIOScheduler()
        self.is_running = False
        self.last_run_at = None
        self.last_result = None

    def start(self):
        """Start the scheduler; a zero interval leaves it stopped"""
        if self.is_running or self.interval_minutes <= 0:
            return
        self.scheduler.add_job(
            self.run_once,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id='reconcile_references',
            name='Reconcile user/task references',
            replace_existing=True
        )
        self.scheduler.start()
        self.is_running = True
        logger.info(f"Reference reconciler scheduled every {self.interval_minutes} minute(s)")

    def stop(self):
        if self.is_running:
            self.scheduler.shutdown()
            self.is_running = False
            logger.info("Reference reconciler stopped")

    def run_once(self) -> Dict[str, int]:
        db = SessionLocal()
        try:
            result = reconcile_references(db)
        except Exception:
            db.rollback()
            logger.exception("Reference reconciliation failed")
            raise
        finally:
            db.close()

        self.last_run_at = utcnow()
        self.last_result = result
        logger.info(
            f"Reconciled references: {result['usersRepaired']} user(s), "
            f"{result['tasksRepaired']} task(s) repaired"
        )
        return result

    def status(self) -> Dict[str, Any]:
        jobs = []
        if self.is_running:
            for job in self.scheduler.get_jobs():
                jobs.append({
                    "id": job.id,
                    "name": job.name,
                    "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
                })
        return {
            "is_running": self.is_running,
            "interval_minutes": self.interval_minutes,
            "last_run_at": format_timestamp(self.last_run_at),
            "last_result": self.last_result,
            "jobs": jobs,
        }
