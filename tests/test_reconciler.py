# tests/test_reconciler.py

from datetime import datetime

from llamaio.models import Task, User
from llamaio.services.reconciler import ReferenceReconciler, reconcile_references

GONE_ID = "65f0a1b2c3d4e5f601234567"


def _task(db, name, assigned_user="", assigned_user_name="unassigned", completed=False):
    task = Task(
        name=name,
        deadline=datetime(2030, 1, 1),
        completed=completed,
        assigned_user=assigned_user,
        assigned_user_name=assigned_user_name,
    )
    db.add(task)
    db.flush()
    return task


def test_reconcile_repairs_drift(db):
    alice = User(name="Alice", email="alice@llama.io", pending_tasks=[])
    bob = User(name="Bob", email="bob@llama.io", pending_tasks=[])
    db.add_all([alice, bob])
    db.flush()

    missing_from_list = _task(db, "missing from list", alice.id, "Alice")
    stale_name = _task(db, "stale name", alice.id, "Alicia")
    orphan = _task(db, "orphan", GONE_ID, "Ghost")
    finished = _task(db, "finished", bob.id, "Bob", completed=True)
    listed = _task(db, "listed", bob.id, "Bob")

    alice.pending_tasks = [stale_name.id, "65f0a1b2c3d4e5f6deadbeef"]
    bob.pending_tasks = [finished.id, listed.id, listed.id]
    db.commit()

    result = reconcile_references(db)
    assert result == {"usersRepaired": 2, "tasksRepaired": 2}

    db.expire_all()
    assert alice.pending_tasks == [stale_name.id, missing_from_list.id]
    assert bob.pending_tasks == [listed.id]
    assert stale_name.assigned_user_name == "Alice"
    assert (orphan.assigned_user, orphan.assigned_user_name) == ("", "unassigned")


def test_reconcile_leaves_consistent_data_alone(client, make_user, make_task, db):
    user = make_user()
    make_task(assignedUser=user["_id"])
    make_task(assignedUser=user["_id"], completed=True)
    make_task()

    assert reconcile_references(db) == {"usersRepaired": 0, "tasksRepaired": 0}


def test_reconciler_without_interval_is_not_scheduled():
    reconciler = ReferenceReconciler(interval_minutes=0)
    reconciler.start()
    status = reconciler.status()
    assert status["is_running"] is False
    assert status["jobs"] == []
    assert status["last_run_at"] is None


def test_trigger_endpoint_runs_reconciliation(client, make_user, db):
    user = make_user()
    db.add(Task(name="Drifted", deadline=datetime(2030, 1, 1), assigned_user=user["_id"], assigned_user_name="Someone"))
    db.commit()

    response = client.post("/scheduler/trigger/reconcile")
    assert response.status_code == 200
    assert response.json() == {
        "message": "Reconciliation completed",
        "data": {"usersRepaired": 1, "tasksRepaired": 1},
    }

    status = client.get("/scheduler/status").json()["data"]
    assert status["last_result"] == {"usersRepaired": 1, "tasksRepaired": 1}
    assert status["last_run_at"].endswith("Z")
