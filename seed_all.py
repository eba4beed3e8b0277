"""
Master Database Seeding Script
Creates database tables and populates them with demo users and tasks
"""

import sys
from datetime import timedelta

from create_tables import create_tables
from llamaio.database import SessionLocal
from llamaio.models import Task, User
from llamaio.services.assignment_service import AssignmentService
from llamaio.utils.parsing import utcnow

DEMO_USERS = [
    {"name": "Alice Llama", "email": "alice@llama.io"},
    {"name": "Bob Alpaca", "email": "bob@llama.io"},
    {"name": "Carol Vicuna", "email": "carol@llama.io"},
    {"name": "Dan Guanaco", "email": "dan@llama.io"},
]

# assignee: index into DEMO_USERS, None for unassigned
DEMO_TASKS = [
    {"name": "Shear the herd", "description": "Spring shearing", "days": 3, "completed": False, "assignee": 0},
    {"name": "Fix the fence", "description": "North paddock", "days": 1, "completed": False, "assignee": 0},
    {"name": "Order hay", "description": "", "days": 7, "completed": True, "assignee": 0},
    {"name": "Vet visit", "description": "Annual checkups", "days": 14, "completed": False, "assignee": 1},
    {"name": "Clean the barn", "description": "", "days": 2, "completed": False, "assignee": 2},
    {"name": "Update website", "description": "Add new photos", "days": 10, "completed": True, "assignee": 2},
    {"name": "Plan open farm day", "description": "", "days": 30, "completed": False, "assignee": None},
    {"name": "File taxes", "description": "Quarterly", "days": 21, "completed": False, "assignee": None},
]

def seed_users(db):
    """Insert demo users"""
    print(f"\n{'='*60}")
    print("🚀 Seeding users")
    print(f"{'='*60}")

    users = []
    for data in DEMO_USERS:
        user = User(name=data["name"], email=data["email"], pending_tasks=[])
        db.add(user)
        users.append(user)
        print(f"  + {data['name']} <{data['email']}>")
    db.flush()
    return users

def seed_tasks(db, users):
    """Insert demo tasks, keeping pendingTasks in step"""
    print(f"\n{'='*60}")
    print("🚀 Seeding tasks")
    print(f"{'='*60}")

    now = utcnow()
    for data in DEMO_TASKS:
        task = Task(
            name=data["name"],
            description=data["description"],
            deadline=now + timedelta(days=data["days"]),
            completed=data["completed"],
        )
        if data["assignee"] is not None:
            assignee = users[data["assignee"]]
            task.assigned_user = assignee.id
            task.assigned_user_name = assignee.name
        else:
            task.unassign()

        db.add(task)
        db.flush()
        AssignmentService.link_task(db, task)
        print(f"  + {data['name']} -> {task.assigned_user_name}")

def main():
    if not create_tables():
        return 1

    db = SessionLocal()
    try:
        users = seed_users(db)
        seed_tasks(db, users)
        db.commit()
    except Exception as e:
        db.rollback()
        print(f"[ERROR] Seeding failed: {e}")
        return 1
    finally:
        db.close()

    print(f"\n[SUCCESS] Seeded {len(DEMO_USERS)} users and {len(DEMO_TASKS)} tasks")
    return 0

if __name__ == "__main__":
    sys.exit(main())
