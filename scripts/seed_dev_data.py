"""Dev data seeder for Taskboard.

Usage:
    python seed_dev_data.py          # Create test data
    python seed_dev_data.py --clean  # Remove seeded test data

Designed to run from the backend/ directory (CWD) so app imports resolve.
Saves created IDs to .vscode/.dev_seed_ids.json for cleanup.

Creates four users and two projects covering every way of reaching a
project: ownership, admin and contributor membership, and a plain task
assignment. All accounts use the password ``Password1``.
"""

from __future__ import annotations

import asyncio
import json
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# ---------------------------------------------------------------------------
# Bootstrap: add backend/ to sys.path so `app.*` imports work when invoked
# as `python ../scripts/seed_dev_data.py` from the backend/ directory.
# ---------------------------------------------------------------------------
BACKEND_DIR = Path(__file__).resolve().parent.parent / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from sqlmodel import delete, select  # noqa: E402

from app.core.security import get_password_hash  # noqa: E402
from app.db.session import AsyncSessionLocal  # noqa: E402
from app.models.comment import Comment  # noqa: E402
from app.models.project import Project, ProjectMember, ProjectRole  # noqa: E402
from app.models.task import Task, TaskAssignee, TaskPriority, TaskStatus  # noqa: E402
from app.models.user import User  # noqa: E402

STATE_FILE = Path(__file__).resolve().parent.parent / ".vscode" / ".dev_seed_ids.json"
PASSWORD = "Password1"

USERS = [
    ("ada@taskboard.dev", "Ada Owner"),
    ("grace@taskboard.dev", "Grace Admin"),
    ("linus@taskboard.dev", "Linus Contributor"),
    ("ken@taskboard.dev", "Ken Assignee"),
]


def _save_state(state: dict) -> None:
    STATE_FILE.parent.mkdir(parents=True, exist_ok=True)
    STATE_FILE.write_text(json.dumps(state, indent=2))


def _load_state() -> dict | None:
    if not STATE_FILE.exists():
        return None
    return json.loads(STATE_FILE.read_text())


async def seed() -> None:
    if _load_state() is not None:
        print("Seed data already exists (.vscode/.dev_seed_ids.json found).")
        print("Run with --clean first to remove it.")
        return

    now = datetime.now(timezone.utc)
    async with AsyncSessionLocal() as session:
        async with session.begin():
            existing = await session.exec(select(User).where(User.email.in_([email for email, _ in USERS])))
            if existing.first() is not None:
                print("Seed users already exist; aborting.")
                return

            users = [
                User(email=email, full_name=name, hashed_password=get_password_hash(PASSWORD))
                for email, name in USERS
            ]
            session.add_all(users)
            await session.flush()
            ada, grace, linus, ken = users
            print(f"  Created {len(users)} users")

            launch = Project(name="Product Launch", description="Everything for the spring release", owner_id=ada.id)
            garden = Project(name="Office Garden", description="Plants, pots and watering rota", owner_id=grace.id)
            session.add_all([launch, garden])
            await session.flush()
            session.add_all(
                [
                    ProjectMember(project_id=launch.id, user_id=grace.id, role=ProjectRole.admin),
                    ProjectMember(project_id=launch.id, user_id=linus.id, role=ProjectRole.contributor),
                ]
            )
            print("  Created 2 projects")

            tasks = [
                Task(project_id=launch.id, creator_id=ada.id, title="Write release notes",
                     priority=TaskPriority.high, due_date=now + timedelta(days=3)),
                Task(project_id=launch.id, creator_id=grace.id, title="Fix checkout crash",
                     priority=TaskPriority.urgent, status=TaskStatus.in_progress, due_date=now - timedelta(days=1)),
                Task(project_id=launch.id, creator_id=linus.id, title="Update screenshots",
                     priority=TaskPriority.low),
                Task(project_id=garden.id, creator_id=grace.id, title="Buy compost",
                     priority=TaskPriority.medium, status=TaskStatus.done),
            ]
            session.add_all(tasks)
            await session.flush()
            notes, crash, screenshots, compost = tasks

            session.add_all(
                [
                    TaskAssignee(task_id=notes.id, user_id=ada.id),
                    TaskAssignee(task_id=crash.id, user_id=linus.id),
                    TaskAssignee(task_id=crash.id, user_id=grace.id),
                    TaskAssignee(task_id=screenshots.id, user_id=linus.id),
                    # Ken only reaches the garden project through this assignment.
                    TaskAssignee(task_id=compost.id, user_id=ken.id),
                ]
            )
            session.add_all(
                [
                    Comment(task_id=crash.id, author_id=linus.id, content="Reproduced on staging."),
                    Comment(task_id=crash.id, author_id=grace.id, content="Patch is in review."),
                    Comment(task_id=compost.id, author_id=ken.id, content="Two bags on the balcony."),
                ]
            )
            await session.flush()
            print(f"  Created {len(tasks)} tasks with assignees and comments")

            state = {
                "users": [user.id for user in users],
                "projects": [launch.id, garden.id],
            }

    _save_state(state)
    print(f"Done! Log in as any of {', '.join(email for email, _ in USERS)} with password {PASSWORD}.")


async def clean() -> None:
    state = _load_state()
    if state is None:
        print("No seed state found; nothing to clean.")
        return

    project_ids = state.get("projects", [])
    user_ids = state.get("users", [])
    async with AsyncSessionLocal() as session:
        async with session.begin():
            task_ids = select(Task.id).where(Task.project_id.in_(project_ids))
            await session.exec(delete(Comment).where(Comment.task_id.in_(task_ids)))
            await session.exec(delete(TaskAssignee).where(TaskAssignee.task_id.in_(task_ids)))
            await session.exec(delete(Task).where(Task.project_id.in_(project_ids)))
            await session.exec(delete(ProjectMember).where(ProjectMember.project_id.in_(project_ids)))
            await session.exec(delete(Project).where(Project.id.in_(project_ids)))
            print("  Removed projects, tasks, assignees and comments")

            await session.exec(delete(User).where(User.id.in_(user_ids)))
            print("  Removed users")

    STATE_FILE.unlink(missing_ok=True)
    print("Done! All seeded data removed.")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    if "--clean" in sys.argv:
        asyncio.run(clean())
    else:
        asyncio.run(seed())
