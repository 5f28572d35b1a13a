"""Personal dashboard: the tasks assigned to a user and the projects they sit in."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import selectinload
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.models.project import Project, ProjectRole
from app.models.task import Task, TaskAssignee, TaskPriority, TaskStatus
from app.models.user import User
from app.services import permissions
from app.services import tasks as tasks_service
from app.services.tasks import PRIORITY_RANK, TaskDetails

URGENT_PRIORITIES = (TaskPriority.high, TaskPriority.urgent)


@dataclass
class DashboardProjectView:
    project: Project
    user_role: Optional[ProjectRole]
    tasks: list[TaskDetails] = field(default_factory=list)


def _assigned_to(user_id: int):
    return Task.id.in_(select(TaskAssignee.task_id).where(TaskAssignee.user_id == user_id))


def _assigned_order():
    # Tasks without a due date go last on every backend.
    return (PRIORITY_RANK, Task.due_date.is_(None), Task.due_date.asc(), Task.id.asc())


async def assigned_tasks(session: AsyncSession, *, user: User) -> list[TaskDetails]:
    stmt = tasks_service.task_query().where(_assigned_to(user.id)).order_by(*_assigned_order())
    result = await session.exec(stmt)
    return await tasks_service.with_details(session, result.all())


async def projects_with_assigned_tasks(session: AsyncSession, *, user: User) -> list[DashboardProjectView]:
    project_ids = select(Task.project_id).where(_assigned_to(user.id))
    project_result = await session.exec(
        select(Project)
        .where(Project.id.in_(project_ids))
        .options(selectinload(Project.owner))
        .order_by(Project.name.asc(), Project.id.asc())
    )
    projects = project_result.all()

    details = await assigned_tasks(session, user=user)
    by_project: dict[int, list[TaskDetails]] = {}
    for item in details:
        by_project.setdefault(item.task.project_id, []).append(item)

    views: list[DashboardProjectView] = []
    for project in projects:
        role = await permissions.get_user_project_role(session, user_id=user.id, project_id=project.id)
        views.append(DashboardProjectView(project=project, user_role=role, tasks=by_project.get(project.id, [])))
    return views


async def _count(session: AsyncSession, *conditions) -> int:
    result = await session.exec(select(func.count(Task.id)).where(*conditions))
    return int(result.one())


async def stats(session: AsyncSession, *, user: User, now: datetime | None = None) -> dict:
    now = now or datetime.now(timezone.utc)
    assigned = _assigned_to(user.id)

    total = await _count(session, assigned)
    urgent = await _count(session, assigned, Task.priority.in_(URGENT_PRIORITIES))
    overdue = await _count(
        session,
        assigned,
        Task.due_date.is_not(None),
        Task.due_date < now,
        Task.status != TaskStatus.done,
    )

    status_result = await session.exec(
        select(Task.status, func.count(Task.id)).where(assigned).group_by(Task.status)
    )
    by_status = {TaskStatus(status).value: count for status, count in status_result.all()}

    projects_result = await session.exec(
        select(func.count(func.distinct(Task.project_id))).where(assigned)
    )
    return {
        "tasks": {"total": total, "urgent": urgent, "overdue": overdue, "by_status": by_status},
        "projects": {"total": int(projects_result.one())},
    }
