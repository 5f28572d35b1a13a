from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import case
from sqlalchemy.orm import selectinload
from sqlmodel import delete, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.models.comment import Comment
from app.models.task import Task, TaskAssignee, TaskPriority
from app.models.user import User
from app.services import permissions
from app.services import task_assignments
from app.services.task_assignments import Assignment

logger = logging.getLogger(__name__)

# Urgent work sorts first.
PRIORITY_RANK = case(
    (Task.priority == TaskPriority.urgent, 0),
    (Task.priority == TaskPriority.high, 1),
    (Task.priority == TaskPriority.medium, 2),
    else_=3,
)

UPDATABLE_FIELDS = ("title", "description", "status", "priority", "due_date")


class TaskError(Exception):
    """Base error for task operations."""


class TaskNotFoundError(TaskError):
    """Raised when the task does not exist in the project."""


class TaskPermissionError(TaskError):
    """Raised when the acting user may not touch the project's tasks."""


class TaskValidationError(TaskError):
    """Raised when the assignee list is not acceptable."""


@dataclass
class TaskDetails:
    task: Task
    assignees: list[Assignment] = field(default_factory=list)
    comments: list[Comment] = field(default_factory=list)


def task_query():
    return (
        select(Task)
        .options(selectinload(Task.creator), selectinload(Task.project))
        .execution_options(populate_existing=True)
    )


async def _comments_by_task(session: AsyncSession, task_ids: Sequence[int]) -> dict[int, list[Comment]]:
    grouped: dict[int, list[Comment]] = {task_id: [] for task_id in task_ids}
    if not task_ids:
        return grouped
    stmt = (
        select(Comment)
        .where(Comment.task_id.in_(list(task_ids)))
        .order_by(Comment.created_at.asc(), Comment.id.asc())
        .options(selectinload(Comment.author))
    )
    result = await session.exec(stmt)
    for comment in result.all():
        grouped.setdefault(comment.task_id, []).append(comment)
    return grouped


async def with_details(session: AsyncSession, tasks: Sequence[Task]) -> list[TaskDetails]:
    task_ids = [task.id for task in tasks]
    assignees = await task_assignments.get_assignees_by_task(session, task_ids=task_ids)
    comments = await _comments_by_task(session, task_ids)
    return [
        TaskDetails(task=task, assignees=assignees.get(task.id, []), comments=comments.get(task.id, []))
        for task in tasks
    ]


async def _get_task_in_project(
    session: AsyncSession,
    *,
    project_id: int,
    task_id: int,
) -> Optional[Task]:
    result = await session.exec(
        task_query().where(Task.id == task_id, Task.project_id == project_id)
    )
    return result.one_or_none()


async def _details(session: AsyncSession, *, project_id: int, task_id: int) -> TaskDetails:
    task = await _get_task_in_project(session, project_id=project_id, task_id=task_id)
    if task is None:
        raise TaskNotFoundError("Task not found")
    details = await with_details(session, [task])
    return details[0]


async def _ensure_assignable(session: AsyncSession, *, project_id: int, assignee_ids: Sequence[int]) -> None:
    if not assignee_ids:
        return
    if not await task_assignments.validate_project_members(
        session, project_id=project_id, user_ids=assignee_ids
    ):
        raise TaskValidationError("Some assignees are not members of this project")


async def create_task(
    session: AsyncSession,
    *,
    user: User,
    project_id: int,
    data: dict[str, Any],
) -> TaskDetails:
    if not await permissions.can_create_tasks(session, user_id=user.id, project_id=project_id):
        raise TaskPermissionError("You do not have permission to create tasks in this project")

    assignee_ids = list(data.pop("assignee_ids", None) or [])
    await _ensure_assignable(session, project_id=project_id, assignee_ids=assignee_ids)

    task = Task(project_id=project_id, creator_id=user.id, **data)
    session.add(task)
    await session.flush()
    if assignee_ids:
        await task_assignments.replace_task_assignments(session, task_id=task.id, assignee_ids=assignee_ids)
    return await _details(session, project_id=project_id, task_id=task.id)


async def list_tasks(session: AsyncSession, *, user: User, project_id: int) -> list[TaskDetails]:
    if not await permissions.has_project_access(session, user_id=user.id, project_id=project_id):
        raise TaskPermissionError("Project access denied")
    stmt = (
        task_query()
        .where(Task.project_id == project_id)
        .order_by(PRIORITY_RANK, Task.created_at.desc(), Task.id.desc())
    )
    result = await session.exec(stmt)
    return await with_details(session, result.all())


async def get_task(session: AsyncSession, *, user: User, project_id: int, task_id: int) -> TaskDetails:
    if not await permissions.has_project_access(session, user_id=user.id, project_id=project_id):
        raise TaskPermissionError("Project access denied")
    return await _details(session, project_id=project_id, task_id=task_id)


async def update_task(
    session: AsyncSession,
    *,
    user: User,
    project_id: int,
    task_id: int,
    changes: dict[str, Any],
) -> TaskDetails:
    """Apply a partial update. ``assignee_ids``, when present, replaces the whole assignee set."""
    if not await permissions.can_modify_tasks(session, user_id=user.id, project_id=project_id):
        raise TaskPermissionError("You do not have permission to modify tasks in this project")

    task = await _get_task_in_project(session, project_id=project_id, task_id=task_id)
    if task is None:
        raise TaskNotFoundError("Task not found")

    assignee_ids = changes.pop("assignee_ids", None)
    if assignee_ids is not None:
        await _ensure_assignable(session, project_id=project_id, assignee_ids=assignee_ids)

    for name in UPDATABLE_FIELDS:
        if name in changes:
            setattr(task, name, changes[name])
    task.updated_at = datetime.now(timezone.utc)
    session.add(task)
    await session.flush()

    if assignee_ids is not None:
        await task_assignments.replace_task_assignments(session, task_id=task_id, assignee_ids=assignee_ids)
    return await _details(session, project_id=project_id, task_id=task_id)


async def delete_task(session: AsyncSession, *, user: User, project_id: int, task_id: int) -> None:
    if not await permissions.can_modify_tasks(session, user_id=user.id, project_id=project_id):
        raise TaskPermissionError("You do not have permission to delete tasks in this project")

    task = await _get_task_in_project(session, project_id=project_id, task_id=task_id)
    if task is None:
        raise TaskNotFoundError("Task not found")

    await session.exec(delete(Comment).where(Comment.task_id == task_id))
    await session.exec(delete(TaskAssignee).where(TaskAssignee.task_id == task_id))
    await session.delete(task)
    await session.flush()
    logger.info("Task %s deleted from project %s by user %s", task_id, project_id, user.id)
