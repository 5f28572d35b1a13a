from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from sqlmodel import delete, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.models.project import Project, ProjectMember
from app.models.task import TaskAssignee
from app.models.user import User


@dataclass
class Assignment:
    user: User
    assigned_at: datetime


def unique_ids(values: Sequence[int]) -> list[int]:
    """Drop repeated ids, keeping the first occurrence of each."""
    return list(dict.fromkeys(values))


async def validate_project_members(
    session: AsyncSession,
    *,
    project_id: int,
    user_ids: Sequence[int],
) -> bool:
    """Check that every candidate is the project owner or has a membership row.

    Users who only reach the project through an existing task assignment are
    not eligible: assignment is limited to the owner and explicit members.
    """
    if not user_ids:
        return True

    owner_result = await session.exec(select(Project.owner_id).where(Project.id == project_id))
    owner_id = owner_result.one_or_none()
    if owner_id is None:
        return False

    members_result = await session.exec(
        select(ProjectMember.user_id).where(
            ProjectMember.project_id == project_id,
            ProjectMember.user_id.in_(list(set(user_ids))),
        )
    )
    valid_ids = {owner_id, *members_result.all()}
    return all(user_id in valid_ids for user_id in user_ids)


async def replace_task_assignments(
    session: AsyncSession,
    *,
    task_id: int,
    assignee_ids: Sequence[int],
) -> None:
    """Replace the assignee set of a task.

    Existing rows are deleted before the new ones are inserted. Nothing is
    committed here: the caller commits once so the swap is observed as a unit.
    """
    await session.exec(delete(TaskAssignee).where(TaskAssignee.task_id == task_id))
    for user_id in unique_ids(assignee_ids):
        session.add(TaskAssignee(task_id=task_id, user_id=user_id))
    await session.flush()


async def get_task_assignees(session: AsyncSession, *, task_id: int) -> list[Assignment]:
    stmt = (
        select(User, TaskAssignee.assigned_at)
        .join(TaskAssignee, TaskAssignee.user_id == User.id)
        .where(TaskAssignee.task_id == task_id)
        .order_by(TaskAssignee.assigned_at.asc(), User.id.asc())
    )
    result = await session.exec(stmt)
    return [Assignment(user=user, assigned_at=assigned_at) for user, assigned_at in result.all()]


async def get_assignees_by_task(
    session: AsyncSession,
    *,
    task_ids: Sequence[int],
) -> dict[int, list[Assignment]]:
    """Assignees for many tasks in a single query, keyed by task id."""
    grouped: dict[int, list[Assignment]] = {task_id: [] for task_id in task_ids}
    if not task_ids:
        return grouped
    stmt = (
        select(TaskAssignee.task_id, User, TaskAssignee.assigned_at)
        .join(User, User.id == TaskAssignee.user_id)
        .where(TaskAssignee.task_id.in_(list(task_ids)))
        .order_by(TaskAssignee.assigned_at.asc(), User.id.asc())
    )
    result = await session.exec(stmt)
    for task_id, user, assigned_at in result.all():
        grouped.setdefault(task_id, []).append(Assignment(user=user, assigned_at=assigned_at))
    return grouped
