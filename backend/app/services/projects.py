from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import selectinload
from sqlmodel import delete, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.models.comment import Comment
from app.models.project import MEMBER_ROLES, Project, ProjectMember, ProjectRole
from app.models.task import Task, TaskAssignee
from app.models.user import User
from app.services import permissions

logger = logging.getLogger(__name__)


class ProjectError(Exception):
    """Base error for project operations."""


class ProjectNotFoundError(ProjectError):
    """Raised when a project, user or membership cannot be found."""


class ProjectPermissionError(ProjectError):
    """Raised when the acting user may not perform the operation."""


class ProjectValidationError(ProjectError):
    """Raised when an operation would break a project invariant."""


class ProjectConflictError(ProjectError):
    """Raised when a membership already exists."""


@dataclass
class ProjectView:
    """A project together with the caller's standing in it."""

    project: Project
    task_count: int
    user_role: Optional[ProjectRole]

    @property
    def can_manage(self) -> bool:
        if self.user_role is None:
            return False
        return permissions.role_can_manage_project(self.user_role)


def _project_query():
    return (
        select(Project)
        .options(
            selectinload(Project.owner),
            selectinload(Project.members).selectinload(ProjectMember.user),
        )
        .execution_options(populate_existing=True)
    )


async def _task_counts(session: AsyncSession, project_ids: Sequence[int]) -> dict[int, int]:
    if not project_ids:
        return {}
    stmt = (
        select(Task.project_id, func.count(Task.id))
        .where(Task.project_id.in_(list(project_ids)))
        .group_by(Task.project_id)
    )
    result = await session.exec(stmt)
    return {project_id: count for project_id, count in result.all()}


async def _load_view(session: AsyncSession, *, project_id: int, user_id: int) -> ProjectView:
    result = await session.exec(_project_query().where(Project.id == project_id))
    project = result.one_or_none()
    if project is None:
        raise ProjectNotFoundError("Project not found")
    counts = await _task_counts(session, [project_id])
    role = await permissions.get_user_project_role(session, user_id=user_id, project_id=project_id)
    return ProjectView(project=project, task_count=counts.get(project_id, 0), user_role=role)


async def _find_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    result = await session.exec(select(User).where(func.lower(User.email) == email.strip().lower()))
    return result.one_or_none()


async def _get_membership(
    session: AsyncSession,
    *,
    project_id: int,
    user_id: int,
) -> Optional[ProjectMember]:
    result = await session.exec(
        select(ProjectMember).where(
            ProjectMember.project_id == project_id,
            ProjectMember.user_id == user_id,
        )
    )
    return result.one_or_none()


async def _touch(session: AsyncSession, project_id: int) -> None:
    project = await session.get(Project, project_id)
    if project is not None:
        project.updated_at = datetime.now(timezone.utc)
        session.add(project)


async def create_project(
    session: AsyncSession,
    *,
    owner: User,
    name: str,
    description: Optional[str] = None,
    contributor_emails: Sequence[str] = (),
) -> ProjectView:
    project = Project(name=name, description=description, owner_id=owner.id)
    session.add(project)
    await session.flush()

    emails = list(dict.fromkeys(email.strip().lower() for email in contributor_emails if email))
    if emails:
        result = await session.exec(select(User).where(func.lower(User.email).in_(emails)))
        found = result.all()
        found_emails = {user.email.lower() for user in found}
        for email in emails:
            if email not in found_emails:
                logger.debug("Skipping unknown contributor %s for project %s", email, project.id)
        for user in found:
            if user.id == owner.id:
                continue
            session.add(ProjectMember(project_id=project.id, user_id=user.id, role=ProjectRole.contributor))
        await session.flush()

    return await _load_view(session, project_id=project.id, user_id=owner.id)


async def list_projects(session: AsyncSession, *, user: User) -> list[ProjectView]:
    """Projects the user owns or is an explicit member of, most recently updated first."""
    member_of = select(ProjectMember.project_id).where(ProjectMember.user_id == user.id)
    stmt = (
        _project_query()
        .where(or_(Project.owner_id == user.id, Project.id.in_(member_of)))
        .order_by(Project.updated_at.desc(), Project.id.desc())
    )
    result = await session.exec(stmt)
    projects = result.all()
    counts = await _task_counts(session, [project.id for project in projects])
    views: list[ProjectView] = []
    for project in projects:
        role = await permissions.get_user_project_role(session, user_id=user.id, project_id=project.id)
        views.append(ProjectView(project=project, task_count=counts.get(project.id, 0), user_role=role))
    return views


async def get_project(session: AsyncSession, *, user: User, project_id: int) -> ProjectView:
    if not await permissions.has_project_access(session, user_id=user.id, project_id=project_id):
        raise ProjectPermissionError("Project access denied")
    return await _load_view(session, project_id=project_id, user_id=user.id)


async def update_project(
    session: AsyncSession,
    *,
    user: User,
    project_id: int,
    changes: dict[str, Any],
) -> ProjectView:
    if not await permissions.can_modify_project(session, user_id=user.id, project_id=project_id):
        raise ProjectPermissionError("You do not have permission to modify this project")
    project = await session.get(Project, project_id)
    if project is None:
        raise ProjectNotFoundError("Project not found")

    for field in ("name", "description"):
        if field in changes:
            setattr(project, field, changes[field])
    project.updated_at = datetime.now(timezone.utc)
    session.add(project)
    await session.flush()
    return await _load_view(session, project_id=project_id, user_id=user.id)


async def delete_project(session: AsyncSession, *, user: User, project_id: int) -> None:
    if not await permissions.can_delete_project(session, user_id=user.id, project_id=project_id):
        raise ProjectPermissionError("Only the project owner can delete this project")

    task_ids = select(Task.id).where(Task.project_id == project_id)
    await session.exec(delete(Comment).where(Comment.task_id.in_(task_ids)))
    await session.exec(delete(TaskAssignee).where(TaskAssignee.task_id.in_(task_ids)))
    await session.exec(delete(Task).where(Task.project_id == project_id))
    await session.exec(delete(ProjectMember).where(ProjectMember.project_id == project_id))
    await session.exec(delete(Project).where(Project.id == project_id))
    await session.flush()
    logger.info("Project %s deleted by user %s", project_id, user.id)


async def add_contributor(
    session: AsyncSession,
    *,
    actor: User,
    project_id: int,
    email: str,
    role: ProjectRole = ProjectRole.contributor,
) -> ProjectView:
    if role not in MEMBER_ROLES:
        raise ProjectValidationError("Members can only be added as admin or contributor")
    if not await permissions.can_modify_project(session, user_id=actor.id, project_id=project_id):
        raise ProjectPermissionError("You do not have permission to modify this project")

    user = await _find_user_by_email(session, email)
    if user is None:
        raise ProjectNotFoundError("User not found")
    if await permissions.is_project_owner(session, user_id=user.id, project_id=project_id):
        raise ProjectConflictError("User already owns this project")
    if await _get_membership(session, project_id=project_id, user_id=user.id):
        raise ProjectConflictError("User is already a member of this project")

    session.add(ProjectMember(project_id=project_id, user_id=user.id, role=role))
    await _touch(session, project_id)
    await session.flush()
    return await _load_view(session, project_id=project_id, user_id=actor.id)


async def remove_contributor(
    session: AsyncSession,
    *,
    actor: User,
    project_id: int,
    user_id: int,
) -> ProjectView:
    if not await permissions.can_modify_project(session, user_id=actor.id, project_id=project_id):
        raise ProjectPermissionError("You do not have permission to modify this project")
    if await permissions.is_project_owner(session, user_id=user_id, project_id=project_id):
        raise ProjectValidationError("The project owner cannot be removed")

    membership = await _get_membership(session, project_id=project_id, user_id=user_id)
    if membership is None:
        raise ProjectNotFoundError("User is not a member of this project")

    await session.delete(membership)
    await _touch(session, project_id)
    await session.flush()
    return await _load_view(session, project_id=project_id, user_id=actor.id)
