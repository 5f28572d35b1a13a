"""Project access control: who may read, contribute to, and manage a project.

A user's standing in a project is never stored as such. It is derived on
every check from three facts held in the database:

  - ownership: ``Project.owner_id``
  - explicit membership: a ``ProjectMember`` row carrying ``admin`` or
    ``contributor``
  - implicit membership: a ``TaskAssignee`` row on any task of the project

The resolver functions below turn those facts into booleans or an effective
``ProjectRole``. The ``can_*`` predicates map each gated operation onto one
resolver function; request handlers call the predicates, never the raw
queries.

Every check fails closed: a missing project yields ``False`` / ``None`` and a
data-store error is logged and treated as "no access" instead of propagating
to the request.
"""

import logging
from typing import Optional, assert_never

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.models.comment import Comment
from app.models.project import Project, ProjectMember, ProjectRole
from app.models.task import Task, TaskAssignee

logger = logging.getLogger(__name__)

# Errors that mean "the store could not answer", as opposed to "no such row".
DATA_STORE_ERRORS = (SQLAlchemyError, OSError)


def role_can_manage_project(role: ProjectRole) -> bool:
    """Whether an effective role may change project structure (name, members)."""
    if role is ProjectRole.owner:
        return True
    if role is ProjectRole.admin:
        return True
    if role is ProjectRole.contributor:
        return False
    assert_never(role)


# ── Subqueries ───────────────────────────────────────────────────


def _membership_exists(user_id: int, *, role: ProjectRole | None = None):
    clause = select(ProjectMember.user_id).where(
        ProjectMember.project_id == Project.id,
        ProjectMember.user_id == user_id,
    )
    if role is not None:
        clause = clause.where(ProjectMember.role == role)
    return clause.exists()


def _assignment_exists(user_id: int):
    return (
        select(TaskAssignee.task_id)
        .join(Task, Task.id == TaskAssignee.task_id)
        .where(
            Task.project_id == Project.id,
            TaskAssignee.user_id == user_id,
        )
        .exists()
    )


async def _project_matches(session: AsyncSession, project_id: int, *conditions) -> bool:
    stmt = select(Project.id).where(Project.id == project_id, or_(*conditions))
    result = await session.exec(stmt)
    return result.first() is not None


# ── Membership resolver ──────────────────────────────────────────


async def has_project_access(
    session: AsyncSession,
    *,
    user_id: int,
    project_id: int,
) -> bool:
    """True if the user owns the project, is a member, or is assigned to one of its tasks."""
    try:
        return await _project_matches(
            session,
            project_id,
            Project.owner_id == user_id,
            _membership_exists(user_id),
            _assignment_exists(user_id),
        )
    except DATA_STORE_ERRORS:
        logger.warning(
            "Project access check failed for user %s on project %s", user_id, project_id, exc_info=True
        )
        return False


async def is_project_admin(
    session: AsyncSession,
    *,
    user_id: int,
    project_id: int,
) -> bool:
    """True for the owner and for ``admin`` members. Task assignment never counts."""
    try:
        return await _project_matches(
            session,
            project_id,
            Project.owner_id == user_id,
            _membership_exists(user_id, role=ProjectRole.admin),
        )
    except DATA_STORE_ERRORS:
        logger.warning(
            "Project admin check failed for user %s on project %s", user_id, project_id, exc_info=True
        )
        return False


async def is_project_owner(
    session: AsyncSession,
    *,
    user_id: int,
    project_id: int,
) -> bool:
    try:
        return await _project_matches(session, project_id, Project.owner_id == user_id)
    except DATA_STORE_ERRORS:
        logger.warning(
            "Project owner check failed for user %s on project %s", user_id, project_id, exc_info=True
        )
        return False


async def _resolve_role(
    session: AsyncSession,
    *,
    user_id: int,
    project_id: int,
) -> Optional[ProjectRole]:
    owner_result = await session.exec(select(Project.owner_id).where(Project.id == project_id))
    owner_id = owner_result.one_or_none()
    if owner_id is None:
        return None
    # Ownership wins even if a stray membership row exists for the owner.
    if owner_id == user_id:
        return ProjectRole.owner

    member_result = await session.exec(
        select(ProjectMember.role).where(
            ProjectMember.project_id == project_id,
            ProjectMember.user_id == user_id,
        )
    )
    stored_role = member_result.one_or_none()
    if stored_role is not None:
        return ProjectRole(stored_role)

    assignment_result = await session.exec(
        select(TaskAssignee.task_id)
        .join(Task, Task.id == TaskAssignee.task_id)
        .where(
            Task.project_id == project_id,
            TaskAssignee.user_id == user_id,
        )
        .limit(1)
    )
    if assignment_result.first() is not None:
        return ProjectRole.contributor
    return None


async def get_user_project_role(
    session: AsyncSession,
    *,
    user_id: int,
    project_id: int,
) -> Optional[ProjectRole]:
    """Effective role: owner, then stored membership role, then contributor via assignment."""
    try:
        return await _resolve_role(session, user_id=user_id, project_id=project_id)
    except DATA_STORE_ERRORS:
        logger.warning(
            "Project role lookup failed for user %s on project %s", user_id, project_id, exc_info=True
        )
        return None


# ── Access predicates ────────────────────────────────────────────


async def can_create_tasks(session: AsyncSession, *, user_id: int, project_id: int) -> bool:
    return await has_project_access(session, user_id=user_id, project_id=project_id)


async def can_modify_tasks(session: AsyncSession, *, user_id: int, project_id: int) -> bool:
    """Any project participant may update or delete tasks, assignees included."""
    return await has_project_access(session, user_id=user_id, project_id=project_id)


async def can_modify_project(session: AsyncSession, *, user_id: int, project_id: int) -> bool:
    return await is_project_admin(session, user_id=user_id, project_id=project_id)


async def can_delete_project(session: AsyncSession, *, user_id: int, project_id: int) -> bool:
    """Only the owner may delete a project; admins may not."""
    return await is_project_owner(session, user_id=user_id, project_id=project_id)


# ── Comment ownership rules ──────────────────────────────────────


def can_update_comment(comment: Comment, *, user_id: int) -> bool:
    """Comment text belongs to its author; project role does not matter."""
    return comment.author_id == user_id


async def can_delete_comment(
    session: AsyncSession,
    comment: Comment,
    *,
    user_id: int,
    project_id: int,
) -> bool:
    if comment.author_id == user_id:
        return True
    return await can_modify_tasks(session, user_id=user_id, project_id=project_id)
