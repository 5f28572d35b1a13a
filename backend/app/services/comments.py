from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Optional, cast

from sqlalchemy.orm import selectinload
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.models.comment import Comment
from app.models.task import Task
from app.models.user import User
from app.services import permissions


class CommentError(Exception):
    """Base error for comment operations."""


class CommentNotFoundError(CommentError):
    """Raised when a linked resource cannot be found."""


class CommentPermissionError(CommentError):
    """Raised when the user lacks permission to comment."""


async def _ensure_project_access(session: AsyncSession, *, user: User, project_id: int) -> None:
    if not await permissions.has_project_access(session, user_id=user.id, project_id=project_id):
        raise CommentPermissionError("Project access denied")


async def _get_task(session: AsyncSession, *, project_id: int, task_id: int) -> Task:
    stmt = select(Task).where(Task.id == task_id, Task.project_id == project_id)
    result = await session.exec(stmt)
    task = result.one_or_none()
    if task is None:
        raise CommentNotFoundError("Task not found")
    return task


async def _get_comment(
    session: AsyncSession,
    *,
    project_id: int,
    task_id: int,
    comment_id: int,
) -> Comment:
    stmt = (
        select(Comment)
        .join(Task, Task.id == Comment.task_id)
        .where(
            Comment.id == comment_id,
            Comment.task_id == task_id,
            Task.project_id == project_id,
        )
        .options(selectinload(Comment.author))
    )
    result = await session.exec(stmt)
    comment: Optional[Comment] = result.one_or_none()
    if comment is None:
        raise CommentNotFoundError("Comment not found")
    return comment


async def create_comment(
    session: AsyncSession,
    *,
    author: User,
    project_id: int,
    task_id: int,
    content: str,
) -> Comment:
    await _ensure_project_access(session, user=author, project_id=project_id)
    task = await _get_task(session, project_id=project_id, task_id=task_id)

    comment = Comment(content=content, author_id=cast(int, author.id), task_id=cast(int, task.id))
    session.add(comment)
    await session.flush()
    await session.refresh(comment, attribute_names=["author"])
    return comment


async def list_comments(
    session: AsyncSession,
    *,
    user: User,
    project_id: int,
    task_id: int,
) -> Sequence[Comment]:
    await _ensure_project_access(session, user=user, project_id=project_id)
    await _get_task(session, project_id=project_id, task_id=task_id)
    stmt = (
        select(Comment)
        .where(Comment.task_id == task_id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
        .options(selectinload(Comment.author))
    )
    result = await session.exec(stmt)
    return result.all()


async def get_comment(
    session: AsyncSession,
    *,
    user: User,
    project_id: int,
    task_id: int,
    comment_id: int,
) -> Comment:
    await _ensure_project_access(session, user=user, project_id=project_id)
    return await _get_comment(session, project_id=project_id, task_id=task_id, comment_id=comment_id)


async def update_comment(
    session: AsyncSession,
    *,
    user: User,
    project_id: int,
    task_id: int,
    comment_id: int,
    content: str,
) -> Comment:
    await _ensure_project_access(session, user=user, project_id=project_id)
    comment = await _get_comment(session, project_id=project_id, task_id=task_id, comment_id=comment_id)
    if not permissions.can_update_comment(comment, user_id=user.id):
        raise CommentPermissionError("You can only edit your own comments")

    comment.content = content
    comment.updated_at = datetime.now(timezone.utc)
    session.add(comment)
    await session.flush()
    return comment


async def delete_comment(
    session: AsyncSession,
    *,
    user: User,
    project_id: int,
    task_id: int,
    comment_id: int,
) -> None:
    await _ensure_project_access(session, user=user, project_id=project_id)
    comment = await _get_comment(session, project_id=project_id, task_id=task_id, comment_id=comment_id)
    if not await permissions.can_delete_comment(session, comment, user_id=user.id, project_id=project_id):
        raise CommentPermissionError("You can only delete your own comments")

    await session.delete(comment)
    await session.flush()
