"""Import all models for Alembic or metadata creation."""

from app.models.user import User
from app.models.project import Project, ProjectMember
from app.models.task import Task, TaskAssignee
from app.models.comment import Comment

__all__ = [
    "User",
    "Project",
    "ProjectMember",
    "Task",
    "TaskAssignee",
    "Comment",
]
