from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import Column, DateTime
from sqlmodel import Enum as SQLEnum, Field, Relationship, SQLModel


class ProjectRole(str, Enum):
    """Effective role of a user inside a project, highest first."""

    owner = "owner"
    admin = "admin"
    contributor = "contributor"


# The owner is derived from Project.owner_id and never stored on a membership row.
MEMBER_ROLES = (ProjectRole.admin, ProjectRole.contributor)


if TYPE_CHECKING:  # pragma: no cover - imported lazily for type checking only
    from app.models.user import User


class Project(SQLModel, table=True):
    __tablename__ = "projects"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, nullable=False)
    description: Optional[str] = Field(default=None)
    owner_id: int = Field(foreign_key="users.id", nullable=False, index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    owner: Optional["User"] = Relationship()
    members: List["ProjectMember"] = Relationship(back_populates="project")


class ProjectMember(SQLModel, table=True):
    __tablename__ = "project_members"

    project_id: int = Field(foreign_key="projects.id", primary_key=True)
    user_id: int = Field(foreign_key="users.id", primary_key=True)
    role: ProjectRole = Field(
        default=ProjectRole.contributor,
        sa_column=Column(SQLEnum(ProjectRole, name="project_role"), nullable=False),
    )
    joined_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    project: Optional[Project] = Relationship(back_populates="members")
    user: Optional["User"] = Relationship()
