from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from app.models.project import ProjectRole
from app.schemas.task import TaskRead
from app.schemas.user import UserPublic


class TaskStats(BaseModel):
    total: int = Field(..., description="Tasks assigned to the user")
    urgent: int = Field(..., description="Assigned tasks with high or urgent priority")
    overdue: int = Field(..., description="Assigned tasks past their due date and not done")
    by_status: Dict[str, int] = Field(default_factory=dict, description="Assigned tasks per status")


class ProjectStats(BaseModel):
    total: int = Field(..., description="Projects containing at least one assigned task")


class DashboardStats(BaseModel):
    tasks: TaskStats
    projects: ProjectStats


class DashboardProject(BaseModel):
    """A project seen through the tasks assigned to the current user."""

    id: int
    name: str
    description: Optional[str] = None
    owner: Optional[UserPublic] = None
    user_role: Optional[ProjectRole] = None
    tasks: List[TaskRead] = Field(default_factory=list)
