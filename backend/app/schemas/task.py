from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from app.models.task import TaskPriority, TaskStatus
from app.schemas.comment import CommentRead
from app.schemas.user import UserPublic


def _normalize_title(value: str) -> str:
    normalized = value.strip()
    if len(normalized) < 2:
        raise ValueError("Task title must be at least 2 characters")
    if len(normalized) > 200:
        raise ValueError("Task title cannot exceed 200 characters")
    return normalized


def _normalize_description(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    normalized = value.strip()
    if len(normalized) > 1000:
        raise ValueError("Description cannot exceed 1000 characters")
    return normalized or None


class TaskBase(BaseModel):
    title: str
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.todo
    priority: TaskPriority = TaskPriority.medium
    due_date: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        return _normalize_title(value)

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_description(value)


class TaskCreate(TaskBase):
    assignee_ids: List[int] = Field(default_factory=list)


class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    assignee_ids: Optional[List[int]] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            raise ValueError("Task title cannot be empty")
        return _normalize_title(value)

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_description(value)

    @field_validator("status", "priority")
    @classmethod
    def reject_null_enum(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        if value is None:
            raise ValueError(f"Task {info.field_name} cannot be null")
        return value


class TaskAssigneeRead(BaseModel):
    user: UserPublic
    assigned_at: datetime

    class Config:
        from_attributes = True


class TaskProjectSummary(BaseModel):
    id: int
    name: str
    description: Optional[str] = None

    class Config:
        from_attributes = True


class TaskRead(TaskBase):
    id: int
    project_id: int
    creator_id: int
    created_at: datetime
    updated_at: datetime
    creator: Optional[UserPublic] = None
    project: Optional[TaskProjectSummary] = None
    assignees: List[TaskAssigneeRead] = Field(default_factory=list)
    comments: List[CommentRead] = Field(default_factory=list)

    class Config:
        from_attributes = True
