from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.models.project import ProjectRole
from app.schemas.user import UserPublic

MemberRoleLiteral = Literal["admin", "contributor"]


def _normalize_name(value: str) -> str:
    normalized = value.strip()
    if len(normalized) < 2:
        raise ValueError("Project name must be at least 2 characters")
    if len(normalized) > 100:
        raise ValueError("Project name cannot exceed 100 characters")
    return normalized


def _normalize_description(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    normalized = value.strip()
    if len(normalized) > 500:
        raise ValueError("Description cannot exceed 500 characters")
    return normalized or None


class ProjectBase(BaseModel):
    name: str
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _normalize_name(value)

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_description(value)


class ProjectCreate(ProjectBase):
    contributors: List[EmailStr] = Field(default_factory=list)


class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            raise ValueError("Project name cannot be empty")
        return _normalize_name(value)

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_description(value)


class ContributorCreate(BaseModel):
    email: EmailStr
    role: MemberRoleLiteral = "contributor"


class ProjectMemberRead(BaseModel):
    user_id: int
    role: ProjectRole
    joined_at: datetime
    user: Optional[UserPublic] = None

    class Config:
        from_attributes = True


class ProjectRead(ProjectBase):
    id: int
    owner_id: int
    created_at: datetime
    updated_at: datetime
    owner: Optional[UserPublic] = None
    members: List[ProjectMemberRead] = Field(default_factory=list)
    task_count: int = 0
    user_role: Optional[ProjectRole] = None
    can_manage: bool = False

    class Config:
        from_attributes = True
