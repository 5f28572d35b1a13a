from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class CommentAuthor(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None

    class Config:
        from_attributes = True


class CommentBase(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def validate_content(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("Content is required")
        if len(normalized) > 2000:
            raise ValueError("Content cannot exceed 2000 characters")
        return normalized


class CommentCreate(CommentBase):
    pass


class CommentUpdate(CommentBase):
    pass


class CommentRead(CommentBase):
    id: int
    author_id: int
    task_id: int
    created_at: datetime
    updated_at: Optional[datetime] = None
    author: Optional[CommentAuthor] = None

    class Config:
        from_attributes = True
