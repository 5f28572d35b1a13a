"""
Shared test utilities and factories.

Re-exports all factory functions for convenient imports:
    from app.testing import create_user, create_project, get_auth_headers
"""

from app.testing.factories import (
    DEFAULT_PASSWORD,
    add_member,
    assign,
    create_comment,
    create_project,
    create_task,
    create_user,
    get_auth_headers,
    get_auth_token,
)

__all__ = [
    "DEFAULT_PASSWORD",
    "add_member",
    "assign",
    "create_comment",
    "create_project",
    "create_task",
    "create_user",
    "get_auth_headers",
    "get_auth_token",
]
