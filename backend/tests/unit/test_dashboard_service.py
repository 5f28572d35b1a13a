"""
Unit tests for the personal dashboard.

Tests app.services.dashboard including:
- Assigned tasks ordered by priority then due date
- Projects grouped with only the caller's tasks and the caller's role
- Counters for total, urgent, overdue and per-status tasks
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel.ext.asyncio.session import AsyncSession

from app.models.project import ProjectRole
from app.models.task import TaskPriority, TaskStatus
from app.services import dashboard as dashboard_service
from app.testing import add_member, assign, create_project, create_task, create_user

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.unit
@pytest.mark.service
async def test_assigned_tasks_ordering(session: AsyncSession):
    owner = await create_user(session)
    project = await create_project(session, owner)
    undated = await create_task(session, project, owner, priority=TaskPriority.urgent)
    late = await create_task(session, project, owner, priority=TaskPriority.urgent, due_date=NOW + timedelta(days=5))
    soon = await create_task(session, project, owner, priority=TaskPriority.urgent, due_date=NOW + timedelta(days=1))
    low = await create_task(session, project, owner, priority=TaskPriority.low, due_date=NOW)
    await create_task(session, project, owner, title="Not mine")
    for task in (undated, late, soon, low):
        await assign(session, task, owner)

    items = await dashboard_service.assigned_tasks(session, user=owner)

    assert [item.task.id for item in items] == [soon.id, late.id, undated.id, low.id]


@pytest.mark.unit
@pytest.mark.service
async def test_projects_with_assigned_tasks_reports_effective_role(session: AsyncSession):
    me = await create_user(session)
    other = await create_user(session)
    mine = await create_project(session, me, name="Alpha")
    admin_of = await create_project(session, other, name="Beta")
    assigned_only = await create_project(session, other, name="Gamma")
    await create_project(session, other, name="Delta")
    await add_member(session, admin_of, me, role=ProjectRole.admin)

    for project in (mine, admin_of, assigned_only):
        await assign(session, await create_task(session, project, other), me)
    await create_task(session, admin_of, other, title="Someone else's")

    views = await dashboard_service.projects_with_assigned_tasks(session, user=me)

    assert [(view.project.name, view.user_role) for view in views] == [
        ("Alpha", ProjectRole.owner),
        ("Beta", ProjectRole.admin),
        ("Gamma", ProjectRole.contributor),
    ]
    assert all(len(view.tasks) == 1 for view in views)


@pytest.mark.unit
@pytest.mark.service
async def test_stats_counts(session: AsyncSession):
    me = await create_user(session)
    owner = await create_user(session)
    first = await create_project(session, owner)
    second = await create_project(session, owner)

    specs = [
        (first, TaskPriority.urgent, TaskStatus.todo, NOW - timedelta(days=1)),
        (first, TaskPriority.high, TaskStatus.done, NOW - timedelta(days=1)),
        (first, TaskPriority.low, TaskStatus.in_progress, NOW + timedelta(days=1)),
        (second, TaskPriority.medium, TaskStatus.cancelled, NOW - timedelta(days=2)),
        (second, TaskPriority.medium, TaskStatus.todo, None),
    ]
    for project, priority, status, due_date in specs:
        task = await create_task(session, project, owner, priority=priority, status=status, due_date=due_date)
        await assign(session, task, me)
    await create_task(session, first, owner, priority=TaskPriority.urgent)

    stats = await dashboard_service.stats(session, user=me, now=NOW)

    assert stats["tasks"]["total"] == 5
    assert stats["tasks"]["urgent"] == 2
    # Cancelled still counts as overdue; only done is excluded.
    assert stats["tasks"]["overdue"] == 2
    assert stats["tasks"]["by_status"] == {"todo": 2, "done": 1, "in_progress": 1, "cancelled": 1}
    assert stats["projects"]["total"] == 2


@pytest.mark.unit
@pytest.mark.service
async def test_stats_for_user_without_tasks(session: AsyncSession):
    me = await create_user(session)

    stats = await dashboard_service.stats(session, user=me, now=NOW)

    assert stats == {
        "tasks": {"total": 0, "urgent": 0, "overdue": 0, "by_status": {}},
        "projects": {"total": 0},
    }
