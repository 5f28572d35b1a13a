"""Tests for project access control: the membership resolver, the access
predicates built on it, and the comment ownership rules.

Each test builds a small project graph in the in-memory database:
an owner, explicit members with stored roles, and users whose only link
to the project is a task assignment.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from app.models.project import ProjectRole
from app.services import permissions
from app.testing import add_member, assign, create_project, create_task, create_user

MISSING_PROJECT_ID = 9999


async def _project_graph(session):
    owner = await create_user(session, email="owner@example.com")
    admin = await create_user(session, email="admin@example.com")
    contributor = await create_user(session, email="contributor@example.com")
    assignee = await create_user(session, email="assignee@example.com")
    outsider = await create_user(session, email="outsider@example.com")

    project = await create_project(session, owner)
    await add_member(session, project, admin, role=ProjectRole.admin)
    await add_member(session, project, contributor, role=ProjectRole.contributor)
    task = await create_task(session, project, owner)
    await assign(session, task, assignee)

    return SimpleNamespace(
        owner=owner,
        admin=admin,
        contributor=contributor,
        assignee=assignee,
        outsider=outsider,
        project=project,
        task=task,
    )


def _failing_session() -> AsyncMock:
    session = AsyncMock()
    session.exec.side_effect = OperationalError("SELECT 1", {}, Exception("connection refused"))
    return session


# ── role_can_manage_project ──────────────────────────────────────


@pytest.mark.unit
@pytest.mark.parametrize(
    ("role", "expected"),
    [
        (ProjectRole.owner, True),
        (ProjectRole.admin, True),
        (ProjectRole.contributor, False),
    ],
)
def test_role_can_manage_project(role, expected):
    assert permissions.role_can_manage_project(role) is expected


# ── Membership resolver ──────────────────────────────────────────


@pytest.mark.unit
async def test_has_project_access_covers_every_participant(session):
    graph = await _project_graph(session)

    for user in (graph.owner, graph.admin, graph.contributor, graph.assignee):
        assert await permissions.has_project_access(
            session, user_id=user.id, project_id=graph.project.id
        ), user.email
    assert not await permissions.has_project_access(
        session, user_id=graph.outsider.id, project_id=graph.project.id
    )


@pytest.mark.unit
async def test_is_project_admin_ignores_contributors_and_assignees(session):
    graph = await _project_graph(session)
    project_id = graph.project.id

    assert await permissions.is_project_admin(session, user_id=graph.owner.id, project_id=project_id)
    assert await permissions.is_project_admin(session, user_id=graph.admin.id, project_id=project_id)
    assert not await permissions.is_project_admin(session, user_id=graph.contributor.id, project_id=project_id)
    assert not await permissions.is_project_admin(session, user_id=graph.assignee.id, project_id=project_id)
    assert not await permissions.is_project_admin(session, user_id=graph.outsider.id, project_id=project_id)


@pytest.mark.unit
async def test_is_project_owner_only_matches_owner(session):
    graph = await _project_graph(session)
    project_id = graph.project.id

    assert await permissions.is_project_owner(session, user_id=graph.owner.id, project_id=project_id)
    assert not await permissions.is_project_owner(session, user_id=graph.admin.id, project_id=project_id)


@pytest.mark.unit
async def test_get_user_project_role_precedence(session):
    graph = await _project_graph(session)
    project_id = graph.project.id

    async def role_of(user):
        return await permissions.get_user_project_role(session, user_id=user.id, project_id=project_id)

    assert await role_of(graph.owner) is ProjectRole.owner
    assert await role_of(graph.admin) is ProjectRole.admin
    assert await role_of(graph.contributor) is ProjectRole.contributor
    assert await role_of(graph.assignee) is ProjectRole.contributor
    assert await role_of(graph.outsider) is None


@pytest.mark.unit
async def test_assigned_member_keeps_stored_role(session):
    """A stored admin role is not downgraded by also being assigned to a task."""
    graph = await _project_graph(session)
    await assign(session, graph.task, graph.admin)

    role = await permissions.get_user_project_role(
        session, user_id=graph.admin.id, project_id=graph.project.id
    )
    assert role is ProjectRole.admin


@pytest.mark.unit
async def test_owner_wins_over_stray_membership_row(session):
    graph = await _project_graph(session)
    await add_member(session, graph.project, graph.owner, role=ProjectRole.contributor)

    role = await permissions.get_user_project_role(
        session, user_id=graph.owner.id, project_id=graph.project.id
    )
    assert role is ProjectRole.owner
    assert await permissions.is_project_admin(
        session, user_id=graph.owner.id, project_id=graph.project.id
    )


@pytest.mark.unit
async def test_role_and_access_agree(session):
    """A resolved role exists exactly when the user has access."""
    graph = await _project_graph(session)
    project_id = graph.project.id

    for user in (graph.owner, graph.admin, graph.contributor, graph.assignee, graph.outsider):
        role = await permissions.get_user_project_role(session, user_id=user.id, project_id=project_id)
        access = await permissions.has_project_access(session, user_id=user.id, project_id=project_id)
        assert (role is not None) is access, user.email


@pytest.mark.unit
async def test_missing_project_yields_no_access(session):
    user = await create_user(session)

    assert not await permissions.has_project_access(session, user_id=user.id, project_id=MISSING_PROJECT_ID)
    assert not await permissions.is_project_admin(session, user_id=user.id, project_id=MISSING_PROJECT_ID)
    assert not await permissions.is_project_owner(session, user_id=user.id, project_id=MISSING_PROJECT_ID)
    assert await permissions.get_user_project_role(
        session, user_id=user.id, project_id=MISSING_PROJECT_ID
    ) is None


@pytest.mark.unit
async def test_assignment_in_other_project_grants_nothing(session):
    graph = await _project_graph(session)
    other = await create_project(session, graph.owner)

    assert not await permissions.has_project_access(
        session, user_id=graph.assignee.id, project_id=other.id
    )


@pytest.mark.unit
async def test_resolver_fails_closed_on_store_error(caplog):
    session = _failing_session()

    assert await permissions.has_project_access(session, user_id=1, project_id=1) is False
    assert await permissions.is_project_admin(session, user_id=1, project_id=1) is False
    assert await permissions.is_project_owner(session, user_id=1, project_id=1) is False
    assert await permissions.get_user_project_role(session, user_id=1, project_id=1) is None
    assert "check failed" in caplog.text


# ── Access predicates ────────────────────────────────────────────


@pytest.mark.unit
async def test_task_predicates_allow_any_participant(session):
    graph = await _project_graph(session)
    project_id = graph.project.id

    for user in (graph.owner, graph.admin, graph.contributor, graph.assignee):
        assert await permissions.can_create_tasks(session, user_id=user.id, project_id=project_id)
        assert await permissions.can_modify_tasks(session, user_id=user.id, project_id=project_id)
    assert not await permissions.can_create_tasks(session, user_id=graph.outsider.id, project_id=project_id)
    assert not await permissions.can_modify_tasks(session, user_id=graph.outsider.id, project_id=project_id)


@pytest.mark.unit
async def test_admin_may_modify_but_not_delete_project(session):
    graph = await _project_graph(session)
    project_id = graph.project.id

    assert await permissions.can_modify_project(session, user_id=graph.admin.id, project_id=project_id)
    assert not await permissions.can_delete_project(session, user_id=graph.admin.id, project_id=project_id)
    assert await permissions.can_modify_project(session, user_id=graph.owner.id, project_id=project_id)
    assert await permissions.can_delete_project(session, user_id=graph.owner.id, project_id=project_id)


@pytest.mark.unit
async def test_contributors_may_not_modify_project(session):
    graph = await _project_graph(session)
    project_id = graph.project.id

    for user in (graph.contributor, graph.assignee, graph.outsider):
        assert not await permissions.can_modify_project(session, user_id=user.id, project_id=project_id)
        assert not await permissions.can_delete_project(session, user_id=user.id, project_id=project_id)


@pytest.mark.unit
async def test_predicates_fail_closed_on_store_error():
    session = _failing_session()

    assert not await permissions.can_create_tasks(session, user_id=1, project_id=1)
    assert not await permissions.can_modify_tasks(session, user_id=1, project_id=1)
    assert not await permissions.can_modify_project(session, user_id=1, project_id=1)
    assert not await permissions.can_delete_project(session, user_id=1, project_id=1)


# ── Comment ownership ────────────────────────────────────────────


@pytest.mark.unit
def test_only_author_may_update_comment():
    comment = SimpleNamespace(author_id=7)

    assert permissions.can_update_comment(comment, user_id=7)
    assert not permissions.can_update_comment(comment, user_id=8)


@pytest.mark.unit
async def test_comment_delete_allowed_for_author_and_participants(session):
    graph = await _project_graph(session)
    comment = SimpleNamespace(author_id=graph.contributor.id)
    project_id = graph.project.id

    assert await permissions.can_delete_comment(
        session, comment, user_id=graph.contributor.id, project_id=project_id
    )
    assert await permissions.can_delete_comment(
        session, comment, user_id=graph.assignee.id, project_id=project_id
    )
    assert not await permissions.can_delete_comment(
        session, comment, user_id=graph.outsider.id, project_id=project_id
    )


@pytest.mark.unit
async def test_comment_author_may_delete_without_project_access():
    """Authorship alone is enough; the store is not consulted."""
    session = _failing_session()
    comment = SimpleNamespace(author_id=3)

    assert await permissions.can_delete_comment(session, comment, user_id=3, project_id=1)
    session.exec.assert_not_called()


# ── Scenario ─────────────────────────────────────────────────────


@pytest.mark.unit
async def test_owner_contributor_and_assignee_scenario(session):
    """Owner O, contributor M, and U who is only assigned to a task."""
    from app.services.task_assignments import validate_project_members

    graph = await _project_graph(session)
    project_id = graph.project.id
    owner, member, assignee = graph.owner, graph.contributor, graph.assignee

    assert await permissions.has_project_access(session, user_id=assignee.id, project_id=project_id)
    assert not await permissions.is_project_admin(session, user_id=assignee.id, project_id=project_id)
    assert await permissions.get_user_project_role(
        session, user_id=assignee.id, project_id=project_id
    ) is ProjectRole.contributor
    assert not await validate_project_members(session, project_id=project_id, user_ids=[assignee.id])
    assert not await permissions.can_modify_project(session, user_id=member.id, project_id=project_id)
    assert await permissions.can_modify_project(session, user_id=owner.id, project_id=project_id)
    assert not await permissions.can_delete_project(session, user_id=member.id, project_id=project_id)
