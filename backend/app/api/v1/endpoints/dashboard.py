from typing import List

from fastapi import APIRouter

from app.api.deps import CurrentUser, SessionDep
from app.api.v1.endpoints.tasks import serialize_task
from app.schemas.stats import DashboardProject, DashboardStats
from app.schemas.task import TaskRead
from app.schemas.user import UserPublic
from app.services import dashboard as dashboard_service

router = APIRouter()


@router.get("/tasks", response_model=List[TaskRead])
async def assigned_tasks(session: SessionDep, current_user: CurrentUser) -> List[TaskRead]:
    items = await dashboard_service.assigned_tasks(session, user=current_user)
    return [serialize_task(item) for item in items]


@router.get("/projects", response_model=List[DashboardProject])
async def projects_with_tasks(session: SessionDep, current_user: CurrentUser) -> List[DashboardProject]:
    views = await dashboard_service.projects_with_assigned_tasks(session, user=current_user)
    return [
        DashboardProject(
            id=view.project.id,
            name=view.project.name,
            description=view.project.description,
            owner=UserPublic.model_validate(view.project.owner) if view.project.owner else None,
            user_role=view.user_role,
            tasks=[serialize_task(item) for item in view.tasks],
        )
        for view in views
    ]


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(session: SessionDep, current_user: CurrentUser) -> DashboardStats:
    stats = await dashboard_service.stats(session, user=current_user)
    return DashboardStats.model_validate(stats)
