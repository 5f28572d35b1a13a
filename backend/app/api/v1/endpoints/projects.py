from typing import List, NoReturn

from fastapi import APIRouter, HTTPException, status

from app.api.deps import CurrentUser, SessionDep
from app.models.project import ProjectRole
from app.schemas.project import ContributorCreate, ProjectCreate, ProjectRead, ProjectUpdate
from app.services import projects as projects_service
from app.services.projects import ProjectView

router = APIRouter()


def _project_read(view: ProjectView) -> ProjectRead:
    return ProjectRead.model_validate(view.project).model_copy(
        update={
            "task_count": view.task_count,
            "user_role": view.user_role,
            "can_manage": view.can_manage,
        }
    )


def _raise_for(exc: projects_service.ProjectError) -> NoReturn:
    if isinstance(exc, projects_service.ProjectNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, projects_service.ProjectPermissionError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    if isinstance(exc, projects_service.ProjectConflictError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/", response_model=List[ProjectRead])
async def list_projects(session: SessionDep, current_user: CurrentUser) -> List[ProjectRead]:
    views = await projects_service.list_projects(session, user=current_user)
    return [_project_read(view) for view in views]


@router.post("/", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_in: ProjectCreate,
    session: SessionDep,
    current_user: CurrentUser,
) -> ProjectRead:
    view = await projects_service.create_project(
        session,
        owner=current_user,
        name=project_in.name,
        description=project_in.description,
        contributor_emails=[str(email) for email in project_in.contributors],
    )
    await session.commit()
    return _project_read(view)


@router.get("/{project_id}", response_model=ProjectRead)
async def read_project(project_id: int, session: SessionDep, current_user: CurrentUser) -> ProjectRead:
    try:
        view = await projects_service.get_project(session, user=current_user, project_id=project_id)
    except projects_service.ProjectError as exc:
        _raise_for(exc)
    return _project_read(view)


@router.patch("/{project_id}", response_model=ProjectRead)
async def update_project(
    project_id: int,
    project_in: ProjectUpdate,
    session: SessionDep,
    current_user: CurrentUser,
) -> ProjectRead:
    try:
        view = await projects_service.update_project(
            session,
            user=current_user,
            project_id=project_id,
            changes=project_in.model_dump(exclude_unset=True),
        )
    except projects_service.ProjectError as exc:
        _raise_for(exc)
    await session.commit()
    return _project_read(view)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(project_id: int, session: SessionDep, current_user: CurrentUser) -> None:
    try:
        await projects_service.delete_project(session, user=current_user, project_id=project_id)
    except projects_service.ProjectError as exc:
        _raise_for(exc)
    await session.commit()


@router.post("/{project_id}/members", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
async def add_contributor(
    project_id: int,
    member_in: ContributorCreate,
    session: SessionDep,
    current_user: CurrentUser,
) -> ProjectRead:
    try:
        view = await projects_service.add_contributor(
            session,
            actor=current_user,
            project_id=project_id,
            email=str(member_in.email),
            role=ProjectRole(member_in.role),
        )
    except projects_service.ProjectError as exc:
        _raise_for(exc)
    await session.commit()
    return _project_read(view)


@router.delete("/{project_id}/members/{user_id}", response_model=ProjectRead)
async def remove_contributor(
    project_id: int,
    user_id: int,
    session: SessionDep,
    current_user: CurrentUser,
) -> ProjectRead:
    try:
        view = await projects_service.remove_contributor(
            session,
            actor=current_user,
            project_id=project_id,
            user_id=user_id,
        )
    except projects_service.ProjectError as exc:
        _raise_for(exc)
    await session.commit()
    return _project_read(view)
