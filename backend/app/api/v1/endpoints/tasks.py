from typing import List, NoReturn

from fastapi import APIRouter, HTTPException, status

from app.api.deps import CurrentUser, SessionDep
from app.schemas.comment import CommentRead
from app.schemas.task import TaskAssigneeRead, TaskCreate, TaskRead, TaskUpdate
from app.services import tasks as tasks_service
from app.services.tasks import TaskDetails

router = APIRouter()


def serialize_task(details: TaskDetails) -> TaskRead:
    return TaskRead.model_validate(details.task).model_copy(
        update={
            "assignees": [TaskAssigneeRead.model_validate(item) for item in details.assignees],
            "comments": [CommentRead.model_validate(comment) for comment in details.comments],
        }
    )


def _raise_for(exc: tasks_service.TaskError) -> NoReturn:
    if isinstance(exc, tasks_service.TaskNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, tasks_service.TaskPermissionError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/", response_model=List[TaskRead])
async def list_tasks(project_id: int, session: SessionDep, current_user: CurrentUser) -> List[TaskRead]:
    try:
        items = await tasks_service.list_tasks(session, user=current_user, project_id=project_id)
    except tasks_service.TaskError as exc:
        _raise_for(exc)
    return [serialize_task(item) for item in items]


@router.post("/", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def create_task(
    project_id: int,
    task_in: TaskCreate,
    session: SessionDep,
    current_user: CurrentUser,
) -> TaskRead:
    try:
        details = await tasks_service.create_task(
            session,
            user=current_user,
            project_id=project_id,
            data=task_in.model_dump(),
        )
    except tasks_service.TaskError as exc:
        _raise_for(exc)
    await session.commit()
    return serialize_task(details)


@router.get("/{task_id}", response_model=TaskRead)
async def read_task(project_id: int, task_id: int, session: SessionDep, current_user: CurrentUser) -> TaskRead:
    try:
        details = await tasks_service.get_task(session, user=current_user, project_id=project_id, task_id=task_id)
    except tasks_service.TaskError as exc:
        _raise_for(exc)
    return serialize_task(details)


@router.patch("/{task_id}", response_model=TaskRead)
async def update_task(
    project_id: int,
    task_id: int,
    task_in: TaskUpdate,
    session: SessionDep,
    current_user: CurrentUser,
) -> TaskRead:
    try:
        details = await tasks_service.update_task(
            session,
            user=current_user,
            project_id=project_id,
            task_id=task_id,
            changes=task_in.model_dump(exclude_unset=True),
        )
    except tasks_service.TaskError as exc:
        _raise_for(exc)
    await session.commit()
    return serialize_task(details)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(project_id: int, task_id: int, session: SessionDep, current_user: CurrentUser) -> None:
    try:
        await tasks_service.delete_task(session, user=current_user, project_id=project_id, task_id=task_id)
    except tasks_service.TaskError as exc:
        _raise_for(exc)
    await session.commit()
