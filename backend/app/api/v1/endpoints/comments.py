from typing import List

from fastapi import APIRouter, HTTPException, status

from app.api.deps import CurrentUser, SessionDep
from app.schemas.comment import CommentCreate, CommentRead, CommentUpdate
from app.services import comments as comments_service

router = APIRouter()


@router.post("/", response_model=CommentRead, status_code=status.HTTP_201_CREATED)
async def create_comment(
    project_id: int,
    task_id: int,
    comment_in: CommentCreate,
    session: SessionDep,
    current_user: CurrentUser,
) -> CommentRead:
    try:
        comment = await comments_service.create_comment(
            session,
            author=current_user,
            project_id=project_id,
            task_id=task_id,
            content=comment_in.content,
        )
    except comments_service.CommentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except comments_service.CommentPermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    await session.commit()
    return CommentRead.model_validate(comment)


@router.get("/", response_model=List[CommentRead])
async def list_comments(
    project_id: int,
    task_id: int,
    session: SessionDep,
    current_user: CurrentUser,
) -> List[CommentRead]:
    try:
        comments = await comments_service.list_comments(
            session,
            user=current_user,
            project_id=project_id,
            task_id=task_id,
        )
    except comments_service.CommentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except comments_service.CommentPermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    return [CommentRead.model_validate(comment) for comment in comments]


@router.get("/{comment_id}", response_model=CommentRead)
async def read_comment(
    project_id: int,
    task_id: int,
    comment_id: int,
    session: SessionDep,
    current_user: CurrentUser,
) -> CommentRead:
    try:
        comment = await comments_service.get_comment(
            session,
            user=current_user,
            project_id=project_id,
            task_id=task_id,
            comment_id=comment_id,
        )
    except comments_service.CommentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except comments_service.CommentPermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    return CommentRead.model_validate(comment)


@router.patch("/{comment_id}", response_model=CommentRead)
async def update_comment(
    project_id: int,
    task_id: int,
    comment_id: int,
    comment_in: CommentUpdate,
    session: SessionDep,
    current_user: CurrentUser,
) -> CommentRead:
    try:
        comment = await comments_service.update_comment(
            session,
            user=current_user,
            project_id=project_id,
            task_id=task_id,
            comment_id=comment_id,
            content=comment_in.content,
        )
    except comments_service.CommentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except comments_service.CommentPermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    await session.commit()
    return CommentRead.model_validate(comment)


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    project_id: int,
    task_id: int,
    comment_id: int,
    session: SessionDep,
    current_user: CurrentUser,
) -> None:
    try:
        await comments_service.delete_comment(
            session,
            user=current_user,
            project_id=project_id,
            task_id=task_id,
            comment_id=comment_id,
        )
    except comments_service.CommentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except comments_service.CommentPermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    await session.commit()
