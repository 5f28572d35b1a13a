from typing import List

from fastapi import APIRouter, HTTPException, Query, status

from app.api.deps import CurrentUser, SessionDep
from app.models.user import User
from app.schemas.user import PasswordChange, UserPublic, UserRead, UserUpdate
from app.services import users as users_service

router = APIRouter()


@router.get("/me", response_model=UserRead)
async def read_users_me(current_user: CurrentUser) -> User:
    return current_user


@router.patch("/me", response_model=UserRead)
async def update_users_me(user_in: UserUpdate, session: SessionDep, current_user: CurrentUser) -> User:
    try:
        user = await users_service.update_profile(
            session,
            current_user,
            email=user_in.email,
            full_name=user_in.full_name,
        )
    except users_service.EmailAlreadyRegisteredError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    await session.commit()
    await session.refresh(user)
    return user


@router.post("/me/password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(payload: PasswordChange, session: SessionDep, current_user: CurrentUser) -> None:
    try:
        await users_service.change_password(
            session,
            current_user,
            current_password=payload.current_password,
            new_password=payload.new_password,
        )
    except users_service.InvalidPasswordError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    await session.commit()


@router.get("/search", response_model=List[UserPublic])
async def search_users(
    session: SessionDep,
    current_user: CurrentUser,
    query: str = Query(default=""),
) -> List[User]:
    try:
        return await users_service.search_users(session, query=query)
    except users_service.SearchQueryError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
