"""User profile and leaderboard endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query

from agora.schemas.common import MessageResponse
from agora.schemas.user import PublicUserResponse, UserResponse, UserUpdate
from agora.services import user_service

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: CurrentUserDep) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.put("/me", response_model=UserResponse)
async def update_me(
    update_data: UserUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> UserResponse:
    """Update the caller's username, email or bio."""
    user = user_service.update_user(db, current_user, update_data)
    return UserResponse.model_validate(user)


@router.delete("/me", response_model=MessageResponse)
async def deactivate_me(current_user: CurrentUserDep, db: SessionDep) -> dict[str, str]:
    user_service.deactivate_user(db, current_user)
    return {"message": "Account deactivated successfully"}


@router.get("/leaderboard", response_model=list[PublicUserResponse])
async def get_leaderboard(
    db: SessionDep,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> list[PublicUserResponse]:
    """Return the highest-reputation active users."""
    return [PublicUserResponse.model_validate(user) for user in user_service.leaderboard(db, limit)]


@router.get("/profile/{username}", response_model=PublicUserResponse)
async def get_public_profile(username: str, db: SessionDep) -> PublicUserResponse:
    return PublicUserResponse.model_validate(user_service.get_user_by_username(db, username))
