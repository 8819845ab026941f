"""Comment endpoints that address a comment directly."""

from fastapi import APIRouter

from agora.schemas.common import MessageResponse
from agora.services import comment_service

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/comments", tags=["comments"])


@router.delete("/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    comment_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, str]:
    """Delete a comment (author, moderator or admin)."""
    comment_service.delete_comment(db, comment_id, current_user)
    return {"message": "Comment deleted successfully"}
