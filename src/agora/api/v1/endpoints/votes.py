"""Vote-related endpoints for the Agora API."""

from fastapi import APIRouter

from agora.models import VoteTargetType
from agora.schemas.common import MessageResponse
from agora.schemas.vote import MyVoteResponse, VoteCreate, VoteRevoke
from agora.services.vote_service import VoteService

from ..dependencies import CurrentUserDep, SessionDep, StaffUserDep, VotingUserDep

router = APIRouter(prefix="/votes", tags=["votes"])


@router.post("", response_model=MessageResponse)
async def cast_vote(
    vote_data: VoteCreate,
    current_user: VotingUserDep,
    db: SessionDep,
) -> dict[str, str]:
    """Cast a vote on a question, answer or comment, or switch an existing one."""
    return VoteService(db).cast_vote(
        current_user,
        vote_data.target,
        vote_data.target_type,
        vote_data.vote_type,
    )


@router.delete("/{target_id}/{target_type}", response_model=MessageResponse)
async def remove_vote(
    target_id: int,
    target_type: VoteTargetType,
    current_user: VotingUserDep,
    db: SessionDep,
) -> dict[str, str]:
    """Withdraw the current user's vote on a target."""
    return VoteService(db).remove_vote(current_user, target_id, target_type)


@router.get("/{target_id}/{target_type}/mine", response_model=MyVoteResponse)
async def get_my_vote(
    target_id: int,
    target_type: VoteTargetType,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> MyVoteResponse:
    """Get current user's vote on a specific target."""
    vote_type = VoteService(db).get_user_vote(current_user.id, target_id, target_type)
    return MyVoteResponse(vote_type=vote_type)


@router.post("/{vote_id}/revoke", response_model=MessageResponse)
async def revoke_vote(
    vote_id: int,
    body: VoteRevoke,
    moderator: StaffUserDep,
    db: SessionDep,
) -> dict[str, str]:
    """Stop a vote from counting toward its target's score."""
    return VoteService(db).revoke_vote(vote_id, moderator, body.reason)
