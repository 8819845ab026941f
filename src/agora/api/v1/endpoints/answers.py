"""Answer, acceptance and answer-comment endpoints."""

from fastapi import APIRouter, status

from agora.schemas.answer import (
    AnswerCreate,
    AnswerResponse,
    AnswerUpdate,
    CommentCreate,
    CommentResponse,
)
from agora.schemas.common import MessageResponse
from agora.services import comment_service
from agora.services.answer_service import AnswerService

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/answers", tags=["answers"])


@router.post("", response_model=AnswerResponse, status_code=status.HTTP_201_CREATED)
async def create_answer(
    answer_data: AnswerCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> AnswerResponse:
    answer = AnswerService(db).create_answer(answer_data, current_user)
    return AnswerResponse.model_validate(answer)


@router.get("/question/{question_id}", response_model=list[AnswerResponse])
async def list_answers(question_id: int, db: SessionDep) -> list[AnswerResponse]:
    """List a question's answers, accepted answer first."""
    answers = AnswerService(db).list_for_question(question_id)
    return [AnswerResponse.model_validate(answer) for answer in answers]


@router.put("/{answer_id}", response_model=AnswerResponse)
async def update_answer(
    answer_id: int,
    answer_data: AnswerUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> AnswerResponse:
    answer = AnswerService(db).update_answer(answer_id, answer_data, current_user)
    return AnswerResponse.model_validate(answer)


@router.delete("/{answer_id}", response_model=MessageResponse)
async def delete_answer(
    answer_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, str]:
    AnswerService(db).delete_answer(answer_id, current_user)
    return {"message": "Answer deleted successfully"}


@router.post("/{answer_id}/accept", response_model=MessageResponse)
async def accept_answer(
    answer_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, str]:
    """Mark an answer as the accepted answer to its question."""
    return AnswerService(db).accept_answer(answer_id, current_user)


@router.delete("/{answer_id}/accept", response_model=MessageResponse)
async def unaccept_answer(
    answer_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, str]:
    return AnswerService(db).unaccept_answer(answer_id, current_user)


@router.post(
    "/{answer_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    answer_id: int,
    comment_data: CommentCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> CommentResponse:
    comment = comment_service.create_comment(db, answer_id, comment_data, current_user)
    return CommentResponse.model_validate(comment)


@router.get("/{answer_id}/comments", response_model=list[CommentResponse])
async def list_comments(answer_id: int, db: SessionDep) -> list[CommentResponse]:
    comments = comment_service.list_comments(db, answer_id)
    return [CommentResponse.model_validate(comment) for comment in comments]
