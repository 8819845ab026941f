"""Question endpoints for the Agora API."""

from typing import Annotated, Literal

from fastapi import APIRouter, Query, status

from agora.schemas.common import MessageResponse, Pagination
from agora.schemas.question import (
    QuestionCreate,
    QuestionListResponse,
    QuestionResponse,
    QuestionUpdate,
)
from agora.services.question_service import QuestionService

from ..dependencies import CurrentUserDep, OptionalUserDep, PageDep, SessionDep, StaffUserDep

router = APIRouter(prefix="/questions", tags=["questions"])

QuestionSort = Literal["newest", "oldest", "score", "views", "answers", "activity"]


@router.get("", response_model=QuestionListResponse)
async def list_questions(
    db: SessionDep,
    paging: PageDep,
    sort: QuestionSort = "newest",
    tag: Annotated[str | None, Query(max_length=50)] = None,
) -> QuestionListResponse:
    """List active questions with sorting and optional tag filtering."""
    questions, total = QuestionService(db).list_questions(
        page=paging.page,
        limit=paging.limit,
        sort=sort,
        tag=tag,
    )
    return QuestionListResponse(
        questions=[QuestionResponse.model_validate(question) for question in questions],
        pagination=Pagination.build(page=paging.page, limit=paging.limit, total=total),
    )


@router.get("/{question_id}", response_model=QuestionResponse)
async def get_question(
    question_id: int,
    db: SessionDep,
    viewer: OptionalUserDep,
) -> QuestionResponse:
    """Fetch a question and count the view unless the author is looking."""
    service = QuestionService(db)
    question = service.get_question(question_id)
    if viewer is None or viewer.id != question.author_id:
        question = service.get_question(question_id, count_view=True)
    return QuestionResponse.model_validate(question)


@router.post("", response_model=QuestionResponse, status_code=status.HTTP_201_CREATED)
async def create_question(
    question_data: QuestionCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> QuestionResponse:
    question = QuestionService(db).create_question(question_data, current_user)
    return QuestionResponse.model_validate(question)


@router.put("/{question_id}", response_model=QuestionResponse)
async def update_question(
    question_id: int,
    question_data: QuestionUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> QuestionResponse:
    question = QuestionService(db).update_question(question_id, question_data, current_user)
    return QuestionResponse.model_validate(question)


@router.delete("/{question_id}", response_model=MessageResponse)
async def delete_question(
    question_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, str]:
    QuestionService(db).delete_question(question_id, current_user)
    return {"message": "Question deleted successfully"}


@router.post("/{question_id}/close", response_model=QuestionResponse)
async def close_question(
    question_id: int,
    moderator: StaffUserDep,
    db: SessionDep,
) -> QuestionResponse:
    """Close a question to new answers (moderators and admins)."""
    question = QuestionService(db).close_question(question_id, moderator)
    return QuestionResponse.model_validate(question)
