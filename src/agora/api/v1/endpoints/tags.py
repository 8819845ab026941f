"""Tag browsing endpoints."""

from typing import Literal

from fastapi import APIRouter

from agora.schemas.common import Pagination
from agora.schemas.tag import TagListResponse, TagResponse
from agora.services.tag_service import TagService

from ..dependencies import PageDep, SessionDep

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("", response_model=TagListResponse)
async def list_tags(
    db: SessionDep,
    paging: PageDep,
    sort: Literal["popular", "name", "newest"] = "popular",
) -> TagListResponse:
    tags, total = TagService(db).list_tags(page=paging.page, limit=paging.limit, sort=sort)
    return TagListResponse(
        tags=[TagResponse.model_validate(tag) for tag in tags],
        pagination=Pagination.build(page=paging.page, limit=paging.limit, total=total),
    )


@router.get("/{id_or_slug}", response_model=TagResponse)
async def get_tag(id_or_slug: str, db: SessionDep) -> TagResponse:
    """Look a tag up by numeric id or by slug."""
    return TagResponse.model_validate(TagService(db).get_tag(id_or_slug))
