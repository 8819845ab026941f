"""Tag lookup and lazy creation."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from agora.core.errors import NotFoundError, ValidationError
from agora.models import Tag, TagStatus

logger = logging.getLogger(__name__)

TAG_NAME_PATTERN = re.compile(r"^[a-z0-9\-_]{2,50}$")
_WHITESPACE = re.compile(r"\s+")

TAG_SORTS = {
    "popular": (Tag.question_count.desc(), Tag.name),
    "name": (Tag.name,),
    "newest": (Tag.created_at.desc(), Tag.id.desc()),
}


def normalize_tag_name(raw: str) -> str:
    """Lowercase a tag name and join words with hyphens.

    Raises:
        ValidationError: If the result is not 2-50 characters of ``[a-z0-9-_]``.
    """
    name = _WHITESPACE.sub("-", raw.strip().lower())
    if not TAG_NAME_PATTERN.match(name):
        raise ValidationError(
            "Validation failed",
            errors=[{
                "field": "tags",
                "message": (
                    f"Invalid tag '{raw}': use 2-50 letters, numbers, hyphens or underscores"
                ),
            }],
        )
    return name


class TagService:
    """Tag queries bound to one database session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def find_or_create_tags(self, names: Iterable[str]) -> list[Tag]:
        """Resolve tag names to rows, creating rows for names never seen before.

        Names are normalized and de-duplicated, keeping first-seen order.
        Runs inside the caller's transaction; a concurrent creation of the
        same name is absorbed by the unique index and the existing row used.
        """
        resolved: list[Tag] = []
        seen: set[str] = set()
        for raw in names:
            name = normalize_tag_name(raw)
            if name in seen:
                continue
            seen.add(name)
            resolved.append(self._find_or_create(name))
        return resolved

    def _find_or_create(self, name: str) -> Tag:
        tag = self.db.scalar(select(Tag).where(Tag.name == name))
        if tag is not None:
            return tag
        tag = Tag(name=name, slug=name)
        try:
            with self.db.begin_nested():
                self.db.add(tag)
        except IntegrityError:
            existing = self.db.scalar(select(Tag).where(Tag.name == name))
            if existing is None:
                raise
            return existing
        logger.info("Created tag %s", name)
        return tag

    def list_tags(
        self,
        *,
        page: int = 1,
        limit: int = 20,
        sort: str = "popular",
    ) -> tuple[list[Tag], int]:
        order_by = TAG_SORTS.get(sort)
        if order_by is None:
            raise ValidationError(f"Unsupported sort '{sort}'")
        base = select(Tag).where(Tag.status == TagStatus.ACTIVE)
        total = self.db.scalar(select(func.count()).select_from(base.subquery())) or 0
        rows = self.db.scalars(base.order_by(*order_by).offset((page - 1) * limit).limit(limit))
        return list(rows), total

    def get_tag(self, id_or_slug: str) -> Tag:
        if id_or_slug.isdigit():
            tag = self.db.get(Tag, int(id_or_slug))
        else:
            tag = self.db.scalar(select(Tag).where(Tag.slug == id_or_slug.lower()))
        if tag is None:
            raise NotFoundError("Tag not found")
        return tag

    @staticmethod
    def adjust_question_counts(tags: Iterable[Tag], delta: int) -> None:
        for tag in tags:
            tag.question_count = max(tag.question_count + delta, 0)
