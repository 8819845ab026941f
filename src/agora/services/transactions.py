"""Transaction helpers shared by the service layer.

Every mutating service operation runs inside :func:`transaction`, so all of
its row changes become visible together or not at all.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from agora.core.errors import ConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Commit on success and roll back on any error.

    A failed optimistic version check (another request updated the same
    question first) is reported as :class:`ConflictError`.
    """
    try:
        yield db
        db.commit()
    except StaleDataError as err:
        db.rollback()
        raise ConflictError() from err
    except Exception:
        db.rollback()
        raise


def retry_on_conflict(operation: Callable[[], T], *, attempts: int = 2) -> T:
    """Run ``operation`` again when it loses an optimistic concurrency race."""
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except ConflictError:
            if attempt == attempts:
                raise
            logger.info("Concurrent update detected, retrying (attempt %d)", attempt + 1)
    raise AssertionError("unreachable")  # pragma: no cover
