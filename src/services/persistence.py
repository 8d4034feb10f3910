"""Write helpers that translate integrity violations into API errors.

Routers flush inside the request transaction so that constraint violations
surface while the handler can still turn them into a 409, instead of at
commit time after the response has been decided.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import ConflictError, ConstraintKind, classify_integrity_error

logger = logging.getLogger(__name__)


async def flush_or_conflict(
    db: AsyncSession,
    *,
    unique_message: str,
    foreign_key_message: str | None = None,
) -> None:
    """Flush pending changes, mapping constraint violations to ConflictError.

    Args:
        db: Session holding the pending INSERT/UPDATE.
        unique_message: Message used for a unique-constraint violation.
        foreign_key_message: Message used for a foreign-key violation; when
            omitted such violations propagate unchanged.

    Raises:
        ConflictError: on a mapped constraint violation.
        IntegrityError: on any other integrity violation.
    """
    try:
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        kind = classify_integrity_error(exc)
        logger.info("Integrity violation on flush: kind=%s", kind.value)
        if kind is ConstraintKind.UNIQUE:
            raise ConflictError(unique_message) from exc
        if kind is ConstraintKind.FOREIGN_KEY and foreign_key_message:
            raise ConflictError(foreign_key_message) from exc
        raise


async def delete_or_conflict(
    db: AsyncSession,
    stmt: Delete,
    *,
    restrict_message: str,
) -> Any:
    """Execute a DELETE, mapping a referential-restrict violation to ConflictError.

    Raises:
        ConflictError: dependent rows still reference the target row.
    """
    try:
        return await db.execute(stmt)
    except IntegrityError as exc:
        await db.rollback()
        if classify_integrity_error(exc) is ConstraintKind.FOREIGN_KEY:
            raise ConflictError(restrict_message) from exc
        raise
