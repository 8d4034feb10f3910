"""Short, unique, upper-case invite codes for class sections."""

from __future__ import annotations

import secrets
import string

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import ConflictError
from src.models.class_section import ClassSection

INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_ATTEMPTS = 10


def generate_invite_code(length: int = 6) -> str:
    """Random code of *length* characters drawn from A-Z and 0-9."""
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(length))


async def allocate_invite_code(db: AsyncSession, length: int = 6) -> str:
    """Return a freshly generated code that no class currently uses.

    The unique constraint on ``classes.invite_code`` still guards the insert.

    Raises:
        ConflictError: if no free code was found after ``MAX_ATTEMPTS`` tries.
    """
    for _ in range(MAX_ATTEMPTS):
        code = generate_invite_code(length)
        taken = await db.scalar(
            select(ClassSection.id).where(ClassSection.invite_code == code)
        )
        if taken is None:
            return code
    raise ConflictError("Could not allocate a unique invite code, please retry")
