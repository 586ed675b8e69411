from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from terrin.common.enums import UserRole
from terrin.common.exceptions import BadRequestError
from terrin.common.logging import get_logger
from terrin.common.permissions import normalize_role
from terrin.db.models.user import User

logger = get_logger("users.service")

ASSIGNABLE_ROLES = {"visitor", "homeowner", "professional", "contractor", "both"}


def _split_name(name: str | None) -> tuple[str | None, str | None]:
    if not name:
        return None, None
    first, _, last = name.strip().partition(" ")
    return first or None, last.strip() or None


async def ensure_user_initialized(claims: dict[str, Any], db: AsyncSession) -> User:
    """Return the local mirror of a token identity, creating it on first sight.

    New users start as visitors. Profile fields are refreshed from the
    token claims when they change.
    """
    external_id = claims["sub"]
    result = await db.execute(select(User).where(User.external_id == external_id))
    user = result.scalar_one_or_none()

    email = claims.get("email")
    first_name, last_name = _split_name(claims.get("name"))
    picture = claims.get("picture")

    if user is None:
        user = User(
            external_id=external_id,
            email=email,
            first_name=first_name,
            last_name=last_name,
            profile_image_url=picture,
            role=UserRole.VISITOR.value,
            is_initialized=True,
        )
        db.add(user)
        await db.flush()
        await db.refresh(user)
        logger.info("Initialized user %s (%s) as visitor", user.id, email)
        return user

    changed = False
    for field, value in (
        ("email", email),
        ("first_name", first_name),
        ("last_name", last_name),
        ("profile_image_url", picture),
    ):
        if value and getattr(user, field) != value:
            setattr(user, field, value)
            changed = True
    if not user.is_initialized:
        user.is_initialized = True
        changed = True
    if changed:
        await db.flush()
    return user


async def update_role(user: User, role: str, db: AsyncSession) -> User:
    if role not in ASSIGNABLE_ROLES:
        raise BadRequestError(
            "Invalid role. Must be one of: visitor, homeowner, professional, both"
        )
    new_role = normalize_role(role).value
    if user.role != new_role:
        logger.info("User %s role change: %s -> %s", user.id, user.role, new_role)
        user.role = new_role
        await db.flush()
        await db.refresh(user)
    return user
