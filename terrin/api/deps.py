from collections.abc import AsyncGenerator

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from terrin.common.enums import Permission, UserRole
from terrin.common.events import discard_events, flush_events
from terrin.common.exceptions import PermissionDeniedError, UnauthorizedError
from terrin.common.permissions import has_permission, normalize_role
from terrin.common.security import decode_token
from terrin.core.users.service import ensure_user_initialized
from terrin.db.models.user import User
from terrin.db.session import async_session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            discard_events(session)
            raise
        await flush_events(session)


def _bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise UnauthorizedError("Authentication required")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError("Invalid authorization header format")
    return token.strip()


async def authenticate_token(token: str, db: AsyncSession) -> User:
    try:
        claims = decode_token(token)
    except ValueError:
        raise UnauthorizedError("Invalid or expired token")

    if not claims.get("sub"):
        raise UnauthorizedError("Invalid token payload")

    user = await ensure_user_initialized(claims, db)
    if user.is_deleted or not user.is_active:
        raise PermissionDeniedError("User account is inactive")
    return user


async def get_current_user(
    authorization: str | None = Header(None, description="Bearer <token>"),
    db: AsyncSession = Depends(get_db),
) -> User:
    return await authenticate_token(_bearer_token(authorization), db)


def require_permission(permission: Permission):
    async def permission_checker(current_user: User = Depends(get_current_user)) -> User:
        if not has_permission(current_user.role, permission):
            raise PermissionDeniedError(
                "Insufficient permissions",
                extra={
                    "required_permission": permission.value,
                    "user_role": normalize_role(current_user.role).value,
                },
            )
        return current_user

    return permission_checker


def require_role(*roles: UserRole):
    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        allowed = {r.value for r in roles} | {UserRole.ADMIN.value}
        if normalize_role(current_user.role).value not in allowed:
            raise PermissionDeniedError(
                f"This action requires one of the following roles: {', '.join(r.value for r in roles)}",
                extra={"user_role": normalize_role(current_user.role).value},
            )
        return current_user

    return role_checker
