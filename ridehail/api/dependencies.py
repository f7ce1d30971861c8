"""FastAPI dependency injection helpers."""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.config import settings
from ridehail.domain.entities import Caller
from ridehail.domain.errors import AuthenticationError, PermissionDenied
from ridehail.infrastructure.database import async_session_factory
from ridehail.infrastructure.repositories import UserRepository
from ridehail.infrastructure.security import decode_session_token

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_current_caller(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Caller:
    """Resolve the session token (bearer header or cookie) into a ``Caller``."""
    token = credentials.credentials if credentials else None
    token = token or request.cookies.get(settings.session_cookie_name)
    if not token:
        raise AuthenticationError()

    user = await UserRepository(db).get_by_id(decode_session_token(token))
    if user is None:
        raise AuthenticationError()
    return Caller(id=user.id, role=user.role, name=user.name, phone=user.phone)


def caller_for(operation):
    """
    Dependency enforcing the roles an operation declared with
    ``@requires_role``, so a wrong role is refused before the body is read.
    """
    roles = operation.required_roles
    denied = operation.denied_message

    async def dependency(caller: Caller = Depends(get_current_caller)) -> Caller:
        if caller.role not in roles:
            raise PermissionDenied(denied)
        return caller

    return dependency
