"""Authentication dependencies."""

from __future__ import annotations

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.models.user import User
from app.services.audit import Actor
from app.services.security import lookup_hash, verify_token

bearer_scheme = HTTPBearer(auto_error=False)


async def require_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Authenticate a bearer token.

    Parameters
    ----------
    credentials : HTTPAuthorizationCredentials | None
        Parsed bearer token.
    session : AsyncSession
        Active database session.

    Returns
    -------
    User
        Authenticated user row.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing token",
        )
    raw_token = credentials.credentials
    result = await session.execute(
        select(User).where(User.token_lookup == lookup_hash(raw_token))
    )
    user = result.scalar_one_or_none()
    if user is None or not verify_token(raw_token, user.token_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )
    return user


async def require_admin(user: User = Depends(require_user)) -> User:
    """Require an authenticated administrator.

    Parameters
    ----------
    user : User
        Authenticated user.

    Returns
    -------
    User
        The same user when it is an administrator.
    """
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator privileges required",
        )
    return user


async def ensure_bootstrap_allowed(session: AsyncSession) -> None:
    """Ensure no user exists yet.

    Parameters
    ----------
    session : AsyncSession
        Active database session.

    Returns
    -------
    None
        Raises when bootstrap is already complete.
    """
    result = await session.execute(select(User.id).limit(1))
    if result.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Bootstrap already completed",
        )


def actor_for(user: User) -> Actor:
    """Return the audit identity of a user."""
    return Actor(user_id=user.id, username=user.username)
