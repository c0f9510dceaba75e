"""Admin routes."""

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.models.user import User
from app.routers.dependencies import commit_session, get_audit_recorder
from app.schemas.admin import UserCreateRequest, UserResponse, UserUpdateRequest
from app.schemas.common import TokenResponse
from app.services.audit import AuditRecorder
from app.services.auth import actor_for, require_admin
from app.services.security import issue_token

RESOURCE_TYPE = "USER"

router = APIRouter(prefix="/v1/admin", tags=["admin"])


async def _ensure_username_available(session: AsyncSession, *, username: str) -> None:
    """Ensure a username is unused.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    username : str
        Requested username.

    Returns
    -------
    None
        Raises on conflict.
    """
    result = await session.execute(select(User.id).where(User.username == username))
    if result.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username already exists",
        )


async def _get_user_or_404(session: AsyncSession, user_id: int) -> User:
    """Return a user or raise 404.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    user_id : int
        User identifier.

    Returns
    -------
    User
        Matching user row.
    """
    user = await session.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user


@router.post("/users", response_model=TokenResponse)
async def create_user(
    payload: UserCreateRequest,
    request: Request,
    admin: User = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
    recorder: AuditRecorder = Depends(get_audit_recorder),
) -> TokenResponse:
    """Create a user and return its token once."""
    await _ensure_username_available(session, username=payload.username)
    issued = issue_token()
    user = User(
        username=payload.username,
        is_admin=payload.is_admin,
        token_hash=issued.token_hash,
        token_lookup=issued.token_lookup,
    )
    session.add(user)
    await session.flush()
    await commit_session(session)
    await recorder.log_action_with_context(
        request,
        actor_for(admin),
        "CREATE",
        RESOURCE_TYPE,
        str(user.id),
        f"Created user {user.username}",
        after={"username": user.username, "is_admin": user.is_admin},
    )
    return TokenResponse(
        user_id=user.id, username=user.username, token=issued.plaintext
    )


@router.get("/users", response_model=list[UserResponse])
async def list_users(
    _: User = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> list[UserResponse]:
    """List users."""
    result = await session.execute(
        select(User).order_by(User.id.asc()).limit(limit).offset(offset)
    )
    return [UserResponse.model_validate(row) for row in result.scalars().all()]


@router.put("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    payload: UserUpdateRequest,
    request: Request,
    admin: User = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
    recorder: AuditRecorder = Depends(get_audit_recorder),
) -> UserResponse:
    """Rename a user or change its role."""
    user = await _get_user_or_404(session, user_id)
    if payload.username is not None and payload.username != user.username:
        await _ensure_username_available(session, username=payload.username)
    before = {"username": user.username, "is_admin": user.is_admin}
    for field, value in payload.model_dump(exclude_none=True).items():
        setattr(user, field, value)
    after = {"username": user.username, "is_admin": user.is_admin}
    await commit_session(session)
    await recorder.log_action_with_context(
        request,
        actor_for(admin),
        "UPDATE",
        RESOURCE_TYPE,
        str(user.id),
        f"Updated user {user.username}",
        before=before,
        after=after,
    )
    return UserResponse.model_validate(user)
