"""Bootstrap routes."""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_session
from app.models.user import User
from app.routers.dependencies import get_audit_recorder
from app.schemas.bootstrap import BootstrapRequest
from app.schemas.common import TokenResponse
from app.services.audit import AuditRecorder
from app.services.auth import actor_for, ensure_bootstrap_allowed
from app.services.security import issue_token

router = APIRouter(prefix="/v1", tags=["bootstrap"])


@router.post("/bootstrap", response_model=TokenResponse)
async def bootstrap(
    payload: BootstrapRequest,
    request: Request,
    session: AsyncSession = Depends(get_session),
    recorder: AuditRecorder = Depends(get_audit_recorder),
) -> TokenResponse:
    """Create the initial administrator.

    Parameters
    ----------
    payload : BootstrapRequest
        Bootstrap request.
    request : Request
        Incoming request, recorded in the audit trail.
    session : AsyncSession
        Active database session.
    recorder : AuditRecorder
        Audit recorder.

    Returns
    -------
    TokenResponse
        Created administrator and its token.
    """
    if not get_settings().bootstrap_enabled:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Bootstrap disabled",
        )
    await ensure_bootstrap_allowed(session)

    issued = issue_token()
    admin = User(
        username=payload.username,
        is_admin=True,
        token_hash=issued.token_hash,
        token_lookup=issued.token_lookup,
    )
    session.add(admin)
    await session.flush()
    await session.commit()
    await recorder.log_action_with_context(
        request,
        actor_for(admin),
        "BOOTSTRAP",
        "USER",
        str(admin.id),
        f"Bootstrapped administrator {admin.username}",
        after={"username": admin.username, "is_admin": True},
    )
    return TokenResponse(
        user_id=admin.id,
        username=admin.username,
        token=issued.plaintext,
    )
