"""Audit log query routes."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from app.models.audit import AuditLog
from app.models.user import User
from app.routers.dependencies import get_audit_store
from app.schemas.audit import AuditLogResponse, CleanupResponse
from app.schemas.common import PaginatedResponse
from app.services.audit_store import AuditSearchCriteria, AuditStore, PageRequest
from app.services.auth import require_admin, require_user

router = APIRouter(prefix="/v1/audit-logs", tags=["audit"])


def _page(
    store: AuditStore, page: PageRequest, rows: list[AuditLog], total: int
) -> PaginatedResponse[AuditLogResponse]:
    """Wrap search results in the pagination envelope.

    Parameters
    ----------
    store : AuditStore
        Store whose bounds normalized the request.
    page : PageRequest
        Request as received.
    rows : list[AuditLog]
        Records on the page.
    total : int
        Total match count.

    Returns
    -------
    PaginatedResponse[AuditLogResponse]
        Page envelope echoing the normalized page and size.
    """
    normalized = store.normalize_page(page)
    return PaginatedResponse[AuditLogResponse].build(
        [AuditLogResponse.model_validate(row) for row in rows],
        total=total,
        page=normalized.page,
        page_size=normalized.page_size,
    )


@router.get("", response_model=PaginatedResponse[AuditLogResponse])
async def list_audit_logs(
    _: User = Depends(require_user),
    store: AuditStore = Depends(get_audit_store),
    page: int = Query(default=1),
    page_size: int = Query(default=0),
    user_id: int | None = Query(default=None),
    username: str | None = Query(default=None),
    action: str | None = Query(default=None),
    resource_type: str | None = Query(default=None),
    resource_id: str | None = Query(default=None),
    status: str | None = Query(default=None),
    ip_address: str | None = Query(default=None),
    start_time: datetime | None = Query(default=None),
    end_time: datetime | None = Query(default=None),
    search: str | None = Query(default=None),
) -> PaginatedResponse[AuditLogResponse]:
    """Search audit logs, newest first."""
    criteria = AuditSearchCriteria(
        user_id=user_id,
        username=username,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        status=status,
        ip_address=ip_address,
        start_time=start_time,
        end_time=end_time,
        search=search,
    )
    page_request = PageRequest(page=page, page_size=page_size)
    rows, total = await store.search(criteria, page_request)
    return _page(store, page_request, rows, total)


@router.delete("/cleanup", response_model=CleanupResponse)
async def cleanup_audit_logs(
    _: User = Depends(require_admin),
    store: AuditStore = Depends(get_audit_store),
    days: int = Query(),
) -> CleanupResponse:
    """Delete audit logs older than ``days`` days."""
    result = await store.delete_older_than(days)
    return CleanupResponse(success=True, deleted=result.deleted, cutoff=result.cutoff)


@router.get("/user/{user_id}", response_model=PaginatedResponse[AuditLogResponse])
async def list_user_audit_logs(
    user_id: int,
    _: User = Depends(require_user),
    store: AuditStore = Depends(get_audit_store),
    page: int = Query(default=1),
    page_size: int = Query(default=0),
) -> PaginatedResponse[AuditLogResponse]:
    """List audit logs performed by one user."""
    page_request = PageRequest(page=page, page_size=page_size)
    rows, total = await store.get_by_actor(user_id, page_request)
    return _page(store, page_request, rows, total)


@router.get(
    "/resource/{resource_type}/{resource_id:path}",
    response_model=PaginatedResponse[AuditLogResponse],
)
async def list_resource_audit_logs(
    resource_type: str,
    resource_id: str,
    _: User = Depends(require_user),
    store: AuditStore = Depends(get_audit_store),
    page: int = Query(default=1),
    page_size: int = Query(default=0),
) -> PaginatedResponse[AuditLogResponse]:
    """List audit logs targeting one resource."""
    page_request = PageRequest(page=page, page_size=page_size)
    rows, total = await store.get_by_resource(resource_type, resource_id, page_request)
    return _page(store, page_request, rows, total)


@router.get("/{audit_id}", response_model=AuditLogResponse)
async def get_audit_log(
    audit_id: int,
    _: User = Depends(require_user),
    store: AuditStore = Depends(get_audit_store),
) -> AuditLogResponse:
    """Return one audit log."""
    return AuditLogResponse.model_validate(await store.get_by_id(audit_id))
