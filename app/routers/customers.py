"""Sales customer routes."""

import time

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.models.user import User
from app.routers.dependencies import commit_session, get_audit_recorder
from app.schemas.common import MessageResponse
from app.schemas.customers import (
    CustomerCreateRequest,
    CustomerResponse,
    CustomerUpdateRequest,
)
from app.services.audit import Actor, AuditRecorder
from app.services.auth import actor_for, require_user
from app.services.customers import (
    create_customer,
    delete_customer,
    duplicate_code,
    get_customer_or_404,
    snapshot,
    update_customer,
)

RESOURCE_TYPE = "CUSTOMER"

router = APIRouter(prefix="/v1/customers", tags=["customers"])


async def _record_rejected_create(
    recorder: AuditRecorder,
    actor: Actor,
    code: str,
    error: HTTPException,
    started: float,
) -> None:
    """Record a refused customer creation with its elapsed time."""
    await recorder.log_error(
        actor,
        "CREATE",
        RESOURCE_TYPE,
        code,
        str(error.detail),
        duration_ms=int((time.perf_counter() - started) * 1000),
    )


@router.post("", response_model=CustomerResponse)
async def create_customer_route(
    payload: CustomerCreateRequest,
    request: Request,
    user: User = Depends(require_user),
    session: AsyncSession = Depends(get_session),
    recorder: AuditRecorder = Depends(get_audit_recorder),
) -> CustomerResponse:
    """Create a customer."""
    actor = actor_for(user)
    started = time.perf_counter()
    try:
        customer = await create_customer(session, payload)
        await commit_session(session)
    except IntegrityError as exc:
        # A concurrent insert took the code between the check and the commit.
        await session.rollback()
        conflict = duplicate_code(payload.code)
        await _record_rejected_create(recorder, actor, payload.code, conflict, started)
        raise conflict from exc
    except HTTPException as exc:
        await session.rollback()
        await _record_rejected_create(recorder, actor, payload.code, exc, started)
        raise
    await recorder.log_action_with_context(
        request,
        actor,
        "CREATE",
        RESOURCE_TYPE,
        str(customer.id),
        f"Created customer {customer.code}",
        after=snapshot(customer),
    )
    return CustomerResponse.model_validate(customer)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: int,
    _: User = Depends(require_user),
    session: AsyncSession = Depends(get_session),
) -> CustomerResponse:
    """Return a customer."""
    customer = await get_customer_or_404(session, customer_id)
    return CustomerResponse.model_validate(customer)


@router.put("/{customer_id}", response_model=CustomerResponse)
async def update_customer_route(
    customer_id: int,
    payload: CustomerUpdateRequest,
    request: Request,
    user: User = Depends(require_user),
    session: AsyncSession = Depends(get_session),
    recorder: AuditRecorder = Depends(get_audit_recorder),
) -> CustomerResponse:
    """Update a customer and record what changed."""
    customer = await get_customer_or_404(session, customer_id)
    before = snapshot(customer)
    await update_customer(session, customer, payload)
    await commit_session(session)
    await recorder.log_action_with_context(
        request,
        actor_for(user),
        "UPDATE",
        RESOURCE_TYPE,
        str(customer.id),
        f"Updated customer {customer.code}",
        before=before,
        after=snapshot(customer),
    )
    return CustomerResponse.model_validate(customer)


@router.delete("/{customer_id}", response_model=MessageResponse)
async def delete_customer_route(
    customer_id: int,
    request: Request,
    user: User = Depends(require_user),
    session: AsyncSession = Depends(get_session),
    recorder: AuditRecorder = Depends(get_audit_recorder),
) -> MessageResponse:
    """Delete a customer."""
    customer = await get_customer_or_404(session, customer_id)
    before = snapshot(customer)
    await delete_customer(session, customer)
    await commit_session(session)
    await recorder.log_action_with_context(
        request,
        actor_for(user),
        "DELETE",
        RESOURCE_TYPE,
        str(customer_id),
        f"Deleted customer {before.code}",
        before=before,
    )
    return MessageResponse(message="Customer deleted")
