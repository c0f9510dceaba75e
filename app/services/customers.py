"""Sales customer operations."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.customer import Customer
from app.schemas.customers import (
    CustomerCreateRequest,
    CustomerSnapshot,
    CustomerUpdateRequest,
)


def snapshot(customer: Customer) -> CustomerSnapshot:
    """Capture the audited state of a customer.

    Parameters
    ----------
    customer : Customer
        Customer row.

    Returns
    -------
    CustomerSnapshot
        Detached copy of the audited fields.
    """
    return CustomerSnapshot.model_validate(customer)


async def get_customer_or_404(session: AsyncSession, customer_id: int) -> Customer:
    """Return a customer or raise 404.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    customer_id : int
        Customer identifier.

    Returns
    -------
    Customer
        Matching customer row.
    """
    customer = await session.get(Customer, customer_id)
    if customer is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found",
        )
    return customer


def duplicate_code(code: str) -> HTTPException:
    """Return the conflict raised for an already used customer code."""
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=f"Customer code {code} already exists",
    )


async def create_customer(
    session: AsyncSession, payload: CustomerCreateRequest
) -> Customer:
    """Insert a customer with a unique code.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    payload : CustomerCreateRequest
        Customer fields.

    Returns
    -------
    Customer
        Flushed customer row.
    """
    result = await session.execute(
        select(Customer.id).where(Customer.code == payload.code)
    )
    if result.scalar_one_or_none() is not None:
        raise duplicate_code(payload.code)
    customer = Customer(**payload.model_dump())
    session.add(customer)
    await session.flush()
    return customer


async def update_customer(
    session: AsyncSession, customer: Customer, payload: CustomerUpdateRequest
) -> Customer:
    """Apply a partial update."""
    for field, value in payload.model_dump(exclude_none=True).items():
        setattr(customer, field, value)
    customer.updated_at = datetime.now(timezone.utc)
    await session.flush()
    return customer


async def delete_customer(session: AsyncSession, customer: Customer) -> None:
    """Remove a customer."""
    await session.delete(customer)
    await session.flush()
