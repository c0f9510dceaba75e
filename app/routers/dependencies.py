"""Shared router helpers."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import get_settings
from app.database import get_session_factory
from app.services.audit import AuditRecorder
from app.services.audit_store import AuditStore


async def commit_session(session: AsyncSession) -> None:
    """Commit the current transaction.

    Parameters
    ----------
    session : AsyncSession
        Active database session.

    Returns
    -------
    None
        Commits current transaction.
    """
    await session.commit()


def get_audit_store(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> AuditStore:
    """Build the audit store from settings.

    Parameters
    ----------
    session_factory : async_sessionmaker[AsyncSession]
        Factory for independent audit sessions.

    Returns
    -------
    AuditStore
        Configured store.
    """
    settings = get_settings()
    return AuditStore(
        session_factory,
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )


def get_audit_recorder(store: AuditStore = Depends(get_audit_store)) -> AuditRecorder:
    """Build the audit recorder with the configured failure policy.

    Parameters
    ----------
    store : AuditStore
        Destination store.

    Returns
    -------
    AuditRecorder
        Configured recorder.
    """
    return AuditRecorder(store, failures_fatal=get_settings().audit_failures_fatal)
