"""Delete audit logs older than the configured retention window."""

from __future__ import annotations

import argparse
import logging

import anyio

from app.config import get_settings
from app.database import SessionLocal
from app.logging_config import configure_logging
from app.services.audit_store import AuditStore, RetentionResult

logger = logging.getLogger("purge_audit_logs")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Parameters
    ----------
    argv : list[str] | None, default=None
        Arguments to parse instead of ``sys.argv``.

    Returns
    -------
    argparse.Namespace
        Parsed arguments.
    """
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--days",
        type=int,
        default=None,
        help="Retention window in days (defaults to ERP_AUDIT_AUDIT_RETENTION_DAYS).",
    )
    return parser.parse_args(argv)


async def purge(days: int) -> RetentionResult:
    """Run one retention cleanup.

    Parameters
    ----------
    days : int
        Positive retention window.

    Returns
    -------
    RetentionResult
        Cutoff and number of deleted rows.
    """
    store = AuditStore(SessionLocal)
    return await store.delete_older_than(days)


def main(argv: list[str] | None = None) -> None:
    """Entry point for cron-style retention runs.

    Parameters
    ----------
    argv : list[str] | None, default=None
        Arguments to parse instead of ``sys.argv``.

    Returns
    -------
    None
        Logs the outcome.
    """
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)
    args = parse_args(argv)
    days = args.days if args.days is not None else settings.audit_retention_days
    result = anyio.run(purge, days)
    logger.info(
        "Purged audit logs older than %s",
        result.cutoff.isoformat(),
        extra={"retention_days": days, "deleted": result.deleted},
    )


if __name__ == "__main__":
    main()
