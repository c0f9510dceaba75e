"""Application entrypoint."""


def main() -> None:
    """Point operators at the ASGI app and the retention job.

    Returns
    -------
    None
        Prints how to run the service and the purge script.
    """
    print("Run with: uvicorn app.main:app --reload")
    print("Purge old audit logs with: python -m scripts.purge_audit_logs --days 90")


if __name__ == "__main__":
    main()
